"""
Prompt templates that walk the agent through multi-tool workflows.
"""

import logging
from typing import Optional

from mcp.server.fastmcp import FastMCP

logger = logging.getLogger("prompts")

PLACE_ORDER_TEXT = """search for {trading_symbol} using "search" tool to get token, exchange_name, trading_symbol if already not present
get price of {trading_symbol} using "get_price" tool if price type is not market
call "place_order" with token, exchange_name, trading_symbol, quantity={quantity}, transaction_type={transaction_type}, price_type={price_type}, price={price}, order_type={order_type}
"""

TRADE_IDEAS_TEXT = """get trade ideas
call "research" tool
if "research" tool returns error, search internet for trending stocks to buy
do analysis of trending stocks to buy before suggesting it to user
"""

CREATE_WATCHLIST_TEXT = """create watchlist {watchlist_name}
call "get_watchlist" tool to check if watchlist {watchlist_name} already exists, if not call "new_watchlist"
get token, exchange_name, trading_symbol for {scrip} using "search" tool
call "create_watchlist" tool to add {scrip} to watchlist {watchlist_name}
"""

PORTFOLIO_ANALYSIS_TEXT = """portfolio analysis
call "reports_tool" with holdings and with positions
call "get_price" for every holding to get the current quote
do SWOT analysis for each stock in the portfolio
summarise concentration, profit and loss, and suggest rebalancing if needed
"""


def register_prompts(mcp: FastMCP) -> None:
    @mcp.prompt(name="place-order", description="Place an order for stocks")
    def place_order(
        trading_symbol: str,
        quantity: str,
        transaction_type: str,
        price_type: str,
        order_type: str,
        price: Optional[str] = None,
    ) -> str:
        logger.info(f"[prompts] place-order for {trading_symbol}")
        return PLACE_ORDER_TEXT.format(
            trading_symbol=trading_symbol,
            quantity=quantity,
            transaction_type=transaction_type,
            price_type=price_type,
            price=price or "0",
            order_type=order_type,
        )

    @mcp.prompt(name="get-trade-ideas", description="Get trade ideas")
    def get_trade_ideas() -> str:
        return TRADE_IDEAS_TEXT

    @mcp.prompt(name="create-watchlist", description="Create a watchlist")
    def create_watchlist(watchlist_name: str, scrip: str) -> str:
        return CREATE_WATCHLIST_TEXT.format(watchlist_name=watchlist_name, scrip=scrip)

    @mcp.prompt(name="portfolio-analysis", description="Analyse the current portfolio")
    def portfolio_analysis() -> str:
        return PORTFOLIO_ANALYSIS_TEXT
