"""
Broker request schemas for the order, report and watchlist tools.
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator


class ReportType(str, Enum):
    HOLDINGS = "holdings"
    POSITIONS = "positions"
    ORDER_BOOK = "order_book"


class OrderItem(BaseModel):
    """Fields shared by new and modified orders."""
    exchange_name: int = Field(description="Exchange name identifier, NSE=1, NFO=2, BSE=3, BFO=4")
    token: str = Field(description="Scrip token from the search tool")
    trading_symbol: str = Field(description="Trading symbol, e.g. RELIANCE-EQ")
    quantity: int = Field(description="Quantity to trade")
    price: str = Field("0", description="Price for the order, 0 for market orders")
    trigger_price: Optional[str] = Field(None, description="Trigger price for stop orders")
    order_type: int = Field(description="Type of order, 1=Market, 2=Limit, 3=Stop, 4=Stop Limit")
    transaction_type: int = Field(description="Buy (1) or Sell (2)")
    price_type: int = Field(description="1=LMT, 2=MKT, 3=SLLMT, 4=SLMKT, 5=DS, 6=TWOLEG, 7=THREELEG")
    validity: int = Field(0, description="Validity of the order")
    disclosed_quantity: int = Field(0, description="Disclosed quantity for the order")
    is_amo: bool = Field(False, description="Whether this is an After Market Order")

    # Protection parameters
    target_price: Optional[str] = Field(None, description="Target price for the order")
    stop_loss_price: Optional[str] = Field(None, description="Stop loss price for the order")
    trailing_price: Optional[str] = Field(None, description="Trailing price for the order")

    @field_validator("trading_symbol")
    @classmethod
    def validate_trading_symbol(cls, v):
        if not v.strip():
            raise ValueError("trading_symbol is required")
        return v.strip()

    @field_validator("quantity")
    @classmethod
    def validate_quantity(cls, v):
        if v <= 0:
            raise ValueError("quantity must be greater than 0")
        return v

    @field_validator("transaction_type")
    @classmethod
    def validate_transaction_type(cls, v):
        if v not in (1, 2):
            raise ValueError("transaction_type must be 1 (Buy) or 2 (Sell)")
        return v


class OrderRequest(OrderItem):
    """A new order; the client stamps order_source before sending."""
    pass


class ModifyOrderRequest(OrderItem):
    oms_id: str = Field(description="OMS id of the order to modify")
    order_id: str = Field(description="Order id of the order to modify")


class CancelOrderRequest(BaseModel):
    oms_id: str = Field(description="OMS id of the order to cancel")
    order_id: str = Field(description="Order id of the order to cancel")


class WatchlistRequest(BaseModel):
    name: str = Field(description="Watchlist name")
    token: Optional[str] = Field(None, description="Scrip token to add")
    exchange_name: Optional[int] = Field(None, description="Exchange of the scrip, NSE=1, NFO=2, BSE=3, BFO=4")
    trading_symbol: Optional[str] = Field(None, description="Trading symbol of the scrip")


class PriceRequest(BaseModel):
    mode: int = 3
    symbols: List[str]
