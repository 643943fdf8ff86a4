"""
Inbound frame decoder for the streaming price feed.

Frames are JSON objects tagged by their single top-level key, e.g.
``{"feed": {"symbol": "nse:RELIANCE-EQ", "ltp": 1234.5}}``. Only the ``feed``
variant carries ticks; every other tag decodes to an ``OtherFrame``.
"""

import json
import logging
from typing import Union

from pydantic import ValidationError as PydanticValidationError

from wealthy_mcp.errors import FrameDecodeError
from wealthy_mcp.observability.metrics import record_ws_decode_error, record_ws_message
from wealthy_mcp.schemas.market import FeedTick, OtherFrame
from wealthy_mcp.services.price_cache import PriceCache

logger = logging.getLogger("feed_decoder")

FEED_TAG = "feed"

DecodedFrame = Union[FeedTick, OtherFrame]


def decode_frame(raw: Union[str, bytes]) -> DecodedFrame:
    """Decode one raw frame into a tick or an ignorable frame.

    Raises:
        FrameDecodeError: the frame is not JSON, not an object, or its feed
            payload does not carry a symbol and a numeric price
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise FrameDecodeError(f"Non UTF-8 frame: {e}") from e

    try:
        message = json.loads(raw)
    except json.JSONDecodeError as e:
        raise FrameDecodeError(f"JSON decode error: {e}", {"raw": raw[:200]}) from e

    if not isinstance(message, dict) or not message:
        raise FrameDecodeError("Frame is not a tagged object", {"raw": raw[:200]})

    if FEED_TAG in message:
        payload = message[FEED_TAG]
        if not isinstance(payload, dict):
            raise FrameDecodeError("Feed payload is not an object", {"raw": raw[:200]})
        try:
            return FeedTick.model_validate(payload)
        except PydanticValidationError as e:
            raise FrameDecodeError(f"Invalid feed payload: {e.error_count()} errors", {"raw": raw[:200]}) from e

    # Tag is the first key; anything past it is payload for the ignored variant
    kind = next(iter(message))
    return OtherFrame(kind=str(kind), payload=message[kind])


class FrameHandler:
    """Decodes inbound frames and applies feed ticks to the price cache.

    This is the only mutation path into the cache.
    """

    def __init__(self, cache: PriceCache):
        self.cache = cache
        self.ticks_applied = 0
        self.frames_ignored = 0
        self.decode_errors = 0

    def handle(self, raw: Union[str, bytes]) -> DecodedFrame:
        """Decode one frame and update the cache for ticks.

        Raises:
            FrameDecodeError: propagated from decode_frame after counting it
        """
        try:
            frame = decode_frame(raw)
        except FrameDecodeError:
            self.decode_errors += 1
            record_ws_decode_error()
            raise

        if isinstance(frame, FeedTick):
            self.cache.update(frame.symbol, frame.ltp)
            self.ticks_applied += 1
            record_ws_message(FEED_TAG)
        else:
            self.frames_ignored += 1
            record_ws_message(frame.kind)
            logger.debug(f"[feed_decoder] Ignored {frame.kind} frame")
        return frame
