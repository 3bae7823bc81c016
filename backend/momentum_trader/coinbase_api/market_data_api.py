"""
Market data operations for the Coinbase Exchange API

Fetches OHLCV candles from the public candles endpoint and normalizes
them into an ascending CandleSeries.
"""

import logging
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Sequence, Union

from momentum_trader.coinbase_api.transport import ExchangeTransport
from momentum_trader.constants import CANDLES_PATH, DEFAULT_GRANULARITY
from momentum_trader.exceptions import ParseError
from momentum_trader.models import Candle, CandleSeries
from momentum_trader.utils.candle_utils import (
    ROW_CLOSE,
    ROW_HIGH,
    ROW_LOW,
    ROW_OPEN,
    ROW_TIME,
    ROW_VOLUME,
    granularity_to_seconds,
    normalize_candle_rows,
)
from momentum_trader.utils.currency_utils import get_currencies_from_pair

logger = logging.getLogger(__name__)


def _to_decimal(value: Any, field_name: str) -> Decimal:
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ParseError(f"Candle {field_name} is not numeric: {value!r}") from e
    if not result.is_finite():
        raise ParseError(f"Candle {field_name} is not finite: {value!r}")
    return result


def _to_datetime(value: Any) -> datetime:
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (TypeError, ValueError, OverflowError, OSError) as e:
        raise ParseError(f"Candle time is out of range: {value!r}") from e


def parse_candle(row: Sequence[Any]) -> Candle:
    """Map one raw [time, low, high, open, close, volume] row into a Candle."""
    return Candle(
        time=_to_datetime(row[ROW_TIME]),
        open=_to_decimal(row[ROW_OPEN], "open"),
        high=_to_decimal(row[ROW_HIGH], "high"),
        low=_to_decimal(row[ROW_LOW], "low"),
        close=_to_decimal(row[ROW_CLOSE], "close"),
        volume=_to_decimal(row[ROW_VOLUME], "volume"),
    )


def parse_candles(rows: Any) -> CandleSeries:
    """Normalize raw rows into ascending order and build a CandleSeries."""
    return CandleSeries(tuple(parse_candle(row) for row in normalize_candle_rows(rows)))


class CandleFeed:
    """Reads recent candles for a trading pair. Nothing is cached between calls."""

    def __init__(self, transport: ExchangeTransport, granularity: Union[int, str] = DEFAULT_GRANULARITY):
        self.transport = transport
        self.granularity = granularity_to_seconds(granularity)

    async def fetch_candles(
        self,
        pair: str,
        granularity: Optional[Union[int, str]] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> CandleSeries:
        """
        Fetch candles for pair, oldest first

        Args:
            pair: Trading pair (e.g., "BTC-USD")
            granularity: Bar size in seconds or by name; defaults to the feed's
            start: Optional ISO start of the requested range
            end: Optional ISO end of the requested range
            limit: Keep only the most recent N candles

        Raises:
            NetworkError, ExchangeError, ParseError
        """
        get_currencies_from_pair(pair)
        seconds = granularity_to_seconds(granularity) if granularity is not None else self.granularity

        params = {"granularity": seconds}
        if start is not None:
            params["start"] = start.isoformat()
        if end is not None:
            params["end"] = end.isoformat()

        rows = await self.transport.public_get(CANDLES_PATH.format(pair=pair), params=params)
        series = parse_candles(rows)
        if limit is not None:
            series = series.trailing(limit)

        logger.info(f"Fetched {len(series)} {seconds}s candles for {pair}")
        return series
