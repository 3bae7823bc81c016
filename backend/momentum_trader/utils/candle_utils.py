"""
Candle Data Utilities

Helpers for turning raw candle rows from the exchange into a single,
ascending chronological order.
"""

import logging
from typing import Any, List, Sequence, Union

from momentum_trader.constants import GRANULARITY_SECONDS
from momentum_trader.exceptions import ParseError, ValidationError

logger = logging.getLogger(__name__)

# Raw row layout returned by /products/{pair}/candles
ROW_TIME, ROW_LOW, ROW_HIGH, ROW_OPEN, ROW_CLOSE, ROW_VOLUME = range(6)


def granularity_to_seconds(granularity: Union[int, str]) -> int:
    """Convert a granularity (seconds or a name like "ONE_HOUR") to seconds.

    Args:
        granularity: Seconds (60, 300, ...) or a key of GRANULARITY_SECONDS

    Returns:
        Number of seconds

    Raises:
        ValidationError: value is not a granularity the exchange supports
    """
    if isinstance(granularity, str):
        if granularity.upper() in GRANULARITY_SECONDS:
            return GRANULARITY_SECONDS[granularity.upper()]
        if not granularity.isdigit():
            raise ValidationError(f"Unsupported granularity: {granularity}")
        granularity = int(granularity)

    if granularity not in GRANULARITY_SECONDS.values():
        supported = sorted(GRANULARITY_SECONDS.values())
        raise ValidationError(f"Unsupported granularity: {granularity} (supported: {supported})")
    return granularity


def normalize_candle_rows(rows: Sequence[Any]) -> List[Sequence[Any]]:
    """
    Sort raw candle rows ascending by time and drop duplicate timestamps.

    The exchange returns newest-first, but that ordering is not guaranteed,
    so the order is always imposed here. When two rows share a timestamp the
    later row in the response wins.

    Raises:
        ParseError: payload is not a list of rows with six fields and an
            integer timestamp
    """
    if not isinstance(rows, list):
        raise ParseError(f"Expected a list of candle rows, got {type(rows).__name__}")

    by_time = {}
    for index, row in enumerate(rows):
        if not isinstance(row, (list, tuple)) or len(row) < 6:
            raise ParseError(f"Candle row {index} has unexpected shape: {row!r}")
        try:
            timestamp = int(row[ROW_TIME])
        except (TypeError, ValueError) as e:
            raise ParseError(f"Candle row {index} has a non-integer time: {row[ROW_TIME]!r}") from e
        by_time[timestamp] = row

    if len(by_time) != len(rows):
        logger.debug(f"Dropped {len(rows) - len(by_time)} duplicate candle row(s)")

    return [by_time[t] for t in sorted(by_time)]
