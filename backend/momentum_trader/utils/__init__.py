"""
Utilities Package

Candle and currency-pair helpers shared by the exchange clients.
"""

from .candle_utils import (
    granularity_to_seconds,
    normalize_candle_rows,
)
from .currency_utils import get_base_currency, get_currencies_from_pair

__all__ = [
    "granularity_to_seconds",
    "normalize_candle_rows",
    "get_base_currency",
    "get_currencies_from_pair",
]
