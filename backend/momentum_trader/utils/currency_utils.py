"""
Currency utilities for BASE-QUOTE trading pairs
"""

from typing import Tuple

from momentum_trader.exceptions import ValidationError


def get_currencies_from_pair(product_id: str) -> Tuple[str, str]:
    """
    Extract base and quote currencies from product_id

    Args:
        product_id: Trading pair like "BTC-USD"

    Returns:
        Tuple of (base_currency, quote_currency)
        Example: "BTC-USD" -> ("BTC", "USD")

    Raises:
        ValidationError: product_id is not of the form BASE-QUOTE
    """
    parts = product_id.split("-")
    if len(parts) != 2 or not all(parts):
        raise ValidationError(f"Trading pair must look like BASE-QUOTE, got {product_id!r}")
    return parts[0], parts[1]


def get_base_currency(product_id: str) -> str:
    """Get just the base currency ("BTC" for "BTC-USD")."""
    base, _ = get_currencies_from_pair(product_id)
    return base
