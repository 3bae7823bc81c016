"""
Order operations for the Coinbase Exchange API

Builds, validates and submits market orders. Sizes are checked before any
request is made; every submission attempt is signed with a fresh timestamp
by the transport, while the client_oid stays fixed so retries are idempotent.
"""

import logging
import uuid
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Union

from momentum_trader.coinbase_api.account_balance_api import AccountResolver
from momentum_trader.coinbase_api.transport import ExchangeTransport
from momentum_trader.constants import ORDERS_PATH
from momentum_trader.exceptions import ParseError, ValidationError
from momentum_trader.models import Order, OrderResult, OrderSide
from momentum_trader.utils.currency_utils import get_base_currency, get_currencies_from_pair

logger = logging.getLogger(__name__)


def _optional_decimal(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


def parse_order_result(payload: Any) -> OrderResult:
    """Parse the exchange's order confirmation."""
    if not isinstance(payload, dict) or not payload.get("id"):
        raise ParseError(f"Order confirmation missing id: {payload!r}")
    return OrderResult(
        order_id=str(payload["id"]),
        product_id=str(payload.get("product_id", "")),
        side=str(payload.get("side", "")),
        size=_optional_decimal(payload.get("size")),
        status=str(payload.get("status", "unknown")),
        settled=bool(payload.get("settled", False)),
        filled_size=_optional_decimal(payload.get("filled_size")),
        raw=payload,
    )


def build_market_order(pair: str, side: Union[OrderSide, str], size: Union[Decimal, str, int, float]) -> Order:
    """
    Validate inputs and build a market Order

    Raises:
        ValidationError: bad pair, unknown side, or size that is not a
            positive finite number
    """
    get_currencies_from_pair(pair)

    try:
        order_side = OrderSide(side.value if isinstance(side, OrderSide) else str(side).lower())
    except ValueError as e:
        raise ValidationError(f"Order side must be 'buy' or 'sell', got {side!r}") from e

    try:
        order_size = Decimal(str(size))
    except (InvalidOperation, ValueError) as e:
        raise ValidationError(f"Order size is not numeric: {size!r}") from e
    if not order_size.is_finite() or order_size <= 0:
        raise ValidationError(f"Order size must be positive, got {size}")

    return Order(side=order_side, product_id=pair, size=order_size, client_oid=str(uuid.uuid4()))


class OrderExecutor:
    """Submits market orders with signed requests."""

    def __init__(self, transport: ExchangeTransport, account_resolver: AccountResolver):
        self.transport = transport
        self.account_resolver = account_resolver

    async def submit_market_order(
        self,
        pair: str,
        side: Union[OrderSide, str],
        size: Union[Decimal, str, int, float],
    ) -> OrderResult:
        """
        Create a market order

        Args:
            pair: Trading pair (e.g., "BTC-USD")
            side: "buy" or "sell"
            size: Amount of base currency

        Returns:
            Parsed order confirmation

        Raises:
            ValidationError: invalid order, raised before any request
            ExchangeRejection: refused for business reasons (e.g. funds)
            AuthError, RateLimitError, NetworkError, ExchangeError
        """
        order = build_market_order(pair, side, size)
        logger.info(f"Submitting market {order.side.value} {order.size} {pair} (client_oid={order.client_oid})")

        payload = await self.transport.signed_request("POST", ORDERS_PATH, body=order.to_body())
        result = parse_order_result(payload)

        logger.info(f"✅ Order {result.order_id} accepted: status={result.status}")
        return result

    async def trade_all(self, pair: str, side: Union[OrderSide, str]) -> OrderResult:
        """
        Trade the entire base-currency balance

        The balance is read immediately before submission; a zero balance is
        rejected locally and nothing is sent.
        """
        base_currency = get_base_currency(pair)
        account = await self.account_resolver.resolve_account(base_currency)
        if account.balance <= 0:
            raise ValidationError(f"{base_currency} balance is empty; nothing to trade")
        return await self.submit_market_order(pair, side, account.balance)
