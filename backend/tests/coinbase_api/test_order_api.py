"""
Tests for backend/momentum_trader/coinbase_api/order_api.py

Covers order building and validation, market order submission, error
propagation, and the trade-all-balance path.
"""

import json
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from momentum_trader.coinbase_api.order_api import (
    OrderExecutor,
    build_market_order,
    parse_order_result,
)
from momentum_trader.exceptions import (
    AccountNotFoundError,
    ExchangeRejection,
    ParseError,
    ValidationError,
)
from momentum_trader.models import Account, OrderSide

CONFIRMATION = {
    "id": "d0c5340b-6d6c-49d9-b567-48c4bfca13d2",
    "product_id": "BTC-USD",
    "side": "sell",
    "size": "0.50000000",
    "type": "market",
    "status": "pending",
    "settled": False,
    "filled_size": "0.00000000",
}


def btc_account(balance: str) -> Account:
    return Account(
        id="acc-btc",
        currency="BTC",
        balance=Decimal(balance),
        available=Decimal(balance),
        hold=Decimal("0"),
    )


@pytest.fixture
def resolver():
    mock = MagicMock()
    mock.resolve_account = AsyncMock(return_value=btc_account("0.5"))
    return mock


@pytest.fixture
def executor(mock_transport, resolver):
    mock_transport.signed_request.return_value = CONFIRMATION
    return OrderExecutor(mock_transport, resolver)


# ---------------------------------------------------------------------------
# build_market_order
# ---------------------------------------------------------------------------


class TestBuildMarketOrder:
    """Tests for build_market_order()"""

    def test_builds_market_order(self):
        order = build_market_order("BTC-USD", "buy", "0.25")

        assert order.type == "market"
        assert order.side is OrderSide.BUY
        assert order.product_id == "BTC-USD"
        assert order.size == Decimal("0.25")
        assert order.client_oid

    def test_side_is_case_insensitive(self):
        assert build_market_order("BTC-USD", "SELL", 1).side is OrderSide.SELL

    def test_body_has_wire_fields(self):
        order = build_market_order("BTC-USD", OrderSide.SELL, Decimal("0.50000000"))
        body = json.loads(order.to_body())

        assert body == {
            "type": "market",
            "side": "sell",
            "product_id": "BTC-USD",
            "size": "0.50000000",
            "client_oid": order.client_oid,
        }

    @pytest.mark.parametrize("size", [0, "0", "0.0", -1, "-0.5", "NaN", "Infinity", "abc"])
    def test_invalid_sizes_rejected(self, size):
        with pytest.raises(ValidationError):
            build_market_order("BTC-USD", "buy", size)

    def test_unknown_side_rejected(self):
        with pytest.raises(ValidationError, match="side"):
            build_market_order("BTC-USD", "hold", 1)

    def test_bad_pair_rejected(self):
        with pytest.raises(ValidationError, match="BASE-QUOTE"):
            build_market_order("BTC", "buy", 1)

    def test_each_order_gets_its_own_client_oid(self):
        first = build_market_order("BTC-USD", "buy", 1)
        second = build_market_order("BTC-USD", "buy", 1)
        assert first.client_oid != second.client_oid


class TestParseOrderResult:
    """Tests for parse_order_result()"""

    def test_parses_confirmation(self):
        result = parse_order_result(CONFIRMATION)

        assert result.order_id == CONFIRMATION["id"]
        assert result.status == "pending"
        assert result.size == Decimal("0.5")
        assert result.settled is False
        assert result.filled_size == Decimal("0")

    def test_missing_id_raises(self):
        with pytest.raises(ParseError):
            parse_order_result({"message": "ok?"})


# ---------------------------------------------------------------------------
# OrderExecutor
# ---------------------------------------------------------------------------


class TestSubmitMarketOrder:
    """Tests for OrderExecutor.submit_market_order()"""

    @pytest.mark.asyncio
    async def test_posts_signed_order(self, executor, mock_transport):
        result = await executor.submit_market_order("BTC-USD", "sell", Decimal("0.5"))

        assert result.order_id == CONFIRMATION["id"]
        args, kwargs = mock_transport.signed_request.call_args
        assert args == ("POST", "/orders")
        body = json.loads(kwargs["body"])
        assert body["type"] == "market"
        assert body["side"] == "sell"
        assert body["product_id"] == "BTC-USD"
        assert body["size"] == "0.5"

    @pytest.mark.asyncio
    async def test_zero_size_never_reaches_network(self, executor, mock_transport):
        """Failure: size 0 is a ValidationError raised before submission."""
        with pytest.raises(ValidationError):
            await executor.submit_market_order("BTC-USD", "sell", 0)

        mock_transport.signed_request.assert_not_called()

    @pytest.mark.asyncio
    async def test_exchange_rejection_propagates(self, executor, mock_transport):
        mock_transport.signed_request.side_effect = ExchangeRejection("Insufficient funds", status_code=400)

        with pytest.raises(ExchangeRejection):
            await executor.submit_market_order("BTC-USD", "buy", 1)

    @pytest.mark.asyncio
    async def test_retry_keeps_client_oid_and_body(self, transport, resolver, mock_http_client):
        """Integration: a retried POST resends the same body, re-signed."""
        client = mock_http_client(
            httpx.ConnectError("connection reset"),
            httpx.Response(200, json=CONFIRMATION),
        )
        executor = OrderExecutor(transport, resolver)

        with patch("momentum_trader.coinbase_api.transport.httpx.AsyncClient", return_value=client), \
                patch("momentum_trader.coinbase_api.transport.asyncio.sleep", new_callable=AsyncMock), \
                patch("momentum_trader.coinbase_api.auth.time") as mock_time:
            mock_time.time.side_effect = [1700000000, 1700000001]
            result = await executor.submit_market_order("BTC-USD", "sell", "0.5")

        assert result.order_id == CONFIRMATION["id"]
        first, second = client.post.call_args_list
        assert first.kwargs["content"] == second.kwargs["content"]
        assert first.kwargs["headers"]["CB-ACCESS-SIGN"] != second.kwargs["headers"]["CB-ACCESS-SIGN"]

    @pytest.mark.asyncio
    async def test_size_too_small_from_exchange(self, transport, resolver, mock_http_client):
        client = mock_http_client(httpx.Response(400, json={"message": "size is too small. Minimum size is 0.0001"}))
        executor = OrderExecutor(transport, resolver)

        with patch("momentum_trader.coinbase_api.transport.httpx.AsyncClient", return_value=client):
            with pytest.raises(ValidationError, match="too small"):
                await executor.submit_market_order("BTC-USD", "buy", "0.00001")

        assert client.post.call_count == 1


class TestTradeAll:
    """Tests for OrderExecutor.trade_all()"""

    @pytest.mark.asyncio
    async def test_uses_full_base_balance(self, executor, resolver, mock_transport):
        await executor.trade_all("BTC-USD", "sell")

        resolver.resolve_account.assert_called_once_with("BTC")
        body = json.loads(mock_transport.signed_request.call_args.kwargs["body"])
        assert body["size"] == "0.5"

    @pytest.mark.asyncio
    async def test_balance_is_read_for_each_trade(self, executor, resolver, mock_transport):
        """The balance is re-fetched immediately before each submission."""
        resolver.resolve_account.side_effect = [btc_account("0.5"), btc_account("0.2")]

        await executor.trade_all("BTC-USD", "sell")
        await executor.trade_all("BTC-USD", "sell")

        sizes = [json.loads(c.kwargs["body"])["size"] for c in mock_transport.signed_request.call_args_list]
        assert sizes == ["0.5", "0.2"]

    @pytest.mark.asyncio
    async def test_empty_balance_rejected_without_submission(self, executor, resolver, mock_transport):
        resolver.resolve_account.return_value = btc_account("0")

        with pytest.raises(ValidationError, match="empty"):
            await executor.trade_all("BTC-USD", "sell")

        mock_transport.signed_request.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_account_propagates(self, executor, resolver, mock_transport):
        resolver.resolve_account.side_effect = AccountNotFoundError("BTC")

        with pytest.raises(AccountNotFoundError):
            await executor.trade_all("BTC-USD", "sell")

        mock_transport.signed_request.assert_not_called()
