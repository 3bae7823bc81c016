"""
Shared test fixtures for momentum_trader tests.

Provides reusable fixtures for:
- Injected fake credentials
- Candle series factories
- Mock httpx clients
"""

import base64
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from momentum_trader.coinbase_api.auth import ExchangeCredentials
from momentum_trader.coinbase_api.transport import ExchangeTransport, RetryPolicy
from momentum_trader.models import Candle, CandleSeries

TEST_SECRET = base64.b64encode(b"momentum-trader-test-secret").decode()


# ---------------------------------------------------------------------------
# Credentials and transport
# ---------------------------------------------------------------------------


@pytest.fixture
def credentials():
    """Fake but well-formed credentials."""
    return ExchangeCredentials(api_key="test-key", api_secret=TEST_SECRET, passphrase="test-pass")


@pytest.fixture
def transport(credentials):
    """Real transport for tests that patch httpx.AsyncClient and asyncio.sleep."""
    return ExchangeTransport(
        base_url="https://api.test.exchange",
        credentials=credentials,
        retry_policy=RetryPolicy(max_attempts=3, base_delay=1.0, max_delay=30.0),
    )


@pytest.fixture
def mock_transport():
    """Transport double for component tests that do not touch HTTP."""
    return AsyncMock(spec=ExchangeTransport)


# ---------------------------------------------------------------------------
# Mock HTTP client
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_http_client():
    """
    Factory for an AsyncClient stand-in.

    Each positional item is returned (or raised, for exceptions) by
    successive get()/post() calls.
    """
    def _make(*responses):
        client = AsyncMock()
        client.get.side_effect = list(responses)
        client.post.side_effect = list(responses)
        client.__aenter__ = AsyncMock(return_value=client)
        client.__aexit__ = AsyncMock(return_value=False)
        return client
    return _make


# ---------------------------------------------------------------------------
# Sample data factories
# ---------------------------------------------------------------------------


def make_candle(timestamp: int, close) -> Candle:
    price = Decimal(str(close))
    return Candle(
        time=datetime.fromtimestamp(timestamp, tz=timezone.utc),
        open=price,
        high=price + 1,
        low=price - 1,
        close=price,
        volume=Decimal("10"),
    )


@pytest.fixture
def make_series():
    """Build an ascending CandleSeries from a list of closes."""
    def _make(closes, start=1700000000, step=3600):
        return CandleSeries(tuple(make_candle(start + i * step, c) for i, c in enumerate(closes)))
    return _make


@pytest.fixture
def raw_candle_rows():
    """Exchange-style rows, newest first: [time, low, high, open, close, volume]."""
    return [
        [1700007200, 101.0, 106.0, 102.0, 105.0, 12.5],
        [1700003600, 100.5, 103.0, 101.0, 102.0, 8.0],
        [1700000000, 99.0, 101.5, 100.0, 100.5, 10.0],
    ]
