"""
Tests for backend/momentum_trader/utils/currency_utils.py
"""

import pytest

from momentum_trader.exceptions import ValidationError
from momentum_trader.utils.currency_utils import get_base_currency, get_currencies_from_pair


class TestGetCurrenciesFromPair:
    """Tests for get_currencies_from_pair()"""

    def test_btc_usd(self):
        assert get_currencies_from_pair("BTC-USD") == ("BTC", "USD")

    def test_eth_btc(self):
        assert get_currencies_from_pair("ETH-BTC") == ("ETH", "BTC")

    @pytest.mark.parametrize("pair", ["BTCUSD", "", "BTC-", "-USD", "BTC-USD-PERP"])
    def test_malformed_pairs(self, pair):
        with pytest.raises(ValidationError):
            get_currencies_from_pair(pair)


class TestGetBaseCurrency:
    """Tests for get_base_currency()"""

    def test_returns_base(self):
        assert get_base_currency("SOL-USDC") == "SOL"

    def test_malformed_pair_raises(self):
        with pytest.raises(ValidationError):
            get_base_currency("SOLUSDC")
