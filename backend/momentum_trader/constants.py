"""
Application Constants

Exchange endpoints, candle granularities and pipeline defaults.
"""

from typing import Dict

EXCHANGE_API_URL = "https://api.exchange.coinbase.com"

ACCOUNTS_PATH = "/accounts"
ORDERS_PATH = "/orders"
CANDLES_PATH = "/products/{pair}/candles"

# Granularities accepted by the candles endpoint (seconds)
GRANULARITY_SECONDS: Dict[str, int] = {
    "ONE_MINUTE": 60,
    "FIVE_MINUTE": 300,
    "FIFTEEN_MINUTE": 900,
    "ONE_HOUR": 3600,
    "SIX_HOUR": 21600,
    "ONE_DAY": 86400,
}

DEFAULT_GRANULARITY = 3600
DEFAULT_TRADING_PAIR = "BTC-USD"

# Indicator defaults
DEFAULT_FAST_MA_WINDOW = 10
DEFAULT_SLOW_MA_WINDOW = 30
DEFAULT_RSI_OVERSOLD = 30.0
DEFAULT_RSI_OVERBOUGHT = 70.0

# Retry defaults
DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_RETRY_BASE_DELAY = 1.0
DEFAULT_RETRY_MAX_DELAY = 30.0
DEFAULT_RATE_LIMIT_MULTIPLIER = 2.0

DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_POLL_INTERVAL = 60
