from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings

from momentum_trader.coinbase_api.auth import ExchangeCredentials
from momentum_trader.coinbase_api.transport import RetryPolicy
from momentum_trader.constants import (
    DEFAULT_FAST_MA_WINDOW,
    DEFAULT_GRANULARITY,
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_RETRY_BASE_DELAY,
    DEFAULT_RETRY_MAX_DELAY,
    DEFAULT_RSI_OVERBOUGHT,
    DEFAULT_RSI_OVERSOLD,
    DEFAULT_SLOW_MA_WINDOW,
    DEFAULT_TRADING_PAIR,
    EXCHANGE_API_URL,
)


class Settings(BaseSettings):
    # Coinbase Exchange API - HMAC keys (secret is base64)
    coinbase_api_key: str = ""
    coinbase_api_secret: str = ""
    coinbase_api_passphrase: str = ""
    coinbase_api_url: str = EXCHANGE_API_URL

    # Market data
    trading_pair: str = DEFAULT_TRADING_PAIR
    candle_granularity: int = DEFAULT_GRANULARITY  # seconds: 60, 300, 900, 3600, 21600, 86400

    # Indicator parameters
    fast_ma_window: int = DEFAULT_FAST_MA_WINDOW
    slow_ma_window: int = DEFAULT_SLOW_MA_WINDOW
    rsi_oversold: float = DEFAULT_RSI_OVERSOLD
    rsi_overbought: float = DEFAULT_RSI_OVERBOUGHT
    ma_trend_filter: bool = False

    # Trading parameters
    order_size: Optional[Decimal] = None  # None = trade the entire base balance
    dry_run: bool = False

    # Network
    max_retry_attempts: int = DEFAULT_MAX_ATTEMPTS
    retry_base_delay: float = DEFAULT_RETRY_BASE_DELAY
    retry_max_delay: float = DEFAULT_RETRY_MAX_DELAY
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    # Scheduler
    poll_interval_seconds: int = DEFAULT_POLL_INTERVAL

    log_level: str = "INFO"

    @field_validator("order_size", mode="before")
    @classmethod
    def empty_order_size(cls, v):
        """Treat an empty ORDER_SIZE as "trade all"."""
        if v == "":
            return None
        return v

    @field_validator("fast_ma_window", "slow_ma_window", "max_retry_attempts", "poll_interval_seconds")
    @classmethod
    def positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @field_validator("log_level")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper()

    @model_validator(mode="after")
    def check_thresholds(self):
        if not 0 <= self.rsi_oversold < self.rsi_overbought <= 100:
            raise ValueError("RSI thresholds must satisfy 0 <= rsi_oversold < rsi_overbought <= 100")
        if self.fast_ma_window > self.slow_ma_window:
            raise ValueError("fast_ma_window must not exceed slow_ma_window")
        return self

    def credentials(self) -> ExchangeCredentials:
        """Immutable credentials for the exchange clients, validated up front."""
        return ExchangeCredentials(
            api_key=self.coinbase_api_key,
            api_secret=self.coinbase_api_secret,
            passphrase=self.coinbase_api_passphrase,
        ).validate()

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.max_retry_attempts,
            base_delay=self.retry_base_delay,
            max_delay=self.retry_max_delay,
        )

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    return Settings()
