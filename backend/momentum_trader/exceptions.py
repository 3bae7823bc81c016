"""
Domain exceptions for the trading pipeline.

Exchange clients raise these instead of leaking httpx errors so the
pipeline can decide, in one place, whether a failure halts the cycle.
Only NetworkError and RateLimitError are retryable.
"""

from typing import Optional


class TradingError(Exception):
    """Base trading error carrying a short kind used in operator reports."""

    kind = "trading_error"
    retryable = False

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ConfigurationError(TradingError):
    """Malformed credentials or settings. Halts before any network call."""

    kind = "configuration_error"


class NetworkError(TradingError):
    """Connection failure or timeout."""

    kind = "network_error"
    retryable = True


class ExchangeError(TradingError):
    """Non-2xx response from the exchange."""

    kind = "exchange_error"


class RateLimitError(ExchangeError):
    """Exchange throttling (429)."""

    kind = "rate_limit_error"
    retryable = True

    def __init__(self, message: str, retry_after: Optional[float] = None):
        self.retry_after = retry_after
        super().__init__(message, status_code=429)


class AuthError(ExchangeError):
    """Rejected signature, timestamp or credentials (401/403)."""

    kind = "auth_error"


class ExchangeRejection(ExchangeError):
    """Order refused for a business reason such as insufficient funds."""

    kind = "exchange_rejection"


class ValidationError(TradingError):
    """Malformed request, e.g. an order size below the exchange minimum."""

    kind = "validation_error"


class ParseError(TradingError):
    """Response body does not have the expected shape."""

    kind = "parse_error"


class DataValidationError(TradingError):
    """Candle data contains a non-numeric or non-finite value."""

    kind = "data_validation_error"


class InsufficientDataError(TradingError):
    """Too few candles to compute the requested indicator."""

    kind = "insufficient_data"


class AccountNotFoundError(TradingError):
    """No account exists for the requested currency."""

    kind = "account_not_found"

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"No account found for currency {currency}", status_code=404)
