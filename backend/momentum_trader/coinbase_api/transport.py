"""
HTTP transport for the Coinbase Exchange API

Every failure leaves this module as a classified TradingError. Network
errors and 429s are retried with bounded exponential backoff; signed
requests are re-signed with a fresh timestamp on every attempt because the
exchange rejects timestamps outside its skew window.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx

from momentum_trader.coinbase_api.auth import ExchangeCredentials, sign_request
from momentum_trader.constants import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_RATE_LIMIT_MULTIPLIER,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_RETRY_BASE_DELAY,
    DEFAULT_RETRY_MAX_DELAY,
    EXCHANGE_API_URL,
)
from momentum_trader.exceptions import (
    AuthError,
    ConfigurationError,
    ExchangeError,
    ExchangeRejection,
    NetworkError,
    ParseError,
    RateLimitError,
    TradingError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Substrings of 400-level messages that mean "valid request, refused by business rules"
REJECTION_MARKERS = (
    "insufficient funds",
    "insufficient balance",
    "trading is disabled",
    "not tradable",
    "not available for trading",
    "post only",
    "limit only",
    "cancel only",
)


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay: float = DEFAULT_RETRY_BASE_DELAY
    max_delay: float = DEFAULT_RETRY_MAX_DELAY
    rate_limit_multiplier: float = DEFAULT_RATE_LIMIT_MULTIPLIER

    def delay_for(self, attempt: int, error: TradingError) -> float:
        """Backoff before retry number attempt+1: base * 2^attempt, capped."""
        if isinstance(error, RateLimitError):
            if error.retry_after:
                return min(self.max_delay, error.retry_after)
            return min(self.max_delay, self.base_delay * (2**attempt) * self.rate_limit_multiplier)
        return min(self.max_delay, self.base_delay * (2**attempt))


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(payload, dict) and payload.get("message"):
        return str(payload["message"])
    return str(payload)[:200]


def _retry_after(response: httpx.Response) -> Optional[float]:
    value = response.headers.get("Retry-After")
    if not value:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def classify_response(
    response: httpx.Response, method: str, path: str, signed: bool = True
) -> Optional[TradingError]:
    """
    Map a non-2xx response to the error taxonomy

    Returns None for success statuses. A 400/422 is only split into
    ValidationError and ExchangeRejection for signed (account and order)
    calls; on public market data it is a plain ExchangeError.
    """
    status = response.status_code
    if 200 <= status < 300:
        return None

    message = _error_message(response)
    context = f"{method} {path} returned {status}: {message}"

    if status in (401, 403):
        return AuthError(context, status_code=status)
    if status == 429:
        return RateLimitError(context, retry_after=_retry_after(response))
    if status in (400, 422) and signed:
        lowered = message.lower()
        if any(marker in lowered for marker in REJECTION_MARKERS):
            return ExchangeRejection(context, status_code=status)
        return ValidationError(context, status_code=status)
    return ExchangeError(context, status_code=status)


class ExchangeTransport:
    """Sends public and signed requests, with classification and retries."""

    def __init__(
        self,
        base_url: str = EXCHANGE_API_URL,
        credentials: Optional[ExchangeCredentials] = None,
        retry_policy: Optional[RetryPolicy] = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.credentials = credentials
        self.retry_policy = retry_policy or RetryPolicy()
        self.timeout = timeout

    async def public_get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Unauthenticated GET (market data)."""
        return await self._send_with_retry("GET", self._with_query(path, params), body="", signed=False)

    async def signed_request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        body: str = "",
    ) -> Any:
        """Authenticated request; signed afresh on every attempt."""
        if self.credentials is None:
            raise ConfigurationError(f"Credentials required for {method} {path}")
        return await self._send_with_retry(method, self._with_query(path, params), body=body, signed=True)

    @staticmethod
    def _with_query(path: str, params: Optional[Dict[str, Any]]) -> str:
        # The signed path must match the request line byte for byte, so the
        # query string is built here instead of by httpx.
        if not params:
            return path
        return f"{path}?{urlencode(params)}"

    async def _send_with_retry(self, method: str, path: str, body: str, signed: bool) -> Any:
        max_attempts = max(1, self.retry_policy.max_attempts)
        for attempt in range(max_attempts):
            try:
                return await self._send_once(method, path, body, signed)
            except (NetworkError, RateLimitError) as e:
                if attempt >= max_attempts - 1:
                    logger.error(f"❌ {method} {path} failed after {max_attempts} attempts: {e.message}")
                    raise
                wait_time = self.retry_policy.delay_for(attempt, e)
                logger.warning(
                    f"⚠️  {e.kind} on {method} {path}, retrying in {wait_time}s... "
                    f"(attempt {attempt + 1}/{max_attempts})"
                )
                await asyncio.sleep(wait_time)

        # Should never reach here (all paths return or raise)
        raise RuntimeError(f"Unexpected: No response after {max_attempts} attempts")

    async def _send_once(self, method: str, path: str, body: str, signed: bool) -> Any:
        url = f"{self.base_url}{path}"
        headers = {"Accept": "application/json"}
        if signed:
            headers.update(sign_request(self.credentials, method, path, body).headers())
        elif body:
            headers["Content-Type"] = "application/json"

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                if method == "GET":
                    response = await client.get(url, headers=headers)
                elif method == "POST":
                    response = await client.post(url, headers=headers, content=body)
                else:
                    raise ValueError(f"Unsupported method: {method}")
        except httpx.TransportError as e:
            raise NetworkError(f"{method} {path} failed: {e!r}") from e
        except httpx.DecodingError as e:
            raise ParseError(f"{method} {path} returned an undecodable body: {e!r}") from e
        except httpx.RequestError as e:
            raise ExchangeError(f"{method} {path} failed: {e!r}") from e

        error = classify_response(response, method, path, signed=signed)
        if error is not None:
            raise error

        try:
            return response.json()
        except ValueError as e:
            raise ParseError(f"{method} {path} returned a non-JSON body: {response.text[:200]}") from e
