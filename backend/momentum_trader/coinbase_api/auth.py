"""
Authentication utilities for the Coinbase Exchange API

Requests are signed with HMAC-SHA256 over timestamp + method + path + body,
keyed by the base64-decoded API secret.
"""

import base64
import binascii
import hashlib
import hmac
import logging
import time
from dataclasses import dataclass, field
from typing import Optional

from momentum_trader.exceptions import ConfigurationError
from momentum_trader.models import SignedRequest

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExchangeCredentials:
    """API key, base64 secret and passphrase, passed to clients at construction."""
    api_key: str
    api_secret: str = field(repr=False)
    passphrase: str = field(repr=False)

    def validate(self) -> "ExchangeCredentials":
        """Fail fast on a missing key or an undecodable secret."""
        if not self.api_key:
            raise ConfigurationError("API key is empty")
        if not self.passphrase:
            raise ConfigurationError("API passphrase is empty")
        decode_secret(self.api_secret)
        return self


def decode_secret(secret_key: str) -> bytes:
    """
    Decode a base64 API secret into the raw HMAC key

    Raises:
        ConfigurationError: secret is empty or not valid base64
    """
    if not secret_key:
        raise ConfigurationError("API secret is empty")
    try:
        return base64.b64decode(secret_key, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ConfigurationError(f"API secret is not valid base64: {e}") from e


def sign(secret_key: str, method: str, path: str, body: str, timestamp: int) -> str:
    """
    Generate the CB-ACCESS-SIGN value for a request

    Args:
        secret_key: Base64-encoded API secret
        method: HTTP method (GET, POST)
        path: Request path including any query string
        body: Request body (empty string for GET)
        timestamp: Unix timestamp in seconds

    Returns:
        Base64-encoded HMAC-SHA256 digest
    """
    message = f"{timestamp}{method}{path}{body}"
    key = decode_secret(secret_key)
    digest = hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


def sign_request(
    credentials: ExchangeCredentials,
    method: str,
    path: str,
    body: str = "",
    timestamp: Optional[int] = None,
) -> SignedRequest:
    """
    Sign a single request attempt

    The timestamp is taken here, immediately before the call, unless given.
    Retries must call this again rather than reuse the returned request.
    """
    if timestamp is None:
        timestamp = int(time.time())
    signature = sign(credentials.api_secret, method, path, body, timestamp)
    logger.debug(f"Signed {method} {path} at {timestamp}")
    return SignedRequest(
        method=method,
        path=path,
        body=body,
        timestamp=timestamp,
        signature=signature,
        api_key=credentials.api_key,
        passphrase=credentials.passphrase,
    )
