"""
Account and balance operations for the Coinbase Exchange API

Balances change with every trade, so accounts are always fetched fresh.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List

from momentum_trader.coinbase_api.transport import ExchangeTransport
from momentum_trader.constants import ACCOUNTS_PATH
from momentum_trader.exceptions import AccountNotFoundError, ParseError
from momentum_trader.models import Account

logger = logging.getLogger(__name__)


def _decimal_field(entry: Dict[str, Any], key: str, default: str = "0") -> Decimal:
    value = entry.get(key, default)
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ParseError(f"Account field {key} is not numeric: {value!r}") from e
    if not result.is_finite():
        raise ParseError(f"Account field {key} is not finite: {value!r}")
    return result


def parse_account(entry: Any) -> Account:
    if not isinstance(entry, dict) or "currency" not in entry or "balance" not in entry:
        raise ParseError(f"Account entry has unexpected shape: {entry!r}")
    balance = _decimal_field(entry, "balance")
    return Account(
        id=str(entry.get("id", "")),
        currency=str(entry["currency"]),
        balance=balance,
        available=_decimal_field(entry, "available", str(balance)),
        hold=_decimal_field(entry, "hold"),
    )


class AccountResolver:
    """Looks up the trading account for a currency using signed requests."""

    def __init__(self, transport: ExchangeTransport):
        self.transport = transport

    async def get_accounts(self) -> List[Account]:
        """Fetch every account for the API key."""
        result = await self.transport.signed_request("GET", ACCOUNTS_PATH)
        if not isinstance(result, list):
            raise ParseError(f"Expected a list of accounts, got {type(result).__name__}")
        accounts = [parse_account(entry) for entry in result]
        logger.debug(f"Fetched {len(accounts)} accounts")
        return accounts

    async def resolve_account(self, base_currency: str) -> Account:
        """
        Return the account whose currency is exactly base_currency

        Raises:
            AccountNotFoundError: no account for that currency
            AuthError, NetworkError, ExchangeError: request failed
        """
        for account in await self.get_accounts():
            if account.currency == base_currency:
                logger.info(f"Resolved {base_currency} account {account.id}: balance {account.balance}")
                return account
        raise AccountNotFoundError(base_currency)
