"""
Domain records for the signal-to-order pipeline.

All records are immutable. Prices, sizes and balances are Decimal so that
order sizes round-trip to the exchange without float formatting drift.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple


class OrderSide(str, Enum):
    BUY = "buy"
    SELL = "sell"


class Signal(str, Enum):
    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"

    def to_side(self) -> Optional[OrderSide]:
        if self is Signal.HOLD:
            return None
        return OrderSide(self.value)


class CycleStatus(str, Enum):
    ORDER_PLACED = "order_placed"
    NO_SIGNAL = "no_signal"
    DRY_RUN = "dry_run"
    ERROR = "error"


@dataclass(frozen=True)
class Candle:
    """One fixed-duration OHLCV bar."""
    time: datetime
    open: Decimal
    high: Decimal
    low: Decimal
    close: Decimal
    volume: Decimal


@dataclass(frozen=True)
class CandleSeries:
    """
    Candles in strictly ascending time order.

    Every indicator reads closes oldest-first, so the ordering is checked
    here rather than trusted from the exchange response.
    """
    candles: Tuple[Candle, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "candles", tuple(self.candles))
        for prev, cur in zip(self.candles, self.candles[1:]):
            if cur.time <= prev.time:
                raise ValueError(
                    f"Candles must be strictly ascending: {cur.time.isoformat()} "
                    f"follows {prev.time.isoformat()}"
                )

    def __len__(self) -> int:
        return len(self.candles)

    def __iter__(self) -> Iterator[Candle]:
        return iter(self.candles)

    def __getitem__(self, index):
        return self.candles[index]

    @property
    def latest(self) -> Optional[Candle]:
        return self.candles[-1] if self.candles else None

    def closes(self) -> List[Decimal]:
        return [c.close for c in self.candles]

    def trailing(self, n: int) -> "CandleSeries":
        """Return the most recent n candles (or fewer if the series is shorter)."""
        if n <= 0:
            return CandleSeries()
        return CandleSeries(self.candles[-n:])


@dataclass(frozen=True)
class IndicatorResult:
    rsi: float
    fast_ma: Decimal
    slow_ma: Decimal
    average_gain: Decimal
    average_loss: Decimal
    candle_count: int


@dataclass(frozen=True)
class Account:
    id: str
    currency: str
    balance: Decimal
    available: Decimal
    hold: Decimal


@dataclass(frozen=True)
class SignedRequest:
    """
    A request bound to its signature.

    The signature covers exactly (timestamp, method, path, body); build a new
    one with auth.sign_request() for every HTTP attempt.
    """
    method: str
    path: str
    body: str
    timestamp: int
    signature: str
    api_key: str = field(repr=False)
    passphrase: str = field(repr=False)

    def headers(self) -> Dict[str, str]:
        headers = {
            "CB-ACCESS-KEY": self.api_key,
            "CB-ACCESS-SIGN": self.signature,
            "CB-ACCESS-TIMESTAMP": str(self.timestamp),
            "CB-ACCESS-PASSPHRASE": self.passphrase,
        }
        if self.body:
            headers["Content-Type"] = "application/json"
        return headers


@dataclass(frozen=True)
class Order:
    side: OrderSide
    product_id: str
    size: Decimal
    client_oid: str
    type: str = "market"

    def to_body(self) -> str:
        return json.dumps(
            {
                "type": self.type,
                "side": self.side.value,
                "product_id": self.product_id,
                "size": format(self.size, "f"),
                "client_oid": self.client_oid,
            }
        )


@dataclass(frozen=True)
class OrderResult:
    order_id: str
    product_id: str
    side: str
    size: Optional[Decimal]
    status: str
    settled: bool
    filled_size: Optional[Decimal]
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)


@dataclass(frozen=True)
class CycleOutcome:
    """What one decision-to-order cycle did, for the CLI and monitor to report."""
    pair: str
    status: CycleStatus
    signal: Optional[Signal] = None
    indicators: Optional[IndicatorResult] = None
    order: Optional[OrderResult] = None
    error_kind: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status is CycleStatus.ERROR
