"""
Indicator Calculator

Computes the momentum indicators used for the trading signal:
- RSI (Relative Strength Index) over the whole supplied series
- Fast and slow SMA (Simple Moving Average) of closing prices

Moving averages are a plain mean of whatever closes are passed in; the
fast/slow distinction is only the size of the trailing window taken from
the series.
"""

import math
from decimal import Decimal
from numbers import Real
from typing import Iterable, List, Optional, Sequence, Tuple

from momentum_trader.exceptions import DataValidationError, InsufficientDataError
from momentum_trader.models import Candle, IndicatorResult


def _as_decimal(value, index: int) -> Decimal:
    if isinstance(value, bool):
        raise DataValidationError(f"Close at index {index} is not numeric: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, Real):
        if not math.isfinite(value):
            raise DataValidationError(f"Close at index {index} is not finite: {value!r}")
        result = Decimal(str(value))
    else:
        raise DataValidationError(f"Close at index {index} is not numeric: {value!r}")

    if not result.is_finite():
        raise DataValidationError(f"Close at index {index} is not finite: {value!r}")
    return result


class IndicatorCalculator:
    """
    Calculates RSI and moving averages from candle closes

    Closes must be in ascending time order, which CandleSeries guarantees.
    """

    def validate_closes(self, closes: Iterable) -> List[Decimal]:
        """Return closes as Decimals, raising DataValidationError on any bad value."""
        return [_as_decimal(value, i) for i, value in enumerate(closes)]

    def calculate_sma(self, prices: Sequence) -> Decimal:
        """Calculate SMA (Simple Moving Average) over every price given"""
        values = self.validate_closes(prices)
        if not values:
            raise InsufficientDataError("Moving average needs at least 1 close")
        return sum(values, Decimal(0)) / len(values)

    def gains_and_losses(self, prices: Sequence) -> Tuple[List[Decimal], List[Decimal]]:
        """
        Split adjacent price changes into gains and losses

        Both lists have len(prices) - 1 entries; each change contributes to
        exactly one side and 0 to the other.
        """
        values = self.validate_closes(prices)
        if len(values) < 2:
            raise InsufficientDataError(f"RSI needs at least 2 closes, got {len(values)}")

        changes = [values[i] - values[i - 1] for i in range(1, len(values))]
        gains = [change if change > 0 else Decimal(0) for change in changes]
        losses = [-change if change < 0 else Decimal(0) for change in changes]
        return gains, losses

    def calculate_rsi(self, prices: Sequence) -> float:
        """
        Calculate RSI (Relative Strength Index)

        RSI = 100 - 100 / (1 + avg_gain / avg_loss). When avg_loss is 0 the
        result is defined as 100, including for a flat series.
        """
        gains, losses = self.gains_and_losses(prices)
        return self.rsi_from_averages(self._mean(gains), self._mean(losses))

    @staticmethod
    def _mean(values: List[Decimal]) -> Decimal:
        return sum(values, Decimal(0)) / len(values)

    @staticmethod
    def rsi_from_averages(average_gain: Decimal, average_loss: Decimal) -> float:
        """RSI from average gain and loss; 100 when there are no losses."""
        if average_loss == 0:
            return 100.0
        rs = average_gain / average_loss
        rsi = Decimal(100) - Decimal(100) / (1 + rs)
        return float(rsi)

    def _window(self, closes: List[Decimal], window: Optional[int], name: str) -> List[Decimal]:
        if window is None:
            return closes
        if window <= 0:
            raise InsufficientDataError(f"{name} window must be positive, got {window}")
        if window > len(closes):
            raise InsufficientDataError(
                f"{name} window of {window} candles exceeds series length {len(closes)}"
            )
        return closes[-window:]

    def compute_indicators(
        self,
        series: Iterable[Candle],
        fast_window: Optional[int] = None,
        slow_window: Optional[int] = None,
    ) -> IndicatorResult:
        """
        Compute RSI and fast/slow moving averages for one series snapshot

        Args:
            series: Candles in ascending time order
            fast_window: Trailing candles for the fast MA (None = whole series)
            slow_window: Trailing candles for the slow MA (None = whole series)

        Raises:
            InsufficientDataError: fewer than 2 candles, or a window longer
                than the series
            DataValidationError: a close is non-numeric or non-finite
        """
        closes = self.validate_closes(candle.close for candle in series)
        gains, losses = self.gains_and_losses(closes)
        average_gain = self._mean(gains)
        average_loss = self._mean(losses)

        return IndicatorResult(
            rsi=self.rsi_from_averages(average_gain, average_loss),
            fast_ma=self.calculate_sma(self._window(closes, fast_window, "fast")),
            slow_ma=self.calculate_sma(self._window(closes, slow_window, "slow")),
            average_gain=average_gain,
            average_loss=average_loss,
            candle_count=len(closes),
        )
