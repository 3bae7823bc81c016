"""
Trading Engine

Runs one decision-to-order cycle for a trading pair:
fetch candles -> compute indicators -> decide -> (resolve account) -> submit.

This is the only place that decides what to do with a failure. Components
below raise classified TradingErrors; the cycle stops at the first one,
logs it once and reports it in the CycleOutcome. An order is never sent
after an earlier stage failed.
"""

import logging
from decimal import Decimal
from typing import Optional

from momentum_trader.coinbase_api.market_data_api import CandleFeed
from momentum_trader.coinbase_api.order_api import OrderExecutor, build_market_order
from momentum_trader.constants import (
    DEFAULT_FAST_MA_WINDOW,
    DEFAULT_RSI_OVERBOUGHT,
    DEFAULT_RSI_OVERSOLD,
    DEFAULT_SLOW_MA_WINDOW,
)
from momentum_trader.exceptions import TradingError
from momentum_trader.indicator_calculator import IndicatorCalculator
from momentum_trader.models import CycleOutcome, CycleStatus, IndicatorResult, Signal

logger = logging.getLogger(__name__)


class SignalEvaluator:
    """RSI threshold signal with an optional moving-average trend filter."""

    def __init__(
        self,
        oversold: float = DEFAULT_RSI_OVERSOLD,
        overbought: float = DEFAULT_RSI_OVERBOUGHT,
        ma_trend_filter: bool = False,
    ):
        if not 0 <= oversold < overbought <= 100:
            raise ValueError(f"Invalid RSI thresholds: oversold={oversold}, overbought={overbought}")
        self.oversold = oversold
        self.overbought = overbought
        self.ma_trend_filter = ma_trend_filter

    def evaluate(self, indicators: IndicatorResult) -> Signal:
        if indicators.rsi <= self.oversold:
            if self.ma_trend_filter and indicators.fast_ma < indicators.slow_ma:
                return Signal.HOLD
            return Signal.BUY
        if indicators.rsi >= self.overbought:
            if self.ma_trend_filter and indicators.fast_ma > indicators.slow_ma:
                return Signal.HOLD
            return Signal.SELL
        return Signal.HOLD


class TradingPipeline:
    """One sequential signal-to-order cycle per call to run_cycle()."""

    def __init__(
        self,
        candle_feed: CandleFeed,
        order_executor: OrderExecutor,
        calculator: Optional[IndicatorCalculator] = None,
        evaluator: Optional[SignalEvaluator] = None,
        fast_window: int = DEFAULT_FAST_MA_WINDOW,
        slow_window: int = DEFAULT_SLOW_MA_WINDOW,
        order_size: Optional[Decimal] = None,
        dry_run: bool = False,
    ):
        self.candle_feed = candle_feed
        self.order_executor = order_executor
        self.calculator = calculator or IndicatorCalculator()
        self.evaluator = evaluator or SignalEvaluator()
        self.fast_window = fast_window
        self.slow_window = slow_window
        self.order_size = order_size
        self.dry_run = dry_run

    async def run_cycle(self, pair: str) -> CycleOutcome:
        """Run one cycle and report what happened. Never raises TradingError."""
        signal = None
        indicators = None
        try:
            series = await self.candle_feed.fetch_candles(pair)
            indicators = self.calculator.compute_indicators(
                series, fast_window=self.fast_window, slow_window=self.slow_window
            )
            signal = self.evaluator.evaluate(indicators)
            logger.info(
                f"{pair}: RSI={indicators.rsi:.2f} fastMA={indicators.fast_ma:.8f} "
                f"slowMA={indicators.slow_ma:.8f} -> {signal.value.upper()}"
            )

            side = signal.to_side()
            if side is None:
                return CycleOutcome(pair=pair, status=CycleStatus.NO_SIGNAL, signal=signal, indicators=indicators)

            if self.dry_run:
                if self.order_size is not None:
                    order = build_market_order(pair, side, self.order_size)
                    logger.info(f"🧪 Dry run: would submit market {side.value} {order.size} {pair}")
                else:
                    logger.info(f"🧪 Dry run: would submit market {side.value} of the full balance for {pair}")
                return CycleOutcome(pair=pair, status=CycleStatus.DRY_RUN, signal=signal, indicators=indicators)

            if self.order_size is not None:
                result = await self.order_executor.submit_market_order(pair, side, self.order_size)
            else:
                result = await self.order_executor.trade_all(pair, side)

            return CycleOutcome(
                pair=pair,
                status=CycleStatus.ORDER_PLACED,
                signal=signal,
                indicators=indicators,
                order=result,
            )

        except TradingError as e:
            logger.error(f"❌ Cycle for {pair} halted ({e.kind}): {e.message}")
            return CycleOutcome(
                pair=pair,
                status=CycleStatus.ERROR,
                signal=signal,
                indicators=indicators,
                error_kind=e.kind,
                error_message=e.message,
            )
