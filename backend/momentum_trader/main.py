"""
Momentum Trader command line entry point

Runs one signal-to-order cycle (default) or a recurring monitor, printing
one report line per cycle:

  momentum-trader --pair BTC-USD
  momentum-trader --pair BTC-USD --dry-run
  momentum-trader --pair BTC-USD --loop --interval 300

Exit codes: 0 success or no signal, 1 any cycle ended in error,
2 configuration could not be loaded.
"""

import argparse
import asyncio
import logging
import sys
from decimal import Decimal, InvalidOperation
from typing import List, Optional

import pydantic

from momentum_trader.coinbase_api.account_balance_api import AccountResolver
from momentum_trader.coinbase_api.auth import ExchangeCredentials
from momentum_trader.coinbase_api.market_data_api import CandleFeed
from momentum_trader.coinbase_api.order_api import OrderExecutor
from momentum_trader.coinbase_api.transport import ExchangeTransport
from momentum_trader.config import Settings, get_settings
from momentum_trader.exceptions import ConfigurationError, TradingError
from momentum_trader.models import CycleOutcome, CycleStatus
from momentum_trader.price_monitor import PriceMonitor
from momentum_trader.trading_engine import SignalEvaluator, TradingPipeline

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _decimal_arg(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"not a decimal number: {value}")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="RSI/moving-average signal to market order pipeline")
    parser.add_argument("--pair", type=str, default=None, help="Trading pair, e.g. BTC-USD (default: TRADING_PAIR)")
    parser.add_argument(
        "--size",
        type=_decimal_arg,
        default=None,
        help="Fixed order size in base currency (default: ORDER_SIZE, or trade the full balance)",
    )
    parser.add_argument("--dry-run", action="store_true", help="Evaluate the signal but never submit an order")
    parser.add_argument("--loop", action="store_true", help="Keep running cycles at a fixed interval")
    parser.add_argument("--interval", type=int, default=None, help="Seconds between cycles with --loop")
    parser.add_argument("--cycles", type=int, default=None, help="Stop --loop after this many cycles")
    parser.add_argument("--log-level", type=str, default=None, help="Logging level (default: LOG_LEVEL)")
    return parser.parse_args(argv)


def build_pipeline(settings: Settings, credentials: Optional[ExchangeCredentials], dry_run: bool,
                   order_size: Optional[Decimal]) -> TradingPipeline:
    """Wire the exchange clients together with injected credentials."""
    transport = ExchangeTransport(
        base_url=settings.coinbase_api_url,
        credentials=credentials,
        retry_policy=settings.retry_policy(),
        timeout=settings.request_timeout,
    )
    resolver = AccountResolver(transport)
    return TradingPipeline(
        candle_feed=CandleFeed(transport, granularity=settings.candle_granularity),
        order_executor=OrderExecutor(transport, resolver),
        evaluator=SignalEvaluator(
            oversold=settings.rsi_oversold,
            overbought=settings.rsi_overbought,
            ma_trend_filter=settings.ma_trend_filter,
        ),
        fast_window=settings.fast_ma_window,
        slow_window=settings.slow_ma_window,
        order_size=order_size,
        dry_run=dry_run,
    )


def format_outcome(outcome: CycleOutcome) -> str:
    """One-line operator report for a cycle."""
    line = f"{outcome.pair}: {outcome.status.value}"
    if outcome.status is CycleStatus.ERROR:
        return f"{line} [{outcome.error_kind}] {outcome.error_message}"
    if outcome.indicators is not None:
        line += f" (RSI {outcome.indicators.rsi:.2f}, signal {outcome.signal.value})"
    if outcome.order is not None:
        line += f" order {outcome.order.order_id} status {outcome.order.status}"
    return line


async def run(args: argparse.Namespace, settings: Settings, credentials: Optional[ExchangeCredentials]) -> int:
    pair = args.pair or settings.trading_pair
    dry_run = args.dry_run or settings.dry_run
    order_size = args.size if args.size is not None else settings.order_size
    pipeline = build_pipeline(settings, credentials, dry_run, order_size)

    failures = []

    def report(outcome: CycleOutcome) -> None:
        print(format_outcome(outcome), flush=True)
        if outcome.failed:
            failures.append(outcome)

    monitor = PriceMonitor(
        pipeline,
        [pair],
        interval_seconds=args.interval if args.interval is not None else settings.poll_interval_seconds,
        max_cycles=args.cycles if args.loop else 1,
        on_outcome=report,
    )
    if args.loop:
        await monitor.run_forever()
    else:
        report(await monitor.run_pair_cycle(pair))
    return 1 if failures else 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        settings = get_settings()
    except pydantic.ValidationError as e:
        configure_logging(args.log_level or "INFO")
        logger.error(f"Invalid configuration: {e}")
        print(f"error [configuration_error] {e}")
        return 2

    configure_logging(args.log_level or settings.log_level)

    dry_run = args.dry_run or settings.dry_run
    try:
        credentials = settings.credentials()
    except ConfigurationError as e:
        if not dry_run:
            logger.error(f"Invalid credentials: {e.message}")
            print(f"error [{e.kind}] {e.message}")
            return 2
        logger.warning(f"Dry run without usable credentials: {e.message}")
        credentials = None

    try:
        return asyncio.run(run(args, settings, credentials))
    except TradingError as e:
        # Pipeline outcomes already carry classified errors; this covers setup
        print(f"error [{e.kind}] {e.message}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
