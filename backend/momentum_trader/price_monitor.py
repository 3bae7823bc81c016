import asyncio
import logging
from typing import Callable, Dict, List, Optional

from momentum_trader.models import CycleOutcome
from momentum_trader.trading_engine import TradingPipeline

logger = logging.getLogger(__name__)


class PriceMonitor:
    """Run trading cycles for one or more pairs at a fixed interval"""

    def __init__(
        self,
        pipeline: TradingPipeline,
        pairs: List[str],
        interval_seconds: int = 60,
        max_cycles: Optional[int] = None,
        on_outcome: Optional[Callable[[CycleOutcome], None]] = None,
    ):
        self.pipeline = pipeline
        self.pairs = list(pairs)
        self.interval_seconds = interval_seconds
        self.max_cycles = max_cycles
        self.on_outcome = on_outcome
        self.running = False
        self.task: Optional[asyncio.Task] = None
        self.cycles_completed = 0
        self.last_outcomes: Dict[str, CycleOutcome] = {}
        self._pair_locks: Dict[str, asyncio.Lock] = {}
        self._stop_event = asyncio.Event()

    def _lock_for(self, pair: str) -> asyncio.Lock:
        if pair not in self._pair_locks:
            self._pair_locks[pair] = asyncio.Lock()
        return self._pair_locks[pair]

    async def run_pair_cycle(self, pair: str) -> CycleOutcome:
        """
        Run one cycle for pair

        Cycles for the same pair are serialized: a new one waits until the
        previous one (including its order submission) has finished.
        """
        lock = self._lock_for(pair)
        if lock.locked():
            logger.info(f"Cycle for {pair} still running, waiting for it to finish")
        async with lock:
            outcome = await self.pipeline.run_cycle(pair)
        self.last_outcomes[pair] = outcome
        return outcome

    async def monitor_loop(self):
        """Main monitoring loop"""
        logger.info(f"Starting price monitor for {', '.join(self.pairs)} every {self.interval_seconds}s")

        while self.running:
            for pair in self.pairs:
                outcome = await self.run_pair_cycle(pair)
                logger.info(f"Cycle result for {pair}: {outcome.status.value}")
                if self.on_outcome is not None:
                    self.on_outcome(outcome)

            self.cycles_completed += 1
            if self.max_cycles is not None and self.cycles_completed >= self.max_cycles:
                break

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval_seconds)
            except asyncio.TimeoutError:
                pass

        self.running = False
        logger.info("Price monitor stopped")

    def start(self):
        """Start the monitoring task"""
        if not self.running:
            self.running = True  # Set before scheduling to prevent a double start
            self._stop_event.clear()
            self.task = asyncio.create_task(self.monitor_loop())
            logger.info("Price monitor task started")
        else:
            logger.warning("Monitor already running, ignoring duplicate start() call")

    async def stop(self):
        """Stop the monitoring task after the in-flight cycle completes"""
        self.running = False
        self._stop_event.set()
        if self.task:
            await self.task
            logger.info("Price monitor task stopped")

    async def run_forever(self):
        """Start and wait until the loop ends (max_cycles reached or stop())"""
        self.start()
        await self.task

    def get_status(self) -> dict:
        """Get monitor status"""
        return {
            "running": self.running,
            "pairs": self.pairs,
            "interval_seconds": self.interval_seconds,
            "cycles_completed": self.cycles_completed,
            "last_outcomes": {pair: outcome.status.value for pair, outcome in self.last_outcomes.items()},
        }
