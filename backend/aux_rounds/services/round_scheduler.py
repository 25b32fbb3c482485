"""Round Scheduler — periodic driver for RoundLifecycleEngine.tick().

Invariants:
    - At most one tick runs at a time; a tick due while another runs is skipped
    - run_once() never raises: a failed tick is logged and the loop continues
    - Interval is measured from the end of one tick to the start of the next
    - start()/stop() return whether a job was active before the call

Design Decisions:
    - One instance built at wiring time (main.py lifespan), no module-level state
    - Stop token is an asyncio.Event, so stop() interrupts the interval wait
      instead of cancelling a tick half-way through its side effects
"""

import asyncio
import logging

from aux_rounds.core.errors import SchedulerError
from aux_rounds.services.round_engine import RoundLifecycleEngine, TickReport

logger = logging.getLogger(__name__)


class RoundScheduler:
    """Owns the background task that ticks the round engine."""

    def __init__(
        self,
        engine: RoundLifecycleEngine,
        interval_seconds: float,
        run_on_startup: bool = True,
        logging_enabled: bool = True,
    ):
        if interval_seconds <= 0:
            raise SchedulerError(
                f"Tick interval must be positive, got {interval_seconds}",
            )
        self.engine = engine
        self.interval_seconds = interval_seconds
        self.run_on_startup = run_on_startup
        self.logging_enabled = logging_enabled
        self._tick_lock = asyncio.Lock()
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task | None = None
        self.ticks_completed = 0
        self.last_report: TickReport | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> bool:
        """Start the periodic job. Returns True if it was already running."""
        if self.is_running:
            logger.warning("Round scheduler is already running")
            return True

        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run_loop())
        logger.info(
            "Round scheduler started (interval %ss, run on startup: %s)",
            self.interval_seconds, self.run_on_startup,
        )
        return False

    async def stop(self) -> bool:
        """Stop the periodic job. Returns True if it was running."""
        if not self.is_running:
            return False

        logger.info("Stopping round scheduler...")
        self._stop_event.set()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Round scheduler stopped")
        return True

    async def run_once(self) -> TickReport | None:
        """Run one tick unless one is already in flight. Never raises."""
        if self._tick_lock.locked():
            logger.warning("Previous round tick still running, skipping")
            return None

        async with self._tick_lock:
            if self.logging_enabled:
                logger.info(
                    "Running round tick", extra={"tick": self.ticks_completed + 1},
                )
            try:
                report = await self.engine.tick()
            except Exception as e:
                logger.error(f"Round tick failed: {e}", exc_info=True)
                return None
            self.ticks_completed += 1
            self.last_report = report
            return report

    async def _run_loop(self) -> None:
        if self.run_on_startup:
            await self.run_once()
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(
                    self._stop_event.wait(), timeout=self.interval_seconds,
                )
            except asyncio.TimeoutError:
                await self.run_once()
