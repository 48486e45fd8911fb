"""
Periodic expiry driver: runs the expiry check over pending swap requests on an interval.
Each tick uses a fresh database session; re-running over expired requests is a no-op.
"""
import asyncio
from collections.abc import Awaitable, Callable

from skillswap.database.connection import transaction
from skillswap.database.stores import swap_service_for
from skillswap.utils.logger import get_logger

logger = get_logger(__name__)


class ExpirySweeper:
    def __init__(self, sweep: Callable[[], Awaitable[int]], interval_seconds: float):
        self._sweep = sweep
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None

    async def run_once(self) -> int:
        try:
            return await self._sweep()
        except Exception:
            logger.exception("Swap request expiry sweep failed")
            return 0

    async def _run_forever(self) -> None:
        while True:
            await self.run_once()
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run_forever(), name="swap-expiry-sweeper")
            logger.info("Expiry sweeper started", extra={"interval_seconds": self.interval_seconds})

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Expiry sweeper stopped")


async def sweep_with_new_session() -> int:
    """One sweep over the database, in its own transaction."""
    async with transaction() as db:
        return await swap_service_for(db).sweep_expired()
