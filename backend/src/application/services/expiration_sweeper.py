"""
Job Offer Expiration Sweeper
Moves open job offers past their deadline to expired
"""
import asyncio
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from loguru import logger

from application.repositories.interfaces import ICacheStore, IJobOfferRepository
from application.services.cache import JOB_OFFERS_NAMESPACE, CacheInvalidator


class ExpirationSweeper:
    """Bulk-expires job offers and invalidates the job-offers: namespace when anything changed"""

    def __init__(self, job_offer_repo: IJobOfferRepository, cache: ICacheStore):
        self.job_offer_repo = job_offer_repo
        self.invalidator = CacheInvalidator(cache)

    async def sweep(self, now: Optional[datetime] = None) -> int:
        """
        Expire every open job offer whose deadline has passed

        Returns:
            Number of job offers transitioned to expired
        """
        now = now or datetime.now(timezone.utc)
        modified = await self.job_offer_repo.bulk_expire(now)

        if modified > 0:
            await self.invalidator.invalidate(JOB_OFFERS_NAMESPACE)
            logger.info(f"⏰ Expired {modified} job offer(s)")
        else:
            logger.debug("No job offers to expire")

        return modified


class ExpirationScheduler:
    """Background loop running the sweep at a fixed interval"""

    def __init__(self, run_sweep: Callable[[], Awaitable[int]], interval_minutes: int = 60):
        """
        Args:
            run_sweep: Coroutine factory performing one sweep with its own resources
            interval_minutes: Minutes between sweeps
        """
        self.run_sweep = run_sweep
        self.interval_seconds = interval_minutes * 60
        self.running = False
        self._task: Optional[asyncio.Task] = None

    async def _loop(self):
        logger.info(f"🚀 Expiration scheduler started (interval={self.interval_seconds}s)")
        try:
            while self.running:
                try:
                    await self.run_sweep()
                except Exception as e:
                    logger.error(f"Expiration sweep failed: {e}")
                await asyncio.sleep(self.interval_seconds)
        finally:
            logger.info("🛑 Expiration scheduler stopped")

    def start(self):
        """Start the loop as a background task"""
        if self._task is not None:
            return
        self.running = True
        self._task = asyncio.create_task(self._loop())

    async def stop(self):
        """Stop the loop"""
        self.running = False
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
