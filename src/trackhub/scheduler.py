"""Job scheduling: each job's next cycle starts only after the previous one settles."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Sequence

from trackhub.jobs import ProviderJob

_logger = logging.getLogger(__name__)


class JobScheduler:
    """Drives provider jobs in independent loops.

    Jobs share nothing but the gateway behind their processors; a slow or
    failing job never delays another one.
    """

    def __init__(self, jobs: Sequence[ProviderJob]) -> None:
        self._jobs = list(jobs)
        self._stop = asyncio.Event()

    def stop(self) -> None:
        """Ask every loop to exit after its current cycle."""
        self._stop.set()

    async def _run_guarded(self, job: ProviderJob) -> None:
        _logger.info("---------------- [Job: %s] ----------------", job.name)
        try:
            await job.run()
        except Exception:
            _logger.exception("[Job: %s] Unhandled error in job cycle", job.name)

    async def _loop(self, job: ProviderJob) -> None:
        _logger.info("[JobScheduler] Scheduling job [%s] every %.1f minute(s).", job.name, job.interval / 60)
        while not self._stop.is_set():
            await self._run_guarded(job)
            _logger.info("[Job: %s] Cycle finished. Next run in %.1f min.", job.name, job.interval / 60)
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(self._stop.wait(), timeout=job.interval)

    async def run_once(self) -> None:
        """Run one cycle of every job concurrently."""
        await asyncio.gather(*(self._run_guarded(job) for job in self._jobs))

    async def run_forever(self) -> None:
        """Loop every job until :meth:`stop` is called."""
        if not self._jobs:
            _logger.warning("[JobScheduler] No jobs enabled.")
            return
        await asyncio.gather(*(self._loop(job) for job in self._jobs))
