"""Provider jobs: fetch -> map -> sync."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from trackhub.exceptions import TrackHubError
from trackhub.models.position import MappedPositions
from trackhub.processor import SyncProcessor, SyncResult

_logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[list[dict[str, Any]]]]
Mapper = Callable[[Iterable[Mapping[str, Any]]], MappedPositions]


@dataclass(slots=True)
class ProviderJob:
    """One provider pipeline.

    Parameters
    ----------
    name : str
        Job / provider name used in logs.
    fetch : callable
        Coroutine function returning the provider's raw records.
    mapper : callable
        Turns raw records into canonical positions.
    processor : SyncProcessor
        Sync processor dedicated to this provider.
    interval : float
        Seconds between the end of one cycle and the start of the next.
    """

    name: str
    fetch: Fetcher
    mapper: Mapper
    processor: SyncProcessor
    interval: float = 300.0

    async def run(self) -> SyncResult | None:
        """Run one cycle; ``None`` when nothing reached the processor."""
        _logger.info("[%s] Starting job...", self.name)
        try:
            positions = await self.fetch()
        except TrackHubError as exc:
            _logger.error("[%s] Failed to extract data. Job aborted: %s", self.name, exc)
            return None

        if not positions:
            _logger.info("[%s] No positions received. Job finished.", self.name)
            return None

        _logger.info("[%s] Extraction finished. %d positions received.", self.name, len(positions))
        mapped = self.mapper(positions)
        result = await self.processor.run_cycle(mapped.vehicles, mapped.trackers)
        _logger.info("[%s] Job finished.", self.name)
        return result
