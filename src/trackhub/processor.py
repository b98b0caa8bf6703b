"""Sync processor: one ingestion cycle with whole-attempt retry."""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Awaitable, Sequence
from dataclasses import dataclass
from typing import Any

from trackhub.config import SyncConfig
from trackhub.dedup import filter_new_positions
from trackhub.exceptions import TrackHubError
from trackhub.models.position import PositionRecord, ResolvedPosition
from trackhub.store import PositionStore

_logger = logging.getLogger(__name__)


class SyncState(enum.StrEnum):
    IDLE = "idle"
    FETCHING_LOOKUPS = "fetching_lookups"
    FILTERING = "filtering"
    WRITING = "writing"
    DONE = "done"


@dataclass(frozen=True, slots=True)
class SyncResult:
    """Completion signal of one cycle.

    ``success`` is ``False`` only when every attempt failed; the cycle's
    observations were then discarded.
    """

    success: bool
    attempts: int = 0
    vehicles_written: int = 0
    trackers_written: int = 0
    error: str | None = None


@dataclass(frozen=True, slots=True)
class _Lookups:
    vehicle_keys: dict[str, str]
    tracker_keys: dict[str, str]
    vehicle_watermarks: dict[str, str]
    tracker_watermarks: dict[str, str]


async def _gather_all(*aws: Awaitable[Any]) -> list[Any]:
    """Run *aws* concurrently and raise the first failure.

    Siblings of a failed call are awaited to completion, never cancelled.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return results


class SyncProcessor:
    """Replicates new position records of one provider into the store.

    Several processors may share one :class:`PositionStore` (and therefore
    one gateway session).  A processor must not run two cycles at once;
    the scheduler awaits each cycle before starting the next.

    Parameters
    ----------
    store : PositionStore
        Record store access.
    config : SyncConfig
        ``max_attempts`` and ``retry_delay``.
    source : str
        Provider name used as log prefix.
    """

    def __init__(self, store: PositionStore, config: SyncConfig, *, source: str) -> None:
        self._store = store
        self._config = config
        self._source = source
        self._state = SyncState.IDLE

    @property
    def state(self) -> SyncState:
        """Step of the running cycle; ``DONE`` once the last one settled."""
        return self._state

    async def _fetch_lookups(
        self,
        vehicles: Sequence[PositionRecord],
        trackers: Sequence[PositionRecord],
    ) -> _Lookups:
        self._state = SyncState.FETCHING_LOOKUPS
        vehicle_ids = {v.external_identifier for v in vehicles}
        tracker_ids = {t.external_identifier for t in trackers}

        vehicle_keys, tracker_keys, vehicle_marks, tracker_marks = await _gather_all(
            self._store.resolve_vehicles(vehicle_ids),
            self._store.resolve_trackers(tracker_ids),
            self._store.last_vehicle_watermarks(),
            self._store.last_tracker_watermarks(),
        )
        _logger.info(
            "[%s] %d vehicles and %d trackers mapped; %d vehicle and %d tracker histories loaded.",
            self._source,
            len(vehicle_keys),
            len(tracker_keys),
            len(vehicle_marks),
            len(tracker_marks),
        )
        return _Lookups(vehicle_keys, tracker_keys, vehicle_marks, tracker_marks)

    def _filter(
        self,
        vehicles: Sequence[PositionRecord],
        trackers: Sequence[PositionRecord],
        lookups: _Lookups,
    ) -> tuple[list[ResolvedPosition], list[ResolvedPosition]]:
        self._state = SyncState.FILTERING
        new_vehicles = filter_new_positions(
            vehicles, lookups.vehicle_keys, lookups.vehicle_watermarks, source=self._source
        )
        new_trackers = filter_new_positions(
            trackers, lookups.tracker_keys, lookups.tracker_watermarks, source=self._source
        )
        _logger.info(
            "[%s] %d new vehicle and %d new tracker records to insert.",
            self._source,
            len(new_vehicles),
            len(new_trackers),
        )
        return new_vehicles, new_trackers

    async def _write(
        self,
        new_vehicles: list[ResolvedPosition],
        new_trackers: list[ResolvedPosition],
    ) -> tuple[int, int]:
        self._state = SyncState.WRITING
        vehicles_written, trackers_written = await _gather_all(
            self._store.write_vehicle_batch(new_vehicles),
            self._store.write_tracker_batch(new_trackers),
        )
        return vehicles_written, trackers_written

    async def run_cycle(
        self,
        vehicles: Sequence[PositionRecord] = (),
        trackers: Sequence[PositionRecord] = (),
    ) -> SyncResult:
        """Run one sync cycle for already-normalized observations.

        Each attempt re-reads identifiers and watermarks, filters, then
        writes both batches.  A failed attempt is retried after
        ``retry_delay`` up to ``max_attempts`` times; after the last failure
        the observations are dropped and a failed result is returned.
        """
        if not vehicles and not trackers:
            _logger.info("[%s] No valid data to process.", self._source)
            self._state = SyncState.DONE
            return SyncResult(success=True)

        _logger.info(
            "[%s] Processing %d vehicle and %d tracker records in Sankhya.",
            self._source,
            len(vehicles),
            len(trackers),
        )

        max_attempts = self._config.max_attempts
        last_error: str | None = None
        try:
            for attempt in range(1, max_attempts + 1):
                _logger.info(
                    "[%s] Fetching Sankhya lookups (attempt %d/%d)...",
                    self._source,
                    attempt,
                    max_attempts,
                )
                try:
                    lookups = await self._fetch_lookups(vehicles, trackers)
                    new_vehicles, new_trackers = self._filter(vehicles, trackers, lookups)
                    vehicles_written, trackers_written = await self._write(new_vehicles, new_trackers)
                except (TrackHubError, TimeoutError) as exc:
                    last_error = str(exc) or type(exc).__name__
                    _logger.error(
                        "[%s] Attempt %d to process data in Sankhya failed: %s",
                        self._source,
                        attempt,
                        last_error,
                    )
                    if attempt < max_attempts:
                        _logger.warning(
                            "[%s] Waiting %.0f second(s) before the next attempt...",
                            self._source,
                            self._config.retry_delay,
                        )
                        await asyncio.sleep(self._config.retry_delay)
                    continue

                _logger.info("[%s] Sankhya processing completed successfully.", self._source)
                return SyncResult(
                    success=True,
                    attempts=attempt,
                    vehicles_written=vehicles_written,
                    trackers_written=trackers_written,
                )
        finally:
            self._state = SyncState.DONE

        _logger.error(
            "[%s] Retry limit of %d reached for Sankhya. Discarding this cycle's data.",
            self._source,
            max_attempts,
        )
        return SyncResult(success=False, attempts=max_attempts, error=last_error)
