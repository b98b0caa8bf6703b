"""Position store facade over the Sankhya gateway."""

from __future__ import annotations

from collections.abc import Sequence, Set

from trackhub._api import dataset as _dataset_api
from trackhub._api import entities as _entities_api
from trackhub._api import history as _history_api
from trackhub.gateway import SankhyaGateway
from trackhub.models.position import ResolvedPosition


class PositionStore:
    """Entity resolution, watermark reads and batch writes.

    Every call goes through the shared :class:`SankhyaGateway`, so all
    stores built on one gateway share its session.
    """

    def __init__(self, gateway: SankhyaGateway) -> None:
        self._gateway = gateway

    @property
    def gateway(self) -> SankhyaGateway:
        return self._gateway

    # ------------------------------------------------------------------
    # Entity resolver
    # ------------------------------------------------------------------

    async def resolve_vehicles(self, identifiers: Set[str]) -> dict[str, str]:
        """Plate -> internal vehicle key; unknown plates are absent."""
        return await _entities_api.resolve_vehicles(self._gateway, identifiers)

    async def resolve_trackers(self, identifiers: Set[str]) -> dict[str, str]:
        """Tracker number -> internal tracker key; unknown numbers are absent."""
        return await _entities_api.resolve_trackers(self._gateway, identifiers)

    # ------------------------------------------------------------------
    # Watermarks
    # ------------------------------------------------------------------

    async def last_vehicle_watermarks(self) -> dict[str, str]:
        return await _history_api.last_vehicle_watermarks(self._gateway)

    async def last_tracker_watermarks(self) -> dict[str, str]:
        return await _history_api.last_tracker_watermarks(self._gateway)

    # ------------------------------------------------------------------
    # Batch writer
    # ------------------------------------------------------------------

    async def write_vehicle_batch(self, positions: Sequence[ResolvedPosition]) -> int:
        return await _dataset_api.write_vehicle_batch(self._gateway, positions)

    async def write_tracker_batch(self, positions: Sequence[ResolvedPosition]) -> int:
        return await _dataset_api.write_tracker_batch(self._gateway, positions)
