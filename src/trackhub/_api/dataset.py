"""Batch writes of position history rows.

Service:
  - DatasetSP.save (entities AD_LOCATCAR, AD_LOCATISC)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from trackhub._api.tables import TRACKER_TABLES, VEHICLE_TABLES, EntityTables
from trackhub._constants import DATASET_ID, MAP_LINK_TEMPLATE, SAVE_SERVICE
from trackhub._datetime import format_store_timestamp
from trackhub.models.position import ResolvedPosition

if TYPE_CHECKING:
    from trackhub.gateway import SankhyaGateway

_logger = logging.getLogger(__name__)


def map_link(latitude: float, longitude: float) -> str:
    return MAP_LINK_TEMPLATE.format(lat=latitude, lon=longitude)


def _format_number(value: float) -> str:
    # 10.0 -> "10", keeps full precision otherwise
    return str(int(value)) if float(value).is_integer() else repr(float(value))


def build_history_row(tables: EntityTables, position: ResolvedPosition) -> dict[str, Any]:
    """One DatasetSP record; value keys are indices into ``history_fields``."""
    record = position.record
    return {
        "foreignKey": {tables.history_key: position.internal_key},
        "values": {
            "2": record.location,
            "3": format_store_timestamp(record.observed_at),
            "4": record.insert_identifier,
            "5": repr(record.latitude),
            "6": repr(record.longitude),
            "7": _format_number(record.speed),
            "8": map_link(record.latitude, record.longitude),
        },
    }


def build_save_request(tables: EntityTables, positions: Sequence[ResolvedPosition]) -> dict[str, Any]:
    """Build the ``requestBody`` of one bulk insert into ``tables.history``."""
    return {
        "dataSetID": DATASET_ID,
        "entityName": tables.history,
        "standAlone": False,
        "fields": tables.history_fields,
        "ignoreListenerMethods": "",
        "records": [build_history_row(tables, p) for p in positions],
    }


async def write_batch(
    gateway: SankhyaGateway,
    tables: EntityTables,
    positions: Sequence[ResolvedPosition],
) -> int:
    """Insert *positions* with a single DatasetSP.save call.

    An empty batch is a successful no-op.  The call either succeeds or
    raises for the whole batch.  Returns the number of rows sent.
    """
    if not positions:
        _logger.debug("No new rows for %s.", tables.history)
        return 0

    _logger.info("Inserting %d new rows into %s...", len(positions), tables.history)
    await gateway.request(SAVE_SERVICE, build_save_request(tables, positions))
    _logger.info("Insert into %s completed.", tables.history)
    return len(positions)


async def write_vehicle_batch(gateway: SankhyaGateway, positions: Sequence[ResolvedPosition]) -> int:
    return await write_batch(gateway, VEHICLE_TABLES, positions)


async def write_tracker_batch(gateway: SankhyaGateway, positions: Sequence[ResolvedPosition]) -> int:
    return await write_batch(gateway, TRACKER_TABLES, positions)
