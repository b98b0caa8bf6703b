"""Watermark reads: latest persisted observation per internal key.

History tables:
  - AD_LOCATCAR (vehicles)
  - AD_LOCATISC (trackers)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from trackhub._api._common import as_key, execute_query
from trackhub._api.tables import TRACKER_TABLES, VEHICLE_TABLES, EntityTables

if TYPE_CHECKING:
    from trackhub.gateway import SankhyaGateway

_logger = logging.getLogger(__name__)


def build_watermark_sql(tables: EntityTables) -> str:
    """One row per key: the last one by ``NUMREG`` (the table's insert sequence)."""
    key = tables.history_key
    return (
        f"WITH UltimoRegistro AS (SELECT {key}, DATHOR, {tables.history_identifier}, "
        f"ROW_NUMBER() OVER (PARTITION BY {key} ORDER BY NUMREG DESC) AS RN "
        f"FROM {tables.history}) "
        f"SELECT {key}, DATHOR, {tables.history_identifier} FROM UltimoRegistro WHERE RN = 1"
    )


async def fetch_watermarks(gateway: SankhyaGateway, tables: EntityTables) -> dict[str, str]:
    """Map internal key -> raw ``DATHOR`` string of its latest history row."""
    _logger.debug("Querying last %s history rows of %s...", tables.entity_class.value, tables.history)
    rows = await execute_query(gateway, build_watermark_sql(tables))

    watermarks: dict[str, str] = {}
    for row in rows:
        key = as_key(row.get(tables.history_key))
        if key is None:
            continue
        dathor = row.get("DATHOR")
        # Empty DATHOR is kept; the filter treats it as no baseline.
        watermarks[key] = "" if dathor is None else str(dathor)
    return watermarks


async def last_vehicle_watermarks(gateway: SankhyaGateway) -> dict[str, str]:
    return await fetch_watermarks(gateway, VEHICLE_TABLES)


async def last_tracker_watermarks(gateway: SankhyaGateway) -> dict[str, str]:
    return await fetch_watermarks(gateway, TRACKER_TABLES)
