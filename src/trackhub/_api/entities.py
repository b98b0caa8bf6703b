"""Entity resolution: external identifiers to internal record store keys.

Registry tables:
  - TGFVEI (vehicles by plate)
  - AD_CADISCA (active trackers by number)
"""

from __future__ import annotations

import logging
from collections.abc import Set
from typing import TYPE_CHECKING

from trackhub._api._common import as_key, execute_query, in_clause
from trackhub._api.tables import TRACKER_TABLES, VEHICLE_TABLES, EntityTables

if TYPE_CHECKING:
    from trackhub.gateway import SankhyaGateway

_logger = logging.getLogger(__name__)


def build_resolve_sql(tables: EntityTables, identifiers: Set[str]) -> str:
    sql = (
        f"SELECT T.{tables.registry_key}, T.{tables.registry_identifier} "
        f"FROM {tables.registry} T "
        f"WHERE T.{tables.registry_identifier} IN ({in_clause(identifiers)})"
    )
    if tables.registry_filter:
        sql += f" AND T.{tables.registry_filter}"
    return sql


async def resolve_identifiers(
    gateway: SankhyaGateway,
    tables: EntityTables,
    identifiers: Set[str],
) -> dict[str, str]:
    """Map each registered identifier to its internal key.

    An empty *identifiers* set returns ``{}`` without calling the store.
    Unregistered identifiers are simply absent from the result.
    """
    wanted = {ident.strip() for ident in identifiers if ident and ident.strip()}
    if not wanted:
        return {}

    _logger.debug(
        "Resolving %d %s identifiers against %s.",
        len(wanted),
        tables.entity_class.value,
        tables.registry,
    )
    rows = await execute_query(gateway, build_resolve_sql(tables, wanted))

    mapping: dict[str, str] = {}
    for row in rows:
        identifier = as_key(row.get(tables.registry_identifier))
        key = as_key(row.get(tables.registry_key))
        if identifier is None or key is None:
            continue
        mapping[identifier] = key
    return mapping


async def resolve_vehicles(gateway: SankhyaGateway, identifiers: Set[str]) -> dict[str, str]:
    """Plate -> CODVEICULO."""
    return await resolve_identifiers(gateway, VEHICLE_TABLES, identifiers)


async def resolve_trackers(gateway: SankhyaGateway, identifiers: Set[str]) -> dict[str, str]:
    """Tracker number -> SEQUENCIA (active trackers only)."""
    return await resolve_identifiers(gateway, TRACKER_TABLES, identifiers)
