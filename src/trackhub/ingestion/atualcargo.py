"""Atualcargo position feed -> canonical records.

Atualcargo reports vehicles and trackers in one feed; tracker plates carry
an ``ISCA`` prefix (``ISCA0189``) while the store registers the bare number.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from trackhub._constants import TRACKER_PLATE_PREFIX
from trackhub._datetime import parse_atualcargo_timestamp
from trackhub.ingestion.normalize import nested_get, safe_float, safe_str
from trackhub.models.position import EntityClass, MappedPositions, PositionRecord

_logger = logging.getLogger(__name__)


def _location(position: Mapping[str, Any]) -> str | None:
    return safe_str(position.get("proximity")) or safe_str(nested_get(position, "address", "street"))


def map_atualcargo_position(position: Mapping[str, Any]) -> PositionRecord | None:
    """Map one raw position, or return ``None`` when it is unusable."""
    plate = safe_str(position.get("plate"))
    observed_at = parse_atualcargo_timestamp(position.get("date"))
    latitude = safe_float(nested_get(position, "latlong", "latitude"))
    longitude = safe_float(nested_get(position, "latlong", "longitude"))
    if plate is None or observed_at is None or latitude is None or longitude is None:
        _logger.warning("[Atualcargo] Record ignored (invalid data/date): %s", plate)
        return None

    if plate.startswith(TRACKER_PLATE_PREFIX):
        entity_class = EntityClass.TRACKER
        external_identifier = plate.removeprefix(TRACKER_PLATE_PREFIX)
    else:
        entity_class = EntityClass.VEHICLE
        external_identifier = plate

    try:
        return PositionRecord(
            entity_class=entity_class,
            external_identifier=external_identifier,
            insert_identifier=plate,
            observed_at=observed_at,
            latitude=latitude,
            longitude=longitude,
            speed=safe_float(position.get("speed")),
            location=_location(position),
        )
    except ValidationError as exc:
        _logger.warning("[Atualcargo] Record ignored (%d validation errors): %s", exc.error_count(), plate)
        return None


def map_atualcargo_positions(positions: Iterable[Mapping[str, Any]]) -> MappedPositions:
    mapped = MappedPositions()
    for position in positions:
        record = map_atualcargo_position(position)
        if record is None:
            continue
        if record.entity_class is EntityClass.TRACKER:
            mapped.trackers.append(record)
        else:
            mapped.vehicles.append(record)
    return mapped
