"""Sitrax position feed -> canonical records (trackers only)."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from trackhub._datetime import parse_sitrax_timestamp
from trackhub.ingestion.normalize import safe_float, safe_str
from trackhub.models.position import EntityClass, MappedPositions, PositionRecord

_logger = logging.getLogger(__name__)


def _location(position: Mapping[str, Any]) -> str | None:
    street = safe_str(position.get("truaNome"))
    city = safe_str(position.get("tmunNome"))
    state = safe_str(position.get("testAbrev"))
    if not (street or city or state):
        return None
    return f"{street or ''}, {city or ''} - {state or ''}"


def map_sitrax_position(position: Mapping[str, Any]) -> PositionRecord | None:
    """Map one raw position, or return ``None`` when it is unusable.

    ``cveiPlaca`` is the number registered in the tracker table;
    ``cequSN`` is the serial written to the history row.
    """
    identifier = safe_str(position.get("cveiPlaca"))
    observed_at = parse_sitrax_timestamp(position.get("llpoDataStatus"))
    latitude = safe_float(position.get("llpoLatitude"))
    longitude = safe_float(position.get("llpoLongitude"))
    if identifier is None or observed_at is None or latitude is None or longitude is None:
        _logger.warning("[Sitrax] Record ignored (invalid data/date): %s", identifier)
        return None

    try:
        return PositionRecord(
            entity_class=EntityClass.TRACKER,
            external_identifier=identifier,
            insert_identifier=safe_str(position.get("cequSN")) or identifier,
            observed_at=observed_at,
            latitude=latitude,
            longitude=longitude,
            speed=safe_float(position.get("llpoVelocidade")),
            location=_location(position),
        )
    except ValidationError as exc:
        _logger.warning("[Sitrax] Record ignored (%d validation errors): %s", exc.error_count(), identifier)
        return None


def map_sitrax_positions(positions: Iterable[Mapping[str, Any]]) -> MappedPositions:
    mapped = MappedPositions()
    for position in positions:
        record = map_sitrax_position(position)
        if record is not None:
            mapped.trackers.append(record)
    return mapped
