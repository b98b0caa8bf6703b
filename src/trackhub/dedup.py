"""High-water-mark deduplication of position records.

A record is written only when it is strictly newer than the latest row the
record store already holds for the same internal key.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from datetime import datetime

from trackhub._datetime import parse_atualcargo_timestamp, parse_store_timestamp
from trackhub.models.position import PositionRecord, ResolvedPosition

_logger = logging.getLogger(__name__)


def _coerce_candidate(value: object) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            return parse_atualcargo_timestamp(value)
    return None


def is_newer(candidate: datetime | str | None, watermark: str | None) -> bool:
    """Return whether *candidate* must be written given the stored *watermark*.

    - invalid candidate: never accepted
    - no watermark: accepted
    - unparsable watermark: accepted (sync keeps flowing past a corrupt row)
    - otherwise: strictly later only; equal timestamps are duplicates
    """
    new = _coerce_candidate(candidate)
    if new is None:
        return False

    if not watermark:
        return True

    last = parse_store_timestamp(watermark)
    if last is None:
        _logger.warning("Stored watermark %r is unparsable; accepting %s.", watermark, new)
        return True

    # Stored DATHOR is wall-clock time; read it in the candidate's zone.
    if new.tzinfo is not None and last.tzinfo is None:
        last = last.replace(tzinfo=new.tzinfo)
    return new > last


def filter_new_positions(
    records: Iterable[PositionRecord],
    mapping: Mapping[str, str],
    watermarks: Mapping[str, str],
    *,
    source: str = "",
) -> list[ResolvedPosition]:
    """Resolve and deduplicate *records* against the store's state.

    Records whose identifier is not in *mapping* are dropped (logged at
    DEBUG, not an error).  The rest are kept iff :func:`is_newer` accepts
    them against their key's watermark.  Input order is preserved.
    """
    accepted: list[ResolvedPosition] = []
    for record in records:
        internal_key = mapping.get(record.external_identifier)
        if internal_key is None:
            _logger.debug(
                "[%s] %s %s ignored (not registered in Sankhya).",
                source,
                record.entity_class.value,
                record.external_identifier,
            )
            continue
        if is_newer(record.observed_at, watermarks.get(internal_key)):
            accepted.append(ResolvedPosition(record=record, internal_key=internal_key))
    return accepted
