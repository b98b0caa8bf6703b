"""Timestamp parsing and formatting for store and provider formats."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from trackhub._constants import ATUALCARGO_DATE_FORMAT, STORE_INSERT_FORMAT, STORE_READ_FORMAT


def parse_with_formats(value: object, formats: Iterable[str]) -> datetime | None:
    """Parse *value* with the first matching ``strptime`` format.

    Returns ``None`` for non-strings and unparsable strings.
    """
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        return None
    text = value.strip()
    if not text:
        return None
    for fmt in formats:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def parse_store_timestamp(value: object) -> datetime | None:
    """Parse a ``DATHOR`` value as returned by DbExplorerSP (``ddMMyyyy HH:mm:ss``)."""
    return parse_with_formats(value, (STORE_READ_FORMAT,))


def parse_atualcargo_timestamp(value: object) -> datetime | None:
    return parse_with_formats(value, (ATUALCARGO_DATE_FORMAT,))


def parse_sitrax_timestamp(value: object) -> datetime | None:
    """Sitrax sends either ISO 8601 or ``dd/MM/yyyy HH:mm:ss``."""
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            pass
    return parse_with_formats(value, (STORE_INSERT_FORMAT, ATUALCARGO_DATE_FORMAT))


def format_store_timestamp(value: datetime) -> str:
    """Format *value* for ``DATHOR`` in DatasetSP.save (``dd/MM/yyyy HH:mm:ss``)."""
    return value.strftime(STORE_INSERT_FORMAT)
