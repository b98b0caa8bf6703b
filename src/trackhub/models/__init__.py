"""Data models for trackhub."""

from trackhub.models.position import EntityClass, MappedPositions, PositionRecord, ResolvedPosition
from trackhub.models.service import QueryResult, ServiceResponse

__all__ = [
    "EntityClass",
    "MappedPositions",
    "PositionRecord",
    "QueryResult",
    "ResolvedPosition",
    "ServiceResponse",
]
