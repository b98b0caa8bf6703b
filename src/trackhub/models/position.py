"""Canonical position records shared by every provider."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from trackhub._constants import LOCATION_PLACEHOLDER


class EntityClass(enum.StrEnum):
    """Observation category; each has its own identifier space and table."""

    VEHICLE = "vehicle"
    TRACKER = "tracker"


class PositionRecord(BaseModel):
    """One provider-agnostic position report.

    Parameters
    ----------
    entity_class : EntityClass
        Whether the report belongs to a vehicle or a tracker.
    external_identifier : str
        Identifier used to resolve the internal record store key
        (plate, tracker number).
    insert_identifier : str
        Literal written to the history row.  May differ from
        ``external_identifier`` (e.g. ``ISCA0189`` vs ``0189``).
    observed_at : datetime
        When the position was observed.
    latitude, longitude : float
        Coordinates in degrees.
    speed : float
        Unit-less passthrough from the provider.
    location : str
        Human readable location; a placeholder when the provider has none.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    entity_class: EntityClass
    external_identifier: str = Field(min_length=1)
    insert_identifier: str = Field(min_length=1)
    observed_at: datetime
    latitude: float
    longitude: float
    speed: float = 0.0
    location: str = LOCATION_PLACEHOLDER

    @field_validator("location", mode="before")
    @classmethod
    def _default_location(cls, value: object) -> object:
        if value is None or (isinstance(value, str) and not value.strip()):
            return LOCATION_PLACEHOLDER
        return value

    @field_validator("speed", mode="before")
    @classmethod
    def _default_speed(cls, value: object) -> object:
        return 0.0 if value is None or value == "" else value


@dataclass(frozen=True, slots=True)
class ResolvedPosition:
    """A record accepted for writing, annotated with its internal key."""

    record: PositionRecord
    internal_key: str


@dataclass(slots=True)
class MappedPositions:
    """Output of a provider mapper, split by entity class."""

    vehicles: list[PositionRecord] = field(default_factory=list)
    trackers: list[PositionRecord] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.vehicles) + len(self.trackers)
