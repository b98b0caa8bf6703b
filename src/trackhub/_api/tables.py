"""Record store tables used for each entity class."""

from __future__ import annotations

import dataclasses

from trackhub.models.position import EntityClass


@dataclasses.dataclass(frozen=True)
class EntityTables:
    """Registry and position history tables of one entity class.

    Parameters
    ----------
    entity_class : EntityClass
        Which observations these tables hold.
    registry : str
        Table mapping external identifiers to internal keys.
    registry_key, registry_identifier : str
        Key and identifier columns of ``registry``.
    registry_filter : str
        Extra SQL predicate applied to the registry lookup.
    history : str
        Position history table (the ``DatasetSP.save`` entity).
    history_key, history_identifier : str
        Foreign key and identifier columns of ``history``.
    """

    entity_class: EntityClass
    registry: str
    registry_key: str
    registry_identifier: str
    history: str
    history_key: str
    history_identifier: str
    registry_filter: str = ""

    @property
    def history_fields(self) -> list[str]:
        """Column order of ``history`` for DatasetSP.save; value indices refer to it."""
        return [
            "NUMREG",
            self.history_key,
            "LOCAL",
            "DATHOR",
            self.history_identifier,
            "LATITUDE",
            "LONGITUDE",
            "VELOC",
            "LINK",
        ]


VEHICLE_TABLES = EntityTables(
    entity_class=EntityClass.VEHICLE,
    registry="TGFVEI",
    registry_key="CODVEICULO",
    registry_identifier="PLACA",
    history="AD_LOCATCAR",
    history_key="CODVEICULO",
    history_identifier="PLACA",
)

TRACKER_TABLES = EntityTables(
    entity_class=EntityClass.TRACKER,
    registry="AD_CADISCA",
    registry_key="SEQUENCIA",
    registry_identifier="NUMISCA",
    registry_filter="ATIVO = 'S'",
    history="AD_LOCATISC",
    history_key="SEQUENCIA",
    history_identifier="ISCA",
)
