"""HTTP connectors for the telemetry providers."""

from trackhub.connectors.atualcargo import AtualcargoConnector
from trackhub.connectors.sitrax import SitraxConnector

__all__ = ["AtualcargoConnector", "SitraxConnector"]
