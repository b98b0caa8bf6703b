"""trackhub - replicate telemetry provider positions into a Sankhya ERP."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("trackhub")
except PackageNotFoundError:
    __version__ = "0+local"
from trackhub.config import (
    AtualcargoConfig,
    HubConfig,
    JobSettings,
    SankhyaConfig,
    SitraxConfig,
    SyncConfig,
)
from trackhub.dedup import filter_new_positions, is_newer
from trackhub.exceptions import (
    AuthenticationError,
    ConfigError,
    DecodeError,
    ProviderError,
    RemoteServiceError,
    SessionExpiredError,
    TrackHubError,
    TransportError,
)
from trackhub.gateway import SankhyaGateway
from trackhub.models import EntityClass, MappedPositions, PositionRecord, ResolvedPosition
from trackhub.processor import SyncProcessor, SyncResult, SyncState
from trackhub.store import PositionStore

__all__ = [
    "__version__",
    "AtualcargoConfig",
    "AuthenticationError",
    "ConfigError",
    "DecodeError",
    "EntityClass",
    "HubConfig",
    "JobSettings",
    "MappedPositions",
    "PositionRecord",
    "PositionStore",
    "ProviderError",
    "RemoteServiceError",
    "ResolvedPosition",
    "SankhyaConfig",
    "SankhyaGateway",
    "SessionExpiredError",
    "SitraxConfig",
    "SyncConfig",
    "SyncProcessor",
    "SyncResult",
    "SyncState",
    "TrackHubError",
    "TransportError",
    "filter_new_positions",
    "is_newer",
]
