"""Settings management module."""

from chronos.commons.settings.loader import SettingsLoader, get_settings, reset_settings
from chronos.commons.settings.models import (
    AppSettings,
    BlobStorageSettings,
    DocumentCollectionSettings,
    DocumentDBSettings,
    EmbeddingsSettings,
    EventsSettings,
    RecoverySettings,
    RetrievalSettings,
    ServerSettings,
    Settings,
    StageSettings,
    TelemetrySettings,
    UploadSettings,
)

__all__ = [
    # Loader
    "SettingsLoader",
    "get_settings",
    "reset_settings",
    # Main settings
    "Settings",
    "AppSettings",
    "ServerSettings",
    # Storage
    "BlobStorageSettings",
    "DocumentDBSettings",
    "DocumentCollectionSettings",
    # External services
    "EmbeddingsSettings",
    "EventsSettings",
    # Pipeline
    "RecoverySettings",
    "StageSettings",
    "UploadSettings",
    "RetrievalSettings",
    # Telemetry
    "TelemetrySettings",
]
