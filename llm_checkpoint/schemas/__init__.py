"""Pydantic schemas for API validation."""

from .file import (
    FileResponse,
    SaveEvent,
    SaveResult,
    SnapshotCreate,
)
from .version import (
    VersionResponse,
    VersionLabelUpdate,
    MaintenanceResult,
)
from .webhook import (
    GitNotification,
    RoundResponse,
    WebhookResponse,
)

__all__ = [
    "FileResponse",
    "SaveEvent",
    "SaveResult",
    "SnapshotCreate",
    "VersionResponse",
    "VersionLabelUpdate",
    "MaintenanceResult",
    "GitNotification",
    "RoundResponse",
    "WebhookResponse",
]
