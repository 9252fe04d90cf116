"""Business logic services."""

from .checkpoint_service import CheckpointService
from .version_store import VersionStore

__all__ = ["CheckpointService", "VersionStore"]
