"""Data access repositories."""

from .base import BaseRepository
from .file_repository import FileRepository
from .version_repository import VersionRepository

__all__ = [
    "BaseRepository",
    "FileRepository",
    "VersionRepository",
]
