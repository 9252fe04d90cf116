"""Database models."""

from .file import File
from .version import Version
from .repository_commit import RepositoryCommit

__all__ = ["File", "Version", "RepositoryCommit"]
