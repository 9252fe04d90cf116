"""Checkpoint service, the editor-facing operations.

Runs editor saves through the change-significance filter before they reach
the version store, and emits one refresh signal per user-visible change.
Store errors propagate to the caller for reporting.
"""

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..core.config import Settings
from ..core.signals import RefreshNotifier
from ..exceptions import ValidationError
from ..models import File, Version
from .content_utils import to_workspace_relative
from .significance import should_persist
from .version_store import VersionStore

logger = logging.getLogger(__name__)


class CheckpointService:
    """High-level history operations for one request or event."""

    def __init__(self, db: Session, settings: Settings, notifier: Optional[RefreshNotifier] = None):
        self.db = db
        self.settings = settings
        self.notifier = notifier
        self.store = VersionStore(db)

    def _refresh(self, path: Optional[str] = None) -> None:
        if self.notifier is not None:
            self.notifier.emit(path)

    def _workspace_path(self, path: str) -> str:
        """Workspace-relative form of *path*. Raises ValidationError outside the workspace."""
        root = str(self.settings.workspace_root.resolve())
        relative = to_workspace_relative(path, root)
        if relative == "." or relative == ".." or relative.startswith("../"):
            raise ValidationError(f"Path is outside the workspace: {path}", field="path")
        return relative

    def handle_save(self, path: str, content: str) -> Optional[Version]:
        """Persist an editor save if the filter judges it significant.

        The file is only tracked once one of its saves is kept.
        Returns the new version, or None when the save was skipped.
        """
        file_path = self._workspace_path(path)
        db_file = self.store.get_file(file_path)
        latest = self.store.get_latest_version(db_file.id) if db_file else None

        if not should_persist(
            latest.content if latest else None,
            content,
            self.settings.save_all_changes,
        ):
            logger.debug(f"Skipped insignificant save of {file_path}")
            return None

        if db_file is None:
            db_file = self.store.get_or_create_file(file_path)
        version = self.store.create_version(db_file.id, content)
        logger.info(
            f"Saved version {version.version_number} of {file_path}",
            extra={"file_path": file_path, "version_id": version.id},
        )
        self._refresh(file_path)
        return version

    def save_snapshot(self, path: str, content: str, label: Optional[str] = None) -> Version:
        """Manual checkpoint. Bypasses the significance filter."""
        db_file = self.store.get_or_create_file(self._workspace_path(path))
        version = self.store.create_version(db_file.id, content, label=label)
        self._refresh(db_file.file_path)
        return version

    def list_files(self) -> List[File]:
        return self.store.get_all_files()

    def get_file_history(self, path: str, limit: Optional[int] = None) -> Optional[List[Version]]:
        """Versions of *path*, newest first, or None when it is not tracked."""
        db_file = self.store.get_file(self._workspace_path(path))
        if db_file is None:
            return None
        return self.store.get_file_versions(db_file.id, limit)

    def get_version(self, version_id: int) -> Optional[Version]:
        return self.store.get_version(version_id)

    def delete_version(self, version_id: int) -> None:
        self.store.delete_version(version_id)
        self._refresh()

    def label_version(self, version_id: int, label: Optional[str]) -> Version:
        version = self.store.set_version_label(version_id, label)
        self._refresh()
        return version

    def quick_clean(self) -> int:
        deleted = self.store.quick_clean()
        self._refresh()
        return deleted

    def clear_all(self) -> int:
        deleted = self.store.clear_all()
        self._refresh()
        return deleted
