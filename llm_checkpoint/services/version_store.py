"""Version store: deep module owning files, versions and the current pointer.

Callers never touch ``File.current_version_id`` directly: creating a version
moves the pointer to it, deleting the pointed-to version moves the pointer
to the next-latest remaining version (or clears it). Every public mutation
commits before returning unless the caller batches with ``commit=False``.
"""

import logging
import threading
import weakref
from typing import List, Optional

from sqlalchemy.orm import Session

from ..exceptions import ConflictError, VersionNotFoundError
from ..models import File, Version
from ..repositories import FileRepository, VersionRepository
from .content_utils import normalize_path

logger = logging.getLogger(__name__)

# Numbering reads max(version_number) and inserts max + 1, so two writers on
# the same file must not interleave. One lock per file id, shared by every
# session in the process. Held weakly: an entry lives only while a caller
# references its lock.
_file_locks: "weakref.WeakValueDictionary[int, threading.RLock]" = weakref.WeakValueDictionary()
_file_locks_guard = threading.Lock()


def _file_lock(file_id: int) -> threading.RLock:
    with _file_locks_guard:
        lock = _file_locks.get(file_id)
        if lock is None:
            lock = threading.RLock()
            _file_locks[file_id] = lock
        return lock


class VersionStore:
    """CRUD over files and versions with numbering and pointer invariants."""

    def __init__(self, db: Session):
        self.db = db
        self.file_repo = FileRepository(db)
        self.version_repo = VersionRepository(db)

    # -- files -----------------------------------------------------------

    def create_file(self, path: str, commit: bool = True) -> File:
        """Start tracking *path*. Raises ConflictError if it is tracked already."""
        db_file = self.file_repo.create(normalize_path(path))
        if commit:
            self.db.commit()
        logger.debug(f"Tracking file id={db_file.id} path={db_file.file_path}")
        return db_file

    def get_file(self, path: str) -> Optional[File]:
        return self.file_repo.get_by_path(normalize_path(path))

    def get_file_by_id(self, file_id: int) -> Optional[File]:
        return self.file_repo.get_by_id_optional(file_id)

    def get_or_create_file(self, path: str, commit: bool = True) -> File:
        """Tracked file for *path*, created if needed.

        A concurrent writer creating the same path first is not an error:
        the conflict is rolled back and the winner's row is returned.
        """
        existing = self.get_file(path)
        if existing is not None:
            return existing
        try:
            return self.create_file(path, commit=commit)
        except ConflictError:
            self.db.rollback()
            existing = self.get_file(path)
            if existing is None:
                raise
            logger.debug(f"File {existing.file_path} was tracked concurrently, reusing id={existing.id}")
            return existing

    def get_all_files(self) -> List[File]:
        return self.file_repo.list_all()

    # -- versions --------------------------------------------------------

    def get_file_versions(self, file_id: int, limit: Optional[int] = None) -> List[Version]:
        """Versions of a file ordered by version_number, newest first."""
        return self.version_repo.get_by_file(file_id, limit)

    def get_latest_version(self, file_id: int) -> Optional[Version]:
        versions = self.get_file_versions(file_id, limit=1)
        return versions[0] if versions else None

    def get_version(self, version_id: int) -> Optional[Version]:
        return self.version_repo.get_by_id_optional(version_id)

    def create_version(
        self,
        file_id: int,
        content: str,
        label: Optional[str] = None,
        commit: bool = True,
    ) -> Version:
        """Append a snapshot to a file and point the file at it.

        Raises FileRecordNotFoundError if *file_id* is not tracked.
        """
        with _file_lock(file_id):
            db_file = self.file_repo.get_by_id(file_id)
            version = self.version_repo.create(file_id, content, label)
            self.file_repo.set_current_version(db_file, version.id)
            if commit:
                self.db.commit()

        logger.debug(
            f"Created version {version.version_number} of file {file_id}",
            extra={"file_id": file_id, "version_id": version.id},
        )
        return version

    def delete_version(self, version_id: int, missing_ok: bool = False, commit: bool = True) -> bool:
        """Delete one version, repairing the owning file's pointer.

        Explicit deletes raise VersionNotFoundError for an unknown id.
        Cleanup loops pass ``missing_ok=True`` and get False instead.
        Returns True when a row was removed.
        """
        version = self.version_repo.get_by_id_optional(version_id)
        if version is None:
            if missing_ok:
                return False
            raise VersionNotFoundError(version_id)

        file_id = version.file_id
        with _file_lock(file_id):
            db_file = self.file_repo.get_by_id(file_id)
            if db_file.current_version_id == version.id:
                replacement = self.version_repo.get_latest(file_id, exclude_id=version.id)
                # The pointer must move before the row goes, the foreign
                # key would reject the delete otherwise.
                self.file_repo.set_current_version(
                    db_file, replacement.id if replacement else None
                )
            self.version_repo.delete(version)
            if commit:
                self.db.commit()

        logger.debug(f"Deleted version {version_id} of file {file_id}")
        return True

    def set_version_label(self, version_id: int, label: Optional[str]) -> Version:
        """Replace the label of a version. Content is never editable."""
        version = self.version_repo.get_by_id(version_id)
        version.label = label or None
        self.db.commit()
        return version

    # -- bulk maintenance ------------------------------------------------

    def quick_clean(self) -> int:
        """Keep only the newest version of every file. Returns versions deleted."""
        deleted = 0
        for db_file in self.get_all_files():
            versions = self.get_file_versions(db_file.id)
            for version in versions[1:]:
                if self.delete_version(version.id, missing_ok=True, commit=False):
                    deleted += 1
        self.db.commit()
        logger.info(f"Quick clean removed {deleted} version(s)")
        return deleted

    def clear_all(self) -> int:
        """Delete every version of every file. Files stay tracked."""
        deleted = 0
        for db_file in self.get_all_files():
            for version in self.get_file_versions(db_file.id):
                if self.delete_version(version.id, missing_ok=True, commit=False):
                    deleted += 1
        self.db.commit()
        logger.info(f"Cleared {deleted} version(s)")
        return deleted
