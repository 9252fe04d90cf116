"""File repository for database operations."""

from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from ..models import File
from ..exceptions import ConflictError, FileRecordNotFoundError
from .base import BaseRepository


class FileRepository(BaseRepository[File]):
    """Repository for tracked file rows."""

    model_class = File
    not_found_error = FileRecordNotFoundError

    def create(self, file_path: str) -> File:
        """Insert a file with no current version.

        Raises ConflictError when the path is already tracked.
        """
        if self.get_by_path(file_path) is not None:
            raise ConflictError(file_path)

        db_file = File(file_path=file_path, current_version_id=None)
        self.db.add(db_file)
        try:
            self.db.flush()
        except IntegrityError as e:
            # Lost a race with another session inserting the same path.
            self.db.rollback()
            raise ConflictError(file_path) from e
        self.db.refresh(db_file)
        return db_file

    def get_by_path(self, file_path: str) -> Optional[File]:
        return self.db.query(File).filter(File.file_path == file_path).first()

    def list_all(self) -> List[File]:
        """All tracked files in insertion order."""
        return self.db.query(File).order_by(File.id.asc()).all()

    def set_current_version(self, file: File, version_id: Optional[int]) -> None:
        file.current_version_id = version_id
        self.db.flush()
