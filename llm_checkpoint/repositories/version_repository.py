"""Version repository for database operations."""

from typing import List, Optional

from sqlalchemy import func

from ..models import Version
from ..exceptions import VersionNotFoundError
from .base import BaseRepository


class VersionRepository(BaseRepository[Version]):
    """Repository for version CRUD operations."""

    model_class = Version
    not_found_error = VersionNotFoundError

    def next_version_number(self, file_id: int) -> int:
        """1 for a file without versions, otherwise the highest number + 1."""
        current_max = self.db.query(func.max(Version.version_number)).filter(
            Version.file_id == file_id
        ).scalar()
        return (current_max or 0) + 1

    def create(self, file_id: int, content: str, label: Optional[str] = None) -> Version:
        """Create a new version numbered after the file's latest one."""
        db_version = Version(
            file_id=file_id,
            content=content,
            version_number=self.next_version_number(file_id),
            label=label,
        )
        self.db.add(db_version)
        self.db.flush()
        # Picks up the server-side timestamp.
        self.db.refresh(db_version)
        return db_version

    def get_by_file(self, file_id: int, limit: Optional[int] = None) -> List[Version]:
        """Versions of a file, newest first."""
        query = self.db.query(Version).filter(
            Version.file_id == file_id
        ).order_by(Version.version_number.desc())
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def get_latest(self, file_id: int, exclude_id: Optional[int] = None) -> Optional[Version]:
        """Highest-numbered version of a file, optionally skipping one row."""
        query = self.db.query(Version).filter(Version.file_id == file_id)
        if exclude_id is not None:
            query = query.filter(Version.id != exclude_id)
        return query.order_by(Version.version_number.desc()).first()

    def delete(self, version: Version) -> None:
        self.db.delete(version)
        self.db.flush()
