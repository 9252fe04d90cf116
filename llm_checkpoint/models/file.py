"""File model."""

from sqlalchemy import Column, ForeignKey, Index, Integer, Text
from sqlalchemy.orm import relationship
from ..database import Base


class File(Base):
    """Tracked workspace files."""

    __tablename__ = "files"
    __table_args__ = (
        Index("idx_files_path", "file_path"),
        {"sqlite_autoincrement": True},
    )

    # Primary key
    id = Column(Integer, primary_key=True, autoincrement=True)

    # Workspace-relative path, forward slashes
    file_path = Column(Text, nullable=False, unique=True)

    # Newest non-deleted version of this file. use_alter breaks the
    # files <-> versions foreign key cycle for CREATE TABLE ordering.
    current_version_id = Column(
        Integer,
        ForeignKey("versions.id", use_alter=True, name="fk_files_current_version"),
        nullable=True,
    )

    # Relationships
    versions = relationship(
        "Version",
        back_populates="file",
        foreign_keys="Version.file_id",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Version.version_number.desc()",
    )

    def __repr__(self) -> str:
        return f"<File id={self.id} path={self.file_path!r} current={self.current_version_id}>"
