"""Version model."""

from sqlalchemy import Column, ForeignKey, Index, Integer, Text, UniqueConstraint, text
from sqlalchemy.orm import relationship
from ..database import Base


class Version(Base):
    """Content snapshots of tracked files."""

    __tablename__ = "versions"
    __table_args__ = (
        UniqueConstraint("file_id", "version_number"),
        Index("idx_versions_file_id", "file_id"),
        Index("idx_versions_timestamp", "timestamp"),
        {"sqlite_autoincrement": True},
    )

    # Primary key
    id = Column(Integer, primary_key=True, autoincrement=True)

    # Foreign key to file
    file_id = Column(Integer, ForeignKey("files.id", ondelete="CASCADE"), nullable=False)

    # Full text snapshot, never updated after insert
    content = Column(Text, nullable=False)

    # "YYYY-MM-DD HH:MM:SS" UTC, filled in by SQLite
    timestamp = Column(Text, nullable=False, server_default=text("(datetime('now'))"))

    # 1-based, unique per file
    version_number = Column(Integer, nullable=False)

    # Free-text annotation, the only mutable column
    label = Column(Text, nullable=True)

    # Relationship
    file = relationship("File", back_populates="versions", foreign_keys=[file_id])

    def __repr__(self) -> str:
        return f"<Version id={self.id} file_id={self.file_id} n={self.version_number}>"
