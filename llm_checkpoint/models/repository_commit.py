"""Repository commit mark model."""

from sqlalchemy import Column, Index, Text, text
from ..database import Base


class RepositoryCommit(Base):
    """Last known commit per repository.

    Part of the persisted schema; nothing reads or writes it yet.
    """

    __tablename__ = "repository_commits"
    __table_args__ = (
        Index("idx_repo_path", "repo_path"),
    )

    repo_path = Column(Text, primary_key=True)
    commit_hash = Column(Text, nullable=False)
    timestamp = Column(Text, nullable=False, server_default=text("(datetime('now'))"))
