"""File and save-event schemas."""

from pydantic import BaseModel, Field, field_validator
from typing import Optional

from .version import VersionResponse


class FileResponse(BaseModel):
    """Schema for tracked file response."""
    id: int
    file_path: str
    current_version_id: Optional[int] = None

    class Config:
        from_attributes = True


class SaveEvent(BaseModel):
    """An editor save: full document text and its path.

    Absolute paths must lie inside the workspace; they are stored relative
    to it.
    """
    path: str = Field(..., min_length=1, max_length=4096)
    content: str

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("path must not be empty")
        return v


class SnapshotCreate(SaveEvent):
    """Manual checkpoint request."""
    label: Optional[str] = Field(default=None, max_length=500)


class SaveResult(BaseModel):
    """Whether a save event produced a new version."""
    saved: bool
    version: Optional[VersionResponse] = None
