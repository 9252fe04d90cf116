"""Version schemas."""

from pydantic import BaseModel, Field
from typing import Optional


class VersionResponse(BaseModel):
    """Schema for version response."""
    id: int
    file_id: int
    content: str
    timestamp: str
    version_number: int
    label: Optional[str] = None

    class Config:
        from_attributes = True


class VersionLabelUpdate(BaseModel):
    """Set or clear (null/empty) the label of a version."""
    label: Optional[str] = Field(default=None, max_length=500)


class MaintenanceResult(BaseModel):
    """Outcome of a bulk history operation."""
    deleted: int
