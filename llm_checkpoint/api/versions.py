"""Version API endpoints."""

from fastapi import APIRouter, Depends, Response

from ..exceptions import VersionNotFoundError
from ..schemas.version import VersionLabelUpdate, VersionResponse
from ..services import CheckpointService
from .deps import get_checkpoint_service

router = APIRouter(prefix="/api/versions", tags=["versions"])


@router.get("/{version_id}", response_model=VersionResponse)
def get_version(
    version_id: int,
    service: CheckpointService = Depends(get_checkpoint_service),
):
    """Get specific version."""
    version = service.get_version(version_id)
    if version is None:
        raise VersionNotFoundError(version_id)
    return version


@router.put("/{version_id}/label", response_model=VersionResponse)
def label_version(
    version_id: int,
    update: VersionLabelUpdate,
    service: CheckpointService = Depends(get_checkpoint_service),
):
    """Set or clear a version's label."""
    return service.label_version(version_id, update.label)


@router.delete("/{version_id}", status_code=204)
def delete_version(
    version_id: int,
    service: CheckpointService = Depends(get_checkpoint_service),
):
    """Delete a version. The file's current pointer moves to the next-latest one."""
    service.delete_version(version_id)
    return Response(status_code=204)
