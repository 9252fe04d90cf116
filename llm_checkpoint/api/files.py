"""File API endpoints: editor saves, manual snapshots and per-file history.

Endpoints are thin. CheckpointService runs the significance filter and
owns every store mutation.
"""

from fastapi import APIRouter, Depends, Query
from typing import List, Optional

from ..exceptions import FileRecordNotFoundError
from ..schemas.file import FileResponse, SaveEvent, SaveResult, SnapshotCreate
from ..schemas.version import VersionResponse
from ..services import CheckpointService
from .deps import get_checkpoint_service

router = APIRouter(prefix="/api/files", tags=["files"])


@router.get("", response_model=List[FileResponse])
def list_files(service: CheckpointService = Depends(get_checkpoint_service)):
    """List tracked files."""
    return service.list_files()


@router.post("/save", response_model=SaveResult)
def save_file(
    event: SaveEvent,
    service: CheckpointService = Depends(get_checkpoint_service),
):
    """Editor save event. Stores a version only if the change is significant."""
    version = service.handle_save(event.path, event.content)
    if version is None:
        return SaveResult(saved=False)
    return SaveResult(saved=True, version=VersionResponse.model_validate(version))


@router.post("/snapshot", response_model=VersionResponse, status_code=201)
def snapshot_file(
    snapshot: SnapshotCreate,
    service: CheckpointService = Depends(get_checkpoint_service),
):
    """Manual checkpoint of the given content, never filtered."""
    return service.save_snapshot(snapshot.path, snapshot.content, snapshot.label)


@router.get("/versions", response_model=List[VersionResponse])
def list_file_versions(
    path: str = Query(..., min_length=1),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    service: CheckpointService = Depends(get_checkpoint_service),
):
    """Versions of one file, newest first."""
    versions = service.get_file_history(path, limit)
    if versions is None:
        raise FileRecordNotFoundError(path)
    return versions
