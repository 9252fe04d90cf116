"""Bulk history maintenance endpoints."""

from fastapi import APIRouter, Depends

from ..schemas.version import MaintenanceResult
from ..services import CheckpointService
from .deps import get_checkpoint_service

router = APIRouter(prefix="/api/maintenance", tags=["maintenance"])


@router.post("/quick-clean", response_model=MaintenanceResult)
def quick_clean(service: CheckpointService = Depends(get_checkpoint_service)):
    """Keep only the latest version of every file."""
    return MaintenanceResult(deleted=service.quick_clean())


@router.post("/clear-all", response_model=MaintenanceResult)
def clear_all(service: CheckpointService = Depends(get_checkpoint_service)):
    """Delete every version. Files stay tracked."""
    return MaintenanceResult(deleted=service.clear_all())
