"""API routes."""

from .files import router as files_router
from .versions import router as versions_router
from .maintenance import router as maintenance_router
from .webhooks import router as webhooks_router

__all__ = [
    "files_router",
    "versions_router",
    "maintenance_router",
    "webhooks_router",
]
