"""Dependency injection for FastAPI routes."""

from typing import Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ..core.config import Settings, settings
from ..core.signals import RefreshNotifier
from ..database import get_db
from ..services import CheckpointService
from ..services.commit_correlation import CommitCorrelationEngine


def get_settings() -> Settings:
    return settings


def get_notifier(request: Request) -> Optional[RefreshNotifier]:
    return getattr(request.app.state, "notifier", None)


def get_correlation_engine(request: Request) -> Optional[CommitCorrelationEngine]:
    return getattr(request.app.state, "correlation_engine", None)


def get_checkpoint_service(
    db: Session = Depends(get_db),
    app_settings: Settings = Depends(get_settings),
    notifier: Optional[RefreshNotifier] = Depends(get_notifier),
) -> CheckpointService:
    return CheckpointService(db, app_settings, notifier)
