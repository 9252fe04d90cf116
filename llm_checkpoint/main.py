"""Main FastAPI application."""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from sqlalchemy import text
from sqlalchemy.orm import Session

from . import __version__
from . import database
from .api import files_router, maintenance_router, versions_router, webhooks_router
from .core.config import settings
from .core.logging_config import setup_logging
from .core.migrator import MigrationError
from .core.signals import RefreshNotifier
from .database import SessionLocal, get_db
from .exceptions import CheckpointError
from .middleware.exception_handler import checkpoint_exception_handler
from .middleware.request_context import RequestContextMiddleware
from .services.commit_correlation import CommitCorrelationEngine
from .services.git_repository import GitRepository

# Setup logging first
setup_logging(log_level=settings.log_level, log_format=settings.log_format)
logger = logging.getLogger(__name__)


def _open_store() -> None:
    """Open the workspace store. Exits with a clear message on failure."""
    database_url = settings.resolved_database_url()
    logger.info(f"Opening version store: {database_url}")
    try:
        database.init_store(database_url)
    except MigrationError as e:
        logger.critical(f"Version store migration failed: {e}")
        raise SystemExit(1) from e
    except CheckpointError as e:
        logger.critical(
            "Version store could not be opened.\n"
            f"  Database: {database_url}\n"
            "  Check that the storage directory exists and is writable.\n"
            f"  Error: {e.message}"
        )
        raise SystemExit(1) from e


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    _open_store()

    notifier = RefreshNotifier()
    correlation_engine = CommitCorrelationEngine(SessionLocal, settings, notifier)
    app.state.notifier = notifier
    app.state.correlation_engine = correlation_engine

    # --- Git integration ---
    if settings.watch_git:
        repository = GitRepository.discover(settings.workspace_root, settings.git_poll_interval)
        if repository is None:
            logger.info(f"No git repository at {settings.workspace_root.resolve()}, commit tracking disabled")
        else:
            correlation_engine.watch(repository)

    watched = ",".join(correlation_engine.watched_repositories) or "off"
    logger.info(
        f"llm-checkpoint started | workspace={settings.workspace_root.resolve()} | "
        f"save_all={settings.save_all_changes} | "
        f"auto_cleanup={settings.auto_cleanup_after_commit} | git={watched}"
    )

    yield  # App runs here

    correlation_engine.close()
    if database.engine is not None:
        database.engine.dispose()


# Create FastAPI app
app = FastAPI(
    title="llm-checkpoint",
    description=(
        "Local file history for a workspace. Editor saves are filtered for "
        "significance and stored as numbered versions; git commits annotate "
        "the committed files' history."
    ),
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(RequestContextMiddleware)

# Register exception handlers
app.add_exception_handler(CheckpointError, checkpoint_exception_handler)

# Include routers
app.include_router(files_router)
app.include_router(versions_router)
app.include_router(maintenance_router)
app.include_router(webhooks_router)


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "name": "llm-checkpoint",
        "version": __version__,
        "status": "running"
    }


_startup_time = time.monotonic()


@app.get("/health")
def health_check(db: Session = Depends(get_db)):
    """Health check endpoint returning store status, uptime and counts.

    Never raises; returns degraded status on store failure.
    """
    db_status = "ok"
    file_count = 0
    version_count = 0
    try:
        file_count = db.execute(text("SELECT COUNT(*) FROM files")).scalar() or 0
        version_count = db.execute(text("SELECT COUNT(*) FROM versions")).scalar() or 0
    except Exception:
        logger.exception("Health check query failed")
        db_status = "error"

    return {
        "status": "healthy" if db_status == "ok" else "degraded",
        "db": db_status,
        "uptime_seconds": round(time.monotonic() - _startup_time),
        "version": __version__,
        "file_count": file_count,
        "version_count": version_count,
    }


def run() -> None:
    """Console entry point: serve the API for the configured workspace."""
    import uvicorn

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_config=None,
    )
