"""Database configuration and session management.

Each workspace owns one SQLite file. ``init_store`` opens it, recovers from a
corrupt file by quarantining it, brings the schema up to date and binds the
shared session factory.
"""

import logging
import sqlite3
import time
from pathlib import Path
from typing import Optional

from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import DatabaseError as SQLAlchemyDatabaseError
from sqlalchemy.orm import declarative_base, sessionmaker

from .exceptions import StorageCorruptionError

logger = logging.getLogger(__name__)

# Create session factory (bound by init_store)
SessionLocal = sessionmaker(autocommit=False, autoflush=False)

# Create base class for models
Base = declarative_base()

engine: Optional[Engine] = None
_bound_url: Optional[str] = None


def _sqlite_file(database_url: str) -> Optional[Path]:
    """Return the file behind a SQLite URL, or None for in-memory databases."""
    url = make_url(database_url)
    if not url.drivername.startswith("sqlite"):
        return None
    if not url.database or url.database == ":memory:":
        return None
    return Path(url.database)


def build_engine(database_url: str) -> Engine:
    """Create an engine with foreign key enforcement on every connection."""
    db_file = _sqlite_file(database_url)
    if db_file is not None:
        db_file.parent.mkdir(parents=True, exist_ok=True)

    new_engine = create_engine(
        database_url,
        connect_args={"check_same_thread": False}
    )

    # SQLite defaults foreign_keys to OFF; CASCADE constraints are silently
    # ignored unless we enable them on every connection.
    @event.listens_for(new_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return new_engine


def _verify_store(store_engine: Engine, database_url: str) -> None:
    """Raise StorageCorruptionError when the store cannot be read."""
    try:
        with store_engine.connect() as conn:
            conn.execute(text("PRAGMA schema_version"))
            conn.execute(text("SELECT name FROM sqlite_master")).fetchall()
    except (SQLAlchemyDatabaseError, sqlite3.DatabaseError) as e:
        raise StorageCorruptionError(str(_sqlite_file(database_url) or database_url), e) from e


def _quarantine(db_file: Path) -> Path:
    """Move a corrupt store aside so a fresh one can take its place."""
    backup = db_file.with_name(f"{db_file.name}.backup.{int(time.time() * 1000)}")
    db_file.rename(backup)
    return backup


def open_store(database_url: str) -> Engine:
    """Open the store, replacing an unreadable file with an empty one."""
    store_engine = build_engine(database_url)
    try:
        _verify_store(store_engine, database_url)
    except StorageCorruptionError as e:
        db_file = _sqlite_file(database_url)
        store_engine.dispose()
        if db_file is None or not db_file.exists():
            raise
        backup = _quarantine(db_file)
        logger.warning(
            "Version store corrupted, backed up and reinitialized",
            extra={"db_path": str(db_file), "backup_path": str(backup), "error": e.details.get("original_error")},
        )
        store_engine = build_engine(database_url)
    return store_engine


def init_store(database_url: str) -> Engine:
    """Open the store at *database_url*, migrate it and bind SessionLocal.

    Calling it again with the same URL returns the already bound engine.
    """
    global engine, _bound_url

    if engine is not None and _bound_url == database_url:
        return engine

    # Registers the mapped tables on Base.metadata.
    from . import models  # noqa: F401
    from .core.migrator import run_migrations

    store_engine = open_store(database_url)
    result = run_migrations(store_engine, Base)
    if result.created_tables:
        logger.info(f"Created {len(result.created_tables)} table(s): {', '.join(result.created_tables)}")
    if result.applied:
        logger.info(f"Applied {result.applied} schema migration(s)")

    if engine is not None:
        engine.dispose()
    SessionLocal.configure(bind=store_engine)
    engine = store_engine
    _bound_url = database_url
    return store_engine


def get_db():
    """Dependency for FastAPI routes to get database session.

    Rolls back the transaction on unhandled exceptions so that the
    connection is returned to the pool in a clean state.
    """
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
