"""Schema bootstrap and in-place upgrades for the version store.

Handles both fresh stores and stores written by older releases:
- Fresh store: creates every table and index via SQLAlchemy
- Existing store: creates missing tables and indexes, then adds columns
  that older releases did not have

Usage:
    from llm_checkpoint.core.migrator import run_migrations, MigrationError

    try:
        result = run_migrations(engine, Base)
    except MigrationError as e:
        logger.critical(f"Migration failed: {e}")
        raise SystemExit(1)
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy import Engine, text, inspect
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class MigrationError(Exception):
    """Raised when a migration fails to apply."""
    pass


@dataclass
class ColumnMigration:
    """A column added after the table was first released."""
    table: str
    column: str
    ddl: str


@dataclass
class MigrationResult:
    """Result of running migrations."""
    created_tables: list[str] = field(default_factory=list)
    applied: int = 0
    skipped: int = 0


# Ordered list of column additions. The label column arrived after the
# first stores were written.
COLUMN_MIGRATIONS = [
    ColumnMigration("versions", "label", "ALTER TABLE versions ADD COLUMN label TEXT"),
]


def _existing_columns(engine: Engine, table: str) -> set[str]:
    inspector = inspect(engine)
    if table not in inspector.get_table_names():
        return set()
    return {col["name"] for col in inspector.get_columns(table)}


def run_migrations(engine: Engine, base) -> MigrationResult:
    """Bring the store schema up to date.

    Args:
        engine: Engine bound to the store
        base: Declarative base whose metadata lists the tables

    Returns:
        MigrationResult with created tables and applied column migrations

    Raises:
        MigrationError: If a DDL statement fails
    """
    result = MigrationResult()

    existing_tables = set(inspect(engine).get_table_names())
    missing = [t.name for t in base.metadata.sorted_tables if t.name not in existing_tables]

    try:
        # checkfirst skips tables that already exist
        base.metadata.create_all(engine, checkfirst=True)
        result.created_tables = missing

        # create_all only indexes the tables it creates
        with engine.begin() as conn:
            for table in base.metadata.sorted_tables:
                if table.name in missing:
                    continue
                for index in table.indexes:
                    index.create(conn, checkfirst=True)
    except SQLAlchemyError as e:
        raise MigrationError(f"Schema creation failed: {e}") from e

    for migration in COLUMN_MIGRATIONS:
        if migration.column in _existing_columns(engine, migration.table):
            result.skipped += 1
            continue
        try:
            with engine.begin() as conn:
                conn.execute(text(migration.ddl))
        except SQLAlchemyError as e:
            raise MigrationError(
                f"Adding {migration.table}.{migration.column} failed: {e}"
            ) from e
        logger.info(f"Added column {migration.table}.{migration.column}")
        result.applied += 1

    return result
