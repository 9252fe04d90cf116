"""Shared test fixtures for the llm-checkpoint test suite.

All tests share one throwaway SQLite store in a temporary directory. Each
test starts from empty tables, ensuring complete isolation. Git watching is
off; correlation tests drive the engine through in-memory repositories.
"""

import os
import tempfile
from pathlib import Path

_TEST_DIR = Path(tempfile.mkdtemp(prefix="llm-checkpoint-tests-"))

# Point the app at the throwaway store before any app imports.
os.environ["CHECKPOINT_DATABASE_URL"] = f"sqlite:///{_TEST_DIR / 'test_versions.db'}"
os.environ["CHECKPOINT_WORKSPACE_ROOT"] = str(_TEST_DIR / "workspace")
os.environ["CHECKPOINT_WATCH_GIT"] = "false"
os.environ["CHECKPOINT_LOG_FORMAT"] = "text"

from typing import Callable, List, Optional

import pytest
from sqlalchemy import text
from fastapi.testclient import TestClient

from llm_checkpoint import database
from llm_checkpoint.core.config import settings
from llm_checkpoint.database import SessionLocal, get_db
from llm_checkpoint.main import app

database.init_store(settings.resolved_database_url())

# Order matters: the file -> current version pointer must be cleared first.
_CLEANUP_STATEMENTS = [
    "UPDATE files SET current_version_id = NULL",
    "DELETE FROM versions",
    "DELETE FROM files",
    "DELETE FROM repository_commits",
]


@pytest.fixture(autouse=True)
def _clean_tables():
    """Empty all data tables before each test.

    Runs before the test (not after) so test failures leave data
    available for debugging.
    """
    db = SessionLocal()
    try:
        for statement in _CLEANUP_STATEMENTS:
            db.execute(text(statement))
        db.commit()
    finally:
        db.close()
    yield


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def client(db):
    """FastAPI TestClient with the DB dependency overridden to use the test session."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def workspace_root() -> Path:
    root = Path(settings.workspace_root).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


class FakeRepository:
    """In-memory repository implementing the version control capability.

    Tests set ``head``, ``staged`` and ``message`` directly and call
    ``fire()`` to deliver a state-change notification. ``on_message``
    runs inside ``latest_commit_message`` to simulate work arriving
    while a query is in flight.
    """

    def __init__(self, root_path: Path, head: Optional[str] = None):
        self.root_path = Path(root_path)
        self.head = head
        self.staged: List[str] = []
        self.message = ""
        self.message_error: Optional[Exception] = None
        self.on_message: Optional[Callable[[], None]] = None
        self.message_calls = 0
        self._listeners: List[Callable[[], None]] = []

    def head_commit_hash(self) -> Optional[str]:
        return self.head

    def staged_file_paths(self) -> List[str]:
        return list(self.staged)

    def latest_commit_message(self) -> str:
        self.message_calls += 1
        if self.on_message is not None:
            self.on_message()
        if self.message_error is not None:
            raise self.message_error
        return self.message

    def subscribe(self, on_change: Callable[[], None]):
        self._listeners.append(on_change)

        def _unsubscribe() -> None:
            if on_change in self._listeners:
                self._listeners.remove(on_change)

        return _unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def fire(self) -> None:
        for listener in list(self._listeners):
            listener()


def make_content(*lines: str) -> str:
    """Join lines into file content."""
    return "\n".join(lines)
