"""Tests for CheckpointService: editor saves through the significance filter."""

import pytest

from llm_checkpoint.core.config import Settings
from llm_checkpoint.core.signals import RefreshNotifier
from llm_checkpoint.exceptions import ValidationError, VersionNotFoundError
from llm_checkpoint.database import SessionLocal
from llm_checkpoint.services import CheckpointService
from llm_checkpoint.services.version_store import VersionStore
from tests.conftest import make_content


@pytest.fixture()
def refreshes():
    notifier = RefreshNotifier()
    seen = []
    notifier.subscribe(seen.append)
    return notifier, seen


def _service(db, notifier=None, **overrides) -> CheckpointService:
    return CheckpointService(db, Settings(**overrides), notifier)


class TestHandleSave:

    def test_first_multi_line_save_tracks_file(self, db, refreshes):
        notifier, seen = refreshes
        svc = _service(db, notifier)

        version = svc.handle_save("src/app.py", make_content("import os", "print(os.name)"))

        assert version is not None
        assert version.version_number == 1
        assert [f.file_path for f in svc.list_files()] == ["src/app.py"]
        assert seen == ["src/app.py"]

    def test_single_line_first_save_is_not_tracked(self, db, refreshes):
        notifier, seen = refreshes
        svc = _service(db, notifier)

        assert svc.handle_save("notes.txt", "todo") is None
        assert svc.list_files() == []
        assert seen == []

    def test_small_edit_is_skipped(self, db):
        svc = _service(db)
        svc.handle_save("a.txt", make_content("a", "b", "c"))

        assert svc.handle_save("a.txt", make_content("a", "x", "c")) is None
        assert len(svc.get_file_history("a.txt")) == 1

    def test_duplicate_save_is_skipped(self, db):
        svc = _service(db)
        content = make_content("a", "b", "c")
        svc.handle_save("a.txt", content)
        assert svc.handle_save("a.txt", content) is None

    def test_significant_edit_creates_next_version(self, db):
        svc = _service(db)
        svc.handle_save("a.txt", make_content("a", "b", "c", "d"))
        version = svc.handle_save("a.txt", make_content("a", "x", "y", "d"))
        assert version.version_number == 2

    def test_save_all_changes_keeps_small_edits(self, db):
        svc = _service(db, save_all_changes=True)
        svc.handle_save("a.txt", "one")
        version = svc.handle_save("a.txt", "two")
        assert version.version_number == 2

    def test_windows_separators_map_to_same_file(self, db):
        svc = _service(db)
        svc.handle_save("src\\a.txt", make_content("1", "2"))
        svc.handle_save("src/a.txt", make_content("1", "2", "3", "4", "5"))
        assert len(svc.list_files()) == 1
        assert len(svc.get_file_history("src/a.txt")) == 2

    def test_concurrent_first_save_reuses_winning_file(self, db, monkeypatch):
        # Another session tracks the path after this save looked it up.
        original_get_file = VersionStore.get_file
        lookups = []

        def _racing_get_file(store, path):
            lookups.append(path)
            if len(lookups) == 1:
                other = SessionLocal()
                try:
                    VersionStore(other).create_file(path)
                finally:
                    other.close()
            if len(lookups) <= 2:
                return None
            return original_get_file(store, path)

        monkeypatch.setattr(VersionStore, "get_file", _racing_get_file)
        svc = _service(db)

        version = svc.handle_save("new.txt", make_content("a", "b"))

        monkeypatch.undo()
        assert version is not None
        assert version.version_number == 1
        assert [f.file_path for f in svc.list_files()] == ["new.txt"]
        assert version.file_id == svc.list_files()[0].id

    def test_path_outside_workspace_raises(self, db):
        with pytest.raises(ValidationError):
            _service(db).handle_save("../../etc/hosts", make_content("a", "b"))


class TestSnapshots:

    def test_snapshot_bypasses_filter(self, db):
        svc = _service(db)
        svc.handle_save("a.txt", make_content("a", "b"))
        version = svc.save_snapshot("a.txt", make_content("a", "b"), label="manual")
        assert version.version_number == 2
        assert version.label == "manual"

    def test_snapshot_tracks_new_single_line_file(self, db):
        svc = _service(db)
        version = svc.save_snapshot("one.txt", "x")
        assert version.version_number == 1


class TestHistoryOperations:

    def test_history_of_untracked_file_is_none(self, db):
        assert _service(db).get_file_history("ghost.txt") is None

    def test_delete_emits_refresh(self, db, refreshes):
        notifier, seen = refreshes
        svc = _service(db, notifier)
        version = svc.save_snapshot("a.txt", "x")
        seen.clear()

        svc.delete_version(version.id)

        assert seen == [None]
        assert svc.get_version(version.id) is None

    def test_delete_unknown_raises(self, db):
        with pytest.raises(VersionNotFoundError):
            _service(db).delete_version(12345)

    def test_label_version(self, db):
        svc = _service(db)
        version = svc.save_snapshot("a.txt", "x")
        assert svc.label_version(version.id, "keep me").label == "keep me"

    def test_quick_clean_and_clear_all(self, db, refreshes):
        notifier, seen = refreshes
        svc = _service(db, notifier)
        for content in ("1", "2", "3"):
            svc.save_snapshot("a.txt", content)
        seen.clear()

        assert svc.quick_clean() == 2
        assert svc.clear_all() == 1
        assert seen == [None, None]
