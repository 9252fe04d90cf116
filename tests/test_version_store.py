"""Unit tests for VersionStore, the deep module owning files, versions and
the current-version pointer.

Tests the store directly against the test SQLite database, bypassing the
HTTP stack. Covers numbering, pointer maintenance on create and delete,
cascade on file removal and bulk maintenance.
"""

import gc

import pytest
from sqlalchemy import text

from llm_checkpoint.exceptions import ConflictError, FileRecordNotFoundError, VersionNotFoundError
from llm_checkpoint.services.version_store import VersionStore, _file_lock, _file_locks


class TestFiles:

    def test_create_file_starts_without_versions(self, db):
        store = VersionStore(db)
        f = store.create_file("src/app.py")
        assert f.id is not None
        assert f.file_path == "src/app.py"
        assert f.current_version_id is None
        assert store.get_file_versions(f.id) == []

    def test_duplicate_path_conflicts(self, db):
        store = VersionStore(db)
        store.create_file("src/app.py")
        with pytest.raises(ConflictError):
            store.create_file("src/app.py")

    def test_paths_are_normalized(self, db):
        store = VersionStore(db)
        f = store.create_file("src\\pkg\\./mod.py")
        assert f.file_path == "src/pkg/mod.py"
        assert store.get_file("src/pkg/mod.py").id == f.id

    def test_get_file_unknown_returns_none(self, db):
        assert VersionStore(db).get_file("nope.txt") is None

    def test_get_or_create_is_idempotent(self, db):
        store = VersionStore(db)
        first = store.get_or_create_file("a.txt")
        second = store.get_or_create_file("a.txt")
        assert first.id == second.id
        assert len(store.get_all_files()) == 1

    def test_get_all_files_in_insertion_order(self, db):
        store = VersionStore(db)
        for name in ("b.txt", "a.txt", "c.txt"):
            store.create_file(name)
        assert [f.file_path for f in store.get_all_files()] == ["b.txt", "a.txt", "c.txt"]


class TestCreateVersion:

    def test_numbers_start_at_one_and_increase(self, db):
        store = VersionStore(db)
        f = store.create_file("a.txt")
        numbers = [store.create_version(f.id, f"content {i}").version_number for i in range(3)]
        assert numbers == [1, 2, 3]

    def test_pointer_follows_latest_version(self, db):
        store = VersionStore(db)
        f = store.create_file("a.txt")
        store.create_version(f.id, "one")
        v2 = store.create_version(f.id, "two")
        db.refresh(f)
        assert f.current_version_id == v2.id

    def test_numbering_is_per_file(self, db):
        store = VersionStore(db)
        a = store.create_file("a.txt")
        b = store.create_file("b.txt")
        store.create_version(a.id, "a1")
        store.create_version(a.id, "a2")
        assert store.create_version(b.id, "b1").version_number == 1

    def test_timestamp_and_label_are_set(self, db):
        store = VersionStore(db)
        f = store.create_file("a.txt")
        v = store.create_version(f.id, "x\ny", label="before refactor")
        assert v.label == "before refactor"
        # SQLite datetime('now') format
        assert len(v.timestamp) == 19
        assert v.timestamp[4] == "-" and v.timestamp[10] == " "

    def test_unknown_file_raises_not_found(self, db):
        with pytest.raises(FileRecordNotFoundError):
            VersionStore(db).create_version(9999, "content")

    def test_newest_first_ordering_and_limit(self, db):
        store = VersionStore(db)
        f = store.create_file("a.txt")
        for i in range(5):
            store.create_version(f.id, f"v{i}")
        versions = store.get_file_versions(f.id)
        assert [v.version_number for v in versions] == [5, 4, 3, 2, 1]
        assert [v.version_number for v in store.get_file_versions(f.id, limit=2)] == [5, 4]
        assert store.get_latest_version(f.id).content == "v4"


class TestDeleteVersion:

    def test_deleting_current_moves_pointer_to_next_latest(self, db):
        store = VersionStore(db)
        f = store.create_file("a.txt")
        v1 = store.create_version(f.id, "one")
        v2 = store.create_version(f.id, "two")
        v3 = store.create_version(f.id, "three")

        store.delete_version(v3.id)
        db.refresh(f)
        assert f.current_version_id == v2.id

        store.delete_version(v2.id)
        db.refresh(f)
        assert f.current_version_id == v1.id

    def test_deleting_last_version_clears_pointer(self, db):
        store = VersionStore(db)
        f = store.create_file("a.txt")
        v1 = store.create_version(f.id, "one")
        store.delete_version(v1.id)
        db.refresh(f)
        assert f.current_version_id is None
        assert store.get_file("a.txt") is not None

    def test_deleting_older_version_keeps_pointer(self, db):
        store = VersionStore(db)
        f = store.create_file("a.txt")
        v1 = store.create_version(f.id, "one")
        v2 = store.create_version(f.id, "two")
        store.delete_version(v1.id)
        db.refresh(f)
        assert f.current_version_id == v2.id

    def test_numbers_are_not_reused_below_max(self, db):
        store = VersionStore(db)
        f = store.create_file("a.txt")
        v1 = store.create_version(f.id, "one")
        store.create_version(f.id, "two")
        store.delete_version(v1.id)
        assert store.create_version(f.id, "three").version_number == 3

    def test_unknown_id_raises(self, db):
        with pytest.raises(VersionNotFoundError):
            VersionStore(db).delete_version(4242)

    def test_unknown_id_missing_ok(self, db):
        assert VersionStore(db).delete_version(4242, missing_ok=True) is False


class TestCascade:

    def test_removing_file_row_removes_its_versions(self, db):
        store = VersionStore(db)
        f = store.create_file("a.txt")
        other = store.create_file("b.txt")
        store.create_version(f.id, "one")
        store.create_version(f.id, "two")
        kept = store.create_version(other.id, "keep")

        db.execute(text("DELETE FROM files WHERE id = :id"), {"id": f.id})
        db.commit()
        db.expire_all()

        remaining = db.execute(text("SELECT id FROM versions")).scalars().all()
        assert remaining == [kept.id]


class TestLabels:

    def test_set_and_clear_label(self, db):
        store = VersionStore(db)
        f = store.create_file("a.txt")
        v = store.create_version(f.id, "content")

        assert store.set_version_label(v.id, "milestone").label == "milestone"
        assert store.set_version_label(v.id, "").label is None

    def test_label_unknown_version(self, db):
        with pytest.raises(VersionNotFoundError):
            VersionStore(db).set_version_label(777, "x")


class TestMaintenance:

    def _populate(self, store):
        a = store.create_file("a.txt")
        b = store.create_file("b.txt")
        for i in range(3):
            store.create_version(a.id, f"a{i}")
        store.create_version(b.id, "b0")
        return a, b

    def test_quick_clean_keeps_latest_per_file(self, db):
        store = VersionStore(db)
        a, b = self._populate(store)

        assert store.quick_clean() == 2
        a_versions = store.get_file_versions(a.id)
        assert [v.content for v in a_versions] == ["a2"]
        assert len(store.get_file_versions(b.id)) == 1
        db.refresh(a)
        assert a.current_version_id == a_versions[0].id

    def test_clear_all_keeps_files(self, db):
        store = VersionStore(db)
        a, b = self._populate(store)

        assert store.clear_all() == 4
        assert len(store.get_all_files()) == 2
        for f in (a, b):
            db.refresh(f)
            assert f.current_version_id is None
            assert store.get_file_versions(f.id) == []

    def test_numbering_restarts_after_clear_all(self, db):
        store = VersionStore(db)
        a, _ = self._populate(store)
        store.clear_all()
        assert store.create_version(a.id, "fresh").version_number == 1


class TestFileLocks:

    def test_same_file_shares_one_lock(self):
        lock = _file_lock(9001)
        assert _file_lock(9001) is lock
        assert _file_lock(9002) is not lock

    def test_unreferenced_locks_are_released(self):
        lock = _file_lock(9003)
        assert 9003 in _file_locks
        del lock
        gc.collect()
        assert 9003 not in _file_locks
