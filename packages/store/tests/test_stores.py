"""Tests for mrlens-store implementations."""

from __future__ import annotations

from mrlens_store.memory import MemoryStore
from mrlens_store.models import ReviewRecord
from mrlens_store.sqlite import SQLiteStore


def _make_record(review_id="review-1700000000000-abc123", project_path="mobile/ios-source-code", **extra):
    record = {
        "review_id": review_id,
        "mr_url": f"https://gitlab.com/{project_path}/-/merge_requests/7",
        "project_path": project_path,
        "mr_iid": 7,
        "mr_details": {"title": "Add login screen"},
        "mr_diff": [{"old_path": "a.swift", "new_path": "a.swift", "diff": "+x"}],
        "timestamp": "2024-01-01T00:00:00+00:00",
    }
    record.update(extra)
    return record


# ---------------------------------------------------------------------------
# MemoryStore
# ---------------------------------------------------------------------------


class TestMemoryStore:
    def test_get_missing_returns_none(self):
        assert MemoryStore().get("review-missing") is None

    def test_set_and_get(self):
        store = MemoryStore()
        store.set("r1", _make_record("r1"))
        assert store.get("r1")["mr_iid"] == 7

    def test_set_replaces_whole_record(self):
        store = MemoryStore()
        store.set("r1", _make_record("r1"))
        store.set("r1", {"review_id": "r1", "status": "failed"})
        assert store.get("r1") == {"review_id": "r1", "status": "failed"}

    def test_returned_record_is_a_copy(self):
        store = MemoryStore()
        store.set("r1", _make_record("r1"))
        store.get("r1")["mr_diff"].clear()
        assert len(store.get("r1")["mr_diff"]) == 1

    def test_stored_record_is_a_copy(self):
        store = MemoryStore()
        record = _make_record("r1")
        store.set("r1", record)
        record["status"] = "mutated"
        assert "status" not in store.get("r1")

    def test_list_records_filters_by_project(self):
        store = MemoryStore()
        store.set("r1", _make_record("r1", project_path="a/one"))
        store.set("r2", _make_record("r2", project_path="b/two"))
        assert [r["review_id"] for r in store.list_records()] == ["r1", "r2"]
        assert [r["review_id"] for r in store.list_records("b/two")] == ["r2"]

    def test_list_records_empty(self):
        assert MemoryStore().list_records() == []

    def test_close_is_noop(self):
        MemoryStore().close()


# ---------------------------------------------------------------------------
# SQLiteStore
# ---------------------------------------------------------------------------


class TestSQLiteStore:
    def test_set_and_get(self, tmp_path):
        store = SQLiteStore(db_path=str(tmp_path / "test.db"))
        store.set("r1", _make_record("r1"))

        record = store.get("r1")
        assert record["project_path"] == "mobile/ios-source-code"
        assert record["mr_diff"][0]["new_path"] == "a.swift"
        store.close()

    def test_get_missing_returns_none(self, tmp_path):
        store = SQLiteStore(db_path=str(tmp_path / "test.db"))
        assert store.get("nope") is None
        store.close()

    def test_last_writer_wins(self, tmp_path):
        store = SQLiteStore(db_path=str(tmp_path / "test.db"))
        store.set("r1", _make_record("r1"))
        store.set("r1", {**_make_record("r1"), "status": "completed"})

        assert store.get("r1")["status"] == "completed"
        assert len(store.list_records()) == 1
        store.close()

    def test_list_records_oldest_first(self, tmp_path):
        store = SQLiteStore(db_path=str(tmp_path / "test.db"))
        for i in range(3):
            store.set(f"r{i}", _make_record(f"r{i}"))
        # Updating r0 must not move it to the end.
        store.set("r0", {**_make_record("r0"), "status": "notified"})

        assert [r["review_id"] for r in store.list_records()] == ["r0", "r1", "r2"]
        store.close()

    def test_list_records_filters_by_project(self, tmp_path):
        store = SQLiteStore(db_path=str(tmp_path / "test.db"))
        store.set("r1", _make_record("r1", project_path="a/one"))
        store.set("r2", _make_record("r2", project_path="b/two"))

        assert [r["review_id"] for r in store.list_records("a/one")] == ["r1"]
        assert store.list_records("c/three") == []
        store.close()

    def test_persists_across_connections(self, tmp_path):
        db = str(tmp_path / "test.db")
        store = SQLiteStore(db_path=db)
        store.set("r1", _make_record("r1", status="completed"))
        store.close()

        store2 = SQLiteStore(db_path=db)
        assert store2.get("r1")["status"] == "completed"
        store2.close()

    def test_schema_created_on_init(self, tmp_path):
        import sqlite3

        db = str(tmp_path / "test.db")
        SQLiteStore(db_path=db).close()

        conn = sqlite3.connect(db)
        tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        conn.close()
        assert "reviews" in tables


# ---------------------------------------------------------------------------
# ReviewRecord
# ---------------------------------------------------------------------------


class TestReviewRecord:
    def test_from_fetched_record(self):
        record = ReviewRecord.from_dict(_make_record())
        assert record.mr_title == "Add login screen"
        assert record.files_changed == 1
        assert record.status == "pending"
        assert record.issues_found == 0

    def test_from_completed_record(self):
        data = _make_record(
            status="completed",
            completed_at="2024-01-01T00:01:00+00:00",
            review_result={"summary": "Fine", "issues": [{"type": "t"}, {"type": "u"}], "recommendations": []},
        )
        record = ReviewRecord.from_dict(data)
        assert record.status == "completed"
        assert record.issues_found == 2
        assert record.summary == "Fine"
        assert record.completed_at == "2024-01-01T00:01:00+00:00"

    def test_from_failed_record(self):
        data = {
            "review_id": "r1",
            "mr_url": "https://gitlab.com/a/b/-/merge_requests/1",
            "project_path": "a/b",
            "mr_iid": 1,
            "error": "GitLab API request failed (404): 404 Not Found",
            "status": "failed",
        }
        record = ReviewRecord.from_dict(data)
        assert record.status == "failed"
        assert "404" in record.error
        assert record.mr_title == ""
        assert record.files_changed == 0
