"""SQLiteStore — local file-based store that survives restarts.

Schema:
  reviews — one row per review id. The full record is kept as JSON in
            ``data_json``; project_path and status are copied into columns
            so listing and filtering never have to parse JSON.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from datetime import datetime, timezone

from mrlens_store.base import BaseStore

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS reviews (
    review_id     TEXT PRIMARY KEY,
    project_path  TEXT,
    status        TEXT,
    created_at    TEXT NOT NULL,
    updated_at    TEXT NOT NULL,
    data_json     TEXT NOT NULL DEFAULT '{}'
);
CREATE INDEX IF NOT EXISTS idx_reviews_project ON reviews (project_path);
"""


class SQLiteStore(BaseStore):
    """Stores review records in a local SQLite database file.

    The database file path defaults to `.mrlens.db` in the current working
    directory. Configure via .mrlens.yml: `store_path: /path/to/mrlens.db`.
    """

    def __init__(self, db_path: str = ".mrlens.db"):
        # The HTTP server runs steps on worker threads; the lock serialises them.
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)
        self._conn.commit()
        self._lock = threading.Lock()

    def get(self, review_id: str) -> dict | None:
        with self._lock:
            row = self._conn.execute("SELECT data_json FROM reviews WHERE review_id=?", (review_id,)).fetchone()
        if row is None:
            return None
        return json.loads(row["data_json"] or "{}")

    def set(self, review_id: str, record: dict) -> None:
        now = datetime.now(timezone.utc).isoformat()
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO reviews (review_id, project_path, status, created_at, updated_at, data_json)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(review_id) DO UPDATE SET
                  project_path = excluded.project_path,
                  status       = excluded.status,
                  updated_at   = excluded.updated_at,
                  data_json    = excluded.data_json
                """,
                (
                    review_id,
                    record.get("project_path"),
                    record.get("status"),
                    now,
                    now,
                    json.dumps(record),
                ),
            )
            self._conn.commit()
        logger.debug("Stored review %s (status=%s)", review_id, record.get("status"))

    def list_records(self, project_path: str | None = None) -> list[dict]:
        with self._lock:
            if project_path is not None:
                rows = self._conn.execute(
                    "SELECT data_json FROM reviews WHERE project_path=? ORDER BY created_at, rowid",
                    (project_path,),
                ).fetchall()
            else:
                rows = self._conn.execute("SELECT data_json FROM reviews ORDER BY created_at, rowid").fetchall()
        return [json.loads(r["data_json"] or "{}") for r in rows]

    def close(self) -> None:
        self._conn.close()
