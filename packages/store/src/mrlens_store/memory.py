"""In-memory store — the default when no store is configured.

Records live for the lifetime of the process, which is enough for a
`mrlens review` run or a single `mrlens serve` instance.
"""

from __future__ import annotations

import copy
import threading

from mrlens_store.base import BaseStore


class MemoryStore(BaseStore):
    """Dict-backed store, safe to share between the server's worker threads."""

    def __init__(self):
        self._records: dict[str, dict] = {}
        self._lock = threading.Lock()

    def get(self, review_id: str) -> dict | None:
        with self._lock:
            record = self._records.get(review_id)
            return copy.deepcopy(record) if record is not None else None

    def set(self, review_id: str, record: dict) -> None:
        with self._lock:
            self._records[review_id] = copy.deepcopy(record)

    def list_records(self, project_path: str | None = None) -> list[dict]:
        with self._lock:
            records = [copy.deepcopy(r) for r in self._records.values()]
        if project_path is not None:
            records = [r for r in records if r.get("project_path") == project_path]
        return records
