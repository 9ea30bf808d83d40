"""Abstract state store interface.

The pipeline keeps one flat record per review id: written when the diff is
fetched, merged when the AI review and notification finish. Any backend
(in-memory, SQLite, Redis) implements this interface; the pipeline only
calls get() and set(), so backends are swappable without touching it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseStore(ABC):
    """Key-value persistence for review state records.

    set() replaces the whole record (last writer wins); callers that want to
    update a record read it, merge, and write it back.
    """

    @abstractmethod
    def get(self, review_id: str) -> dict | None:
        """Return the record stored under review_id, or None."""

    @abstractmethod
    def set(self, review_id: str, record: dict) -> None:
        """Store record under review_id, replacing any previous value."""

    @abstractmethod
    def list_records(self, project_path: str | None = None) -> list[dict]:
        """Return records oldest first, optionally filtered by project path.

        Returns an empty list if nothing is stored — never raises.
        """

    def close(self) -> None:
        """Release any resources held by the store (connections, file handles).

        Default is a no-op so callers can always call close() safely.
        """
