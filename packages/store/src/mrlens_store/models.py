"""Typed read view over stored review records.

The pipeline stores plain dicts; the CLI converts them to ReviewRecord for
display so it never indexes raw dicts with string keys.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ReviewRecord:
    review_id: str
    mr_url: str
    project_path: str = ""
    mr_iid: int = 0
    mr_title: str = ""
    status: str = "pending"
    files_changed: int = 0
    issues_found: int = 0
    summary: str = ""
    error: str = ""
    timestamp: str = ""  # ISO-8601 UTC, when the diff was fetched
    completed_at: str = ""

    @classmethod
    def from_dict(cls, d: dict) -> ReviewRecord:
        details = d.get("mr_details") or {}
        result = d.get("review_result") or {}
        return cls(
            review_id=d.get("review_id", ""),
            mr_url=d.get("mr_url", ""),
            project_path=d.get("project_path", ""),
            mr_iid=d.get("mr_iid") or 0,
            mr_title=details.get("title", ""),
            status=d.get("status") or "pending",
            files_changed=len(d.get("mr_diff") or []),
            issues_found=len(result.get("issues") or []),
            summary=result.get("summary", ""),
            error=d.get("error") or "",
            timestamp=d.get("timestamp", ""),
            completed_at=d.get("completed_at", ""),
        )
