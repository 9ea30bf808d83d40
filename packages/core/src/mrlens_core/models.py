"""Merge request and review data passed between pipeline steps.

Every type here converts to and from plain dicts because the steps exchange
data through events and the state store, both of which carry JSON-friendly
payloads only.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

SEVERITIES = ("high", "medium", "low")


def _as_list(value) -> list:
    """Coerce a model-supplied field to a list: a lone string becomes one item, other non-lists are dropped."""
    if isinstance(value, list):
        return value
    if isinstance(value, str) and value.strip():
        return [value]
    return []


@dataclass
class MergeRequestDetails:
    id: int
    iid: int
    title: str
    description: str = ""
    state: str = ""
    source_branch: str = ""
    target_branch: str = ""
    author: dict = field(default_factory=dict)
    created_at: str = ""
    updated_at: str = ""
    web_url: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class FileChange:
    """One changed file in a merge request, as returned by the GitLab changes API."""

    old_path: str
    new_path: str
    new_file: bool = False
    renamed_file: bool = False
    deleted_file: bool = False
    diff: str = ""

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: dict) -> FileChange:
        return cls(
            old_path=d.get("old_path", ""),
            new_path=d.get("new_path", ""),
            new_file=bool(d.get("new_file", False)),
            renamed_file=bool(d.get("renamed_file", False)),
            deleted_file=bool(d.get("deleted_file", False)),
            diff=d.get("diff") or "",
        )


@dataclass
class ReviewIssue:
    type: str
    severity: str  # "high" | "medium" | "low"
    file: str
    message: str
    suggestion: str | None = None

    def to_dict(self) -> dict:
        d = {"type": self.type, "severity": self.severity, "file": self.file, "message": self.message}
        if self.suggestion:
            d["suggestion"] = self.suggestion
        return d

    @classmethod
    def from_dict(cls, d: dict) -> ReviewIssue:
        severity = str(d.get("severity", "low")).lower()
        if severity not in SEVERITIES:
            severity = "low"
        return cls(
            type=str(d.get("type", "")),
            severity=severity,
            file=str(d.get("file", "")),
            message=str(d.get("message", "")),
            suggestion=d.get("suggestion") or None,
        )


@dataclass
class ReviewResult:
    """Structured review returned by the model."""

    summary: str
    issues: list[ReviewIssue] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "summary": self.summary,
            "issues": [i.to_dict() for i in self.issues],
            "recommendations": list(self.recommendations),
        }

    @classmethod
    def from_dict(cls, d: dict) -> ReviewResult:
        issues = _as_list(d.get("issues"))
        recommendations = _as_list(d.get("recommendations"))
        return cls(
            summary=str(d.get("summary", "")),
            issues=[ReviewIssue.from_dict(i) for i in issues if isinstance(i, dict)],
            recommendations=[str(r) for r in recommendations],
        )
