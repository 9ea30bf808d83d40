"""Tests for the HTTP trigger endpoint."""

import types
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from gitlab.exceptions import GitlabGetError

from mrlens_cli.server import create_app
from mrlens_core.models import ReviewIssue, ReviewResult
from mrlens_core.reviewer import ReviewPipeline
from mrlens_store.memory import MemoryStore

MR_URL = "https://gitlab.com/mobile/ios-source-code/-/merge_requests/42"


class StubReviewer:
    def __init__(self):
        self.calls = []

    def review(self, **kwargs):
        self.calls.append(kwargs)
        return ReviewResult(
            summary="One issue",
            issues=[ReviewIssue(type="logic error", severity="medium", file="a.swift", message="m")],
            recommendations=["Add tests"],
        )


def _gl():
    mr = types.SimpleNamespace(
        id=1,
        iid=42,
        title="Add login screen",
        description="",
        state="opened",
        source_branch="feature",
        target_branch="main",
        author={"username": "dev"},
        created_at="2024-01-01T00:00:00Z",
        updated_at="2024-01-01T00:00:00Z",
        web_url=MR_URL,
        changes=lambda: {"changes": [{"old_path": "a.swift", "new_path": "a.swift", "diff": "+x"}]},
    )
    gl = MagicMock()
    gl.projects.get.return_value.mergerequests.get.return_value = mr
    return gl


@pytest.fixture
def sent():
    return []


@pytest.fixture
def pipeline(sent):
    return ReviewPipeline(
        {"gitlab_url": "https://gitlab.com", "project_types": [], "exclude": []},
        MemoryStore(),
        gl=_gl(),
        reviewer=StubReviewer(),
        send=sent.append,
    )


@pytest.fixture
def client(pipeline):
    return TestClient(create_app(pipeline))


class TestTriggerEndpoint:
    def test_accepts_and_runs_pipeline(self, client, pipeline, sent):
        resp = client.post("/gitlab/reviewmr", json={"mrUrl": MR_URL})

        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "MR review triggered and is being processed"
        assert body["mrUrl"] == MR_URL
        assert body["reviewId"].startswith("review-")

        # Background tasks have run by the time TestClient returns.
        record = pipeline.state.get(body["reviewId"])
        assert record["status"] == "notified"
        assert len(sent) == 1
        assert "One issue" in sent[0]

    def test_rejects_non_gitlab_url(self, client, sent):
        resp = client.post("/gitlab/reviewmr", json={"mrUrl": "https://github.com/o/r/pull/1"})

        assert resp.status_code == 400
        assert resp.json() == {"error": "URL must be a valid GitLab merge request URL"}
        assert sent == []

    def test_rejects_malformed_url(self, client):
        resp = client.post("/gitlab/reviewmr", json={"mrUrl": "not a url"})

        assert resp.status_code == 400
        assert resp.json() == {"error": "MR URL must be a valid URL"}

    def test_rejects_missing_mr_url(self, client):
        resp = client.post("/gitlab/reviewmr", json={})

        assert resp.status_code == 400
        assert "mrUrl" in resp.json()["error"]

    def test_background_failure_recorded(self, pipeline, sent):
        pipeline._gl.projects.get.return_value.mergerequests.get.side_effect = GitlabGetError(
            "404 Not Found", response_code=404
        )
        client = TestClient(create_app(pipeline))

        resp = client.post("/gitlab/reviewmr", json={"mrUrl": MR_URL})

        assert resp.status_code == 200
        record = pipeline.state.get(resp.json()["reviewId"])
        assert record["status"] == "failed"
        assert "404" in record["error"]
        assert sent == []


class TestReviewEndpoint:
    def test_returns_record_without_diff(self, client):
        review_id = client.post("/gitlab/reviewmr", json={"mrUrl": MR_URL}).json()["reviewId"]

        resp = client.get(f"/reviews/{review_id}")

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "notified"
        assert body["review_result"]["summary"] == "One issue"
        assert "mr_diff" not in body

    def test_unknown_review(self, client):
        assert client.get("/reviews/review-missing").status_code == 404


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}
