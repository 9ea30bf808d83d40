"""Tests for GitLab merge request helpers."""

import types
from unittest.mock import MagicMock

import pytest
import requests
from gitlab.exceptions import GitlabGetError

from mrlens_core.errors import GitLabError, InvalidMergeRequestURL
from mrlens_core.gl.merge_request import (
    get_merge_request,
    get_mr_changes,
    get_mr_details,
    gitlab_host,
    parse_mr_url,
    validate_mr_url,
)

MR_URL = "https://gitlab.com/mobile/ios-source-code/-/merge_requests/42"


class TestParseMrUrl:
    def test_simple_project(self):
        assert parse_mr_url(MR_URL) == ("mobile/ios-source-code", 42)

    def test_nested_subgroups(self):
        url = "https://gitlab.com/acme/apps/shared/kotlin-multiplatform/-/merge_requests/7"
        assert parse_mr_url(url) == ("acme/apps/shared/kotlin-multiplatform", 7)

    def test_trailing_tab_segment_ignored(self):
        assert parse_mr_url(MR_URL + "/diffs") == ("mobile/ios-source-code", 42)

    def test_self_hosted_host(self):
        url = "https://git.example.com/team/api/-/merge_requests/3"
        assert parse_mr_url(url, host="git.example.com") == ("team/api", 3)

    def test_missing_dash_segment_rejected(self):
        with pytest.raises(InvalidMergeRequestURL):
            parse_mr_url("https://gitlab.com/group/project/merge_requests/42")

    def test_single_segment_path_rejected(self):
        with pytest.raises(InvalidMergeRequestURL):
            parse_mr_url("https://gitlab.com/project/-/merge_requests/42")


class TestValidateMrUrl:
    def test_accepts_gitlab_mr(self):
        validate_mr_url(MR_URL)

    def test_rejects_non_url(self):
        with pytest.raises(InvalidMergeRequestURL, match="valid URL"):
            validate_mr_url("not a url")

    def test_rejects_other_host(self):
        with pytest.raises(InvalidMergeRequestURL, match="merge request"):
            validate_mr_url("https://github.com/owner/repo/pull/1")

    def test_rejects_non_mr_gitlab_url(self):
        with pytest.raises(InvalidMergeRequestURL):
            validate_mr_url("https://gitlab.com/group/project/-/issues/5")

    def test_invalid_url_is_value_error(self):
        with pytest.raises(ValueError):
            validate_mr_url("")


def test_gitlab_host():
    assert gitlab_host("https://gitlab.com") == "gitlab.com"
    assert gitlab_host("https://git.example.com:8443/") == "git.example.com:8443"


def _mr(**overrides):
    fields = dict(
        id=1001,
        iid=42,
        title="Add login screen",
        description=None,
        state="opened",
        source_branch="feature/login",
        target_branch="main",
        author={"username": "dev"},
        created_at="2024-01-01T00:00:00Z",
        updated_at="2024-01-02T00:00:00Z",
        web_url=MR_URL,
    )
    fields.update(overrides)
    return types.SimpleNamespace(**fields)


class TestGetMrDetails:
    def test_maps_fields(self):
        details = get_mr_details(_mr(description="Adds OAuth"))
        assert details.iid == 42
        assert details.title == "Add login screen"
        assert details.description == "Adds OAuth"
        assert details.author == {"username": "dev"}
        assert details.web_url == MR_URL

    def test_missing_description_becomes_empty_string(self):
        assert get_mr_details(_mr()).description == ""


class TestGetMrChanges:
    def test_reshapes_changes(self):
        mr = MagicMock()
        mr.changes.return_value = {
            "changes": [
                {
                    "old_path": "a.swift",
                    "new_path": "b.swift",
                    "new_file": False,
                    "renamed_file": True,
                    "deleted_file": False,
                    "diff": "@@ -1 +1 @@\n-a\n+b\n",
                    "a_mode": "100644",
                }
            ]
        }
        changes = get_mr_changes(mr)
        assert len(changes) == 1
        assert changes[0].old_path == "a.swift"
        assert changes[0].renamed_file is True
        assert changes[0].diff.startswith("@@")

    def test_no_changes_key(self):
        mr = MagicMock()
        mr.changes.return_value = {}
        assert get_mr_changes(mr) == []

    def test_api_error_wrapped(self):
        mr = MagicMock()
        mr.changes.side_effect = GitlabGetError("403 Forbidden", response_code=403)
        with pytest.raises(GitLabError) as exc:
            get_mr_changes(mr)
        assert exc.value.status_code == 403


class TestGetMergeRequest:
    def test_uses_lazy_project_and_iid(self):
        gl = MagicMock()
        mr = get_merge_request(gl, "mobile/ios-source-code", 42)
        gl.projects.get.assert_called_once_with("mobile/ios-source-code", lazy=True)
        gl.projects.get.return_value.mergerequests.get.assert_called_once_with(42)
        assert mr is gl.projects.get.return_value.mergerequests.get.return_value

    def test_not_found_wrapped(self):
        gl = MagicMock()
        gl.projects.get.return_value.mergerequests.get.side_effect = GitlabGetError(
            "404 Not Found", response_code=404
        )
        with pytest.raises(GitLabError, match="404"):
            get_merge_request(gl, "group/project", 1)

    def test_connection_error_wrapped(self):
        gl = MagicMock()
        gl.projects.get.return_value.mergerequests.get.side_effect = requests.ConnectionError("connection refused")
        with pytest.raises(GitLabError, match="connection refused") as exc:
            get_merge_request(gl, "group/project", 1)
        assert exc.value.status_code is None

    def test_changes_timeout_wrapped(self):
        mr = MagicMock()
        mr.changes.side_effect = requests.Timeout("read timed out")
        with pytest.raises(GitLabError, match="read timed out"):
            get_mr_changes(mr)
