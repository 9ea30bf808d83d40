from __future__ import annotations

import re
from urllib.parse import urlparse

import gitlab
import requests
from gitlab.exceptions import GitlabError as _GitlabSDKError

from mrlens_core.errors import GitLabError, InvalidMergeRequestURL
from mrlens_core.models import FileChange, MergeRequestDetails

_MR_PATH_RE = r"/([^/]+/[^/]+(?:/[^/]+)*)/-/merge_requests/(\d+)"


def gitlab_host(gitlab_url: str) -> str:
    """Return the bare host of a GitLab instance URL, e.g. ``gitlab.com``."""
    return urlparse(gitlab_url).netloc or gitlab_url


def validate_mr_url(mr_url: str, host: str = "gitlab.com") -> None:
    """Raise InvalidMergeRequestURL unless mr_url looks like a GitLab MR link on host."""
    parsed = urlparse(mr_url or "")
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidMergeRequestURL("MR URL must be a valid URL")
    if host not in mr_url or "/merge_requests/" not in mr_url:
        raise InvalidMergeRequestURL("URL must be a valid GitLab merge request URL")


def parse_mr_url(mr_url: str, host: str = "gitlab.com") -> tuple[str, int]:
    """Split an MR URL into (project_path, mr_iid).

    https://gitlab.com/group/sub/project/-/merge_requests/123 → ("group/sub/project", 123)
    """
    match = re.search(re.escape(host) + _MR_PATH_RE, mr_url)
    if not match:
        raise InvalidMergeRequestURL("Could not parse MR URL, make sure it is a merge request link")
    return match.group(1), int(match.group(2))


def get_gitlab(gitlab_url: str, token: str | None) -> gitlab.Gitlab:
    return gitlab.Gitlab(gitlab_url, private_token=token)


def get_merge_request(gl: gitlab.Gitlab, project_path: str, mr_iid: int):
    # lazy=True skips the project GET; python-gitlab URL-encodes the path.
    project = gl.projects.get(project_path, lazy=True)
    try:
        return project.mergerequests.get(mr_iid)
    except _GitlabSDKError as e:
        raise GitLabError(
            f"GitLab API request failed ({e.response_code}): {e.error_message}", status_code=e.response_code
        ) from e
    except requests.RequestException as e:
        raise GitLabError(f"GitLab API request failed: {e}") from e


def get_mr_details(mr) -> MergeRequestDetails:
    return MergeRequestDetails(
        id=mr.id,
        iid=mr.iid,
        title=mr.title,
        description=mr.description or "",
        state=mr.state,
        source_branch=mr.source_branch,
        target_branch=mr.target_branch,
        author=dict(mr.author or {}),
        created_at=mr.created_at,
        updated_at=mr.updated_at,
        web_url=mr.web_url,
    )


def get_mr_changes(mr) -> list[FileChange]:
    """Return the changed files of an MR via the /changes endpoint."""
    try:
        data = mr.changes()
    except _GitlabSDKError as e:
        raise GitLabError(
            f"GitLab API request failed ({e.response_code}): {e.error_message}", status_code=e.response_code
        ) from e
    except requests.RequestException as e:
        raise GitLabError(f"GitLab API request failed: {e}") from e
    return [FileChange.from_dict(c) for c in data.get("changes") or []]
