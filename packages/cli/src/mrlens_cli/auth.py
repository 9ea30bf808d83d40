"""GitLab token lookup.

GITLAB_TOKEN wins when set. Otherwise we ask the glab CLI for the token it
stored at `glab auth login`. glab keeps one token per instance, so the lookup
is keyed by the host of the configured ``gitlab_url``; a self-hosted
instance gets its own token, not the gitlab.com one.
"""

from __future__ import annotations

import logging
import os
import subprocess

logger = logging.getLogger(__name__)

_GLAB_TIMEOUT_SECONDS = 5


def _glab_token(host: str) -> str | None:
    try:
        result = subprocess.run(
            ["glab", "config", "get", "token", "--host", host],
            capture_output=True,
            text=True,
            timeout=_GLAB_TIMEOUT_SECONDS,
        )
    except FileNotFoundError:
        logger.debug("glab is not installed; no CLI session to read a token from.")
        return None
    except subprocess.TimeoutExpired:
        logger.debug("glab did not answer within %ds.", _GLAB_TIMEOUT_SECONDS)
        return None

    # glab exits non-zero or prints nothing when the host was never logged in.
    token = result.stdout.strip() if result.returncode == 0 else ""
    return token or None


def resolve_gitlab_token(host: str = "gitlab.com") -> str | None:
    """Return the token for the GitLab instance at host, or None.

    A missing token is not fatal here: public projects can be read
    anonymously, so the review command only warns.
    """
    token = os.environ.get("GITLAB_TOKEN")
    if token:
        return token

    token = _glab_token(host)
    if token:
        logger.debug("Using the glab session token for %s.", host)
    return token
