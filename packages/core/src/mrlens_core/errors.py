"""Exception hierarchy shared by every pipeline step."""

from __future__ import annotations


class MRLensError(Exception):
    """Base class for all mrlens errors."""


class InvalidMergeRequestURL(MRLensError, ValueError):
    """The submitted URL is not a GitLab merge request URL we can parse."""


class GitLabError(MRLensError):
    """A GitLab API call failed."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ReviewError(MRLensError):
    """The AI provider could not produce a review."""


class NotificationError(MRLensError):
    """The Slack webhook rejected the notification."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
