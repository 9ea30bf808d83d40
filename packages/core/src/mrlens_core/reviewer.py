"""Core merge request review pipeline.

Four steps chained over an EventBus:

    trigger ──fetch-mr-diff──▶ fetch_mr_diff ──process-ai-review──▶ process_ai_review
            ──send-review-webhook──▶ send_review_webhook

The diff itself never travels on the bus: fetch_mr_diff writes it to the
state store under the review id and later steps read it back. ``state`` is
any object with ``get(review_id)`` and ``set(review_id, record)``, so the
core has no dependency on a particular store backend.
"""

from __future__ import annotations

import logging
import random
import string
import time
from datetime import datetime, timezone
from typing import Callable

from mrlens_core.config import load_guidelines
from mrlens_core.errors import NotificationError, ReviewError
from mrlens_core.events import FETCH_MR_DIFF, PROCESS_AI_REVIEW, SEND_REVIEW_WEBHOOK, Emit, EventBus
from mrlens_core.gl.merge_request import (
    get_gitlab,
    get_merge_request,
    get_mr_changes,
    get_mr_details,
    gitlab_host,
    parse_mr_url,
    validate_mr_url,
)
from mrlens_core.models import FileChange, ReviewResult
from mrlens_core.notify.slack import format_review_message, send_slack_notification
from mrlens_core.providers.anthropic import AnthropicReviewer
from mrlens_core.providers.base import BaseReviewer
from mrlens_core.providers.openai import OpenAIReviewer
from mrlens_core.utils.code import reviewable_changes

logger = logging.getLogger(__name__)

STATUS_FAILED = "failed"
STATUS_COMPLETED = "completed"
STATUS_AI_REVIEW_FAILED = "ai-review-failed"
STATUS_NOTIFIED = "notified"
STATUS_NOTIFY_FAILED = "notify-failed"

_BASE36 = string.digits + string.ascii_lowercase


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def generate_review_id() -> str:
    """Return an id like ``review-1729350000000-k3j9x2``."""
    suffix = "".join(random.choice(_BASE36) for _ in range(6))
    return f"review-{int(time.time() * 1000)}-{suffix}"


def detect_project_type(project_path: str, rules: list[dict], default_standard: str) -> tuple[str, str]:
    """Return (project_type, coding_standard) for the first rule whose ``match`` is in the path."""
    for rule in rules:
        if rule.get("match") and rule["match"] in project_path:
            return rule.get("type", "unknown"), rule.get("standard", default_standard)
    return "unknown", default_standard


def _get_reviewer(config: dict) -> BaseReviewer:
    kwargs = {
        "model": config.get("model"),
        "temperature": config.get("temperature"),
        "max_tokens": config.get("max_tokens"),
        "max_diff_chars": config.get("max_diff_chars", 50000),
        "language": config.get("review_language", "English"),
    }
    provider = config["provider"]
    if provider == "openai":
        return OpenAIReviewer(api_key=config["ai_api_key"], base_url=config.get("ai_base_url"), **kwargs)
    if provider == "anthropic":
        return AnthropicReviewer(api_key=config["ai_api_key"], base_url=config.get("ai_base_url"), **kwargs)
    raise ValueError(f"Unknown AI provider: {provider!r}. Choose 'openai' or 'anthropic'.")


def trigger_review(mr_url: str, emit: Emit, gitlab_url: str = "https://gitlab.com") -> dict:
    """Validate and parse an MR URL, then emit the first pipeline event.

    Returns the acknowledgement body. Raises InvalidMergeRequestURL for URLs
    that are not GitLab merge requests on the configured instance.
    """
    host = gitlab_host(gitlab_url)
    validate_mr_url(mr_url, host)
    logger.info("Review requested for %s", mr_url)

    review_id = generate_review_id()
    project_path, mr_iid = parse_mr_url(mr_url, host)
    logger.info("Parsed MR %s!%d (review_id=%s)", project_path, mr_iid, review_id)

    emit(
        FETCH_MR_DIFF,
        {"review_id": review_id, "mr_url": mr_url, "project_path": project_path, "mr_iid": mr_iid},
    )
    return {"message": "MR review triggered and is being processed", "reviewId": review_id, "mrUrl": mr_url}


class ReviewPipeline:
    """Wires the step handlers to an EventBus and the shared state store.

    The GitLab client, AI reviewer and notifier are built lazily from config
    so that triggering a review (which needs none of them) works without
    credentials. Tests inject stubs through the constructor instead.
    """

    def __init__(
        self,
        config: dict,
        state,
        gl=None,
        reviewer: BaseReviewer | None = None,
        send: Callable[[str], None] | None = None,
        bus: EventBus | None = None,
    ):
        self.config = config
        self.state = state
        self._gl = gl
        self._reviewer = reviewer
        self._send = send
        self.bus = bus or EventBus()
        self.bus.subscribe(FETCH_MR_DIFF, self.fetch_mr_diff)
        self.bus.subscribe(PROCESS_AI_REVIEW, self.process_ai_review)
        self.bus.subscribe(SEND_REVIEW_WEBHOOK, self.send_review_webhook)

    @property
    def gl(self):
        if self._gl is None:
            self._gl = get_gitlab(self.config.get("gitlab_url", "https://gitlab.com"), self.config.get("gitlab_token"))
        return self._gl

    @property
    def reviewer(self) -> BaseReviewer:
        if self._reviewer is None:
            self._reviewer = _get_reviewer(self.config)
        return self._reviewer

    def _send_notification(self, text: str) -> None:
        if self._send is not None:
            self._send(text)
            return
        webhook_url = self.config.get("slack_webhook_url")
        if not webhook_url:
            raise NotificationError("SLACK_WEBHOOK_URL is not set")
        send_slack_notification(webhook_url, text, self.config.get("slack_payload_field", "reviewContent"))

    # ------------------------------------------------------------------ #
    # Steps                                                                #
    # ------------------------------------------------------------------ #

    def trigger(self, mr_url: str, emit: Emit | None = None) -> dict:
        """Start a review. ``emit`` defaults to running the whole chain inline."""
        return trigger_review(mr_url, emit or self.bus.emit, self.config.get("gitlab_url", "https://gitlab.com"))

    def fetch_mr_diff(self, event: dict) -> None:
        review_id = event["review_id"]
        mr_url = event["mr_url"]
        project_path = event["project_path"]
        mr_iid = event["mr_iid"]
        logger.info("Fetching MR diff (review_id=%s, project=%s, iid=%d)", review_id, project_path, mr_iid)

        try:
            mr = get_merge_request(self.gl, project_path, mr_iid)
            details = get_mr_details(mr)
            changes = get_mr_changes(mr)

            self.state.set(
                review_id,
                {
                    "review_id": review_id,
                    "mr_url": mr_url,
                    "project_path": project_path,
                    "mr_iid": mr_iid,
                    "mr_details": details.to_dict(),
                    "mr_diff": [c.to_dict() for c in changes],
                    "timestamp": _now(),
                },
            )
            logger.info("Fetched %d changed file(s) for %r (review_id=%s)", len(changes), details.title, review_id)
        except Exception as e:
            logger.error("Fetching MR diff failed (review_id=%s): %s", review_id, e)
            self.state.set(
                review_id,
                {
                    "review_id": review_id,
                    "mr_url": mr_url,
                    "project_path": project_path,
                    "mr_iid": mr_iid,
                    "error": str(e),
                    "status": STATUS_FAILED,
                    "timestamp": _now(),
                },
            )
            raise

        self.bus.emit(
            PROCESS_AI_REVIEW,
            {
                "review_id": review_id,
                "project_path": project_path,
                "mr_title": details.title,
                "mr_description": details.description,
            },
        )

    def process_ai_review(self, event: dict) -> None:
        review_id = event["review_id"]
        project_path = event["project_path"]
        mr_title = event["mr_title"]
        logger.info("Starting AI review (review_id=%s, project=%s)", review_id, project_path)

        try:
            record = self.state.get(review_id)
            if not record or record.get("mr_diff") is None:
                raise ReviewError("MR diff data not found")

            project_type, coding_standard = detect_project_type(
                project_path,
                self.config.get("project_types") or [],
                self.config.get("coding_standard", "General programming best practices"),
            )
            guidelines = load_guidelines(self.config)
            if guidelines:
                coding_standard = f"{coding_standard}\n\n{guidelines}"
            logger.info("Project type %r (review_id=%s)", project_type, review_id)

            changes = [FileChange.from_dict(c) for c in record["mr_diff"]]
            changes, skipped = reviewable_changes(changes, self.config.get("exclude") or [])
            if skipped:
                logger.info("Left %d file(s) out of the prompt: %s", len(skipped), ", ".join(skipped))

            result = self.reviewer.review(
                mr_title=mr_title,
                mr_description=event.get("mr_description") or "",
                changes=changes,
                coding_standard=coding_standard,
                project_type=project_type,
            )

            self.state.set(
                review_id,
                {**record, "review_result": result.to_dict(), "status": STATUS_COMPLETED, "completed_at": _now()},
            )
            logger.info("AI review finished with %d issue(s) (review_id=%s)", len(result.issues), review_id)
        except Exception as e:
            logger.error("AI review failed (review_id=%s): %s", review_id, e)
            record = self.state.get(review_id)
            if record:
                self.state.set(
                    review_id,
                    {**record, "error": str(e), "status": STATUS_AI_REVIEW_FAILED, "failed_at": _now()},
                )
            raise

        self.bus.emit(
            SEND_REVIEW_WEBHOOK,
            {
                "review_id": review_id,
                "mr_url": record["mr_url"],
                "mr_title": mr_title,
                "review_result": result.to_dict(),
            },
        )

    def send_review_webhook(self, event: dict) -> None:
        review_id = event["review_id"]
        logger.info("Sending review notification (review_id=%s)", review_id)

        text = format_review_message(
            review_id=review_id,
            mr_url=event["mr_url"],
            mr_title=event["mr_title"],
            result=ReviewResult.from_dict(event["review_result"]),
            max_issues=self.config.get("max_issues", 5),
            max_recommendations=self.config.get("max_recommendations", 3),
        )
        try:
            self._send_notification(text)
        except Exception as e:
            logger.error("Sending review notification failed (review_id=%s): %s", review_id, e)
            self._mark(review_id, {"status": STATUS_NOTIFY_FAILED, "error": str(e), "failed_at": _now()})
            raise

        self._mark(review_id, {"status": STATUS_NOTIFIED, "notified_at": _now()})
        logger.info("Review notification sent (review_id=%s)", review_id)

    def _mark(self, review_id: str, fields: dict) -> None:
        record = self.state.get(review_id)
        if record:
            self.state.set(review_id, {**record, **fields})
