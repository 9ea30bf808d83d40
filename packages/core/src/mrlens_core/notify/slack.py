"""Slack webhook notification for finished reviews.

The default payload targets a Slack Workflow webhook, which exposes each
top-level JSON key as a workflow variable; the message text is sent under
``reviewContent``. Classic incoming webhooks want the text under ``text``
instead, which is what ``payload_field`` is for.
"""

from __future__ import annotations

import logging

import requests

from mrlens_core.errors import NotificationError
from mrlens_core.models import ReviewResult

logger = logging.getLogger(__name__)

_SEPARATOR = "━━━━━━━━━━━━━━━━━━━━"
_SEVERITY_EMOJI = {"high": "🔴", "medium": "🟡"}
_TIMEOUT_SECONDS = 10


def format_review_message(
    review_id: str,
    mr_url: str,
    mr_title: str,
    result: ReviewResult,
    max_issues: int = 5,
    max_recommendations: int = 3,
) -> str:
    lines = [
        "🤖 *AI Code Review finished*",
        "",
        f"📋 *MR title:* {mr_title}",
        f"🔗 *MR link:* {mr_url}",
        f"🆔 *Review ID:* {review_id}",
        "",
        _SEPARATOR,
        "",
        f"📊 *Summary:*\n{result.summary}",
        "",
    ]

    if result.issues:
        lines.append(f"⚠️ *{len(result.issues)} issue(s) found:*")
        lines.append("")
        for index, issue in enumerate(result.issues[:max_issues], 1):
            emoji = _SEVERITY_EMOJI.get(issue.severity, "🟢")
            lines.append(f"{index}. {emoji} *{issue.type}*")
            lines.append(f"   📁 File: {issue.file}")
            lines.append(f"   💬 {issue.message}")
            if issue.suggestion:
                lines.append(f"   💡 Suggestion: {issue.suggestion}")
            lines.append("")
        hidden = len(result.issues) - max_issues
        if hidden > 0:
            lines.append(f"_... {hidden} more issue(s)_")
            lines.append("")
    else:
        lines.append("✅ *No obvious issues found*")
        lines.append("")

    if result.recommendations:
        lines.append(_SEPARATOR)
        lines.append("")
        lines.append("💡 *Recommendations:*")
        for index, rec in enumerate(result.recommendations[:max_recommendations], 1):
            lines.append(f"{index}. {rec}")

    return "\n".join(lines) + "\n"


def send_slack_notification(webhook_url: str, text: str, payload_field: str = "reviewContent") -> None:
    """POST the formatted review to a Slack webhook; raise NotificationError on a non-2xx answer."""
    try:
        response = requests.post(webhook_url, json={payload_field: text}, timeout=_TIMEOUT_SECONDS)
    except requests.RequestException as e:
        raise NotificationError(f"Slack webhook request failed: {e}") from e

    # Redirects are not followed for POST, so a 3xx here is a failed delivery.
    if not 200 <= response.status_code < 300:
        raise NotificationError(
            f"Slack webhook request failed ({response.status_code}): {response.text}",
            status_code=response.status_code,
        )
    logger.debug("Slack webhook accepted notification (%d)", response.status_code)
