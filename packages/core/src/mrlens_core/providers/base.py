"""Base reviewer implementing the Template Method pattern.

All providers share the same review algorithm:
    review() → _build_system_prompt() + _build_user_prompt()
             → _call_with_retry() → _call_api()   ← only this differs per provider
             → _parse()

Subclasses implement two things only:
  - __init__: validate and store the SDK client
  - _call_api: make one raw chat call and return the text response

Prompt construction, diff truncation, JSON extraction and retry logic live
here so every provider produces the same ReviewResult shape.
"""

from __future__ import annotations

import json
import logging
import re
import time
from abc import ABC, abstractmethod

from mrlens_core.errors import ReviewError
from mrlens_core.models import FileChange, ReviewResult

logger = logging.getLogger(__name__)

_MAX_RETRIES = 3
_MAX_TOKENS = 4000
_MAX_DIFF_CHARS = 50000

# Greedy on purpose: the outermost {...} span, so nested issue objects survive.
_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")


class BaseReviewer(ABC):
    MODEL: str = ""
    TEMPERATURE: float = 0.3
    MAX_RETRIES: int = _MAX_RETRIES
    MAX_TOKENS: int = _MAX_TOKENS
    # Provider errors that retrying cannot fix (bad key, rejected request).
    NON_RETRYABLE_ERRORS: tuple = ()

    def __init__(
        self,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        max_diff_chars: int = _MAX_DIFF_CHARS,
        language: str = "English",
    ):
        self.model = model or self.MODEL
        self.temperature = self.TEMPERATURE if temperature is None else temperature
        self.max_tokens = max_tokens or self.MAX_TOKENS
        self.max_diff_chars = max_diff_chars
        self.language = language

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def review(
        self,
        mr_title: str,
        mr_description: str,
        changes: list[FileChange],
        coding_standard: str,
        project_type: str,
    ) -> ReviewResult:
        """Review a whole merge request diff in one chat call.

        Raises ReviewError when the provider keeps failing or answers with
        nothing at all. Unparseable answers are not an error: the raw text
        becomes the summary.
        """
        system = self._build_system_prompt(coding_standard)
        user = self._build_user_prompt(mr_title, mr_description, changes, project_type)
        raw = self._call_with_retry(system, user)
        if not raw or not raw.strip():
            raise ReviewError("AI returned an empty response")
        return self._parse(raw)

    # ------------------------------------------------------------------ #
    # Abstract — implement in each provider                               #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _call_api(self, system_prompt: str, user_prompt: str) -> str | None:
        """Make a single API call and return the raw text response.

        It should raise on failure — _call_with_retry handles retries and logging.
        """

    # ------------------------------------------------------------------ #
    # Shared implementations                                               #
    # ------------------------------------------------------------------ #

    def _call_with_retry(self, system_prompt: str, user_prompt: str) -> str | None:
        """Retry _call_api up to MAX_RETRIES times with exponential backoff."""
        for attempt in range(self.MAX_RETRIES):
            try:
                return self._call_api(system_prompt, user_prompt)
            except self.NON_RETRYABLE_ERRORS as e:
                logger.error("%s API rejected the request: %s", self.__class__.__name__, e)
                raise ReviewError(f"AI API request failed: {e}") from e
            except Exception as e:
                if attempt == self.MAX_RETRIES - 1:
                    logger.error(
                        "%s API failed after %d attempts: %s",
                        self.__class__.__name__,
                        self.MAX_RETRIES,
                        e,
                    )
                    raise ReviewError(f"AI API request failed: {e}") from e
                delay = 2**attempt
                logger.warning(
                    "%s API error (attempt %d/%d): %s. Retrying in %ds...",
                    self.__class__.__name__,
                    attempt + 1,
                    self.MAX_RETRIES,
                    e,
                    delay,
                )
                time.sleep(delay)
        return None

    def _build_system_prompt(self, coding_standard: str) -> str:
        return f"""You are a professional code review assistant. Review the code against these coding standards: {coding_standard}
Write the review in {self.language}; keep identifiers and technical terms from the code as they are.
Keep suggestions short, clear and direct. Do not hedge with phrases like "you may want to consider".
Focus on:
1. Coding style and convention problems
2. Potential logic errors
3. Violations of best practices

Return the review as JSON in exactly this format:
{{
  "summary": "overall assessment",
  "issues": [
    {{
      "type": "style|logic error|best practice",
      "severity": "high|medium|low",
      "file": "file path",
      "message": "problem description",
      "suggestion": "how to fix it (optional)"
    }}
  ],
  "recommendations": ["general recommendation 1", "general recommendation 2"]
}}"""  # noqa: E501

    def _build_user_prompt(
        self,
        mr_title: str,
        mr_description: str,
        changes: list[FileChange],
        project_type: str,
    ) -> str:
        """Build the user message: MR header followed by as many file diffs as fit.

        Files are appended whole; the first file that would push the diff
        section past max_diff_chars stops the loop and a note says how many
        files were left out.
        """
        message = "Please review the following merge request:\n\n"
        message += f"Title: {mr_title}\n"
        if mr_description:
            message += f"Description: {mr_description}\n"
        message += f"Project type: {project_type}\n\nCode changes:\n"

        current_size = 0
        for included, change in enumerate(changes):
            file_diff = _render_file_diff(change)
            if current_size + len(file_diff) > self.max_diff_chars:
                remaining = len(changes) - included
                message += f"\n... ({remaining} more file(s) not shown, size limit reached)"
                logger.info("Diff truncated: %d of %d file(s) included", included, len(changes))
                break
            message += file_diff
            current_size += len(file_diff)
        return message

    def _parse(self, raw: str) -> ReviewResult:
        """Extract the JSON object from the model's answer.

        Models often wrap the JSON in prose or fences, so only the outermost
        brace span is decoded. Anything unparseable becomes the summary.
        """
        match = _JSON_OBJECT_RE.search(raw)
        if not match:
            return ReviewResult(summary=raw)
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError:
            logger.warning(
                "%s: failed to parse response as JSON: %s",
                self.__class__.__name__,
                raw[:200],
            )
            return ReviewResult(summary=raw)
        if not isinstance(data, dict):
            return ReviewResult(summary=raw)
        return ReviewResult.from_dict(data)


def _render_file_diff(change: FileChange) -> str:
    if change.new_file:
        marker = "(new file)"
    elif change.deleted_file:
        marker = "(deleted file)"
    elif change.renamed_file:
        marker = f"(renamed from {change.old_path})"
    else:
        marker = ""
    return f"\nFile: {change.new_path}\n{marker}\n\n```diff\n{change.diff}\n```\n"
