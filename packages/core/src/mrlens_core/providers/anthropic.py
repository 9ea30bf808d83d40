from __future__ import annotations

from mrlens_core.providers.base import BaseReviewer


class AnthropicReviewer(BaseReviewer):
    MODEL = "claude-sonnet-4-20250514"
    TEMPERATURE = 0.3

    def __init__(self, api_key: str, base_url: str | None = None, **kwargs):
        try:
            import anthropic
        except ImportError:
            raise ImportError(
                "The 'anthropic' package is required for this provider. "
                "Install it with: pip install 'mrlens[anthropic]'"
            )
        super().__init__(**kwargs)
        self.client = anthropic.Anthropic(api_key=api_key, base_url=base_url)
        self.NON_RETRYABLE_ERRORS = (
            anthropic.AuthenticationError,
            anthropic.BadRequestError,
            anthropic.NotFoundError,
            anthropic.PermissionDeniedError,
        )

    def _call_api(self, system_prompt: str, user_prompt: str) -> str | None:
        # anthropic is optional; __init__ already checked it is importable.
        from anthropic.types import TextBlock

        response = self.client.messages.create(
            model=self.model,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        text_blocks = [block.text for block in response.content if isinstance(block, TextBlock)]
        return "".join(text_blocks).strip()
