from __future__ import annotations

try:
    from openai import AuthenticationError, BadRequestError, NotFoundError, PermissionDeniedError
    from openai import OpenAI as _OpenAI

    _NON_RETRYABLE = (AuthenticationError, BadRequestError, NotFoundError, PermissionDeniedError)
except ImportError:
    _OpenAI = None  # type: ignore[assignment,misc]
    _NON_RETRYABLE = ()

from mrlens_core.providers.base import BaseReviewer


class OpenAIReviewer(BaseReviewer):
    """Reviewer for any OpenAI-compatible /chat/completions endpoint.

    base_url points the client at self-hosted or third-party gateways that
    speak the same protocol (Azure-style proxies, Volcengine Ark, vLLM).
    """

    MODEL = "gpt-4o"
    TEMPERATURE = 0.3
    NON_RETRYABLE_ERRORS = _NON_RETRYABLE

    def __init__(self, api_key: str, base_url: str | None = None, **kwargs):
        if _OpenAI is None:
            raise ImportError(
                "The 'openai' package is required for this provider. " "Install it with: pip install openai"
            )
        super().__init__(**kwargs)
        self.client = _OpenAI(api_key=api_key, base_url=base_url)

    def _call_api(self, system_prompt: str, user_prompt: str) -> str | None:
        response = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )
        if not response.choices:
            return None
        return response.choices[0].message.content
