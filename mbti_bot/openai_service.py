from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from openai import APIError, AsyncOpenAI, OpenAIError

from .models import ASSISTANT, USER, Turn

logger = logging.getLogger(__name__)


class OpenAIServiceError(RuntimeError):
    pass


class OpenAIService:
    """Thin async client for an OpenAI-compatible chat-completion endpoint.

    Failures are wrapped in ``OpenAIServiceError`` and never retried here;
    callers decide whether a failed call has a fallback.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        model: str,
        temperature: float = 0.7,
        max_tokens: int = 2000,
    ) -> None:
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url, max_retries=0)
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

    @staticmethod
    def build_messages(system_prompt: str, history: Sequence[Turn]) -> list[dict[str, str]]:
        messages = [{"role": "system", "content": system_prompt}]
        for turn in history:
            role = USER if turn.role == USER else ASSISTANT
            messages.append({"role": role, "content": turn.text})
        return messages

    @staticmethod
    def _extract_text(response: Any) -> str:
        choices = getattr(response, "choices", None) or []
        for choice in choices:
            message = getattr(choice, "message", None)
            content = getattr(message, "content", None)
            if isinstance(content, str) and content.strip():
                return content.strip()
        return ""

    async def complete(self, messages: list[dict[str, str]]) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except APIError as exc:
            status_code = getattr(exc, "status_code", None)
            logger.warning("Chat completion failed (%s, status=%s): %s", exc.__class__.__name__, status_code, exc)
            raise OpenAIServiceError(f"Chat completion request failed: {exc}") from exc
        except OpenAIError as exc:
            logger.warning("Chat completion client error (%s): %s", exc.__class__.__name__, exc)
            raise OpenAIServiceError(f"Chat completion request failed: {exc}") from exc

        text = self._extract_text(response)
        if not text:
            raise OpenAIServiceError("Model returned an empty reply")
        return text

    async def invoke(self, system_prompt: str, history: Sequence[Turn]) -> str:
        return await self.complete(self.build_messages(system_prompt, history))
