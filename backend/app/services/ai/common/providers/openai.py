"""OpenAI chat-completions provider."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from .base import BaseProvider, ProviderResult

logger = logging.getLogger(__name__)

OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"


def _reply_text(data: Any) -> str:
    """Content of the first choice; ``ValueError`` when the reply has another shape."""
    if not isinstance(data, dict):
        raise ValueError("OpenAI reply is not a JSON object")
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        raise ValueError("OpenAI reply has no choices")
    message = choices[0].get("message") if isinstance(choices[0], dict) else None
    if not isinstance(message, dict):
        raise ValueError("OpenAI reply choice has no message")
    content = message.get("content")
    if content is None:
        return ""
    if not isinstance(content, str):
        raise ValueError("OpenAI reply content is not text")
    return content


class OpenAIProvider(BaseProvider):
    name = "openai"
    label = "OpenAI"

    def __init__(self, api_key: str, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._api_key = api_key
        self._transport = transport

    async def generate(
        self,
        prompt: str,
        *,
        system_prompt: str | None = None,
        model: str = "",
        temperature: float = 0.3,
        max_tokens: int = 1024,
        timeout_seconds: float = 30.0,
    ) -> ProviderResult:
        model = model or "gpt-4"
        t0 = time.monotonic()

        messages: list[dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        async with httpx.AsyncClient(timeout=timeout_seconds, transport=self._transport) as client:
            resp = await client.post(
                OPENAI_CHAT_URL,
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": model,
                    "max_tokens": max_tokens,
                    "temperature": temperature,
                    "messages": messages,
                },
            )
            resp.raise_for_status()
            data = resp.json()

        elapsed = (time.monotonic() - t0) * 1000
        text = _reply_text(data)
        usage = data.get("usage")
        if not isinstance(usage, dict):
            usage = {}

        return ProviderResult(
            raw_text=text,
            model=data.get("model") or model,
            provider=self.name,
            prompt_tokens=usage.get("prompt_tokens", 0),
            completion_tokens=usage.get("completion_tokens", 0),
            latency_ms=round(elapsed, 2),
        )
