"""OpenAI chat-completion wrapper used by the content transformer.

- One user message per request, optional JSON-object response format
- Per-attempt timeout; retries are left to ``llm.retry``
- Provider injection so tests never touch the network
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

from automation.settings import AutomationSettings
from automation.utils.logging import get_logger

logger = get_logger(__name__)


class LLMError(Exception):
    """Base error for language-model calls."""


class TransientLLMError(LLMError):
    """Temporary failure (retryable)."""


class PermanentLLMError(LLMError):
    """Failure that retrying cannot fix."""


ProviderFn = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]


def _extract_content(resp: Dict[str, Any]) -> str:
    choices = resp.get("choices") or [{}]
    message = choices[0].get("message") or {}
    return message.get("content") or ""


@dataclass(frozen=True)
class OpenAIClient:
    settings: AutomationSettings
    provider: Optional[ProviderFn] = None

    def _get_provider(self) -> ProviderFn:
        if self.provider is not None:
            return self.provider
        if self.settings.openai_api_key is None:
            raise PermanentLLMError("OPENAI_API_KEY is not set")
        try:
            from openai import AsyncOpenAI  # type: ignore
        except Exception as exc:  # pragma: no cover - tests inject a provider
            raise PermanentLLMError("openai library is not installed") from exc

        # Retries are handled by the caller's backoff policy.
        client = AsyncOpenAI(api_key=self.settings.openai_api_key.get_secret_value(), max_retries=0)

        async def _call(payload: Dict[str, Any]) -> Dict[str, Any]:  # pragma: no cover - network
            resp = await client.chat.completions.create(**payload)
            return {
                "choices": [
                    {
                        "message": {"content": resp.choices[0].message.content},
                    }
                ],
                "usage": {
                    "prompt_tokens": getattr(resp.usage, "prompt_tokens", 0),
                    "completion_tokens": getattr(resp.usage, "completion_tokens", 0),
                },
                "model": resp.model,
            }

        return _call

    def _build_payload(self, prompt: str) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": self.settings.llm_model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": float(self.settings.llm_temperature),
            "max_tokens": int(self.settings.llm_max_tokens),
        }
        if self.settings.llm_json_mode:
            payload["response_format"] = {"type": "json_object"}
        return payload

    async def complete(self, prompt: str) -> str:
        """Send one prompt and return the raw text of the first choice."""
        payload = self._build_payload(prompt)
        provider = self._get_provider()
        timeout = float(self.settings.llm_request_timeout_seconds)
        try:
            resp = await asyncio.wait_for(provider(payload), timeout=timeout)
        except asyncio.TimeoutError as exc:
            raise TransientLLMError(f"LLM request timed out after {timeout:g}s") from exc

        content = _extract_content(resp)
        if not content:
            raise TransientLLMError("LLM returned an empty response")
        usage = resp.get("usage") or {}
        logger.debug(
            "llm.completed",
            extra={
                "model": resp.get("model") or self.settings.llm_model,
                "tokens_prompt": int(usage.get("prompt_tokens", 0)),
                "tokens_completion": int(usage.get("completion_tokens", 0)),
                "chars": len(content),
            },
        )
        return content
