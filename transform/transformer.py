"""Transcript to article draft via the language model."""

from __future__ import annotations

import asyncio
from typing import Optional

from articles.models.domain import ArticleDraft
from automation.errors import TransformError
from automation.settings import AutomationSettings
from automation.utils.logging import get_logger
from llm.client.openai_client import OpenAIClient, PermanentLLMError, ProviderFn
from llm.retry import SleepFn, retry_with_backoff
from transform.parsing import parse_api_response, validate_api_response
from transform.prompts.templates import build_article_prompt, load_prompt_template

logger = get_logger(__name__)


class ContentTransformer:
    """Builds the prompt, calls the model with backoff, and validates the answer.

    Only the model call is retried. A response that cannot be parsed or lacks
    fields fails immediately.
    """

    def __init__(
        self,
        settings: AutomationSettings,
        client: OpenAIClient,
        template: str,
        *,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.settings = settings
        self.client = client
        self.template = template
        self._sleep = sleep

    @classmethod
    def from_settings(
        cls,
        settings: AutomationSettings,
        provider: Optional[ProviderFn] = None,
    ) -> "ContentTransformer":
        client = OpenAIClient(settings, provider=provider)
        return cls(settings, client, load_prompt_template(settings.prompt_template_path))

    async def transform(self, transcript: str) -> ArticleDraft:
        prompt = build_article_prompt(transcript, self.template, self.settings.categories)
        logger.info(
            "transform.request",
            extra={"chars": len(transcript), "model": self.settings.llm_model},
        )
        try:
            text = await retry_with_backoff(
                lambda: self.client.complete(prompt),
                max_attempts=int(self.settings.retry_attempts),
                delay_seconds=float(self.settings.retry_delay_seconds),
                multiplier=float(self.settings.retry_multiplier),
                give_up_on=(PermanentLLMError,),
                sleep=self._sleep,
                label="llm.complete",
            )
        except Exception as exc:
            raise TransformError(f"Failed to transform transcript: {exc}") from exc

        logger.debug("transform.response", extra={"chars": len(text)})
        data = parse_api_response(text)
        draft = validate_api_response(
            data,
            categories=self.settings.categories,
            default_category=self.settings.default_category,
        )
        logger.info("transform.done", extra={"title": draft.title, "category": draft.category})
        return draft
