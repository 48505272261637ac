"""LLM module - OpenAI client and retry policy."""

from llm.client.openai_client import (
    LLMError,
    OpenAIClient,
    PermanentLLMError,
    ProviderFn,
    TransientLLMError,
)
from llm.retry import backoff_delays, retry_with_backoff

__all__ = [
    "LLMError",
    "OpenAIClient",
    "PermanentLLMError",
    "ProviderFn",
    "TransientLLMError",
    "backoff_delays",
    "retry_with_backoff",
]
