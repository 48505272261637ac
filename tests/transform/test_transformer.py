from __future__ import annotations

import json
from typing import Any, Dict, List

import pytest

from automation.errors import MissingFieldsError, ResponseParseError, TransformError
from transform.transformer import ContentTransformer

TRANSCRIPT = "Welcome back to the show. " * 20


class _Sleeper:
    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def _transformer(settings, provider, sleeper=None) -> ContentTransformer:
    transformer = ContentTransformer.from_settings(settings, provider=provider)
    transformer._sleep = sleeper or _Sleeper()
    return transformer


@pytest.mark.asyncio
async def test_transform_success(settings, article_payload, completion):
    prompts: List[str] = []

    async def provider(payload: Dict[str, Any]) -> Dict[str, Any]:
        prompts.append(payload["messages"][0]["content"])
        return completion(json.dumps(article_payload))

    draft = await _transformer(settings, provider).transform(TRANSCRIPT)

    assert draft.title == article_payload["title"]
    assert draft.category == "Games"
    assert draft.image_search_terms == ["retro console", "arcade"]
    assert len(prompts) == 1
    assert TRANSCRIPT in prompts[0]


@pytest.mark.asyncio
async def test_transform_retries_call_failures_with_backoff(make_settings, article_payload, completion):
    settings = make_settings(retry_attempts=3, retry_delay_seconds=2, retry_multiplier=2)
    calls = {"n": 0}
    sleeper = _Sleeper()

    async def provider(_: Dict[str, Any]) -> Dict[str, Any]:
        calls["n"] += 1
        if calls["n"] < 3:
            raise ConnectionError("connection reset")
        return completion(json.dumps(article_payload))

    draft = await _transformer(settings, provider, sleeper).transform(TRANSCRIPT)

    assert draft.title == article_payload["title"]
    assert calls["n"] == 3
    assert sleeper.delays == [2.0, 4.0]


@pytest.mark.asyncio
async def test_transform_gives_up_after_max_attempts(make_settings):
    settings = make_settings(retry_attempts=2)
    calls = {"n": 0}

    async def provider(_: Dict[str, Any]) -> Dict[str, Any]:
        calls["n"] += 1
        raise ConnectionError("down")

    with pytest.raises(TransformError, match="down") as excinfo:
        await _transformer(settings, provider).transform(TRANSCRIPT)
    assert calls["n"] == 2
    assert isinstance(excinfo.value.__cause__, ConnectionError)


@pytest.mark.asyncio
async def test_unparsable_response_is_not_retried(settings, completion):
    calls = {"n": 0}

    async def provider(_: Dict[str, Any]) -> Dict[str, Any]:
        calls["n"] += 1
        return completion("Sorry, I can't help with that.")

    with pytest.raises(ResponseParseError):
        await _transformer(settings, provider).transform(TRANSCRIPT)
    assert calls["n"] == 1


@pytest.mark.asyncio
async def test_missing_fields_are_not_retried(settings, completion):
    calls = {"n": 0}

    async def provider(_: Dict[str, Any]) -> Dict[str, Any]:
        calls["n"] += 1
        return completion(json.dumps({"title": "Only a title here"}))

    with pytest.raises(MissingFieldsError) as excinfo:
        await _transformer(settings, provider).transform(TRANSCRIPT)
    assert calls["n"] == 1
    assert excinfo.value.missing == ["category", "excerpt", "content", "tags", "imageSearchTerms"]


@pytest.mark.asyncio
async def test_missing_credential_is_not_retried(make_settings):
    settings = make_settings(openai_api_key=None)
    sleeper = _Sleeper()
    with pytest.raises(TransformError, match="OPENAI_API_KEY"):
        await _transformer(settings, None, sleeper).transform(TRANSCRIPT)
    assert sleeper.delays == []
