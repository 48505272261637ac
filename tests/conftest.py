from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Callable, Dict, List

import pytest

ROOT = Path(__file__).resolve().parents[1]

if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from automation.settings import AutomationSettings  # noqa: E402

INSTRUCTIONS = "Posts are appended automatically."


def _existing_post(**overrides: Any) -> Dict[str, Any]:
    post = {
        "id": "006",
        "title": "My Topic Of The Week",
        "slug": "my-topic",
        "date": "2024-05-01",
        "category": "Games",
        "excerpt": "An existing excerpt that is comfortably longer than fifty characters.",
        "content": "<p>" + "Existing article body. " * 8 + "</p>",
        "tags": ["games", "podcast", "review"],
        "author": "Simply Nerdy",
        "image": "https://images.example.com/existing.jpg",
    }
    post.update(overrides)
    return post


@pytest.fixture
def make_settings(tmp_path: Path) -> Callable[..., AutomationSettings]:
    def _make(**overrides: Any) -> AutomationSettings:
        values: Dict[str, Any] = {
            "_env_file": None,
            "openai_api_key": "sk-test-123",
            "llm_model": "gpt-4o-mini",
            "retry_attempts": 3,
            "retry_delay_seconds": 0,
            "unsplash_enabled": False,
            "default_images": {"Games": "https://images.example.com/games.jpg"},
            "watch_dir": tmp_path / "inbox",
            "processed_dir": tmp_path / "processed",
            "failed_dir": tmp_path / "failed",
            "articles_path": tmp_path / "data" / "articles.json",
            "backup_dir": tmp_path / "data" / "backups",
            "max_backups": 3,
            "settle_seconds": 0,
            "stability_seconds": 0,
            "poll_interval_seconds": 0.01,
        }
        values.update(overrides)
        return AutomationSettings(**values)

    return _make


@pytest.fixture
def settings(make_settings) -> AutomationSettings:
    return make_settings()


@pytest.fixture
def existing_post() -> Callable[..., Dict[str, Any]]:
    return _existing_post


@pytest.fixture
def seed_store(settings: AutomationSettings) -> Callable[[List[Dict[str, Any]]], Path]:
    def _seed(posts: List[Dict[str, Any]]) -> Path:
        path = settings.articles_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps({"_instructions": INSTRUCTIONS, "posts": posts}, indent=2), encoding="utf-8")
        return path

    return _seed


@pytest.fixture
def article_payload() -> Dict[str, Any]:
    return {
        "title": "Why Retro Consoles Still Matter",
        "category": "Games",
        "excerpt": "We dig into why decades-old hardware keeps winning new fans every single year.",
        "content": "<p>" + "Retro hardware has a pull that modern platforms struggle to match. " * 4 + "</p>",
        "tags": ["retro", "consoles", "nostalgia"],
        "imageSearchTerms": ["retro console", "arcade"],
    }


@pytest.fixture
def completion() -> Callable[[str], Dict[str, Any]]:
    def _completion(content: str) -> Dict[str, Any]:
        return {
            "choices": [{"message": {"content": content}}],
            "usage": {"prompt_tokens": 1200, "completion_tokens": 400},
            "model": "gpt-4o-mini",
        }

    return _completion
