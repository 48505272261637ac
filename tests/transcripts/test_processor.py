from __future__ import annotations

import asyncio
import json
import re
from datetime import date

import pytest

from articles.store import ArticleStore
from automation.main import build_processor, prepare_workspace
from transcripts.watcher import TranscriptWatcher

TRANSCRIPT = ("Today on the show we talk about retro consoles and why they keep coming back. " * 26)[:2000]


@pytest.fixture
def workspace(settings, seed_store, existing_post):
    prepare_workspace(settings)
    seed_store([existing_post()])
    return settings


@pytest.fixture
def provider(completion, article_payload):
    calls = []

    async def _provider(payload):
        calls.append(payload)
        await asyncio.sleep(0)
        return completion(json.dumps(article_payload))

    _provider.calls = calls
    return _provider


def _drop(settings, name="episode-12.txt", text=TRANSCRIPT):
    path = settings.watch_dir / name
    path.write_text(text, encoding="utf-8")
    return path


def _posts(settings):
    return json.loads(settings.articles_path.read_text(encoding="utf-8"))["posts"]


@pytest.mark.asyncio
async def test_valid_transcript_becomes_article(workspace, provider):
    settings = workspace
    processor = build_processor(settings, provider=provider)
    source = _drop(settings)

    assert await processor.process_transcript(source) is True

    posts = _posts(settings)
    assert len(posts) == 2
    article = posts[-1]
    assert article["id"] == "007"
    assert article["slug"] == "why-retro-consoles-still-matter"
    assert article["date"] == date.today().isoformat()
    assert article["author"] == "Simply Nerdy"
    assert article["image"] == "https://images.example.com/games.jpg"
    assert len(provider.calls) == 1
    assert TRANSCRIPT in provider.calls[0]["messages"][0]["content"]

    assert not source.exists()
    archived = list(settings.processed_dir.iterdir())
    assert len(archived) == 1
    assert re.fullmatch(r"episode-12-\d{8}-\d{6}\.txt", archived[0].name)
    assert list(settings.failed_dir.iterdir()) == []
    assert len(ArticleStore.from_settings(settings).list_backups()) == 1
    assert processor.in_flight == frozenset()


@pytest.mark.asyncio
async def test_malformed_response_moves_transcript_to_failed(workspace, completion):
    settings = workspace
    before = settings.articles_path.read_bytes()

    async def provider(payload):
        return completion("Sorry, I cannot help with that.")

    processor = build_processor(settings, provider=provider)
    source = _drop(settings)

    assert await processor.process_transcript(source) is False

    assert settings.articles_path.read_bytes() == before
    assert ArticleStore.from_settings(settings).list_backups() == []
    assert not source.exists()
    assert list(settings.processed_dir.iterdir()) == []
    names = sorted(p.name for p in settings.failed_dir.iterdir())
    assert len(names) == 2
    assert re.fullmatch(r"episode-12-\d{8}-\d{6}-FAILED\.error\.txt", names[0])
    assert re.fullmatch(r"episode-12-\d{8}-\d{6}-FAILED\.txt", names[1])
    report = (settings.failed_dir / names[0]).read_text(encoding="utf-8")
    assert report.startswith("Processing Failed: ")
    assert "File: episode-12.txt" in report
    assert "Error: Could not find valid JSON in response" in report
    assert "Stack Trace:" in report


@pytest.mark.asyncio
async def test_short_transcript_fails_without_calling_model(workspace, provider):
    settings = workspace
    processor = build_processor(settings, provider=provider)
    source = _drop(settings, text="too short")

    assert await processor.process_transcript(source) is False

    assert provider.calls == []
    report = next(settings.failed_dir.glob("*.error.txt")).read_text(encoding="utf-8")
    assert "Invalid transcript: Transcript too short" in report


@pytest.mark.asyncio
async def test_article_validation_failure_keeps_store(workspace, completion, article_payload):
    settings = workspace
    before = settings.articles_path.read_bytes()
    article_payload["excerpt"] = "Too short."

    async def provider(payload):
        return completion(json.dumps(article_payload))

    processor = build_processor(settings, provider=provider)
    assert await processor.process_transcript(_drop(settings)) is False

    assert settings.articles_path.read_bytes() == before
    report = next(settings.failed_dir.glob("*.error.txt")).read_text(encoding="utf-8")
    assert "Article validation failed" in report


@pytest.mark.asyncio
async def test_non_transcript_files_are_ignored(workspace, provider):
    settings = workspace
    processor = build_processor(settings, provider=provider)
    notes = _drop(settings, name="notes.md")

    assert await processor.handle_file_added(notes) is False
    assert notes.exists()
    assert provider.calls == []


@pytest.mark.asyncio
async def test_same_path_is_not_processed_twice_at_once(workspace, completion, article_payload):
    settings = workspace
    release = asyncio.Event()
    calls = []

    async def provider(payload):
        calls.append(payload)
        await release.wait()
        return completion(json.dumps(article_payload))

    processor = build_processor(settings, provider=provider)
    source = _drop(settings)

    first = asyncio.create_task(processor.process_transcript(source))
    while not calls:
        await asyncio.sleep(0)
    assert source in processor.in_flight
    assert await processor.process_transcript(source) is False

    release.set()
    assert await first is True
    assert len(calls) == 1
    assert len(_posts(settings)) == 2


@pytest.mark.asyncio
async def test_concurrent_transcripts_get_distinct_ids(workspace, provider):
    settings = workspace
    processor = build_processor(settings, provider=provider)
    first = _drop(settings, name="a.txt")
    second = _drop(settings, name="b.txt")

    results = await asyncio.gather(processor.process_transcript(first), processor.process_transcript(second))

    assert results == [True, True]
    posts = _posts(settings)
    assert [p["id"] for p in posts] == ["006", "007", "008"]
    assert len({p["slug"] for p in posts}) == 3


@pytest.mark.asyncio
async def test_run_processes_dropped_files_until_stopped(workspace, provider):
    settings = workspace
    processor = build_processor(settings, provider=provider)
    watcher = TranscriptWatcher(settings.watch_dir, stability_seconds=0, poll_interval_seconds=0.01)
    stop = asyncio.Event()
    _drop(settings)

    runner = asyncio.create_task(processor.run(watcher, stop))
    for _ in range(200):
        if len(_posts(settings)) == 2:
            break
        await asyncio.sleep(0.01)
    stop.set()
    await asyncio.wait_for(runner, timeout=2)

    assert len(_posts(settings)) == 2
    assert list(settings.watch_dir.iterdir()) == []


@pytest.mark.asyncio
async def test_run_waits_for_cancelled_pipelines_after_grace(make_settings, seed_store):
    settings = make_settings(shutdown_grace_seconds=0)
    prepare_workspace(settings)
    seed_store([])
    started = asyncio.Event()
    unwound = []

    async def provider(payload):
        started.set()
        try:
            await asyncio.Event().wait()
        finally:
            unwound.append(True)

    processor = build_processor(settings, provider=provider)
    watcher = TranscriptWatcher(settings.watch_dir, stability_seconds=0, poll_interval_seconds=0.01)
    stop = asyncio.Event()
    _drop(settings)

    runner = asyncio.create_task(processor.run(watcher, stop))
    await asyncio.wait_for(started.wait(), timeout=2)
    stop.set()
    await asyncio.wait_for(runner, timeout=2)

    assert unwound == [True]
    assert processor.in_flight == frozenset()
    assert _posts(settings) == []
