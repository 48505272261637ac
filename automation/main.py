"""Process entry point: watch the inbox and turn transcripts into articles."""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from pathlib import Path
from typing import List, Optional

from articles.store import ArticleStore
from automation.errors import ConfigurationError, PersistenceError
from automation.settings import AutomationSettings, load_settings
from automation.utils.logging import configure_logging, get_logger
from images.unsplash import ImageResolver
from llm.client.openai_client import ProviderFn
from transcripts.processor import TranscriptProcessor
from transcripts.watcher import TranscriptWatcher
from transform.transformer import ContentTransformer

logger = get_logger("automation")


def build_processor(settings: AutomationSettings, provider: Optional[ProviderFn] = None) -> TranscriptProcessor:
    return TranscriptProcessor(
        settings,
        ContentTransformer.from_settings(settings, provider=provider),
        ImageResolver(settings),
        ArticleStore.from_settings(settings),
    )


def prepare_workspace(settings: AutomationSettings) -> None:
    """Create the inbox/archive/backup directories and an empty store if needed."""
    for directory in (settings.watch_dir, settings.processed_dir, settings.failed_dir, settings.backup_dir):
        directory.mkdir(parents=True, exist_ok=True)
    ArticleStore.from_settings(settings).ensure_exists()


async def serve(settings: AutomationSettings, processor: TranscriptProcessor) -> None:
    watcher = TranscriptWatcher(
        settings.watch_dir,
        stability_seconds=float(settings.stability_seconds),
        poll_interval_seconds=float(settings.poll_interval_seconds),
    )
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:  # pragma: no cover - Windows event loops
            pass

    logger.info("automation.started", extra={"watch_dir": str(settings.watch_dir)})
    await processor.run(watcher, stop_event)
    logger.info("automation.stopped")


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="transcript-automation",
        description="Watch a folder for .txt transcripts and publish them as articles.",
    )
    parser.add_argument("--once", type=Path, metavar="TRANSCRIPT", help="Process a single transcript file and exit")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    try:
        settings = load_settings()
    except ConfigurationError as exc:
        configure_logging(args.log_level or "INFO")
        logger.error("automation.config_invalid", extra={"error": str(exc)})
        return 1

    configure_logging(args.log_level or settings.log_level, settings.log_json, settings.log_file)
    if settings.openai_api_key is None:
        logger.error(
            "automation.missing_credential",
            extra={"hint": "OPENAI_API_KEY is not set; add it to the environment or a .env file (see .env.example)"},
        )
        return 1

    try:
        prepare_workspace(settings)
        processor = build_processor(settings)
    except (OSError, PersistenceError, ConfigurationError) as exc:
        logger.error("automation.startup_failed", extra={"error": str(exc)})
        return 1

    if args.once is not None:
        return 0 if asyncio.run(processor.process_transcript(args.once)) else 1

    asyncio.run(serve(settings, processor))
    return 0


if __name__ == "__main__":
    sys.exit(main())
