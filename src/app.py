"""Application entry point for feedlens."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Optional

from art import tprint
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

import settings
from adapters.feed_page import FeedPage, load_feed
from adapters.sqlite_config_store import SQLiteConfigStore
from core.config import InteractionTimings, SchedulerConfig
from core.control import handle_control_message
from core.errors import StorageError
from core.models import ContentItem
from core.processor import FeedProcessor
from core.rules_engine import classify

NAME = "FEEDLENS"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _file_handler(file_cfg: dict) -> RotatingFileHandler:
    path = file_cfg.get("path", "logs/feedlens.log")
    if not os.path.isabs(path):
        path = os.path.join(settings.PROJECT_ROOT, path)
    os.makedirs(os.path.dirname(path), exist_ok=True)

    handler = RotatingFileHandler(
        path,
        maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
        backupCount=int(file_cfg.get("backup_count", 5)),
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT))
    return handler


def _configure_logging(verbose: bool = False) -> None:
    """Console logging through rich, plus an optional rotating log file.

    ``--verbose`` turns console logging on at DEBUG even when the ``logging``
    section is disabled. The core loggers still follow ``debugMode``.
    """

    config = settings.LOGGING or {}
    if not config.get("enabled", False) and not verbose:
        return

    level = getattr(logging, str(config.get("level", "INFO")).upper(), logging.INFO)
    if verbose:
        level = logging.DEBUG

    handlers: list[logging.Handler] = []
    if config.get("console", True) or verbose:
        handlers.append(RichHandler(show_path=False, log_time_format=LOG_DATEFMT))

    file_cfg = config.get("file", {})
    if file_cfg.get("enabled", False):
        handlers.append(_file_handler(file_cfg))

    if handlers:
        logging.basicConfig(level=level, format="%(message)s", handlers=handlers)


async def _open_store() -> SQLiteConfigStore:
    store = SQLiteConfigStore(settings.DB_PATH)
    store.init_db()
    if settings.OPTIONS:
        seeded = await store.seed(settings.OPTIONS)
        logging.getLogger(__name__).info("Seeded %s options into %s", seeded, settings.DB_PATH)
    return store


def _build_processor(page: FeedPage, store: SQLiteConfigStore) -> FeedProcessor:
    return FeedProcessor(
        extractor=page,
        presentation=page,
        menu=page,
        store=store,
        scheduler_config=SchedulerConfig(
            debounce_ms=settings.DEBOUNCE_MS,
            max_pending=settings.MAX_PENDING,
        ),
        timings=InteractionTimings(
            menu_wait_ms=settings.MENU_WAIT_MS,
            poll_interval_ms=settings.POLL_INTERVAL_MS,
            close_delay_ms=settings.CLOSE_DELAY_MS,
            cancel_delay_ms=settings.CANCEL_DELAY_MS,
            hide_delay_ms=settings.HIDE_DELAY_MS,
        ),
    )


def _print_report(console: Console, page: FeedPage, processor: FeedProcessor) -> None:
    table = Table(title="Feed outcome")
    table.add_column("#", justify="right")
    table.add_column("Title")
    table.add_column("Channel")
    table.add_column("Hidden")
    table.add_column("Highlights")
    table.add_column("Menu action")

    for index, card in enumerate(page.cards(), start=1):
        table.add_row(
            str(index),
            card.title or "",
            card.channel or "",
            "yes" if card.hidden else "",
            ", ".join(card.highlights),
            card.menu_action or "",
        )

    console.print(table)
    console.print(
        f"processed={processor.processed_count} blocked={processor.blocked_count} "
        f"menu opens={page.menu_opens} status={processor.status()}"
    )


async def _replay(feed_path: str) -> None:
    logger = logging.getLogger(__name__)
    language, sections = load_feed(feed_path)
    store = await _open_store()
    page = FeedPage(language=language)
    processor = _build_processor(page, store)

    await processor.start()
    logger.info("Replaying %s sections from %s", len(sections), feed_path)

    for section in sections:
        processor.handle_change_batch(page.append(section))
        await asyncio.sleep(settings.REPLAY_INTERVAL_MS / 1000)

    await processor.wait_idle()
    _print_report(Console(), page, processor)


async def _explain(title: str, channel: str, description: str) -> None:
    store = await _open_store()
    processor = _build_processor(FeedPage(), store)
    response = await handle_control_message(processor, {"action": "refreshFilters"})
    console = Console()
    if response and not response.get("success"):
        console.print(f"[yellow]Using default options: {response.get('error')}[/yellow]")

    item = ContentItem(handle=None, title=title, channel_name=channel, description=description)
    verdict = classify(item, processor.rule_set)

    console.print(f"blocked: [bold]{verdict.blocked}[/bold]")
    console.print(f"reason:  {verdict.reason}")
    if verdict.matched_rule_name:
        console.print(f"rule:    {verdict.matched_rule_name}")
    if verdict.match_detail:
        detail = verdict.match_detail
        console.print(f"match:   {detail.field} via {detail.method} ({detail.pattern}): {detail.value}")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="feedlens")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level to the console")
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Replay a feed file through the filter")
    run_parser.add_argument("--feed", required=True, help="Path to a feed JSON file")

    explain_parser = subparsers.add_parser("explain", help="Classify a single card")
    explain_parser.add_argument("--title", default="")
    explain_parser.add_argument("--channel", default="")
    explain_parser.add_argument("--description", default="")

    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        if args.command == "run":
            _print_banner()
            asyncio.run(_replay(args.feed))
        elif args.command == "explain":
            asyncio.run(_explain(args.title, args.channel, args.description))
        else:
            parser.print_help()
    except StorageError as e:
        raise SystemExit(f"Option store error: {e}") from e


if __name__ == "__main__":
    main()
