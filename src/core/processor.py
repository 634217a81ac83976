"""Core classification pass.

This module is host-agnostic. It only relies on ports for the document,
presentation, menu and option storage, enabling other adapters without
changes here.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from typing import Any, Awaitable, Callable, Optional

from core.action_patterns import ActionPatterns, resolve_action_patterns
from core.config import (
    OPTION_KEYS,
    FilterConfig,
    InteractionTimings,
    SchedulerConfig,
    SynchronizedAction,
    filter_config_from_mapping,
)
from core.errors import ExtractionError, StorageError
from core.interaction import InteractionController
from core.models import ChangeBatch, ContentItem, HighlightVariant, Verdict
from core.ports import ConfigStorePort, ExtractorPort, MenuPort, PresentationPort
from core.rules_engine import RuleSet, build_rule_set, classify
from core.scheduler import CallLater, ChangeScheduler, SchedulerState

LOGGER = logging.getLogger(__name__)

_DEBUG_LOGGERS = ("core", "adapters")


class FeedProcessor:
    """Orchestrates scheduling, classification, presentation and menu actions."""

    def __init__(
        self,
        extractor: ExtractorPort,
        presentation: PresentationPort,
        menu: MenuPort,
        store: ConfigStorePort,
        scheduler_config: SchedulerConfig = SchedulerConfig(),
        timings: InteractionTimings = InteractionTimings(),
        call_later: Optional[CallLater] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        active: bool = True,
    ) -> None:
        self._extractor = extractor
        self._presentation = presentation
        self._store = store
        self._timings = timings
        self._sleep = sleep
        self.config = FilterConfig()
        self.rule_set = RuleSet()
        self.patterns = ActionPatterns()
        self.interaction = InteractionController(menu, presentation, timings, sleep=sleep, clock=clock)
        self.scheduler = ChangeScheduler(
            extractor,
            self.request_pass,
            config=scheduler_config,
            call_later=call_later,
            active=active,
        )
        self.processed_count = 0
        self.blocked_count = 0
        self._running = False
        self._rerun_requested = False
        self._pass_tasks: set[asyncio.Task] = set()

    @property
    def is_active(self) -> bool:
        return self.scheduler.active

    @property
    def dry_run(self) -> bool:
        return self.config.dry_run

    # --- Configuration ---

    async def load_configuration(self) -> bool:
        """Reload options from the store and recompile rules.

        On storage failure the last-known configuration stays in place.
        """

        try:
            data = await self._store.load(OPTION_KEYS)
        except StorageError as e:
            LOGGER.error("Error loading configuration: %s", e)
            return False

        self.apply_configuration(filter_config_from_mapping(data))
        return True

    def apply_configuration(self, config: FilterConfig) -> None:
        level = logging.DEBUG if config.debug_mode else logging.INFO
        for name in _DEBUG_LOGGERS:
            logging.getLogger(name).setLevel(level)

        self.config = config
        self.rule_set = build_rule_set(
            config.blacklist,
            config.whitelist,
            use_blacklist=config.use_blacklist,
            use_whitelist=config.use_whitelist,
        )
        try:
            detected = self._extractor.detect_language()
        except Exception:
            LOGGER.debug("Error detecting page language", exc_info=True)
            detected = None
        self.patterns = resolve_action_patterns(
            config.youtube_language,
            detected,
            config.custom_not_interested_pattern,
            config.custom_dont_recommend_pattern,
        )
        self.interaction.configure(self.patterns, config.use_strict_blocking)

        LOGGER.debug(
            "Configuration loaded: dryrun=%s blacklist=%s/%s whitelist=%s/%s language=%s",
            config.dry_run,
            config.use_blacklist,
            len(self.rule_set.blacklist),
            config.use_whitelist,
            len(self.rule_set.whitelist),
            self.patterns.language,
        )

    async def start(self) -> None:
        """Load options and run the initial pass."""

        await self.load_configuration()
        await self.run_pass()

    def set_dry_run(self, value: bool) -> None:
        if self.config.dry_run and not value:
            self.interaction.clear_cache()
        self.config = dataclasses.replace(self.config, dry_run=bool(value))
        LOGGER.debug("Dry run mode %s", "enabled" if value else "disabled")

    # --- Scheduling ---

    def handle_change_batch(self, batch: ChangeBatch) -> None:
        self.scheduler.handle_change_batch(batch)

    def set_visibility(self, visible: bool) -> None:
        self.scheduler.set_active(visible)

    def request_pass(self) -> None:
        """Schedule a pass on the running loop."""

        task = asyncio.get_running_loop().create_task(self.run_pass())
        self._pass_tasks.add(task)
        task.add_done_callback(self._pass_tasks.discard)

    async def wait_idle(self) -> None:
        """Flush pending triggers and wait for the resulting passes."""

        while True:
            self.scheduler.flush()
            if self._pass_tasks:
                await asyncio.gather(*list(self._pass_tasks))
                continue
            if self.scheduler.state is not SchedulerState.PENDING:
                return

    # --- Classification ---

    async def run_pass(self) -> None:
        """Classify every card not seen before. Never raises."""

        if not self.is_active:
            LOGGER.debug("Pass skipped: context is inactive")
            return
        if self._running:
            # A pass is still waiting on menu interactions.
            self._rerun_requested = True
            return

        self._running = True
        try:
            while True:
                self._rerun_requested = False
                await self._run_once()
                if not self._rerun_requested or not self.is_active:
                    break
        finally:
            self._running = False

    async def _run_once(self) -> None:
        started = time.perf_counter()
        try:
            items = list(self._extractor.find_unprocessed_items())
        except Exception:
            LOGGER.exception("Failed to enumerate cards")
            return
        if not items:
            return

        LOGGER.debug("Found %s new cards to filter", len(items))
        processed = blocked = 0
        for item in items:
            try:
                self._extractor.mark_processed(item.handle)
                processed += 1
                if await self._process_item(item):
                    blocked += 1
            except ExtractionError as e:
                LOGGER.debug("Skipping card: %s", e)
            except Exception:
                LOGGER.exception("Unexpected error while filtering a card")

        self.processed_count += processed
        self.blocked_count += blocked
        LOGGER.debug(
            "Filtering pass complete: %s/%s new cards blocked (%.1fms)",
            blocked,
            processed,
            (time.perf_counter() - started) * 1000,
        )

    async def _process_item(self, item: ContentItem) -> bool:
        if self.config.filter_synchronized_videos and item.has_suppressed_badge:
            action = self.config.synchronized_video_action
            LOGGER.debug("Card has synchronized badge, applying action %s", action)
            if action == SynchronizedAction.NOTHING:
                return False
            await self._apply_synchronized_action(item, action)
            return True

        verdict = classify(item, self.rule_set)
        if not verdict.blocked:
            return False
        await self._apply_blocking(item, verdict)
        return True

    def _wants_interaction(self, verdict: Optional[Verdict] = None) -> bool:
        if verdict is not None and not verdict.mark_not_interested:
            return False
        return self.config.use_strict_blocking or self.patterns.primary is not None

    async def _apply_blocking(self, item: ContentItem, verdict: Verdict) -> None:
        if self.config.dry_run:
            self._presentation.highlight(item.handle, HighlightVariant.BLOCKED_DRY_RUN)
            if self._wants_interaction(verdict):
                await self.interaction.interact(item.handle, dry_run=True)
            return

        if self._wants_interaction(verdict):
            await self.interaction.interact(item.handle, dry_run=False)
            await self._hide_later(item)
        else:
            self._presentation.hide(item.handle)

    async def _apply_synchronized_action(self, item: ContentItem, action: str) -> None:
        if action == SynchronizedAction.HIDE:
            if self.config.dry_run:
                self._presentation.highlight(item.handle, HighlightVariant.SYNCHRONIZED_DRY_RUN_HIDE)
            else:
                self._presentation.hide(item.handle)
            return

        if self.config.dry_run:
            self._presentation.highlight(item.handle, HighlightVariant.SYNCHRONIZED_DRY_RUN_NOT_INTERESTED)
            await self.interaction.interact(item.handle, dry_run=True)
        else:
            await self.interaction.interact(item.handle, dry_run=False)
            await self._hide_later(item)

    async def _hide_later(self, item: ContentItem) -> None:
        # Menus need a moment to close before their card disappears.
        await self._sleep(self._timings.hide_delay_ms / 1000)
        if not self.is_active:
            LOGGER.debug("Context became inactive, not hiding card")
            return
        self._presentation.hide(item.handle)

    def status(self) -> dict[str, bool]:
        return {
            "isActive": self.is_active,
            "dryrun": self.config.dry_run,
            "useBlacklist": self.config.use_blacklist,
            "useWhitelist": self.config.use_whitelist,
        }
