"""Card menu interaction protocol.

Opens a card's contextual menu, looks for the configured action within a
bounded time window, clicks it (or only reports it in dry-run mode) and
makes sure the menu ends up closed.

States: CLOSED -> OPENING -> SEARCHING -> ACTING | CLOSING -> CLOSED
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
import weakref
from typing import Any, Awaitable, Callable, Optional, Sequence

from core.action_patterns import ActionPatterns
from core.config import InteractionTimings
from core.errors import InteractionError
from core.models import HighlightVariant, MenuCandidate, MenuInteractionResult
from core.ports import MenuPort, PresentationPort

LOGGER = logging.getLogger(__name__)


class MenuState(enum.Enum):
    CLOSED = "closed"
    OPENING = "opening"
    SEARCHING = "searching"
    ACTING = "acting"
    CLOSING = "closing"


class InteractionController:
    """Runs the open/search/act/close protocol for one card at a time."""

    def __init__(
        self,
        menu: MenuPort,
        presentation: PresentationPort,
        timings: InteractionTimings = InteractionTimings(),
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._menu = menu
        self._presentation = presentation
        self._timings = timings
        self._sleep = sleep
        self._clock = clock
        self._patterns = ActionPatterns()
        self._use_strict = False
        # Dry-run results; entries vanish together with their handles.
        self._dry_run_results: "weakref.WeakKeyDictionary[Any, bool]" = weakref.WeakKeyDictionary()
        self.state = MenuState.CLOSED

    def configure(self, patterns: ActionPatterns, use_strict_blocking: bool) -> None:
        self._patterns = patterns
        self._use_strict = use_strict_blocking
        self.clear_cache()

    def clear_cache(self) -> None:
        self._dry_run_results.clear()

    def cached_result(self, handle: Any) -> Optional[bool]:
        try:
            return self._dry_run_results.get(handle)
        except TypeError:
            return None

    def _remember(self, handle: Any, found: bool) -> None:
        try:
            self._dry_run_results[handle] = found
        except TypeError:
            LOGGER.debug("Handle %r cannot be weakly referenced, result not cached", handle)

    def _show_outcome(self, handle: Any, found: bool) -> None:
        variant = HighlightVariant.MENU_TARGET_FOUND if found else HighlightVariant.MENU_TARGET_NOT_FOUND
        self._presentation.highlight(handle, variant)

    async def interact(self, handle: Any, dry_run: bool) -> MenuInteractionResult:
        """Run the protocol for one card, including closing the menu. Never raises."""

        if dry_run:
            cached = self.cached_result(handle)
            if cached is not None:
                LOGGER.debug("Using cached menu result: %s", cached)
                self._show_outcome(handle, cached)
                return MenuInteractionResult(target_found=cached)

        trigger = None
        try:
            self.state = MenuState.OPENING
            trigger = self._menu.find_trigger(handle)
            if trigger is None:
                LOGGER.debug("Menu button not found for card")
                self.state = MenuState.CLOSED
                if dry_run:
                    self._remember(handle, False)
                return MenuInteractionResult(target_found=False)

            self._menu.toggle_menu(trigger)

            self.state = MenuState.SEARCHING
            target = await self.find_target()
            found = target is not None

            if dry_run:
                LOGGER.debug("Dry run: menu target %s", "FOUND" if found else "NOT FOUND")
                self._remember(handle, found)
                self._show_outcome(handle, found)
                # Without a real click the menu stays open.
                await self._close_menu(trigger)
                return MenuInteractionResult(target_found=found)

            if found:
                self.state = MenuState.ACTING
                LOGGER.debug("Clicking menu entry %r", target.text)
                self._menu.invoke_candidate(target)
                # The host closes its menu after an entry is selected.
                self.state = MenuState.CLOSED
                return MenuInteractionResult(target_found=True, acted=True)

            LOGGER.debug("Menu target not found after opening menu")
            await self._close_menu(trigger)
            return MenuInteractionResult(target_found=False)
        except Exception as e:
            LOGGER.warning("%s", InteractionError(f"menu interaction failed: {e}"))
            if dry_run:
                self._remember(handle, False)
            await self._close_menu(trigger)
            return MenuInteractionResult(target_found=False)


    def select_target(self, candidates: Sequence[MenuCandidate]) -> Optional[MenuCandidate]:
        """Pick the strict action if enabled and present, else the primary one."""

        if self._use_strict and self._patterns.strict is not None:
            for candidate in candidates:
                if self._patterns.strict.search(candidate.text or ""):
                    return candidate
        if self._patterns.primary is not None:
            for candidate in candidates:
                if self._patterns.primary.search(candidate.text or ""):
                    return candidate
        return None

    async def find_target(self) -> Optional[MenuCandidate]:
        """Poll for menu entries until a target shows up or the wait expires."""

        timeout = self._timings.menu_wait_ms / 1000
        interval = self._timings.poll_interval_ms / 1000
        started = self._clock()
        while True:
            candidates = self._menu.poll_menu_candidates()
            if candidates:
                target = self.select_target(candidates)
                if target is not None:
                    return target
            if self._clock() - started > timeout:
                LOGGER.debug("Timeout waiting for menu entry")
                return None
            await self._sleep(interval)

    async def _close_menu(self, trigger: Any) -> None:
        """Toggle the menu button again, then send a cancel signal as fallback.

        Best effort: host failures are logged and swallowed. The next card's
        protocol only starts once this has finished.
        """

        self.state = MenuState.CLOSING
        await self._sleep(self._timings.close_delay_ms / 1000)
        if trigger is not None:
            try:
                self._menu.toggle_menu(trigger)
            except Exception:
                LOGGER.debug("Closing menu via its button failed", exc_info=True)

        await self._sleep(self._timings.cancel_delay_ms / 1000)
        try:
            self._menu.dispatch_cancel_signal()
        except Exception:
            LOGGER.debug("Cancel signal failed", exc_info=True)
        self.state = MenuState.CLOSED

