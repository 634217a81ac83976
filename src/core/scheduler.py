"""Debounced scheduling of classification passes.

Turns a high-frequency stream of change batches into a bounded-rate stream
of "run a pass now" triggers:

- only batches that add a card (or a node containing one) count
- each relevant batch restarts the debounce timer
- reaching ``max_pending`` relevant batches fires immediately
- while suspended nothing fires; resuming fires once right away
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import Any, Callable, Optional

from core.config import SchedulerConfig
from core.models import ChangeBatch
from core.ports import ExtractorPort, TimerHandle

LOGGER = logging.getLogger(__name__)

CallLater = Callable[[float, Callable[[], None]], TimerHandle]


def _loop_call_later(delay: float, callback: Callable[[], None]) -> TimerHandle:
    return asyncio.get_running_loop().call_later(delay, callback)


class SchedulerState(enum.Enum):
    IDLE = "idle"
    PENDING = "pending"
    SUSPENDED = "suspended"


class ChangeScheduler:
    """Coalesces relevant change batches into classification triggers."""

    def __init__(
        self,
        extractor: ExtractorPort,
        on_trigger: Callable[[], None],
        config: SchedulerConfig = SchedulerConfig(),
        call_later: Optional[CallLater] = None,
        active: bool = True,
    ) -> None:
        self._extractor = extractor
        self._on_trigger = on_trigger
        self._config = config
        self._call_later = call_later or _loop_call_later
        self._timer: Optional[TimerHandle] = None
        self.pending_count = 0
        self.state = SchedulerState.IDLE if active else SchedulerState.SUSPENDED

    @property
    def active(self) -> bool:
        return self.state is not SchedulerState.SUSPENDED

    def is_relevant(self, batch: ChangeBatch) -> bool:
        """Return True if the batch adds at least one card. Removals are ignored."""

        for node in batch.added:
            if self._extractor.contains_item(node):
                return True
        return False

    def handle_change_batch(self, batch: ChangeBatch) -> None:
        if self.state is SchedulerState.SUSPENDED:
            return
        try:
            relevant = self.is_relevant(batch)
        except Exception:
            LOGGER.exception("Relevance check failed, dropping change batch")
            return
        if not relevant:
            return

        self.pending_count += 1
        self._cancel_timer()

        if self.pending_count >= self._config.max_pending:
            LOGGER.debug("Max pending changes reached, triggering immediately")
            self._fire()
            return

        self.state = SchedulerState.PENDING
        self._timer = self._call_later(self._config.debounce_ms / 1000, self._on_timer)

    def set_active(self, active: bool) -> None:
        """Suspend on inactive, fire once on the transition back to active."""

        if not active:
            if self.state is not SchedulerState.SUSPENDED:
                LOGGER.debug("Context inactive, cancelling pending trigger")
            self._cancel_timer()
            self.pending_count = 0
            self.state = SchedulerState.SUSPENDED
            return

        if self.state is SchedulerState.SUSPENDED:
            LOGGER.debug("Context active again, triggering immediately")
            self._fire()

    def flush(self) -> bool:
        """Fire a pending trigger now. Returns True if one was pending."""

        if self.state is not SchedulerState.PENDING:
            return False
        self._cancel_timer()
        self._fire()
        return True

    def _on_timer(self) -> None:
        self._timer = None
        LOGGER.debug("Debounce timer expired, triggering")
        self._fire()

    def _fire(self) -> None:
        self.pending_count = 0
        self.state = SchedulerState.IDLE
        self._on_trigger()

    def _cancel_timer(self) -> None:
        timer: Any = self._timer
        self._timer = None
        if timer is not None:
            timer.cancel()
