"""Ports (interfaces) used by the core.

Ports define the minimal contracts for the host document, option storage
and timers so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional, Protocol, Sequence

from core.models import ContentItem, MenuCandidate


class ExtractorPort(Protocol):
    """Finds cards in the host document and tracks which were processed."""

    def find_unprocessed_items(self) -> Sequence[ContentItem]:
        ...

    def mark_processed(self, handle: Any) -> None:
        ...

    def contains_item(self, node: Any) -> bool:
        """Return True if ``node`` is, or transitively contains, a card."""
        ...

    def detect_language(self) -> Optional[str]:
        ...


class PresentationPort(Protocol):
    def hide(self, handle: Any) -> None:
        ...

    def highlight(self, handle: Any, variant: str) -> None:
        ...


class MenuPort(Protocol):
    """Primitives of the host's contextual card menu."""

    def find_trigger(self, handle: Any) -> Any:
        """Return the card's menu button, or None if it has none."""
        ...

    def toggle_menu(self, trigger: Any) -> None:
        ...

    def poll_menu_candidates(self) -> Sequence[MenuCandidate]:
        ...

    def invoke_candidate(self, candidate: MenuCandidate) -> None:
        ...

    def dispatch_cancel_signal(self) -> None:
        ...


class ConfigStorePort(Protocol):
    """Option storage; failures raise StorageError."""

    async def load(self, keys: Iterable[str]) -> Mapping[str, Any]:
        ...

    async def save(self, values: Mapping[str, Any]) -> bool:
        ...


class TimerHandle(Protocol):
    def cancel(self) -> None:
        ...
