"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any host-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Sequence


@dataclass(frozen=True)
class ContentItem:
    """One classifiable card extracted from the host document.

    ``handle`` is opaque to the core; it is only handed back to the
    extractor, presentation and menu collaborators.
    """

    handle: Any
    title: str = ""
    channel_name: str = ""
    description: str = ""
    has_suppressed_badge: bool = False


@dataclass(frozen=True)
class MatchDetail:
    """Where and how a rule matched."""

    field: str
    method: str
    value: str
    pattern: str


@dataclass(frozen=True)
class Verdict:
    """Block/allow decision for one item plus diagnostics."""

    blocked: bool
    reason: str
    matched_rule_name: Optional[str] = None
    match_detail: Optional[MatchDetail] = None
    mark_not_interested: bool = True


@dataclass(frozen=True)
class MenuInteractionResult:
    target_found: bool
    acted: bool = False


@dataclass(frozen=True)
class MenuCandidate:
    """A menu entry visible in the document while a popup is open."""

    text: str
    element: Any = None


@dataclass(frozen=True)
class ChangeBatch:
    """One structure-changed notification from the host."""

    added: Sequence[Any] = field(default_factory=tuple)
    removed: Sequence[Any] = field(default_factory=tuple)


class HighlightVariant:
    """Presentation variants passed to ``PresentationPort.highlight``."""

    BLOCKED_DRY_RUN = "blocked-dry-run"
    SYNCHRONIZED_DRY_RUN_HIDE = "synchronized-dry-run-hide"
    SYNCHRONIZED_DRY_RUN_NOT_INTERESTED = "synchronized-dry-run-notInterested"
    MENU_TARGET_FOUND = "menu-target-found"
    MENU_TARGET_NOT_FOUND = "menu-target-not-found"
