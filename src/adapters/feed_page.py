"""In-memory feed document.

Implements the extractor, presentation and menu ports over plain Python
objects so feeds can be replayed from JSON and the core exercised without a
browser.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional

from core.errors import ExtractionError
from core.models import ChangeBatch, ContentItem, MenuCandidate

LOGGER = logging.getLogger(__name__)

SYNCHRONIZED_MARKERS = ("synchronisiert", "dubbed")


@dataclass(eq=False)
class Badge:
    text: str = ""
    aria_label: str = ""


@dataclass(eq=False)
class CardNode:
    """One video card. Identity-hashed so it can key weak mappings."""

    title: Optional[str] = None
    channel: Optional[str] = None
    description: Optional[str] = None
    badges: List[Badge] = field(default_factory=list)
    # None means the card has no menu button.
    menu_labels: Optional[List[str]] = field(default_factory=list)
    processed: bool = False
    hidden: bool = False
    highlights: List[str] = field(default_factory=list)
    menu_action: Optional[str] = None


@dataclass(eq=False)
class FeedSection:
    """Container node, e.g. a shelf or a continuation chunk."""

    children: List[Any] = field(default_factory=list)


@dataclass(eq=False)
class _MenuEntry:
    card: CardNode
    label: str


def has_synchronized_badge(card: CardNode) -> bool:
    for badge in card.badges:
        text = (badge.text or "").strip().lower()
        aria = (badge.aria_label or "").lower()
        if text in SYNCHRONIZED_MARKERS or any(marker in aria for marker in SYNCHRONIZED_MARKERS):
            return True
    return False


def _walk(node: Any) -> Iterable[CardNode]:
    if isinstance(node, CardNode):
        yield node
    elif isinstance(node, FeedSection):
        for child in node.children:
            yield from _walk(child)


class FeedPage:
    """A document holding cards, a single popup menu and a cancel key."""

    def __init__(self, language: str = "") -> None:
        self.language = language
        self.nodes: List[Any] = []
        self.open_menu_card: Optional[CardNode] = None
        self.menu_opens = 0
        self.cancel_signals = 0

    # --- Document mutation ---

    def append(self, *nodes: Any) -> ChangeBatch:
        self.nodes.extend(nodes)
        return ChangeBatch(added=tuple(nodes))

    def remove(self, node: Any) -> ChangeBatch:
        self.nodes.remove(node)
        return ChangeBatch(removed=(node,))

    def cards(self) -> List[CardNode]:
        return [card for node in self.nodes for card in _walk(node)]

    # --- ExtractorPort ---

    def extract(self, card: CardNode) -> ContentItem:
        if not card.title and not card.channel:
            raise ExtractionError("card has neither title nor channel")
        return ContentItem(
            handle=card,
            title=(card.title or "").strip(),
            channel_name=(card.channel or "").strip(),
            description=(card.description or "").strip(),
            has_suppressed_badge=has_synchronized_badge(card),
        )

    def find_unprocessed_items(self) -> List[ContentItem]:
        items: List[ContentItem] = []
        for card in self.cards():
            if card.processed:
                continue
            try:
                items.append(self.extract(card))
            except ExtractionError as e:
                LOGGER.debug("Skipping card: %s", e)
                self.mark_processed(card)
        return items

    def mark_processed(self, handle: CardNode) -> None:
        handle.processed = True

    def contains_item(self, node: Any) -> bool:
        return any(True for _ in _walk(node))

    def detect_language(self) -> Optional[str]:
        return self.language or None

    # --- PresentationPort ---

    def hide(self, handle: CardNode) -> None:
        handle.hidden = True

    def highlight(self, handle: CardNode, variant: str) -> None:
        handle.highlights.append(variant)

    # --- MenuPort ---

    def find_trigger(self, handle: CardNode) -> Optional[CardNode]:
        if handle.menu_labels is None:
            return None
        return handle

    def toggle_menu(self, trigger: CardNode) -> None:
        if self.open_menu_card is trigger:
            self.open_menu_card = None
            return
        self.open_menu_card = trigger
        self.menu_opens += 1

    def poll_menu_candidates(self) -> List[MenuCandidate]:
        card = self.open_menu_card
        if card is None:
            return []
        return [MenuCandidate(text=label, element=_MenuEntry(card, label)) for label in card.menu_labels or []]

    def invoke_candidate(self, candidate: MenuCandidate) -> None:
        entry: _MenuEntry = candidate.element
        entry.card.menu_action = entry.label
        # Selecting an entry closes the popup.
        self.open_menu_card = None

    def dispatch_cancel_signal(self) -> None:
        self.cancel_signals += 1
        self.open_menu_card = None


def _card_from_mapping(raw: dict) -> CardNode:
    badges = [
        Badge(text=str(b.get("text", "")), aria_label=str(b.get("aria_label", "")))
        for b in raw.get("badges", [])
        if isinstance(b, dict)
    ]
    menu = raw.get("menu", [])
    return CardNode(
        title=raw.get("title"),
        channel=raw.get("channel"),
        description=raw.get("description"),
        badges=badges,
        menu_labels=None if menu is None else [str(label) for label in menu],
    )


def load_feed(path: str) -> tuple[str, List[FeedSection]]:
    """Read a feed file: ``{"language": "en", "sections": [[card, ...], ...]}``."""

    with open(path, "r", encoding="utf-8") as handle:
        raw = json.load(handle)

    if isinstance(raw, list):
        raw = {"sections": raw}
    if not isinstance(raw, dict):
        raise ValueError(f"Expected object or list in {path}")

    sections = [
        FeedSection(children=[_card_from_mapping(card) for card in section if isinstance(card, dict)])
        for section in raw.get("sections", [])
        if isinstance(section, list)
    ]
    return str(raw.get("language") or ""), sections
