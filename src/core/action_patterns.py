"""Localized label patterns for the card menu actions."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional

LOGGER = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"

# language -> (not interested, don't recommend channel)
BUTTON_PATTERNS: dict[str, tuple[re.Pattern, re.Pattern]] = {
    "en": (
        re.compile(r"not interested", re.IGNORECASE),
        re.compile(r"don't recommend( this)? channel", re.IGNORECASE),
    ),
    "de": (
        re.compile(r"kein interesse", re.IGNORECASE),
        re.compile(r"keine videos von diesem kanal empfehlen", re.IGNORECASE),
    ),
    "es": (
        re.compile(r"no me interesa", re.IGNORECASE),
        re.compile(r"no recomendar( este)? canal", re.IGNORECASE),
    ),
    "fr": (
        re.compile(r"pas intéressé", re.IGNORECASE),
        re.compile(r"ne pas recommander cette chaîne", re.IGNORECASE),
    ),
    "it": (
        re.compile(r"non mi interessa", re.IGNORECASE),
        re.compile(r"non consigliare questo canale", re.IGNORECASE),
    ),
    "pt": (
        re.compile(r"não tenho interesse|não me interessa", re.IGNORECASE),
        re.compile(r"não recomendar( este| esse)? canal", re.IGNORECASE),
    ),
}


@dataclass(frozen=True)
class ActionPatterns:
    """Active menu label patterns.

    ``primary`` finds the "not interested" entry, ``strict`` the
    "don't recommend channel" entry.
    """

    language: str = DEFAULT_LANGUAGE
    primary: Optional[re.Pattern] = None
    strict: Optional[re.Pattern] = None


def pick_language(preferred: str, detected: Optional[str]) -> str:
    if preferred and preferred in BUTTON_PATTERNS:
        return preferred
    lang = (detected or "").split("-")[0].lower()
    if lang in BUTTON_PATTERNS:
        return lang
    return DEFAULT_LANGUAGE


def _custom(raw: str, label: str) -> Optional[re.Pattern]:
    if not raw:
        return None
    try:
        return re.compile(raw, re.IGNORECASE)
    except re.error as e:
        LOGGER.warning("Invalid custom '%s' pattern %r: %s", label, raw, e)
        return None


def resolve_action_patterns(
    preferred_language: str = "",
    detected_language: Optional[str] = None,
    custom_not_interested: str = "",
    custom_dont_recommend: str = "",
) -> ActionPatterns:
    """Pick label patterns for the page language, then apply custom overrides."""

    language = pick_language(preferred_language, detected_language)
    primary, strict = BUTTON_PATTERNS[language]
    primary = _custom(custom_not_interested, "Not Interested") or primary
    strict = _custom(custom_dont_recommend, "Don't Recommend") or strict

    LOGGER.debug("Action patterns for %s: primary=%s strict=%s", language, primary.pattern, strict.pattern)
    return ActionPatterns(language=language, primary=primary, strict=strict)
