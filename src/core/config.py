"""Core configuration dataclasses.

We keep option storage outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

LOGGER = logging.getLogger(__name__)


class SynchronizedAction:
    """Actions for cards carrying a synchronized (dubbed) badge."""

    HIDE = "hide"
    NOT_INTERESTED = "notInterested"
    NOTHING = "nothing"

    ALL = (HIDE, NOT_INTERESTED, NOTHING)


# Keys understood by the core and the value used when a key is absent.
OPTION_DEFAULTS: dict[str, Any] = {
    "useBlacklist": True,
    "useWhitelist": False,
    "blacklist": [],
    "whitelist": [],
    "youtubeLanguage": "",
    "debugMode": False,
    "dryrun": True,
    "useStrictBlocking": False,
    "customNotInterestedPattern": "",
    "customDontRecommendPattern": "",
    "filterSynchronizedVideos": False,
    "synchronizedVideoAction": SynchronizedAction.HIDE,
}

OPTION_KEYS = tuple(OPTION_DEFAULTS)


@dataclass(frozen=True)
class FilterConfig:
    """User-facing filter options after defaults have been applied.

    Rule lists are kept raw here; compilation happens in the rules engine.
    """

    use_blacklist: bool = True
    use_whitelist: bool = False
    blacklist: tuple = ()
    whitelist: tuple = ()
    youtube_language: str = ""
    debug_mode: bool = False
    dry_run: bool = True
    use_strict_blocking: bool = False
    custom_not_interested_pattern: str = ""
    custom_dont_recommend_pattern: str = ""
    filter_synchronized_videos: bool = False
    synchronized_video_action: str = SynchronizedAction.HIDE


def _option(data: Mapping[str, Any], key: str) -> Any:
    value = data.get(key)
    if value is None:
        return OPTION_DEFAULTS[key]
    return value


def _raw_list(value: Any) -> tuple:
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return ()


def filter_config_from_mapping(data: Mapping[str, Any]) -> FilterConfig:
    """Build a FilterConfig from stored option values.

    Absent keys fall back to ``OPTION_DEFAULTS``.
    """

    action = str(_option(data, "synchronizedVideoAction"))
    if action not in SynchronizedAction.ALL:
        LOGGER.warning("Unknown synchronizedVideoAction %r, using %r", action, SynchronizedAction.HIDE)
        action = SynchronizedAction.HIDE

    return FilterConfig(
        use_blacklist=bool(_option(data, "useBlacklist")),
        use_whitelist=bool(_option(data, "useWhitelist")),
        blacklist=_raw_list(_option(data, "blacklist")),
        whitelist=_raw_list(_option(data, "whitelist")),
        youtube_language=str(_option(data, "youtubeLanguage") or ""),
        debug_mode=bool(_option(data, "debugMode")),
        dry_run=bool(_option(data, "dryrun")),
        use_strict_blocking=bool(_option(data, "useStrictBlocking")),
        custom_not_interested_pattern=str(_option(data, "customNotInterestedPattern") or ""),
        custom_dont_recommend_pattern=str(_option(data, "customDontRecommendPattern") or ""),
        filter_synchronized_videos=bool(_option(data, "filterSynchronizedVideos")),
        synchronized_video_action=action,
    )


@dataclass(frozen=True)
class SchedulerConfig:
    """Debounce settings for the change scheduler."""

    debounce_ms: int = 250
    max_pending: int = 5


@dataclass(frozen=True)
class InteractionTimings:
    """Timings (milliseconds) of the menu interaction protocol."""

    menu_wait_ms: int = 300
    poll_interval_ms: int = 50
    close_delay_ms: int = 100
    cancel_delay_ms: int = 50
    hide_delay_ms: int = 150
