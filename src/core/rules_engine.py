"""Rule compilation and matching logic (core domain)."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Tuple

from core.errors import ConfigurationError
from core.models import ContentItem, MatchDetail, Verdict

LOGGER = logging.getLogger(__name__)

SNIPPET_CHARS = 100

# Fields checked for every rule, in priority order.
_FIELDS = (
    ("title", "on_title", "title"),
    ("channel", "on_channel_name", "channel_name"),
    ("description", "on_description", "description"),
)


@dataclass(frozen=True)
class Rule:
    """Compiled rule used by the classifier."""

    name: str
    pattern: Optional[re.Pattern]
    keywords: Tuple[str, ...]
    keyword_patterns: Tuple[re.Pattern, ...]
    enabled: bool = True
    on_title: bool = True
    on_description: bool = True
    on_channel_name: bool = True
    mark_not_interested: bool = True


@dataclass(frozen=True)
class RuleSet:
    """Blacklist and whitelist, each with its own switch."""

    blacklist: Tuple[Rule, ...] = ()
    whitelist: Tuple[Rule, ...] = ()
    use_blacklist: bool = True
    use_whitelist: bool = False


def _decode_entry(entry: Any, index: int) -> dict:
    if isinstance(entry, str):
        try:
            entry = json.loads(entry)
        except ValueError as e:
            raise ConfigurationError(f"rule #{index + 1} is not valid JSON: {e}") from e
    if not isinstance(entry, dict):
        raise ConfigurationError(f"rule #{index + 1} is not an object")
    return entry


def parse_rule_list(raw_list: Any) -> List[dict]:
    """Validate a stored rule list and normalize every entry.

    Entries may be mappings or JSON-encoded strings. Broken entries are
    logged and dropped; missing flags default to true and a missing name
    becomes ``Rule <n>``.
    """

    if not isinstance(raw_list, (list, tuple)):
        return []

    parsed: List[dict] = []
    for index, entry in enumerate(raw_list):
        try:
            rule = _decode_entry(entry, index)
        except ConfigurationError as e:
            LOGGER.warning("Skipping rule: %s", e)
            continue

        keywords = rule.get("keywords")
        if not isinstance(keywords, (list, tuple)):
            keywords = []

        parsed.append(
            {
                "name": str(rule.get("name") or f"Rule {index + 1}"),
                "pattern": rule.get("pattern") or "",
                "keywords": [k for k in keywords if isinstance(k, str) and k.strip()],
                "enabled": rule.get("enabled", True) is not False,
                "onTitle": rule.get("onTitle", True) is not False,
                "onDescription": rule.get("onDescription", True) is not False,
                "onChannelName": rule.get("onChannelName", True) is not False,
                "markNotInterested": rule.get("markNotInterested", True) is not False,
            }
        )
    return parsed


def _compile_pattern(raw: Any, rule_name: str) -> Optional[re.Pattern]:
    if not raw or not isinstance(raw, str):
        return None
    try:
        return re.compile(raw, re.IGNORECASE)
    except re.error as e:
        LOGGER.warning("%s", ConfigurationError(f"invalid pattern in rule '{rule_name}': {raw} ({e})"))
        return None


def _keyword_pattern(keyword: str) -> re.Pattern:
    # Whole word, allowing a plain plural ("spider" matches "Spiders").
    escaped = re.escape(keyword.strip().lower())
    return re.compile(rf"\b{escaped}(?:s|es)?\b", re.IGNORECASE)


def build_rules(rules_config: Iterable[Any]) -> List[Rule]:
    """Normalize rule configs and compile regex patterns.

    This keeps per-item matching minimal; an invalid pattern leaves the rule
    without one instead of failing the whole list.
    """

    compiled: List[Rule] = []
    for rule in parse_rule_list(list(rules_config)):
        keywords = tuple(k.strip() for k in rule["keywords"])
        compiled.append(
            Rule(
                name=rule["name"],
                pattern=_compile_pattern(rule["pattern"], rule["name"]),
                keywords=keywords,
                keyword_patterns=tuple(_keyword_pattern(k) for k in keywords),
                enabled=rule["enabled"],
                on_title=rule["onTitle"],
                on_description=rule["onDescription"],
                on_channel_name=rule["onChannelName"],
                mark_not_interested=rule["markNotInterested"],
            )
        )
    return compiled


def build_rule_set(
    blacklist: Iterable[Any],
    whitelist: Iterable[Any],
    use_blacklist: bool = True,
    use_whitelist: bool = False,
) -> RuleSet:
    return RuleSet(
        blacklist=tuple(build_rules(blacklist)),
        whitelist=tuple(build_rules(whitelist)),
        use_blacklist=use_blacklist,
        use_whitelist=use_whitelist,
    )


def truncate_snippet(value: str, limit: int = SNIPPET_CHARS) -> str:
    if len(value) > limit:
        return value[:limit] + "..."
    return value


def match_field(text: str, rule: Rule, field_name: str = "") -> Optional[MatchDetail]:
    """Match one field against a rule.

    The pattern is tried on the raw text first, then the whole-word keyword
    patterns on the lower-cased text.
    """

    if rule.pattern is not None and rule.pattern.search(text):
        return MatchDetail(
            field=field_name,
            method="pattern",
            value=truncate_snippet(text),
            pattern=rule.pattern.pattern,
        )

    lowered = text.lower()
    for keyword_pattern in rule.keyword_patterns:
        if keyword_pattern.search(lowered):
            return MatchDetail(
                field=field_name,
                method="keyword",
                value=truncate_snippet(text),
                pattern=keyword_pattern.pattern,
            )
    return None


def match_rule(item: ContentItem, rule: Rule) -> Optional[MatchDetail]:
    """Return the first field match (title, channel, description) or None."""

    for field_name, flag, attribute in _FIELDS:
        if not getattr(rule, flag):
            continue
        detail = match_field(getattr(item, attribute) or "", rule, field_name)
        if detail:
            return detail
    return None


def _first_match(item: ContentItem, rules: Iterable[Rule]) -> Tuple[Optional[Rule], Optional[MatchDetail]]:
    for rule in rules:
        if not rule.enabled:
            continue
        detail = match_rule(item, rule)
        if detail:
            return rule, detail
    return None, None


def classify(item: ContentItem, rule_set: RuleSet) -> Verdict:
    """Decide whether an item is blocked.

    Decision order:
    - no list enabled: allow
    - whitelist enabled and matched: allow (overrides the blacklist)
    - blacklist enabled and matched: block, citing the first matching rule
    - whitelist only and no whitelist match: block (default deny)
    - otherwise allow
    """

    if not rule_set.use_blacklist and not rule_set.use_whitelist:
        return Verdict(blocked=False, reason="no filter lists active")

    black_rule: Optional[Rule] = None
    black_detail: Optional[MatchDetail] = None
    if rule_set.use_blacklist and rule_set.blacklist:
        black_rule, black_detail = _first_match(item, rule_set.blacklist)

    white_rule: Optional[Rule] = None
    white_detail: Optional[MatchDetail] = None
    if rule_set.use_whitelist and rule_set.whitelist:
        # With both lists active every whitelist rule is evaluated.
        for rule in rule_set.whitelist:
            if not rule.enabled:
                continue
            detail = match_rule(item, rule)
            if detail and white_rule is None:
                white_rule, white_detail = rule, detail
                if not rule_set.use_blacklist:
                    break

    if rule_set.use_whitelist and white_rule is not None:
        verdict = Verdict(
            blocked=False,
            reason="whitelisted",
            matched_rule_name=white_rule.name,
            match_detail=white_detail,
        )
    elif rule_set.use_blacklist and black_rule is not None:
        verdict = Verdict(
            blocked=True,
            reason=f'blacklisted by "{black_rule.name}"',
            matched_rule_name=black_rule.name,
            match_detail=black_detail,
            mark_not_interested=black_rule.mark_not_interested,
        )
    elif rule_set.use_whitelist and not rule_set.use_blacklist:
        verdict = Verdict(blocked=True, reason="not on whitelist")
    else:
        verdict = Verdict(blocked=False, reason="not on any list")

    if verdict.blocked or verdict.matched_rule_name:
        LOGGER.debug(
            "%s: %s (title=%r, channel=%r, detail=%s)",
            "Blocking" if verdict.blocked else "Accepting",
            verdict.reason,
            item.title,
            item.channel_name,
            verdict.match_detail,
        )
    return verdict
