from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

_RULES_JSON = Path(__file__).resolve().parent / "keyword_rules.json"
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class KeywordRules:
    """Keyword expansions: a user tag maps to the place types / tokens it implies."""

    avoidance: Mapping[str, tuple[str, ...]]
    interest: Mapping[str, tuple[str, ...]]


def normalize_tag(text: str) -> str:
    return _WHITESPACE.sub(" ", text.strip().lower())


def _freeze(table: dict[str, list[str]]) -> Mapping[str, tuple[str, ...]]:
    return MappingProxyType({
        normalize_tag(tag): tuple(normalize_tag(t) for t in targets)
        for tag, targets in table.items()
    })


def load_keyword_rules(path: Path = _RULES_JSON) -> KeywordRules:
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    return KeywordRules(
        avoidance=_freeze(raw.get("avoidance", {})),
        interest=_freeze(raw.get("interest", {})),
    )


DEFAULT_KEYWORD_RULES = load_keyword_rules()


def _type_overlap(tag: str, types: list[str]) -> bool:
    return any(t in tag or tag in t for t in types)


def matches_avoidance(
    tag: str,
    name: str,
    types: list[str],
    category: str,
    rules: KeywordRules = DEFAULT_KEYWORD_RULES,
) -> bool:
    """
    True when an avoidance tag hits a place.

    Checked in order: substring of the place name, substring overlap with any
    place type, substring overlap with the primary category, then the tag's
    keyword expansion against the exact types and category.
    """
    tag = normalize_tag(tag)
    if not tag:
        return False
    types = [normalize_tag(t) for t in types]
    category = normalize_tag(category)
    if tag in normalize_tag(name):
        return True
    if _type_overlap(tag, types):
        return True
    if category in tag or tag in category:
        return True
    return any(m in types or m == category for m in rules.avoidance.get(tag, ()))


def matches_interest(
    tag: str,
    name: str,
    types: list[str],
    rules: KeywordRules = DEFAULT_KEYWORD_RULES,
) -> bool:
    tag = normalize_tag(tag)
    if not tag:
        return False
    name = normalize_tag(name)
    types = [normalize_tag(t) for t in types]
    if tag in name:
        return True
    if _type_overlap(tag, types):
        return True
    return any(m in types or m in name for m in rules.interest.get(tag, ()))
