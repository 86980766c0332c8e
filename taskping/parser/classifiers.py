"""Keyword classifiers for priority, category and tags."""

import re

from taskping.db.models import Category, Priority
from taskping.parser.patterns import CATEGORY_RULES, PRIORITY_RULES, TAG_PATTERN
from taskping.utils.constants import DEFAULT_CATEGORY, DEFAULT_PRIORITY


def _first_match(rules: list[tuple[re.Pattern, str]], text: str) -> tuple[re.Match, str] | None:
    for pattern, result in rules:
        match = pattern.search(text)
        if match:
            return match, result
    return None


def detect_priority(text: str) -> Priority:
    """Priority level named in the text, medium if none."""
    found = _first_match(PRIORITY_RULES, text)
    return found[1] if found else DEFAULT_PRIORITY  # type: ignore[return-value]


def detect_category(text: str) -> Category:
    """Category suggested by keywords in the text, personal if none."""
    found = _first_match(CATEGORY_RULES, text)
    return found[1] if found else DEFAULT_CATEGORY  # type: ignore[return-value]


def extract_tags(text: str) -> list[str]:
    """All #tags, lower-cased, de-duplicated in order of first appearance."""
    tags: list[str] = []
    for match in TAG_PATTERN.finditer(text):
        tag = match.group(1).lower()
        if tag not in tags:
            tags.append(tag)
    return tags


def strip_priority_cue(text: str) -> str:
    """Remove the phrase that set the priority."""
    found = _first_match(PRIORITY_RULES, text)
    if not found:
        return text
    match = found[0]
    return text[:match.start()] + ' ' + text[match.end():]


def strip_tags(text: str) -> str:
    return TAG_PATTERN.sub(' ', text)
