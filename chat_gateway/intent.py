"""Keyword rules deciding whether a query should be answered with tools enabled.

Rules are evaluated in order and the first one that matches decides the
verdict.  Personal questions come first so that identity recall ("what's my
name?") never turns into a lookup even when a tool cue is also present.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Pattern, Sequence, Tuple


@dataclass(frozen=True)
class IntentRule:
    name: str
    pattern: Pattern[str]
    verdict: bool
    full_match: bool = False

    def matches(self, text: str) -> bool:
        if self.full_match:
            return self.pattern.fullmatch(text) is not None
        return self.pattern.search(text) is not None


PERSONAL = re.compile(
    r"\b(my name|who am i|how old am i|my age|where do i live|my email)\b", re.IGNORECASE
)
STOCK_CUES = re.compile(
    r"\b(price|quote|stock|share|ticker|trading|market|symbol|usd)\b", re.IGNORECASE
)
# Whole-query match only, so a capitalised word inside a sentence never counts.
TICKERISH = re.compile(r"[A-Z]{1,5}(?:\.[A-Z]{1,3})?", re.IGNORECASE)
SEARCHY = re.compile(
    r"\b(search|look\s*up|find|brave|latest|news|results|articles?)\b", re.IGNORECASE
)
DATE_TIME = re.compile(
    r"\b(what(?:['’]s|\s+is)?\s+the\s+date|today(?:['’]s)?\s+date|current\s+date"
    r"|what\s+day\s+is\s+it|time\s+now|current\s+time)\b",
    re.IGNORECASE,
)
IMAGEY = re.compile(
    r"\b(image|picture|photo|draw|create|generate|illustration)\b", re.IGNORECASE
)

DEFAULT_RULES: Tuple[IntentRule, ...] = (
    IntentRule("personal", PERSONAL, verdict=False),
    IntentRule("stock", STOCK_CUES, verdict=True),
    IntentRule("tickerish", TICKERISH, verdict=True, full_match=True),
    IntentRule("search", SEARCHY, verdict=True),
    IntentRule("datetime", DATE_TIME, verdict=True),
    IntentRule("image", IMAGEY, verdict=True),
)


class IntentClassifier:
    """Decide per query whether the model call should be offered tools."""

    def __init__(self, rules: Sequence[IntentRule] = DEFAULT_RULES) -> None:
        self.rules = tuple(rules)

    def matched_rule(self, query: Optional[str]) -> Optional[IntentRule]:
        """Return the first rule matching the trimmed query, if any."""
        if query is None:
            return None
        text = query.strip()
        if not text:
            return None
        for rule in self.rules:
            if rule.matches(text):
                return rule
        return None

    def classify(self, query: Optional[str]) -> bool:
        rule = self.matched_rule(query)
        return rule.verdict if rule else False


_default_classifier = IntentClassifier()


def needs_tools(query: Optional[str]) -> bool:
    return _default_classifier.classify(query)
