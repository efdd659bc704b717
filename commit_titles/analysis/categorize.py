"""Conventional-commit categorization of commit titles."""

from __future__ import annotations

import re
from typing import List, Optional, Pattern, Tuple

OTHER = "other"


def _prefix(token: str) -> Pattern[str]:
    return re.compile(rf"^{token}(\([^)]*\))?:", re.IGNORECASE)


CATEGORY_RULES: List[Tuple[Pattern[str], str]] = [
    (_prefix("feat"), "feature"),
    (_prefix("fix"), "bugfix"),
    (_prefix("docs"), "documentation"),
    (_prefix("style"), "style"),
    (_prefix("refactor"), "refactor"),
    (_prefix("test"), "test"),
    (_prefix("chore"), "chore"),
    (_prefix("perf"), "performance"),
    (_prefix("ci"), "ci"),
    (_prefix("build"), "build"),
    (_prefix("revert"), "revert"),
    (re.compile(r"^merge\b", re.IGNORECASE), "merge"),
]

CATEGORIES = [label for _, label in CATEGORY_RULES] + [OTHER]


def categorize(title: Optional[str]) -> str:
    """Return the category label for a commit title; "other" when none match."""
    if not title:
        return OTHER
    for pattern, label in CATEGORY_RULES:
        if pattern.match(title):
            return label
    return OTHER


__all__ = ["CATEGORY_RULES", "CATEGORIES", "OTHER", "categorize"]
