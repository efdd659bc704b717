"""Title filters applied to normalized commits after retrieval."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from typing import List, Optional, Pattern

from commit_titles.retrieval.commits import CommitRecord
from commit_titles.retrieval.errors import InvalidPattern

MERGE_RE = re.compile(r"^merge\b", re.IGNORECASE)


def compile_pattern(pattern: Optional[str], name: str) -> Optional[Pattern[str]]:
    """Compile a case-insensitive filter regex, or return None when unset."""
    if not pattern:
        return None
    try:
        return re.compile(pattern, re.IGNORECASE)
    except re.error as exc:
        raise InvalidPattern(f"Invalid regex pattern for --{name}: {exc}") from exc


@dataclass(frozen=True)
class FilterChain:
    """Merge exclusion, then exclude pattern, then include pattern."""

    exclude_merges: bool = False
    exclude_pattern: Optional[Pattern[str]] = None
    include_pattern: Optional[Pattern[str]] = None

    @classmethod
    def build(cls,
              exclude_merges: bool = False,
              exclude_pattern: Optional[str] = None,
              include_pattern: Optional[str] = None) -> "FilterChain":
        return cls(
            exclude_merges=bool(exclude_merges),
            exclude_pattern=compile_pattern(exclude_pattern, "exclude-pattern"),
            include_pattern=compile_pattern(include_pattern, "include-pattern"),
        )

    def apply(self, records: List[CommitRecord], verbose: bool = False) -> List[CommitRecord]:
        items = list(records)

        if self.exclude_merges:
            before = len(items)
            items = [r for r in items if not MERGE_RE.search(r.title or "")]
            if verbose and before != len(items):
                print(f"Excluded {before - len(items)} merge commits", file=sys.stderr)

        if self.exclude_pattern is not None:
            before = len(items)
            items = [r for r in items if not self.exclude_pattern.search(r.title or "")]
            if verbose and before != len(items):
                print(f"Excluded {before - len(items)} commits matching exclude pattern", file=sys.stderr)

        if self.include_pattern is not None:
            before = len(items)
            items = [r for r in items if self.include_pattern.search(r.title or "")]
            if verbose and before != len(items):
                print(f"Included {len(items)} commits matching include pattern", file=sys.stderr)

        return items


__all__ = ["MERGE_RE", "compile_pattern", "FilterChain"]
