"""Aggregate statistics over normalized commits."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, Union

from commit_titles.retrieval.commits import CommitRecord

from .categorize import categorize
from .dates import utc_day

UNKNOWN_AUTHOR = "Unknown"


@dataclass(frozen=True)
class Stats:
    total: int
    by_type: Dict[str, int] = field(default_factory=dict)
    by_author: Dict[str, int] = field(default_factory=dict)
    by_date: Dict[str, int] = field(default_factory=dict)
    # Formatted to one decimal ("1.5"), or the integer 0 with no dated commits.
    average_per_day: Union[str, int] = 0

    def as_dict(self) -> Dict[str, object]:
        return {
            "total": self.total,
            "byType": dict(self.by_type),
            "byAuthor": dict(self.by_author),
            "byDate": dict(self.by_date),
            "averagePerDay": self.average_per_day,
        }


def generate_stats(records: Iterable[CommitRecord]) -> Stats:
    """Count commits by category, author, and UTC day, plus the daily average."""
    items = list(records)
    by_type: Counter = Counter()
    by_author: Counter = Counter()
    by_date: Counter = Counter()

    for record in items:
        by_type[categorize(record.title)] += 1
        by_author[record.author_handle or UNKNOWN_AUTHOR] += 1
        if record.timestamp is not None:
            by_date[utc_day(record.timestamp)] += 1

    active_days = len(by_date)
    average: Union[str, int] = f"{len(items) / active_days:.1f}" if active_days else 0
    return Stats(
        total=len(items),
        by_type=dict(by_type),
        by_author=dict(by_author),
        by_date=dict(by_date),
        average_per_day=average,
    )


__all__ = ["UNKNOWN_AUTHOR", "Stats", "generate_stats"]
