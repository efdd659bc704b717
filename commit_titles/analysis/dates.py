"""Date expression parsing and range normalization for commit queries."""

from __future__ import annotations

import datetime as dt
import re
from dataclasses import dataclass
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from commit_titles.retrieval.errors import InvalidDate, InvalidDateRange, UnreasonableDate

RELATIVE_RE = re.compile(r"^(\d+)\s+(day|week|month|year)s?\s+ago$")
MAX_YEAR_DRIFT = 50


@dataclass(frozen=True)
class DateRange:
    """Concrete query window; `start` never falls after `end`."""

    start: dt.datetime
    end: dt.datetime

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise InvalidDateRange("--start date must be before or equal to --end date")

    @property
    def start_iso(self) -> str:
        return to_iso(self.start)

    @property
    def end_iso(self) -> str:
        return to_iso(self.end)


def _local(value: dt.datetime) -> dt.datetime:
    # Naive values are already local wall-clock time.
    return value if value.tzinfo is None else value.astimezone()


def _midnight(value: dt.datetime) -> dt.datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


def parse_relative_date(expr: str, now: Optional[dt.datetime] = None) -> Optional[dt.datetime]:
    """Resolve "today", "yesterday" and "<N> <unit>(s) ago"; None otherwise."""
    now = _local(now) if now else dt.datetime.now().astimezone()
    lower = expr.strip().lower()

    if lower == "today":
        return _midnight(now)
    if lower == "yesterday":
        return _midnight(now) - dt.timedelta(days=1)

    match = RELATIVE_RE.match(lower)
    if not match:
        return None

    amount, unit = int(match.group(1)), match.group(2)
    if unit == "day":
        return now - dt.timedelta(days=amount)
    if unit == "week":
        return now - dt.timedelta(weeks=amount)
    if unit == "month":
        return _midnight(now) - relativedelta(months=amount)
    return _midnight(now) - relativedelta(years=amount)


def resolve_date(expr: Optional[str], name: str = "date", now: Optional[dt.datetime] = None) -> dt.datetime:
    """Turn a relative or absolute date expression into a concrete datetime.

    Relative expressions are tried first. Anything else goes through
    dateutil's parser; naive results are interpreted as local time. Absolute
    dates more than fifty years away from the current year are rejected.
    """
    if not expr or not isinstance(expr, str) or not expr.strip():
        raise InvalidDate(f"--{name} must be a valid date string")

    relative = parse_relative_date(expr, now=now)
    if relative is not None:
        return relative

    try:
        parsed = date_parser.parse(expr.strip())
    except (ValueError, OverflowError) as exc:
        raise InvalidDate(f"--{name} is not a valid date: {expr}") from exc

    current_year = (now or dt.datetime.now()).year
    if abs(current_year - parsed.year) > MAX_YEAR_DRIFT:
        raise UnreasonableDate(f"--{name} date seems unreasonable: {expr}")

    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


def normalize_range(start: dt.datetime, end: dt.datetime) -> DateRange:
    """Build a DateRange, stretching a single-day range to the end of that day."""
    window = DateRange(start, end)
    local_end = _local(end)
    if _local(start).date() == local_end.date():
        end_of_day = local_end.replace(hour=23, minute=59, second=59, microsecond=999000)
        window = DateRange(start, end_of_day)
    return window


def to_iso(value: dt.datetime) -> str:
    """Render a datetime as a UTC ISO-8601 string with millisecond precision."""
    utc = value.astimezone(dt.timezone.utc)
    return f"{utc:%Y-%m-%dT%H:%M:%S}.{utc.microsecond // 1000:03d}Z"


def parse_github_timestamp(raw: Optional[str]) -> Optional[dt.datetime]:
    if not raw:
        return None
    try:
        return date_parser.isoparse(raw)
    except ValueError:
        return None


def utc_day(value: dt.datetime) -> str:
    """Calendar day (YYYY-MM-DD) of a timestamp in UTC."""
    return value.astimezone(dt.timezone.utc).date().isoformat()


__all__ = [
    "DateRange",
    "parse_relative_date",
    "resolve_date",
    "normalize_range",
    "to_iso",
    "parse_github_timestamp",
    "utc_day",
]
