"""Tests for commit_titles.reporting.formatters covering every output format.

Run with:
    pytest tests/test_formatters.py --maxfail=1 -v --cov=commit_titles.reporting.formatters --cov-report=term-missing
"""

import csv
import datetime as dt
import io
import json

import pytest

from commit_titles.reporting import formatters
from commit_titles.reporting.formatters import ReportContext
from commit_titles.retrieval.commits import CommitRecord

UTC = dt.timezone.utc
CTX = ReportContext(
    owner="o",
    repo="r",
    branch="main",
    start_iso="2025-01-01T00:00:00.000Z",
    end_iso="2025-01-31T23:59:59.999Z",
    author="dev",
)
RECORDS = [
    CommitRecord(hash="a1", title="feat: add <login>", timestamp=dt.datetime(2025, 1, 15, 10, tzinfo=UTC),
                 author_handle="dev", url="https://github.com/o/r/commit/a1"),
    CommitRecord(hash="b2", title='fix: handle "quotes", commas', timestamp=dt.datetime(2025, 1, 16, 9, tzinfo=UTC),
                 author_handle=None, committer_handle="web-flow", url="https://github.com/o/r/commit/b2"),
    CommitRecord(hash="c3", title="", timestamp=dt.datetime(2025, 1, 16, 11, tzinfo=UTC)),
]


def test_text_skips_empty_titles():
    assert formatters.format_text(RECORDS, CTX) == 'feat: add <login>\nfix: handle "quotes", commas'


def test_group_by_date_orders_newest_first():
    grouped = formatters.group_by_date(RECORDS)
    assert list(grouped) == ["2025-01-16", "2025-01-15"]
    assert [r.hash for r in grouped["2025-01-16"]] == ["b2"]


def test_grouped_output():
    out = formatters.format_grouped(RECORDS, CTX)
    assert "2025-01-16 (1 commits):" in out
    assert "  • feat: add <login>" in out


def test_timesheet_uses_day_month_year_and_labels():
    out = formatters.format_timesheet(RECORDS, CTX)
    assert out.splitlines()[0] == "16/01/2025:"
    assert "• [FEATURE] feat: add <login>" in out
    assert "• [BUGFIX] fix: handle" in out


def test_summary_reports_types_and_contributors():
    out = formatters.format_summary(RECORDS, CTX)
    assert out.startswith("# Commit Summary: o/r")
    assert "**Total Commits:** 3" in out
    assert "**Average per Day:** 1.5" in out
    assert "- **feature**: 1 (33.3%)" in out
    assert "- **Unknown**: 2 commits (66.7%)" in out
    assert "- **2025-01-16**: 2 commits" in out


def test_json_includes_metadata():
    data = json.loads(formatters.format_json(RECORDS, CTX))
    assert data["owner"] == "o" and data["author"] == "dev" and data["committer"] is None
    assert data["excludeMerges"] is False
    assert data["count"] == 3
    assert data["titles"] == ["feat: add <login>", 'fix: handle "quotes", commas']
    assert data["commits"][0]["date"] == "2025-01-15T10:00:00Z"


def test_ndjson_one_object_per_line():
    lines = formatters.format_ndjson(RECORDS, CTX).splitlines()
    assert len(lines) == 3
    assert json.loads(lines[1])["committer_login"] == "web-flow"


def test_csv_quotes_values():
    out = formatters.format_csv(RECORDS, CTX)
    assert out.splitlines()[0] == "sha,date,author_login,committer_login,title,html_url"
    assert '"fix: handle ""quotes"", commas"' in out
    rows = list(csv.DictReader(io.StringIO(out)))
    assert rows[1]["title"] == 'fix: handle "quotes", commas'
    assert rows[1]["author_login"] == ""


def test_markdown_links_and_unknown_author():
    out = formatters.format_markdown(RECORDS, CTX)
    assert "### 2025-01-15 (1 commits)" in out
    assert "- [feat: add <login>](https://github.com/o/r/commit/a1) (dev)" in out
    assert "(Unknown)" in out


def test_html_escapes_titles():
    out = formatters.format_html(RECORDS, CTX)
    assert out.startswith("<!DOCTYPE html>")
    assert "feat: add &lt;login&gt;" in out
    assert "<login>" not in out
    assert '<div class="author">Unknown</div>' in out


def test_render_dispatch():
    assert formatters.render("TEXT", RECORDS[:1], CTX) == "feat: add <login>"
    with pytest.raises(ValueError):
        formatters.render("yaml", RECORDS, CTX)
