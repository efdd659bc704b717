"""Render normalized commits as text, markdown, HTML, JSON, NDJSON, or CSV."""

from __future__ import annotations

import csv
import html
import io
import json
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from commit_titles.analysis.categorize import categorize
from commit_titles.analysis.dates import utc_day
from commit_titles.analysis.stats import UNKNOWN_AUTHOR, generate_stats
from commit_titles.retrieval.commits import CommitRecord

CSV_COLUMNS = ["sha", "date", "author_login", "committer_login", "title", "html_url"]

HTML_STYLE = [
    'body { font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, sans-serif; '
    "max-width: 800px; margin: 0 auto; padding: 20px; }",
    ".header { background: #f6f8fa; padding: 20px; border-radius: 6px; margin-bottom: 20px; }",
    ".date-group { margin-bottom: 30px; }",
    ".date-header { background: #f1f3f4; padding: 10px 15px; border-radius: 4px; "
    "margin-bottom: 15px; font-weight: 600; color: #24292e; }",
    ".commit { border-bottom: 1px solid #e1e4e8; padding: 10px 0; }",
    ".commit:last-child { border-bottom: none; }",
    ".author { color: #0366d6; font-weight: 500; }",
    ".title { font-weight: 500; margin: 5px 0; }",
    "a { color: #0366d6; text-decoration: none; }",
    "a:hover { text-decoration: underline; }",
]


@dataclass(frozen=True)
class ReportContext:
    """Query metadata echoed in report headers."""

    owner: str
    repo: str
    branch: str
    start_iso: str
    end_iso: str
    author: Optional[str] = None
    committer: Optional[str] = None
    exclude_merges: bool = False


def group_by_date(records: List[CommitRecord]) -> "OrderedDict[str, List[CommitRecord]]":
    """Group titled commits by UTC day, newest day first."""
    groups: Dict[str, List[CommitRecord]] = {}
    for record in records:
        if not record.title:
            continue
        day = utc_day(record.timestamp) if record.timestamp else "Unknown"
        groups.setdefault(day, []).append(record)
    return OrderedDict(sorted(groups.items(), key=lambda kv: kv[0], reverse=True))


def _percent(count: int, total: int) -> str:
    return f"{(count / total) * 100:.1f}" if total else "0.0"


def format_text(records: List[CommitRecord], ctx: ReportContext) -> str:
    return "\n".join(r.title for r in records if r.title)


def format_grouped(records: List[CommitRecord], ctx: ReportContext) -> str:
    lines: List[str] = []
    for day, items in group_by_date(records).items():
        lines.append(f"\n{day} ({len(items)} commits):")
        lines.extend(f"  • {r.title}" for r in items)
    return "\n".join(lines)


def format_timesheet(records: List[CommitRecord], ctx: ReportContext) -> str:
    lines: List[str] = []
    for day, items in group_by_date(records).items():
        if day.count("-") == 2:
            year, month, dom = day.split("-")
            day = f"{dom}/{month}/{year}"
        lines.append(f"{day}:")
        for r in items:
            lines.append(f"• [{categorize(r.title).upper()}] {r.title}")
        lines.append("")
    return "\n".join(lines)


def format_summary(records: List[CommitRecord], ctx: ReportContext) -> str:
    stats = generate_stats(records)
    lines = [
        f"# Commit Summary: {ctx.owner}/{ctx.repo}",
        "",
        f"**Branch:** {ctx.branch}",
        f"**Date Range:** {ctx.start_iso} to {ctx.end_iso}",
        f"**Total Commits:** {stats.total}",
        f"**Average per Day:** {stats.average_per_day}",
        "",
        "## Commit Types",
        "",
    ]
    for kind, count in sorted(stats.by_type.items(), key=lambda kv: kv[1], reverse=True):
        lines.append(f"- **{kind}**: {count} ({_percent(count, stats.total)}%)")

    lines.extend(["", "## Top Contributors", ""])
    top_authors = sorted(stats.by_author.items(), key=lambda kv: kv[1], reverse=True)[:5]
    for author, count in top_authors:
        lines.append(f"- **{author}**: {count} commits ({_percent(count, stats.total)}%)")

    lines.extend(["", "## Recent Activity", ""])
    for day, count in sorted(stats.by_date.items(), reverse=True)[:5]:
        lines.append(f"- **{day}**: {count} commits")
    return "\n".join(lines)


def format_json(records: List[CommitRecord], ctx: ReportContext) -> str:
    payload = {
        "owner": ctx.owner,
        "repo": ctx.repo,
        "branch": ctx.branch,
        "start": ctx.start_iso,
        "end": ctx.end_iso,
        "author": ctx.author,
        "committer": ctx.committer,
        "excludeMerges": bool(ctx.exclude_merges),
        "count": len(records),
        "titles": [r.title for r in records if r.title],
        "commits": [r.as_dict() for r in records],
    }
    return json.dumps(payload, indent=2, ensure_ascii=False)


def format_ndjson(records: List[CommitRecord], ctx: ReportContext) -> str:
    return "\n".join(json.dumps(r.as_dict(), ensure_ascii=False) for r in records)


def format_csv(records: List[CommitRecord], ctx: ReportContext) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, extrasaction="ignore", lineterminator="\n")
    writer.writeheader()
    for record in records:
        writer.writerow({k: ("" if v is None else v) for k, v in record.as_dict().items()})
    return buffer.getvalue().rstrip("\n")


def format_markdown(records: List[CommitRecord], ctx: ReportContext) -> str:
    lines = [
        f"# Commit History: {ctx.owner}/{ctx.repo}",
        "",
        f"**Branch:** {ctx.branch}",
        f"**Date Range:** {ctx.start_iso} to {ctx.end_iso}",
        f"**Total Commits:** {len(records)}",
        "",
        "## Commits by Date",
        "",
    ]
    for day, items in group_by_date(records).items():
        lines.extend([f"### {day} ({len(items)} commits)", ""])
        for r in items:
            lines.append(f"- [{r.title}]({r.url or ''}) ({r.author_handle or UNKNOWN_AUTHOR})")
        lines.append("")
    return "\n".join(lines)


def format_html(records: List[CommitRecord], ctx: ReportContext) -> str:
    esc = html.escape
    out = [
        "<!DOCTYPE html>",
        "<html>",
        "<head>",
        "<title>Commit History</title>",
        "<style>",
        *HTML_STYLE,
        "</style>",
        "</head>",
        "<body>",
        '<div class="header">',
        f"<h1>Commit History: {esc(ctx.owner)}/{esc(ctx.repo)}</h1>",
        f"<p><strong>Branch:</strong> {esc(ctx.branch)}</p>",
        f"<p><strong>Date Range:</strong> {esc(ctx.start_iso)} to {esc(ctx.end_iso)}</p>",
        f"<p><strong>Total Commits:</strong> {len(records)}</p>",
        "</div>",
        '<div class="commits">',
    ]
    for day, items in group_by_date(records).items():
        out.append('<div class="date-group">')
        out.append(f'<div class="date-header">{esc(day)} ({len(items)} commits)</div>')
        for r in items:
            out.extend([
                '<div class="commit">',
                f'<div class="title"><a href="{esc(r.url or "")}" target="_blank">{esc(r.title)}</a></div>',
                f'<div class="author">{esc(r.author_handle or UNKNOWN_AUTHOR)}</div>',
                "</div>",
            ])
        out.append("</div>")
    out.extend(["</div>", "</body>", "</html>"])
    return "\n".join(out)


FORMATTERS: Dict[str, Callable[[List[CommitRecord], ReportContext], str]] = {
    "text": format_text,
    "grouped": format_grouped,
    "timesheet": format_timesheet,
    "summary": format_summary,
    "json": format_json,
    "ndjson": format_ndjson,
    "csv": format_csv,
    "markdown": format_markdown,
    "html": format_html,
}


def render(fmt: str, records: List[CommitRecord], ctx: ReportContext) -> str:
    """Render `records` with the named formatter."""
    try:
        formatter = FORMATTERS[fmt.lower()]
    except KeyError:
        raise ValueError(f"Unknown format {fmt!r}. Use {'|'.join(FORMATTERS)}.") from None
    return formatter(records, ctx)


__all__ = [
    "CSV_COLUMNS",
    "ReportContext",
    "group_by_date",
    "format_text",
    "format_grouped",
    "format_timesheet",
    "format_summary",
    "format_json",
    "format_ndjson",
    "format_csv",
    "format_markdown",
    "format_html",
    "FORMATTERS",
    "render",
]
