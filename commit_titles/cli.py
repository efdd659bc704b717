"""Command-line entry point: option merging, validation, and orchestration."""

from __future__ import annotations

import argparse
import datetime as dt
import json
import re
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from commit_titles.analysis.dates import DateRange, normalize_range, resolve_date
from commit_titles.analysis.filters import FilterChain
from commit_titles.analysis.stats import generate_stats
from commit_titles.credentials import TokenProvider, default_providers, resolve_token
from commit_titles.git_remote import auto_detect_git_info
from commit_titles.reporting.formatters import FORMATTERS, ReportContext, render
from commit_titles.reporting.output import ensure_parent_dir, write_output
from commit_titles.retrieval.commits import fetch_commits, normalize_commit
from commit_titles.retrieval.config import MAX_COMMITS_LIMIT, MAX_RETRIES, REQUEST_TIMEOUT_SEC, FetchSettings
from commit_titles.retrieval.errors import CommitTitlesError, ConfigError

REQUIRED_FIELDS = ["owner", "repo", "branch", "start", "end"]
OWNER_RE = re.compile(r"^[A-Za-z0-9_-]+$")
REPO_RE = re.compile(r"^[A-Za-z0-9._-]+$")
CAMEL_BOUNDARY_RE = re.compile(r"(?<!^)(?=[A-Z])")

EPILOG = """\
Relative dates: "today", "yesterday", "7 days ago", "2 weeks ago", "1 month ago".

Tokens are taken from --token, then GITHUB_TOKEN, then the GitHub CLI
('gh auth login'). Unauthenticated requests are limited to 60/hr.
Configuration file values are overridden by command-line arguments.
GitHub treats 'since' as exclusive and 'until' as inclusive-ish by time;
provide explicit times if the boundary matters.
"""


@dataclass(frozen=True)
class RunSettings:
    """Fully validated options for one invocation."""

    owner: str
    repo: str
    branch: str
    date_range: DateRange
    author: Optional[str]
    committer: Optional[str]
    filters: FilterChain
    output_format: str
    output: Optional[str]
    token: Optional[str]
    token_source: Optional[str]
    max_commits: Optional[int]
    fetch: FetchSettings
    stats: bool


def build_arg_parser() -> argparse.ArgumentParser:
    """Return the CLI parser; unset options stay None so config values can fill them."""

    parser = argparse.ArgumentParser(
        prog="commit-titles",
        description="Fetch commit titles from a GitHub repo/branch within a date range.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--auto", action="store_true", default=None,
                        help="detect owner, repo, and branch from the current git repository")
    parser.add_argument("--owner")
    parser.add_argument("--repo")
    parser.add_argument("--branch")
    parser.add_argument("--start", help="ISO date, YYYY-MM-DD, or relative date")
    parser.add_argument("--end", help="ISO date, YYYY-MM-DD, or relative date")
    parser.add_argument("--author", help="filter by commit author (GitHub login)")
    parser.add_argument("--committer", help="filter by committer instead")
    parser.add_argument("--exclude-merges", action="store_true", default=None,
                        help='skip commits whose title starts with "Merge"')
    parser.add_argument("--exclude-pattern", help="skip commits matching this regex")
    parser.add_argument("--include-pattern", help="only include commits matching this regex")
    parser.add_argument("--format", choices=sorted(FORMATTERS), help="output format (default: text)")
    parser.add_argument("--output", help="write output to a file instead of stdout")
    parser.add_argument("--token", help="GitHub token")
    parser.add_argument("--max", help="hard cap on the number of commits scanned")
    parser.add_argument("--verbose", action="store_true", default=None,
                        help="show progress and rate limit info")
    parser.add_argument("--config", help="load options from a JSON file")
    parser.add_argument("--retry", help=f"attempts for failed requests (default: {MAX_RETRIES})")
    parser.add_argument("--timeout", help=f"request timeout in ms (default: {int(REQUEST_TIMEOUT_SEC * 1000)})")
    parser.add_argument("--stats", action="store_true", default=None,
                        help="print commit statistics in verbose mode")
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments; accepts argv overrides for testing."""

    return build_arg_parser().parse_args(argv)


def _normalize_key(key: str) -> str:
    return CAMEL_BOUNDARY_RE.sub("_", key).lower().replace("-", "_")


def load_config(path: str) -> Dict[str, Any]:
    """Load a JSON options file; keys may be snake, kebab, or camel case."""
    config_path = Path(path).expanduser()
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {path}")
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in configuration file: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError("Configuration file must contain a JSON object")

    config = {_normalize_key(key): value for key, value in data.items()}
    for field in REQUIRED_FIELDS:
        if not config.get(field):
            raise ConfigError(f"Missing required field in config: {field}")
    return config


def collect_options(args: argparse.Namespace) -> Dict[str, Any]:
    """Merge config file, git auto-detection, and CLI values (later wins)."""
    options: Dict[str, Any] = {}
    if args.config:
        options.update(load_config(args.config))

    if args.auto:
        info = auto_detect_git_info()
        if not info.is_git_repo:
            raise ConfigError("--auto flag requires being run from within a git repository")
        if not info.owner or not info.repo:
            raise ConfigError(
                "Could not auto-detect GitHub repository information. "
                "Ensure you have a GitHub remote configured (origin/upstream)."
            )
        if args.verbose:
            print(f"Auto-detected: {info.owner}/{info.repo} ({info.branch})", file=sys.stderr)
            if len(info.remotes) > 1:
                names = ", ".join(r.name for r in info.remotes)
                print(f"Available remotes: {names}", file=sys.stderr)
        options.update({k: v for k, v in
                        {"owner": info.owner, "repo": info.repo, "branch": info.branch}.items() if v})

    options.update({k: v for k, v in vars(args).items() if v is not None and k not in ("config", "auto")})
    return options


def validate_owner(owner: Any) -> str:
    if not isinstance(owner, str) or not owner.strip():
        raise ConfigError("--owner must be a non-empty string")
    owner = owner.strip()
    if not OWNER_RE.match(owner):
        raise ConfigError("--owner contains invalid characters (use letters, numbers, hyphens, underscores)")
    return owner


def validate_repo(repo: Any) -> str:
    if not isinstance(repo, str) or not repo.strip():
        raise ConfigError("--repo must be a non-empty string")
    repo = repo.strip()
    if not REPO_RE.match(repo):
        raise ConfigError("--repo contains invalid characters")
    return repo


def validate_branch(branch: Any) -> str:
    if not isinstance(branch, str) or not branch.strip():
        raise ConfigError("--branch must be a non-empty string")
    return branch.strip()


def _positive_int(value: Any, name: str) -> int:
    try:
        number = int(str(value).strip())
    except ValueError:
        raise ConfigError(f"--{name} must be a positive integer") from None
    if number <= 0:
        raise ConfigError(f"--{name} must be a positive integer")
    return number


def validate_max(value: Any) -> Optional[int]:
    if value in (None, "", 0):
        return None
    number = _positive_int(value, "max")
    if number > MAX_COMMITS_LIMIT:
        raise ConfigError(f"--max cannot exceed {MAX_COMMITS_LIMIT:,} (GitHub API limit)")
    return number


def validate_token(token: Optional[str]) -> Optional[str]:
    if not token:
        return None
    token = token.strip()
    if len(token) < 20 or len(token) > 100:
        print("[warn] Token length seems unusual for GitHub tokens", file=sys.stderr)
    return token


def resolve_settings(options: Dict[str, Any],
                     providers: Optional[List[TokenProvider]] = None,
                     now: Optional[dt.datetime] = None) -> RunSettings:
    """Validate merged options into immutable RunSettings.

    Every option is checked before any token provider runs, so invalid input
    never reaches the GitHub CLI.
    """
    for field in REQUIRED_FIELDS:
        if not options.get(field):
            raise ConfigError(f"Missing --{field}")

    owner = validate_owner(options["owner"])
    repo = validate_repo(options["repo"])
    branch = validate_branch(options["branch"])
    start = resolve_date(str(options["start"]), "start", now=now)
    end = resolve_date(str(options["end"]), "end", now=now)
    date_range = normalize_range(start, end)

    output_format = str(options.get("format") or "text").lower()
    if output_format not in FORMATTERS:
        raise ConfigError(f"Unknown --format {output_format}. Use {'|'.join(FORMATTERS)}.")

    filters = FilterChain.build(
        exclude_merges=bool(options.get("exclude_merges")),
        exclude_pattern=options.get("exclude_pattern"),
        include_pattern=options.get("include_pattern"),
    )
    max_commits = validate_max(options.get("max"))
    timeout_ms = _positive_int(options["timeout"], "timeout") if options.get("timeout") else None
    retries = _positive_int(options["retry"], "retry") if options.get("retry") else MAX_RETRIES

    if providers is None:
        providers = default_providers(options.get("token"))
    token, source = resolve_token(providers)

    return RunSettings(
        owner=owner,
        repo=repo,
        branch=branch,
        date_range=date_range,
        author=options.get("author") or None,
        committer=options.get("committer") or None,
        filters=filters,
        output_format=output_format,
        output=options.get("output") or None,
        token=validate_token(token),
        token_source=source,
        max_commits=max_commits,
        fetch=FetchSettings(
            timeout=timeout_ms / 1000 if timeout_ms else REQUEST_TIMEOUT_SEC,
            retries=retries,
            verbose=bool(options.get("verbose")),
        ),
        stats=bool(options.get("stats")),
    )


def _describe_run(settings: RunSettings) -> None:
    err = sys.stderr
    print(f"Fetching commits from {settings.owner}/{settings.repo} ({settings.branch})", file=err)
    print(f"Date range: {settings.date_range.start_iso} to {settings.date_range.end_iso}", file=err)
    if settings.max_commits:
        print(f"Max commits: {settings.max_commits}", file=err)
    if settings.token:
        print(f"Using GitHub token from {settings.token_source}", file=err)
    else:
        print("[warn] No GitHub token provided (rate limit: 60/hr)", file=err)
        print("  Use --token, GITHUB_TOKEN env var, or 'gh auth login'", file=err)
    if settings.filters.exclude_pattern is not None:
        print(f"Exclude pattern: {settings.filters.exclude_pattern.pattern}", file=err)
    if settings.filters.include_pattern is not None:
        print(f"Include pattern: {settings.filters.include_pattern.pattern}", file=err)


def _print_stats(records) -> None:
    stats = generate_stats(records)
    err = sys.stderr
    print("\nCommit Statistics:", file=err)
    print(f"   Total commits: {stats.total}", file=err)
    print(f"   Average per day: {stats.average_per_day}", file=err)
    print(f"   Unique authors: {len(stats.by_author)}", file=err)
    print(f"   Days with activity: {len(stats.by_date)}", file=err)
    top = sorted(stats.by_type.items(), key=lambda kv: kv[1], reverse=True)[:3]
    if top:
        print("   Top commit types:", file=err)
        for kind, count in top:
            print(f"     {kind}: {count} ({count / stats.total * 100:.1f}%)", file=err)


def run(settings: RunSettings) -> int:
    """Fetch, filter, render, and write; returns the process exit status."""
    verbose = settings.fetch.verbose
    ensure_parent_dir(settings.output)
    if verbose:
        _describe_run(settings)

    raw = fetch_commits(
        settings.owner,
        settings.repo,
        settings.branch,
        settings.date_range,
        author=settings.author,
        committer=settings.committer,
        token=settings.token,
        max_commits=settings.max_commits,
        settings=settings.fetch,
    )
    if not raw:
        if verbose:
            print("No commits found in the specified date range", file=sys.stderr)
        return 0

    records = settings.filters.apply([normalize_commit(c) for c in raw], verbose=verbose)
    ctx = ReportContext(
        owner=settings.owner,
        repo=settings.repo,
        branch=settings.branch,
        start_iso=settings.date_range.start_iso,
        end_iso=settings.date_range.end_iso,
        author=settings.author,
        committer=settings.committer,
        exclude_merges=settings.filters.exclude_merges,
    )
    write_output(render(settings.output_format, records, ctx), settings.output)

    if verbose:
        print(f"Output {len(records)} commits in {settings.output_format} format", file=sys.stderr)
        if settings.stats and records:
            _print_stats(records)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for fetching and rendering commit titles."""

    parser = build_arg_parser()
    args = parser.parse_args(argv)
    try:
        settings = resolve_settings(collect_options(args))
        return run(settings)
    except ConfigError as exc:
        print(f"{exc}\n", file=sys.stderr)
        parser.print_usage(sys.stderr)
        return 1
    except CommitTitlesError as exc:
        print(str(exc), file=sys.stderr)
        return 1


__all__ = [
    "RunSettings",
    "build_arg_parser",
    "parse_args",
    "load_config",
    "collect_options",
    "validate_owner",
    "validate_repo",
    "validate_branch",
    "validate_max",
    "validate_token",
    "resolve_settings",
    "run",
    "main",
]
