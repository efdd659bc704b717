"""Commit listing: paginated retrieval, status classification, and normalization."""

from __future__ import annotations

import datetime as dt
import sys
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Type
from urllib.parse import quote, urlencode

import requests

from commit_titles.analysis.dates import DateRange, parse_github_timestamp

from .config import BASE_URL, PER_PAGE, UNAUTH_PAGE_DELAY_SEC, FetchSettings
from .errors import ApiError, AuthFailure, Forbidden, MalformedRequest, NotFound
from .http_client import (
    build_session,
    check_rate_limit,
    parse_link_header,
    request_with_backoff,
    response_message,
)

STATUS_ERRORS: Dict[int, Type[ApiError]] = {
    401: AuthFailure,
    403: Forbidden,
    404: NotFound,
    422: MalformedRequest,
}


@dataclass(frozen=True)
class CommitRecord:
    """Flat view of one commit; only `hash` is guaranteed."""

    hash: str
    title: str = ""
    timestamp: Optional[dt.datetime] = None
    author_handle: Optional[str] = None
    committer_handle: Optional[str] = None
    url: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        """Serialize with the field names used by every output format."""
        return {
            "sha": self.hash,
            "title": self.title,
            "date": github_timestamp(self.timestamp),
            "html_url": self.url,
            "author_login": self.author_handle,
            "committer_login": self.committer_handle,
        }


@dataclass
class FetchState:
    """Accumulator for a single paginated retrieval."""

    cap: Optional[int] = None
    records: List[Dict[str, Any]] = field(default_factory=list)
    next_url: Optional[str] = None
    pages: int = 0

    @property
    def capped(self) -> bool:
        return bool(self.cap) and len(self.records) >= self.cap


def github_timestamp(value: Optional[dt.datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.astimezone(dt.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def one_line(msg: Optional[str]) -> str:
    """Return the first line of a commit message."""
    if not msg:
        return ""
    return msg.split("\n")[0].strip()


def normalize_commit(raw: Dict[str, Any]) -> CommitRecord:
    """Map a raw REST commit object onto a CommitRecord without raising."""
    commit = raw.get("commit") or {}
    author_meta = commit.get("author") or {}
    committer_meta = commit.get("committer") or {}
    timestamp = (
        parse_github_timestamp(author_meta.get("date"))
        or parse_github_timestamp(committer_meta.get("date"))
    )
    return CommitRecord(
        hash=str(raw.get("sha") or ""),
        title=one_line(commit.get("message")),
        timestamp=timestamp,
        author_handle=(raw.get("author") or {}).get("login") or None,
        committer_handle=(raw.get("committer") or {}).get("login") or None,
        url=raw.get("html_url") or None,
    )


def build_commits_url(owner: str,
                      repo: str,
                      branch: str,
                      date_range: DateRange,
                      author: Optional[str] = None,
                      committer: Optional[str] = None) -> str:
    """Return the first-page URL for the commit listing endpoint."""
    params = {
        "sha": branch,
        "per_page": PER_PAGE,
        "since": date_range.start_iso,
        "until": date_range.end_iso,
    }
    if author:
        params["author"] = author
    if committer:
        params["committer"] = committer
    return f"{BASE_URL}/repos/{quote(owner)}/{quote(repo)}/commits?{urlencode(params)}"


def raise_for_status(resp: requests.Response, owner: str, repo: str) -> None:
    """Raise the typed ApiError matching a non-2xx response."""
    status = resp.status_code
    if 200 <= status < 300:
        return

    body = resp.text or ""
    messages = {
        401: "Authentication failed: check your GitHub token",
        403: "Access forbidden: check repository permissions and rate limits",
        404: f"Repository not found: {owner}/{repo} (check owner and repo names)",
        422: "Invalid request: check branch name and date parameters",
    }
    message = messages.get(status) or f"GitHub API error {status}: {response_message(resp) or resp.reason}"
    raise STATUS_ERRORS.get(status, ApiError)(message, status=status, body=body)


def _fetch_pages(session: requests.Session,
                 owner: str,
                 repo: str,
                 state: FetchState,
                 token: Optional[str],
                 settings: FetchSettings) -> List[Dict[str, Any]]:
    while state.next_url:
        state.pages += 1
        if settings.verbose:
            print(
                f"Fetching page {state.pages}... ({len(state.records)} commits so far)",
                file=sys.stderr,
            )

        resp = request_with_backoff(session, state.next_url, settings)
        check_rate_limit(resp.headers or {}, settings.verbose)
        raise_for_status(resp, owner, repo)

        try:
            page = resp.json()
        except ValueError as exc:
            raise ApiError(
                f"Unexpected response from GitHub for {owner}/{repo}: body is not JSON",
                status=resp.status_code,
                body=resp.text or "",
            ) from exc
        if not isinstance(page, list):
            raise ApiError(
                f"Unexpected response from GitHub for {owner}/{repo}: expected a list of commits",
                status=resp.status_code,
                body=resp.text or "",
            )
        state.records.extend(page)

        if state.capped:
            if settings.verbose:
                print(f"Reached max limit of {state.cap} commits", file=sys.stderr)
            break

        state.next_url = parse_link_header((resp.headers or {}).get("Link")).get("next")
        if state.next_url and not token:
            time.sleep(UNAUTH_PAGE_DELAY_SEC)

    if settings.verbose:
        print(f"Fetched {len(state.records)} commits from {state.pages} pages", file=sys.stderr)

    return state.records[:state.cap] if state.cap else state.records


def fetch_commits(owner: str,
                  repo: str,
                  branch: str,
                  date_range: DateRange,
                  *,
                  author: Optional[str] = None,
                  committer: Optional[str] = None,
                  token: Optional[str] = None,
                  max_commits: Optional[int] = None,
                  settings: Optional[FetchSettings] = None,
                  session: Optional[requests.Session] = None) -> List[Dict[str, Any]]:
    """Return raw commits on `branch` within `date_range`, following Link pages.

    Pages are requested one after another until the `next` relation disappears
    or `max_commits` records have been collected. Any failure aborts the whole
    retrieval; pages already fetched are discarded. A session built here is
    closed before returning; an injected one is left open.
    """
    settings = settings or FetchSettings()
    state = FetchState(cap=max_commits)
    state.next_url = build_commits_url(owner, repo, branch, date_range, author, committer)

    if session is not None:
        return _fetch_pages(session, owner, repo, state, token, settings)
    with build_session(token) as own_session:
        return _fetch_pages(own_session, owner, repo, state, token, settings)


__all__ = [
    "STATUS_ERRORS",
    "CommitRecord",
    "FetchState",
    "github_timestamp",
    "one_line",
    "normalize_commit",
    "build_commits_url",
    "raise_for_status",
    "fetch_commits",
]
