"""HTTP helpers with retry/backoff, rate-limit reporting, and Link header parsing."""

from __future__ import annotations

import datetime as dt
import re
import socket
import sys
import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

import requests

from .config import (
    BACKOFF_BASE_SEC,
    BACKOFF_CAP_SEC,
    RATE_LIMIT_WARN_THRESHOLD,
    USER_AGENT,
    FetchSettings,
)
from .errors import NetworkError, NetworkOther, NetworkTimeout, NetworkUnreachable

LINK_PART_RE = re.compile(r'<([^>]+)>;\s*rel="([^"]+)"')

_DNS_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "failed to resolve",
    "temporary failure in name resolution",
)


@dataclass(frozen=True)
class RateLimitStatus:
    """Remaining quota and reset time reported by the last response."""

    remaining: Optional[int]
    reset: Optional[dt.datetime]


def build_session(token: Optional[str] = None) -> requests.Session:
    """Return a session carrying the GitHub media type, user agent, and token."""
    session = requests.Session()
    session.headers.update(
        {
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
        }
    )
    if token:
        session.headers["Authorization"] = f"Bearer {token}"
    return session


def backoff_delay(attempt: int) -> float:
    """Delay before retry `attempt + 1`: doubling from the base, capped."""
    return min(BACKOFF_BASE_SEC * (2 ** (attempt - 1)), BACKOFF_CAP_SEC)


def sleep_backoff(delay: float) -> None:
    time.sleep(max(0.0, delay))


def _iter_causes(exc: BaseException):
    """Walk an exception, its urllib3 `reason`, args, and chained causes."""
    seen = set()
    stack = [exc]
    while stack:
        current = stack.pop()
        if not isinstance(current, BaseException) or id(current) in seen:
            continue
        seen.add(id(current))
        yield current
        stack.append(getattr(current, "reason", None))
        stack.append(current.__cause__)
        stack.append(current.__context__)
        for arg in getattr(current, "args", ()):
            if isinstance(arg, BaseException):
                stack.append(arg)


def classify_network_error(exc: requests.RequestException, url: str, timeout: float) -> NetworkError:
    """Map a requests exception onto the timeout/unreachable/other taxonomy."""
    if isinstance(exc, requests.Timeout):
        return NetworkTimeout(f"Request timeout after {timeout:g}s", url=url)

    for cause in _iter_causes(exc):
        if isinstance(cause, socket.gaierror):
            return NetworkUnreachable(
                "Network error: Could not resolve host. Check your internet connection.",
                reason="dns",
                url=url,
            )
        if isinstance(cause, ConnectionRefusedError):
            return NetworkUnreachable(
                "Network error: Connection refused. Check your internet connection.",
                reason="refused",
                url=url,
            )

    text = str(exc).lower()
    if any(marker in text for marker in _DNS_MARKERS):
        return NetworkUnreachable(
            "Network error: Could not resolve host. Check your internet connection.",
            reason="dns",
            url=url,
        )
    if "connection refused" in text:
        return NetworkUnreachable(
            "Network error: Connection refused. Check your internet connection.",
            reason="refused",
            url=url,
        )
    return NetworkOther(f"Network error: {exc}", url=url)


def request_with_backoff(
    session: requests.Session,
    url: str,
    settings: FetchSettings,
    **kwargs: Any,
) -> requests.Response:
    """Perform a GET, retrying transport failures with exponential backoff.

    HTTP error statuses are returned untouched; only exceptions raised by the
    transport are retried. A timeout fails at once as `NetworkTimeout`. Once
    `settings.retries` attempts have failed the last exception is re-raised as
    a classified `NetworkError`.
    """
    retries = max(1, settings.retries)
    last_exc: Optional[requests.RequestException] = None

    for attempt in range(1, retries + 1):
        try:
            return session.get(url, timeout=settings.timeout, **kwargs)
        except requests.Timeout as exc:
            raise classify_network_error(exc, url, settings.timeout) from exc
        except requests.RequestException as exc:
            last_exc = exc
            if attempt == retries:
                break
            delay = backoff_delay(attempt)
            if settings.verbose:
                print(f"[retry {attempt}/{retries}] {exc} -> sleep {delay:.1f}s", file=sys.stderr)
            sleep_backoff(delay)

    raise classify_network_error(last_exc, url, settings.timeout) from last_exc


def check_rate_limit(headers: Mapping[str, str], verbose: bool = False) -> RateLimitStatus:
    """Read the rate-limit headers and report them when verbose."""
    raw_remaining = headers.get("X-RateLimit-Remaining")
    raw_reset = headers.get("X-RateLimit-Reset")

    remaining = int(raw_remaining) if raw_remaining and str(raw_remaining).isdigit() else None
    reset = None
    if raw_reset and str(raw_reset).isdigit():
        reset = dt.datetime.fromtimestamp(int(raw_reset), tz=dt.timezone.utc)

    if verbose and remaining is not None:
        suffix = f", resets at {reset.isoformat()}" if reset else ""
        print(f"[rate-limit] {remaining} requests remaining{suffix}", file=sys.stderr)
        if remaining < RATE_LIMIT_WARN_THRESHOLD:
            print("[warn] Rate limit is running low!", file=sys.stderr)

    return RateLimitStatus(remaining=remaining, reset=reset)


def parse_link_header(link: Optional[str]) -> Dict[str, str]:
    """Parse an RFC 8288 Link header into a {rel: url} mapping."""
    if not link:
        return {}
    links: Dict[str, str] = {}
    for part in link.split(","):
        match = LINK_PART_RE.search(part)
        if match:
            links[match.group(2)] = match.group(1)
    return links


def response_message(resp: requests.Response) -> str:
    """Return GitHub's error message for a response, falling back to raw text."""
    try:
        body = resp.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return (resp.text or "")[:300]


__all__ = [
    "RateLimitStatus",
    "build_session",
    "backoff_delay",
    "sleep_backoff",
    "classify_network_error",
    "request_with_backoff",
    "check_rate_limit",
    "parse_link_header",
    "response_message",
]
