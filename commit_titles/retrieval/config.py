"""Central configuration constants for the commit retrieval workflow."""

from __future__ import annotations

import os
from dataclasses import dataclass

USER_AGENT = os.getenv("COMMIT_TITLES_USER_AGENT", "commit-titles/1.0")
BASE_URL = os.getenv("GITHUB_API_URL", "https://api.github.com")
PER_PAGE = 100
REQUEST_TIMEOUT_SEC = float(os.getenv("REQUEST_TIMEOUT_SEC", "30"))
MAX_RETRIES = int(os.getenv("MAX_RETRIES", "3"))
BACKOFF_BASE_SEC = float(os.getenv("BACKOFF_BASE_SEC", "1"))
BACKOFF_CAP_SEC = float(os.getenv("BACKOFF_CAP_SEC", "10"))
UNAUTH_PAGE_DELAY_SEC = float(os.getenv("UNAUTH_PAGE_DELAY_SEC", "0.1"))
RATE_LIMIT_WARN_THRESHOLD = int(os.getenv("RATE_LIMIT_WARN_THRESHOLD", "10"))
MAX_COMMITS_LIMIT = 10000  # GitHub stops paginating commit listings around here


@dataclass(frozen=True)
class FetchSettings:
    """Transport and diagnostics options passed explicitly to the fetch path."""

    timeout: float = REQUEST_TIMEOUT_SEC
    retries: int = MAX_RETRIES
    verbose: bool = False


__all__ = [
    "USER_AGENT",
    "BASE_URL",
    "PER_PAGE",
    "REQUEST_TIMEOUT_SEC",
    "MAX_RETRIES",
    "BACKOFF_BASE_SEC",
    "BACKOFF_CAP_SEC",
    "UNAUTH_PAGE_DELAY_SEC",
    "RATE_LIMIT_WARN_THRESHOLD",
    "MAX_COMMITS_LIMIT",
    "FetchSettings",
]
