"""GitHub token discovery from the command line, environment, and GitHub CLI."""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import yaml

GH_HOSTS = ("github.com", "api.github.com")

TokenProvider = Tuple[str, Callable[[], Optional[str]]]


def _default_hosts_path() -> Path:
    return Path.home() / ".config" / "gh" / "hosts.yml"


def token_from_env(var: str = "GITHUB_TOKEN") -> Optional[str]:
    return (os.getenv(var) or "").strip() or None


def token_from_gh_hosts(path: Optional[Path] = None) -> Optional[str]:
    """Read the oauth_token stored by `gh auth login`; None when unavailable."""
    hosts_path = Path(path or _default_hosts_path()).expanduser()
    if not hosts_path.exists():
        return None
    try:
        with hosts_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except (OSError, UnicodeDecodeError, yaml.YAMLError):
        return None
    if not isinstance(data, dict):
        return None
    for host in GH_HOSTS:
        entry = data.get(host)
        if isinstance(entry, dict) and entry.get("oauth_token"):
            return str(entry["oauth_token"]).strip() or None
    return None


def token_from_gh_cli() -> Optional[str]:
    """Ask the GitHub CLI for its token; None if gh is missing or logged out."""
    if not shutil.which("gh"):
        return None
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            timeout=10,
        )
    except (OSError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip() or None


def default_providers(cli_token: Optional[str] = None) -> List[TokenProvider]:
    """Token sources in priority order, labelled for verbose output."""
    return [
        ("command line", lambda: (cli_token or "").strip() or None),
        ("environment variable", token_from_env),
        ("GitHub CLI", token_from_gh_hosts),
        ("GitHub CLI", token_from_gh_cli),
    ]


def resolve_token(providers: List[TokenProvider]) -> Tuple[Optional[str], Optional[str]]:
    """Return (token, source label) from the first provider that yields one."""
    for label, provider in providers:
        token = provider()
        if token:
            return token, label
    return None, None


__all__ = [
    "TokenProvider",
    "token_from_env",
    "token_from_gh_hosts",
    "token_from_gh_cli",
    "default_providers",
    "resolve_token",
]
