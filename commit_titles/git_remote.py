"""Detect owner, repository, and branch from the local git checkout."""

from __future__ import annotations

import os
import re
import subprocess
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

REMOTE_PATTERNS = [
    re.compile(r"^https://github\.com/([^/]+)/([^/]+?)(?:\.git)?$"),
    re.compile(r"^git@github\.com:([^/]+)/([^/]+?)(?:\.git)?$"),
    re.compile(r"gh:([^/]+)/([^/]+)$"),
]
PREFERRED_REMOTES = ("origin", "upstream")


@dataclass(frozen=True)
class Remote:
    name: str
    url: str
    owner: str
    repo: str


@dataclass
class GitInfo:
    is_git_repo: bool = False
    owner: Optional[str] = None
    repo: Optional[str] = None
    branch: Optional[str] = None
    remotes: List[Remote] = field(default_factory=list)
    working_dir: str = ""


def run_git(args: List[str], cwd: Optional[str] = None) -> Optional[str]:
    """Run a git command and return stdout, or None when it fails."""
    try:
        result = subprocess.run(
            ["git", *args],
            capture_output=True,
            text=True,
            timeout=30,
            cwd=cwd,
        )
    except (OSError, subprocess.TimeoutExpired):
        return None
    if result.returncode != 0:
        return None
    return result.stdout.strip()


def parse_git_remote(remote_url: Optional[str]) -> Optional[Tuple[str, str]]:
    """Extract (owner, repo) from an HTTPS, SSH, or gh: GitHub remote URL."""
    if not remote_url:
        return None
    for pattern in REMOTE_PATTERNS:
        match = pattern.search(remote_url.strip())
        if match:
            return match.group(1), match.group(2)
    return None


def current_branch(cwd: Optional[str] = None) -> Optional[str]:
    branch = run_git(["rev-parse", "--abbrev-ref", "HEAD"], cwd)
    if branch is None:
        return None
    return "main" if branch == "HEAD" else branch


def list_remotes(cwd: Optional[str] = None) -> List[Remote]:
    output = run_git(["remote", "-v"], cwd)
    remotes: List[Remote] = []
    for line in (output or "").splitlines():
        if "(fetch)" not in line or "\t" not in line:
            continue
        name, rest = line.split("\t", 1)
        url = rest.replace("(fetch)", "").strip()
        parsed = parse_git_remote(url)
        if parsed:
            remotes.append(Remote(name=name.strip(), url=url, owner=parsed[0], repo=parsed[1]))
    return remotes


def pick_remote(remotes: List[Remote]) -> Optional[Remote]:
    for preferred in PREFERRED_REMOTES:
        for remote in remotes:
            if remote.name == preferred:
                return remote
    return remotes[0] if remotes else None


def auto_detect_git_info(cwd: Optional[str] = None) -> GitInfo:
    """Collect repository facts for --auto; fields stay None when undetectable."""
    info = GitInfo(working_dir=cwd or os.getcwd())
    if run_git(["rev-parse", "--git-dir"], cwd) is None:
        return info

    info.is_git_repo = True
    info.branch = current_branch(cwd)
    info.remotes = list_remotes(cwd)
    chosen = pick_remote(info.remotes)
    if chosen:
        info.owner = chosen.owner
        info.repo = chosen.repo
    return info


__all__ = [
    "Remote",
    "GitInfo",
    "run_git",
    "parse_git_remote",
    "current_branch",
    "list_remotes",
    "pick_remote",
    "auto_detect_git_info",
]
