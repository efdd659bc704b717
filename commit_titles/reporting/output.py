"""Write rendered reports to stdout or disk."""

from __future__ import annotations

import os
import sys
from typing import Optional

from commit_titles.retrieval.errors import OutputError


def ensure_parent_dir(path: Optional[str]) -> None:
    """Create the directory holding `path` as needed; stdout ("-") is skipped."""
    if not path or path == "-":
        return
    parent = os.path.dirname(path)
    if parent and parent != ".":
        try:
            os.makedirs(parent, exist_ok=True)
        except OSError as exc:
            print(f"[warn] Could not create output directory {parent}: {exc}", file=sys.stderr)


def write_output(content: str, path: Optional[str] = None) -> None:
    """Print `content`, or write it to `path` using UTF-8."""
    if not path or path == "-":
        print(content)
        return
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
    except OSError as exc:
        raise OutputError(f"Failed to write output file: {exc}") from exc
    print(f"Output written to: {path}", file=sys.stderr)


__all__ = ["ensure_parent_dir", "write_output"]
