"""Convenience shim to run the commit titles CLI from a checkout."""

from __future__ import annotations

import sys

from commit_titles.cli import main


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
