#!/usr/bin/env python3
"""Runs the URL Hunter CLI straight from a source checkout."""

from __future__ import annotations

import sys
from pathlib import Path

SRC_PATH = Path(__file__).resolve().parent / "src"
if SRC_PATH.is_dir() and str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from url_hunter.cli import main  # noqa: E402


if __name__ == "__main__":
    main()
