# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""Output formatting for CLI commands."""

from __future__ import annotations

import json
import sys
from typing import Any


def output_result(data: dict[str, Any], as_json: bool = False, text: str | None = None) -> None:
    """Print a command result.

    In JSON mode the full ``data`` dict is pretty-printed; otherwise ``text``
    is printed when given, falling back to JSON.
    """
    if as_json or text is None:
        print(json.dumps(data, indent=2, default=str))
    else:
        print(text)


def output_error(message: str) -> None:
    """Print error message to stderr."""
    print(f"Error: {message}", file=sys.stderr)


def read_secret_input(path: str | None) -> str:
    """Read a mnemonic from ``path`` (``-`` or None means stdin)."""
    if path and path != "-":
        with open(path, encoding="utf-8") as f:
            return f.read().strip()
    return sys.stdin.read().strip()
