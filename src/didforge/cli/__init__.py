# SPDX-License-Identifier: MIT
# Copyright (c) 2026 Ourochronos Contributors

"""didforge CLI."""

from .main import app, main

__all__ = ["main", "app"]
