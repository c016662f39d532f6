"""Command-line interface for gitdir."""

from __future__ import annotations
