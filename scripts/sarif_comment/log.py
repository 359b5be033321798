"""Workflow-command logging for GitHub/Gitea Actions runners.

Plain progress goes to stdout; annotations go to stderr so the runner
picks them up without mixing them into captured output.
"""

from __future__ import annotations

import sys


def info(message: str) -> None:
    print(message, flush=True)


def warn(message: str) -> None:
    """Warn."""
    print(f"::warning::{message}", file=sys.stderr)


def error(message: str) -> None:
    """Error."""
    print(f"::error::{message}", file=sys.stderr)
