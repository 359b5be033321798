"""Pull-request context from the runner's event payload."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


class EventPayloadError(RuntimeError):
    """Event payload cannot be read or is not a JSON object."""


def _as_pr_number(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def pr_number_from_payload(payload: dict[str, Any]) -> int | None:
    """Top-level ``number`` (pull_request events) or ``pull_request.number``."""
    number = _as_pr_number(payload.get("number"))
    if number is not None:
        return number
    pull_request = payload.get("pull_request")
    if isinstance(pull_request, dict):
        return _as_pr_number(pull_request.get("number"))
    return None


def read_pr_number(path: Path) -> int | None:
    """Resolve the PR number, or None when the event is not a pull request.

    Raises:
        EventPayloadError: unreadable file, invalid JSON, or non-object payload.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise EventPayloadError(f"unable to read event payload {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise EventPayloadError(f"invalid JSON in event payload {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise EventPayloadError(f"invalid event payload in {path}: expected object")
    return pr_number_from_payload(data)
