"""SARIF report loading.

Flattens ``runs[].results[]`` into an ordered list of findings. Lenient about
shape (missing or odd-typed sections count as empty), strict about syntax.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

LEVELS = ("error", "warning", "note")
DEFAULT_LEVEL = "warning"
UNKNOWN_FILE = "unknown"
UNKNOWN_LINE = "?"


class ReportError(RuntimeError):
    """SARIF file exists but cannot be read as a report."""


@dataclass(frozen=True)
class Finding:
    """One static-analysis result."""
    rule_id: str
    message: str
    level: str = DEFAULT_LEVEL
    file_path: str = UNKNOWN_FILE
    line: int | str = UNKNOWN_LINE
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


def _as_dict(value: object) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: object) -> list[Any]:
    return value if isinstance(value, list) else []


def _first_str(*values: object) -> str | None:
    for value in values:
        if isinstance(value, str) and value:
            return value
    return None


def normalize_level(value: object) -> str:
    """SARIF ``level`` is a case-sensitive enum; anything unrecognized is a warning."""
    return value if isinstance(value, str) and value in LEVELS else DEFAULT_LEVEL


def _start_line(value: object) -> int | str:
    # bool is an int subclass; SARIF line numbers are 1-based.
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return UNKNOWN_LINE
    return value


def finding_from_result(result: dict[str, Any]) -> Finding:
    """Build a Finding from one SARIF ``result`` object."""
    message = _as_dict(result.get("message"))
    rule = _as_dict(result.get("rule"))
    locations = _as_list(result.get("locations"))
    physical = _as_dict(_as_dict(locations[0] if locations else None).get("physicalLocation"))
    artifact = _as_dict(physical.get("artifactLocation"))
    region = _as_dict(physical.get("region"))

    return Finding(
        rule_id=_first_str(result.get("ruleId"), rule.get("id")) or "unknown",
        message=_first_str(message.get("text"), message.get("markdown")) or "",
        level=normalize_level(result.get("level")),
        file_path=_first_str(artifact.get("uri")) or UNKNOWN_FILE,
        line=_start_line(region.get("startLine")),
        raw=result,
    )


def flatten_report(report: dict[str, Any]) -> list[Finding]:
    """Concatenate every run's results, preserving run and result order."""
    findings: list[Finding] = []
    for run in _as_list(report.get("runs")):
        for result in _as_list(_as_dict(run).get("results")):
            if isinstance(result, dict):
                findings.append(finding_from_result(result))
    return findings


def load_findings(path: Path) -> list[Finding]:
    """Read a SARIF file and return its findings.

    The caller is expected to have checked that ``path`` exists; a missing
    report is a skip, not an error.

    Raises:
        ReportError: the file cannot be read, is not JSON, or is not an object.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise ReportError(f"unable to read {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ReportError(f"invalid JSON in {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ReportError(f"invalid SARIF in {path}: expected object")
    return flatten_report(data)
