"""Markdown rendering for the PR comment.

Keep surface area small: severity labels + one table + a <details> block.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Sequence

from .sarif import Finding

# Never change this string: existing comments are found by it.
COMMENT_MARKER = "<!-- sarif-to-comment:report -->"

DEFAULT_TITLE = "🛡️ Security Scan Results"
DEFAULT_RESULTS_LIMIT = 50
RAW_EXCERPT_SIZE = 3

NO_ISSUES_LINE = "✅ **No vulnerabilities found.** Great job!"
TABLE_HEADER = (
    "| Severity | Message | File | Line |",
    "| :--- | :--- | :--- | :--- |",
)

_SEVERITY_LABEL = {
    "error": "🔴 Error",
    "warning": "⚠️ Warning",
    "note": "ℹ️ Note",
}

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


@dataclass(frozen=True)
class RenderedComment:
    """Data class for Rendered Comment."""
    body: str
    marker: str | None = None


def severity_label(level: str | None) -> str:
    """Severity label."""
    return _SEVERITY_LABEL.get(level or "", _SEVERITY_LABEL["warning"])


def single_line(text: str) -> str:
    """Collapse line breaks so a value fits in one table cell."""
    return _LINE_BREAK.sub(" ", text or "")


def table_cell(text: str) -> str:
    return single_line(text).replace("|", "\\|")


def finding_row(finding: Finding) -> str:
    """Finding row."""
    return (
        f"| {severity_label(finding.level)} "
        f"| **{table_cell(finding.rule_id)}**: {table_cell(finding.message)} "
        f"| `{table_cell(finding.file_path)}` "
        f"| {finding.line} |"
    )


def details_block(body_lines: list[str], *, summary: str = "Details") -> list[str]:
    """Details block."""
    if not body_lines:
        return []
    return [f"<details><summary>{summary}</summary>", "", *body_lines, "</details>"]


def raw_excerpt(findings: Sequence[Finding], *, size: int = RAW_EXCERPT_SIZE) -> list[str]:
    """Pretty-printed JSON of the first few raw results, always marked truncated."""
    raw = [f.raw for f in findings[:size]]
    return ["```json", *json.dumps(raw, indent=2, ensure_ascii=False).splitlines(), "...", "```"]


def generated_at(now: datetime | None = None) -> str:
    stamp = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return f"_Generated at {stamp.isoformat(timespec='seconds')}_"


def render_comment(
    findings: Sequence[Finding],
    *,
    title: str = DEFAULT_TITLE,
    results_limit: int = DEFAULT_RESULTS_LIMIT,
    include_marker: bool = True,
    now: datetime | None = None,
) -> RenderedComment:
    """Render the full comment body.

    The table holds at most ``results_limit`` rows, in report order; the rest
    are summarized by a single overflow line. The trailing timestamp is the
    only non-deterministic part of the output.
    """
    if results_limit < 1:
        raise ValueError("results_limit must be greater than zero")

    lines: list[str] = []
    if include_marker:
        lines.append(COMMENT_MARKER)
    lines.extend([f"### {title}", ""])

    total = len(findings)
    if total == 0:
        lines.append(NO_ISSUES_LINE)
    else:
        lines.extend([f"Found **{total}** issues.", ""])
        lines.extend(TABLE_HEADER)
        lines.extend(finding_row(f) for f in findings[:results_limit])

        if total > results_limit:
            lines.extend([
                "",
                f"... and {total - results_limit} more issues. Download the artifact to see all.",
            ])

        lines.append("")
        lines.extend(details_block(raw_excerpt(findings), summary="🔍 Click to view raw report summary"))

    lines.extend(["", generated_at(now)])
    return RenderedComment(
        body="\n".join(lines) + "\n",
        marker=COMMENT_MARKER if include_marker else None,
    )
