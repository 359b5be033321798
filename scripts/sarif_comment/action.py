"""Render a SARIF report and publish it as a pull-request comment.

Usage:
    python3 scripts/sarif-to-comment.py [--sarif-file PATH] [--title TEXT]
        [--results-limit N] [--update-existing | --no-update-existing]
        [--config-file PATH] [--dry-run]

Env:
    INPUT_SARIF_FILE       SARIF report (default: scan_results.sarif).
    INPUT_TOKEN            API token. Missing token only warns; API calls fail later.
    INPUT_TITLE            Comment title.
    INPUT_RESULTS_LIMIT    Max table rows (default: 50).
    INPUT_UPDATE_EXISTING  Update the previous comment instead of adding one (default: true).
    INPUT_CONFIG_FILE      Optional YAML defaults file.
    GITHUB_API_URL         REST API root.
    GITHUB_REPOSITORY      owner/name.
    GITHUB_EVENT_PATH      Event payload JSON.

Exit codes:
    0  Comment posted, or nothing to do (no report / not a pull request).
    1  Fatal error.

Two runs racing on the same pull request are not coordinated: both may miss
each other's comment and create one each, and the last update wins.
"""

from __future__ import annotations

import argparse
import os
import sys
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping

from . import log
from .config import ActionConfig, load_config
from .event import read_pr_number
from .github import GitHubClient, PublishResult, find_comment_by_marker, upsert_pr_comment
from .markdown import render_comment
from .sarif import load_findings

POSTED = "posted"
RENDERED = "rendered"
SKIPPED_NO_REPORT = "skipped-no-report"
SKIPPED_NOT_PULL_REQUEST = "skipped-not-pull-request"


@dataclass(frozen=True)
class RunOutcome:
    """Data class for Run Outcome."""
    status: str
    pr_number: int | None = None
    body: str | None = None
    result: PublishResult | None = None


def run(
    config: ActionConfig,
    *,
    client: GitHubClient | None = None,
    dry_run: bool = False,
    now: datetime | None = None,
) -> RunOutcome:
    """Load → render → (resolve) → publish.

    The two expected early-outs are returned, not raised. Any exception
    raised here is fatal for the run.
    """
    if not config.sarif_file.exists():
        log.info(f"SARIF file not found: {config.sarif_file}")
        return RunOutcome(SKIPPED_NO_REPORT)

    pr_number = read_pr_number(config.event_path)
    if pr_number is None:
        log.info("Not a Pull Request event, skipping comment.")
        return RunOutcome(SKIPPED_NOT_PULL_REQUEST)

    findings = load_findings(config.sarif_file)
    log.info(f"Loaded {len(findings)} findings from {config.sarif_file}")

    rendered = render_comment(
        findings,
        title=config.title,
        results_limit=config.results_limit,
        include_marker=config.update_existing,
        now=now,
    )

    if dry_run:
        return RunOutcome(RENDERED, pr_number=pr_number, body=rendered.body)

    if not config.token:
        log.warn("No API token provided; requests will likely be rejected.")
    if client is None:
        client = GitHubClient(api_url=config.api_url, token=config.token)

    log.info(f"Posting comment to: {config.api_url}/repos/{config.repository}/issues/{pr_number}/comments")
    log.info(f"Token: {'****' if config.token else 'Not Provided'}")

    existing_id = None
    if rendered.marker is not None:
        comments = client.list_comments(config.repository, pr_number)
        existing_id = find_comment_by_marker(comments, rendered.marker)

    result = upsert_pr_comment(
        client,
        repo=config.repository,
        pr_number=pr_number,
        body=rendered.body,
        existing_id=existing_id,
    )
    log.info(f"✅ Comment {result.action} successfully!" + (f" {result.url}" if result.url else ""))
    return RunOutcome(POSTED, pr_number=pr_number, body=rendered.body, result=result)


def parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Post a SARIF report as a pull-request comment.")
    p.add_argument("--sarif-file", default=None, help="SARIF report path (default: env INPUT_SARIF_FILE)")
    p.add_argument("--title", default=None, help="Comment title (default: env INPUT_TITLE)")
    p.add_argument("--results-limit", default=None, help="Max table rows (default: 50)")
    p.add_argument(
        "--update-existing",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Update the previous comment instead of adding a new one",
    )
    p.add_argument("--config-file", default=None, help="YAML defaults file (default: env INPUT_CONFIG_FILE)")
    p.add_argument("--dry-run", action="store_true", help="Print the comment body and skip API calls")
    return p.parse_args(argv)


def main(argv: list[str] | None = None, environ: Mapping[str, str] | None = None) -> int:
    """Main."""
    args = parse_args(sys.argv[1:] if argv is None else argv)
    env = os.environ if environ is None else environ

    try:
        config = load_config(
            env,
            {
                "sarif_file": args.sarif_file,
                "title": args.title,
                "results_limit": args.results_limit,
                "update_existing": args.update_existing,
                "config_file": args.config_file,
            },
        )
        outcome = run(config, dry_run=args.dry_run)
    except Exception as exc:
        log.error(f"❌ Error: {exc}")
        return 1

    if outcome.status == RENDERED and outcome.body is not None:
        sys.stdout.write(outcome.body)
    return 0
