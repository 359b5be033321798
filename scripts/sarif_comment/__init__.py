"""Post SARIF findings to a pull request as a single, updatable comment."""

from .github import ExistingComment, GitHubClient, RemoteCallError, find_comment_by_marker, upsert_pr_comment
from .markdown import COMMENT_MARKER, RenderedComment, render_comment
from .sarif import Finding, ReportError, load_findings

__all__ = [
    "COMMENT_MARKER",
    "ExistingComment",
    "Finding",
    "GitHubClient",
    "RemoteCallError",
    "RenderedComment",
    "ReportError",
    "find_comment_by_marker",
    "load_findings",
    "render_comment",
    "upsert_pr_comment",
]
