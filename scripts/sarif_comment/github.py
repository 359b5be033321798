"""PR comment utilities for GitHub/Gitea REST APIs.

Provides idempotent comment upsert using an HTML marker for identification.
Every call is a single blocking request; there is no retry.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Iterable
from urllib import error, request

from . import log

HttpOpen = Callable[[request.Request], Any]

CREATED = "created"
UPDATED = "updated"


class RemoteCallError(RuntimeError):
    """API request failed or returned a non-2xx status."""

    def __init__(self, method: str, url: str, status: int | None, body: str) -> None:
        self.method = method
        self.url = url
        self.status = status
        self.body = body
        status_text = status if status is not None else "no response"
        super().__init__(f"{method} {url} failed: {status_text} {body}".rstrip())


@dataclass(frozen=True)
class ExistingComment:
    """Data class for Existing Comment."""
    id: int
    body: str


@dataclass(frozen=True)
class PublishResult:
    """Data class for Publish Result."""
    action: str
    comment_id: int | None
    url: str | None = None


def _default_opener(req: request.Request) -> Any:
    return request.urlopen(req)


def _read_text(response: Any) -> str:
    raw = response.read()
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return raw if isinstance(raw, str) else ""


@dataclass(frozen=True)
class GitHubClient:
    """Minimal JSON client for the three comment endpoints."""
    api_url: str
    token: str | None = None
    opener: HttpOpen | None = None

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def request(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
        *,
        strict_json: bool = True,
    ) -> Any:
        """Send one request and return the decoded JSON body (None when empty).

        With ``strict_json=False`` an undecodable 2xx body is also None: the
        write already succeeded, only the echo is unreadable.

        Raises:
            RemoteCallError: non-2xx status, transport failure, or (strict
                only) a 2xx body that is not JSON.
        """
        url = f"{self.api_url.rstrip('/')}/{path.lstrip('/')}"
        data = json.dumps(payload).encode("utf-8") if payload is not None else None
        req = request.Request(url, data=data, method=method, headers=self._headers())
        opener = self.opener or _default_opener

        try:
            with opener(req) as response:
                status = int(getattr(response, "status", 200))
                text = _read_text(response)
        except error.HTTPError as exc:
            # urllib raises for non-2xx, but the error still carries status + body.
            raise RemoteCallError(method, url, exc.code, _read_text(exc)) from exc
        except error.URLError as exc:
            raise RemoteCallError(method, url, None, str(exc.reason)) from exc

        if not 200 <= status < 300:
            raise RemoteCallError(method, url, status, text)
        if status == 204 or not text.strip():
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            if not strict_json:
                return None
            raise RemoteCallError(method, url, status, f"invalid JSON response: {text}") from exc

    def list_comments(self, repo: str, pr_number: int) -> list[ExistingComment]:
        """First page of issue comments, in API order."""
        payload = self.request("GET", f"repos/{repo}/issues/{pr_number}/comments")
        return parse_comments(payload)

    def create_comment(self, repo: str, pr_number: int, body: str) -> Any:
        return self.request(
            "POST", f"repos/{repo}/issues/{pr_number}/comments", {"body": body}, strict_json=False
        )

    def update_comment(self, repo: str, comment_id: int, body: str) -> Any:
        return self.request(
            "PATCH", f"repos/{repo}/issues/comments/{comment_id}", {"body": body}, strict_json=False
        )


def parse_comments(payload: object) -> list[ExistingComment]:
    """Keep entries that look like comments; anything else is skipped."""
    if not isinstance(payload, list):
        return []
    comments: list[ExistingComment] = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        comment_id = item.get("id")
        if isinstance(comment_id, bool) or not isinstance(comment_id, int):
            continue
        comments.append(ExistingComment(id=comment_id, body=str(item.get("body") or "")))
    return comments


def find_comment_by_marker(comments: Iterable[ExistingComment], marker: str) -> int | None:
    """Find the first comment containing the marker, return its numeric ID.

    Containment anywhere in the body counts, quoted text included.
    """
    for comment in comments:
        if marker in comment.body:
            return comment.id
    return None


def _result(action: str, response: object, fallback_id: int | None) -> PublishResult:
    data = response if isinstance(response, dict) else {}
    comment_id = data.get("id")
    if isinstance(comment_id, bool) or not isinstance(comment_id, int):
        comment_id = fallback_id
    url = data.get("html_url")
    return PublishResult(action=action, comment_id=comment_id, url=url if isinstance(url, str) and url else None)


def upsert_pr_comment(
    client: GitHubClient,
    *,
    repo: str,
    pr_number: int,
    body: str,
    existing_id: int | None = None,
) -> PublishResult:
    """Update ``existing_id`` in place, or create a new comment when it is None.

    Raises:
        RemoteCallError: the create/update request failed.
    """
    if existing_id is not None:
        log.info(f"Updating existing comment {existing_id} on {repo}#{pr_number}")
        response = client.update_comment(repo, existing_id, body)
        return _result(UPDATED, response, existing_id)

    log.info(f"Creating new comment on {repo}#{pr_number}")
    response = client.create_comment(repo, pr_number, body)
    return _result(CREATED, response, None)
