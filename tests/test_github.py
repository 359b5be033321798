"""Tests for sarif_comment.github — marker lookup, upsert, request handling."""
from __future__ import annotations

import io
import json
from urllib import error

import pytest

from sarif_comment.github import (
    CREATED,
    UPDATED,
    ExistingComment,
    GitHubClient,
    RemoteCallError,
    find_comment_by_marker,
    parse_comments,
    upsert_pr_comment,
)

MARKER = "<!-- sarif-to-comment:report -->"


class _Response:
    def __init__(self, status: int, body: str = ""):
        self.status = status
        self._body = body.encode()

    def read(self, _size: int = -1) -> bytes:
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *_args):
        return None


class _RecordingOpener:
    """Fake transport: records requests, replays queued responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, req):
        self.requests.append(req)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _client(*responses, token: str | None = "t0k") -> tuple[GitHubClient, _RecordingOpener]:
    opener = _RecordingOpener(*responses)
    return GitHubClient(api_url="https://git.example.test/api/v1", token=token, opener=opener), opener


class TestFindCommentByMarker:
    def test_finds_matching_comment(self):
        comments = [
            ExistingComment(100, "unrelated comment"),
            ExistingComment(200, f"{MARKER}\n### Scan"),
            ExistingComment(300, "another comment"),
        ]
        assert find_comment_by_marker(comments, MARKER) == 200

    def test_returns_none_when_no_match(self):
        comments = [ExistingComment(100, "unrelated"), ExistingComment(200, "also unrelated")]
        assert find_comment_by_marker(comments, MARKER) is None

    def test_returns_none_for_empty_list(self):
        assert find_comment_by_marker([], MARKER) is None

    def test_first_match_wins(self):
        comments = [ExistingComment(100, f"{MARKER}\nFirst"), ExistingComment(200, f"{MARKER}\nSecond")]
        assert find_comment_by_marker(comments, MARKER) == 100

    def test_marker_anywhere_counts(self):
        comments = [ExistingComment(7, f"> quoting the bot:\n> {MARKER}\nthanks")]
        assert find_comment_by_marker(comments, MARKER) == 7


class TestParseComments:
    def test_skips_malformed_entries(self):
        payload = [
            {"id": 1, "body": "a"},
            "junk",
            {"id": "IC_abc", "body": "b"},
            {"id": True, "body": "c"},
            {"id": 2, "body": None},
        ]
        assert parse_comments(payload) == [ExistingComment(1, "a"), ExistingComment(2, "")]

    def test_non_list_is_empty(self):
        assert parse_comments({"message": "nope"}) == []
        assert parse_comments(None) == []


class TestRequest:
    def test_sends_json_headers_and_bearer_token(self):
        client, opener = _client(_Response(201, '{"id": 5}'))
        assert client.request("POST", "repos/o/r/issues/1/comments", {"body": "hi"}) == {"id": 5}

        req = opener.requests[0]
        assert req.full_url == "https://git.example.test/api/v1/repos/o/r/issues/1/comments"
        assert req.get_method() == "POST"
        assert req.get_header("Authorization") == "Bearer t0k"
        assert req.get_header("Accept") == "application/json"
        assert req.get_header("Content-type") == "application/json"
        assert json.loads(req.data) == {"body": "hi"}

    def test_omits_authorization_without_token(self):
        client, opener = _client(_Response(200, "[]"), token=None)
        client.request("GET", "repos/o/r/issues/1/comments")
        assert opener.requests[0].get_header("Authorization") is None
        assert opener.requests[0].data is None

    def test_204_is_none(self):
        client, _ = _client(_Response(204, ""))
        assert client.request("PATCH", "repos/o/r/issues/comments/1", {"body": "x"}) is None

    def test_http_error_carries_details(self):
        exc = error.HTTPError(
            "https://git.example.test/api/v1/x", 403, "Forbidden", {}, io.BytesIO(b'{"message":"token required"}')
        )
        client, _ = _client(exc)
        with pytest.raises(RemoteCallError) as info:
            client.request("POST", "x", {"body": "b"})
        assert info.value.method == "POST"
        assert info.value.url == "https://git.example.test/api/v1/x"
        assert info.value.status == 403
        assert info.value.body == '{"message":"token required"}'
        assert "POST https://git.example.test/api/v1/x failed: 403" in str(info.value)

    def test_non_2xx_status_without_exception(self):
        client, _ = _client(_Response(500, "boom"))
        with pytest.raises(RemoteCallError, match="500 boom"):
            client.request("GET", "x")

    def test_transport_failure(self):
        client, _ = _client(error.URLError("connection refused"))
        with pytest.raises(RemoteCallError, match="no response connection refused"):
            client.request("GET", "x")

    def test_invalid_json_listing_raises(self):
        client, _ = _client(_Response(200, "<html>"))
        with pytest.raises(RemoteCallError, match="invalid JSON"):
            client.list_comments("o/r", 1)

    def test_invalid_json_after_write_is_none(self):
        client, _ = _client(_Response(201, "<html>created</html>"), _Response(200, "ok"))
        assert client.create_comment("o/r", 1, "b") is None
        assert client.update_comment("o/r", 2, "b") is None

    def test_list_comments_uses_single_page(self):
        client, opener = _client(_Response(200, json.dumps([{"id": 9, "body": MARKER}])))
        assert client.list_comments("o/r", 42) == [ExistingComment(9, MARKER)]
        assert opener.requests[0].full_url.endswith("/repos/o/r/issues/42/comments")
        assert len(opener.requests) == 1


class TestUpsertPrComment:
    def test_creates_comment_when_none_exists(self):
        client, opener = _client(_Response(201, '{"id": 77, "html_url": "https://x/77"}'))
        result = upsert_pr_comment(client, repo="owner/repo", pr_number=42, body="Body")

        assert result.action == CREATED
        assert result.comment_id == 77
        assert result.url == "https://x/77"
        req = opener.requests[0]
        assert req.get_method() == "POST"
        assert req.full_url.endswith("/repos/owner/repo/issues/42/comments")
        assert json.loads(req.data) == {"body": "Body"}

    def test_updates_existing_comment(self):
        client, opener = _client(_Response(200, '{"id": 555}'))
        result = upsert_pr_comment(client, repo="owner/repo", pr_number=42, body="New", existing_id=555)

        assert result.action == UPDATED
        assert result.comment_id == 555
        req = opener.requests[0]
        assert req.get_method() == "PATCH"
        assert req.full_url.endswith("/repos/owner/repo/issues/comments/555")
        assert json.loads(req.data) == {"body": "New"}

    def test_created_with_unreadable_response_still_succeeds(self):
        client, opener = _client(_Response(201, "<html>created</html>"))
        result = upsert_pr_comment(client, repo="o/r", pr_number=1, body="b")
        assert result.action == CREATED
        assert result.comment_id is None
        assert len(opener.requests) == 1

    def test_update_with_empty_response_keeps_id(self):
        client, _ = _client(_Response(204, ""))
        result = upsert_pr_comment(client, repo="o/r", pr_number=1, body="b", existing_id=8)
        assert result.comment_id == 8
        assert result.url is None

    def test_failure_is_not_retried(self):
        client, opener = _client(_Response(502, "bad gateway"), _Response(201, "{}"))
        with pytest.raises(RemoteCallError):
            upsert_pr_comment(client, repo="o/r", pr_number=1, body="b")
        assert len(opener.requests) == 1
