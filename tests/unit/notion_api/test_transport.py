"""Unit tests for notionsync/notion_api/transport.py.

Covers:
- _raise_for_status (status mapping, sanitized body)
- _decode_body (empty bodies, invalid JSON, non-object JSON)
- NotionTransport.request (credential guard, headers, cursors, 429 retry,
  network errors, debug log, metrics)
- NotionTransport.close / context manager
"""

from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import httpx
import pytest

from notionsync.config import NotionSyncConfig
from notionsync.errors import (
    ErrorCode,
    NotionSyncAuthError,
    NotionSyncCredentialError,
    NotionSyncDecodeError,
    NotionSyncNetworkError,
    NotionSyncNotFoundError,
    NotionSyncPermissionError,
    NotionSyncRateLimitError,
    NotionSyncRemoteError,
    NotionSyncServerError,
    NotionSyncValidationError,
)
from notionsync.notion_api.transport import NotionTransport, _decode_body, _raise_for_status
from notionsync.observability import DebugLog

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def make_response(
    status_code: int = 200,
    body: dict | list | None = None,
    headers: dict | None = None,
    content: bytes | None = None,
) -> httpx.Response:
    """Build a minimal httpx.Response with a request attached."""
    if content is None:
        content = json.dumps(body).encode() if body is not None else b""
    resp = httpx.Response(status_code, content=content, headers=headers or {})
    resp.request = httpx.Request("GET", "https://api.notion.com/v1/test")
    return resp


def make_config(**overrides) -> NotionSyncConfig:
    """A config tuned for fast, deterministic tests."""
    defaults = dict(
        token="test-token-1234",
        retry_max_attempts=3,
        retry_default_delay=0.0,
    )
    defaults.update(overrides)
    return NotionSyncConfig(**defaults)


# ---------------------------------------------------------------------------
# _raise_for_status
# ---------------------------------------------------------------------------

class TestRaiseForStatus:
    @pytest.mark.parametrize(("status", "error_cls"), [
        (400, NotionSyncValidationError),
        (401, NotionSyncAuthError),
        (403, NotionSyncPermissionError),
        (404, NotionSyncNotFoundError),
        (409, NotionSyncValidationError),
        (429, NotionSyncRateLimitError),
        (500, NotionSyncServerError),
        (503, NotionSyncServerError),
    ])
    def test_status_maps_to_typed_error(self, status, error_cls):
        resp = make_response(status, {"object": "error", "code": "x", "message": "nope"})
        with pytest.raises(error_cls) as exc_info:
            _raise_for_status(resp, "GET", "/pages/p", "tok")
        assert isinstance(exc_info.value, NotionSyncRemoteError)
        assert exc_info.value.status == status

    def test_message_uses_api_message(self):
        resp = make_response(400, {"object": "error", "code": "validation_error", "message": "bad"})
        with pytest.raises(NotionSyncValidationError) as exc_info:
            _raise_for_status(resp, "PATCH", "/blocks/b", None)
        err = exc_info.value
        assert "bad" in err.message
        assert err.context["notion_code"] == "validation_error"
        assert err.context["method"] == "PATCH"
        assert err.context["path"] == "/blocks/b"

    def test_non_json_body_is_kept_as_text(self):
        resp = make_response(502, content=b"<html>Bad gateway</html>")
        with pytest.raises(NotionSyncServerError) as exc_info:
            _raise_for_status(resp, "GET", "/x", None)
        assert exc_info.value.body == "<html>Bad gateway</html>"

    def test_body_is_sanitized(self):
        resp = make_response(401, {"message": "token secret-abc is invalid"})
        with pytest.raises(NotionSyncAuthError) as exc_info:
            _raise_for_status(resp, "GET", "/x", "secret-abc")
        err = exc_info.value
        assert "secret-abc" not in err.body
        assert "secret-abc" not in err.message
        assert "[REDACTED]" in err.body


# ---------------------------------------------------------------------------
# _decode_body
# ---------------------------------------------------------------------------

class TestDecodeBody:
    def test_object_body(self):
        assert _decode_body(make_response(200, {"id": "p"}), "GET", "/p") == {"id": "p"}

    def test_empty_body_is_empty_dict(self):
        assert _decode_body(make_response(200), "DELETE", "/blocks/b") == {}

    def test_no_content_status(self):
        assert _decode_body(make_response(204), "DELETE", "/blocks/b") == {}

    def test_invalid_json_is_decode_error(self):
        with pytest.raises(NotionSyncDecodeError) as exc_info:
            _decode_body(make_response(200, content=b"{not json"), "GET", "/p")
        assert exc_info.value.code == ErrorCode.DECODE_ERROR
        assert not isinstance(exc_info.value, NotionSyncRemoteError)

    def test_non_object_json_is_decode_error(self):
        with pytest.raises(NotionSyncDecodeError):
            _decode_body(make_response(200, [1, 2, 3]), "GET", "/p")


# ---------------------------------------------------------------------------
# NotionTransport.request
# ---------------------------------------------------------------------------

class TestRequestBasics:
    def test_missing_token_fails_without_network_call(self):
        transport = NotionTransport(make_config(token=""))
        with patch.object(transport._client, "request") as mock_req:
            with pytest.raises(NotionSyncCredentialError) as exc_info:
                transport.request("GET", "/pages/p")
        mock_req.assert_not_called()
        assert exc_info.value.code == ErrorCode.CREDENTIAL_MISSING

    def test_headers(self):
        transport = NotionTransport(make_config())
        headers = transport._client.headers
        assert headers["Authorization"] == "Bearer test-token-1234"
        assert headers["Notion-Version"] == "2022-06-28"
        assert headers["Content-Type"] == "application/json"

    def test_success_returns_decoded_object(self):
        transport = NotionTransport(make_config())
        with patch.object(transport._client, "request", return_value=make_response(200, {"id": "p"})) as mock_req:
            assert transport.request("get", "/pages/p") == {"id": "p"}
        mock_req.assert_called_once_with("GET", "/pages/p")

    def test_get_cursor_goes_to_query_params(self):
        transport = NotionTransport(make_config())
        with patch.object(transport._client, "request", return_value=make_response(200, {})) as mock_req:
            transport.request("GET", "/blocks/b/children", params={"page_size": 100}, start_cursor="c1")
        assert mock_req.call_args.kwargs["params"] == {"page_size": 100, "start_cursor": "c1"}
        assert "json" not in mock_req.call_args.kwargs

    def test_post_cursor_goes_to_body(self):
        transport = NotionTransport(make_config())
        with patch.object(transport._client, "request", return_value=make_response(200, {})) as mock_req:
            transport.request("POST", "/databases/d/query", json={"page_size": 10}, start_cursor="c2")
        assert mock_req.call_args.kwargs["json"] == {"page_size": 10, "start_cursor": "c2"}

    def test_empty_delete_response_is_success(self):
        transport = NotionTransport(make_config())
        with patch.object(transport._client, "request", return_value=make_response(200)):
            assert transport.request("DELETE", "/blocks/b") == {}

    def test_client_error_is_not_retried(self):
        transport = NotionTransport(make_config())
        with patch.object(transport._client, "request", return_value=make_response(404, {"message": "gone"})) as mock_req:
            with pytest.raises(NotionSyncNotFoundError):
                transport.request("GET", "/pages/p")
        assert mock_req.call_count == 1

    def test_server_error_is_not_retried(self):
        transport = NotionTransport(make_config())
        with patch.object(transport._client, "request", return_value=make_response(500, {"message": "oops"})) as mock_req:
            with pytest.raises(NotionSyncServerError):
                transport.request("GET", "/pages/p")
        assert mock_req.call_count == 1

    def test_network_error(self):
        transport = NotionTransport(make_config())
        with patch.object(transport._client, "request", side_effect=httpx.ConnectTimeout("timed out")):
            with pytest.raises(NotionSyncNetworkError) as exc_info:
                transport.request("GET", "/pages/p")
        assert isinstance(exc_info.value.cause, httpx.ConnectTimeout)


class TestRateLimitRetry:
    def test_retries_429_then_succeeds(self):
        transport = NotionTransport(make_config())
        responses = [
            make_response(429, {"message": "slow down"}, headers={"Retry-After": "2"}),
            make_response(200, {"ok": True}),
        ]
        with patch.object(transport._client, "request", side_effect=responses) as mock_req, \
                patch("notionsync.notion_api.transport.time.sleep") as mock_sleep:
            assert transport.request("PATCH", "/blocks/b", json={"x": 1}) == {"ok": True}
        assert mock_req.call_count == 2
        # Identical request reissued.
        assert mock_req.call_args_list[0] == mock_req.call_args_list[1]
        mock_sleep.assert_called_once_with(2.0)

    def test_default_delay_without_hint(self):
        transport = NotionTransport(make_config(retry_default_delay=1.0))
        responses = [make_response(429), make_response(200, {})]
        with patch.object(transport._client, "request", side_effect=responses), \
                patch("notionsync.notion_api.transport.time.sleep") as mock_sleep:
            transport.request("GET", "/x")
        mock_sleep.assert_called_once_with(1.0)

    def test_three_attempts_then_rate_limit_error(self):
        transport = NotionTransport(make_config())
        with patch.object(transport._client, "request", return_value=make_response(429, {"message": "slow"})) as mock_req, \
                patch("notionsync.notion_api.transport.time.sleep") as mock_sleep:
            with pytest.raises(NotionSyncRateLimitError) as exc_info:
                transport.request("GET", "/x")
        assert mock_req.call_count == 3
        assert mock_sleep.call_count == 2
        assert exc_info.value.status == 429
        assert exc_info.value.context["attempts"] == 3

    def test_hint_is_capped(self):
        transport = NotionTransport(make_config(retry_max_delay=5.0))
        responses = [make_response(429, headers={"Retry-After": "600"}), make_response(200, {})]
        with patch.object(transport._client, "request", side_effect=responses), \
                patch("notionsync.notion_api.transport.time.sleep") as mock_sleep:
            transport.request("GET", "/x")
        mock_sleep.assert_called_once_with(5.0)


class TestTransportObservability:
    def test_debug_log_records_each_call(self):
        log = DebugLog()
        transport = NotionTransport(make_config(debug=True), debug_log=log)
        with patch.object(transport._client, "request", return_value=make_response(200, {})), \
                patch("notionsync.notion_api.transport._dump_payload"):
            transport.request("GET", "/pages/p")
        entries = log.entries()
        assert len(entries) == 1
        assert entries[0].startswith("GET request to /pages/p took: ")
        assert entries[0].endswith("ms")

    def test_debug_log_records_failed_calls_too(self):
        log = DebugLog()
        transport = NotionTransport(make_config(debug=True), debug_log=log)
        with patch.object(transport._client, "request", return_value=make_response(404, {})), \
                patch("notionsync.notion_api.transport._dump_payload"):
            with pytest.raises(NotionSyncNotFoundError):
                transport.request("GET", "/pages/p")
        assert len(log) == 1

    def test_no_debug_log_by_default(self):
        log = DebugLog()
        transport = NotionTransport(make_config(), debug_log=log)
        with patch.object(transport._client, "request", return_value=make_response(200, {})):
            transport.request("GET", "/pages/p")
        assert len(log) == 0

    def test_debug_dump_is_redacted(self, capsys):
        transport = NotionTransport(make_config(debug=True))
        body = {"echo": "Bearer test-token-1234"}
        with patch.object(transport._client, "request", return_value=make_response(200, body)):
            transport.request("POST", "/pages", json={"token": "test-token-1234"})
        err = capsys.readouterr().err
        assert "test-token-1234" not in err
        assert "[REDACTED]" in err

    def test_metrics(self):
        metrics = MagicMock()
        transport = NotionTransport(make_config(metrics=metrics))
        responses = [make_response(429), make_response(200, {})]
        with patch.object(transport._client, "request", side_effect=responses), \
                patch("notionsync.notion_api.transport.time.sleep"):
            transport.request("GET", "/x")
        names = [c.args[0] for c in metrics.increment.call_args_list]
        assert names.count("notionsync.requests_total") == 2
        assert "notionsync.rate_limited_total" in names
        assert "notionsync.retries_total" in names
        metrics.timing.assert_called()


class TestLifecycle:
    def test_close(self):
        transport = NotionTransport(make_config())
        with patch.object(transport._client, "close") as mock_close:
            transport.close()
        mock_close.assert_called_once()

    def test_context_manager_closes(self):
        with patch.object(httpx.Client, "close") as mock_close:
            with NotionTransport(make_config()) as transport:
                assert isinstance(transport, NotionTransport)
        mock_close.assert_called_once()
