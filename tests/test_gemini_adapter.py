from __future__ import annotations

import http.client
import io
import json
from typing import Any
from urllib import error

import pytest

from mdx_codegen.llm import gemini_adapter
from mdx_codegen.llm.base import ApiError, EmptyResponseError, TransportError
from mdx_codegen.llm.gemini_adapter import GeminiAdapter


class _FakeResponse:
    def __init__(self, body: bytes) -> None:
        self._body = body

    def __enter__(self) -> "_FakeResponse":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        return None

    def read(self) -> bytes:
        return self._body


def _success(text: str) -> bytes:
    return json.dumps({"candidates": [{"content": {"parts": [{"text": text}]}}]}).encode()


def _patch_urlopen(monkeypatch: pytest.MonkeyPatch, outcomes: list[Any]) -> list[Any]:
    seen: list[Any] = []

    def fake_urlopen(req, timeout=None):
        seen.append((req, timeout))
        outcome = outcomes[min(len(seen), len(outcomes)) - 1]
        if isinstance(outcome, BaseException):
            raise outcome
        return _FakeResponse(outcome)

    monkeypatch.setattr(gemini_adapter.request, "urlopen", fake_urlopen)
    return seen


def test_send_builds_request_and_returns_text(monkeypatch, request_obj, log) -> None:
    seen = _patch_urlopen(monkeypatch, [_success("```js\nx\n```")])
    adapter = GeminiAdapter(api_key="secret", base_url="https://api.test/v1beta/", log=log)

    assert adapter.send(request_obj, 9.0) == "```js\nx\n```"

    req, timeout = seen[0]
    assert timeout == 9.0
    assert req.full_url == "https://api.test/v1beta/models/gemini-test:generateContent"
    assert req.get_method() == "POST"
    assert req.headers["X-goog-api-key"] == "secret"
    assert json.loads(req.data) == request_obj.to_payload()


def test_error_payload_is_api_error(monkeypatch, request_obj, log) -> None:
    _patch_urlopen(monkeypatch, [json.dumps({"error": {"message": "API key invalid"}}).encode()])
    with pytest.raises(ApiError, match="API key invalid"):
        GeminiAdapter(api_key="k", log=log).send(request_obj, 1.0)


def test_http_error_with_payload_is_api_error(monkeypatch, request_obj, log) -> None:
    body = io.BytesIO(b'{"error": {"code": 429, "message": "Resource exhausted"}}')
    _patch_urlopen(monkeypatch, [error.HTTPError("https://api.test", 429, "Too Many", None, body)])
    with pytest.raises(ApiError, match="Resource exhausted"):
        GeminiAdapter(api_key="k", log=log).send(request_obj, 1.0)


def test_http_error_without_payload_is_transport_error(monkeypatch, request_obj, log) -> None:
    body = io.BytesIO(b"<html>bad gateway</html>")
    _patch_urlopen(monkeypatch, [error.HTTPError("https://api.test", 502, "Bad Gateway", None, body)])
    with pytest.raises(TransportError, match="HTTP 502"):
        GeminiAdapter(api_key="k", log=log).send(request_obj, 1.0)


def test_connection_failure_is_transport_error(monkeypatch, request_obj, log) -> None:
    _patch_urlopen(monkeypatch, [error.URLError("connection refused")])
    with pytest.raises(TransportError, match="connection refused"):
        GeminiAdapter(api_key="k", log=log).send(request_obj, 1.0)


def test_timeout_is_transport_error(monkeypatch, request_obj, log) -> None:
    _patch_urlopen(monkeypatch, [TimeoutError("timed out")])
    with pytest.raises(TransportError):
        GeminiAdapter(api_key="k", log=log).send(request_obj, 1.0)


def test_non_json_body_is_transport_error(monkeypatch, request_obj, log) -> None:
    _patch_urlopen(monkeypatch, [b"not json"])
    with pytest.raises(TransportError):
        GeminiAdapter(api_key="k", log=log).send(request_obj, 1.0)


@pytest.mark.parametrize(
    "payload",
    [
        {},
        {"candidates": []},
        {"candidates": [{"content": {"parts": []}}]},
        {"candidates": [{"content": {"parts": [{"text": "  "}]}}]},
        {"candidates": [{"finishReason": "SAFETY"}]},
    ],
)
def test_missing_text_is_empty_response(monkeypatch, request_obj, log, payload) -> None:
    _patch_urlopen(monkeypatch, [json.dumps(payload).encode()])
    with pytest.raises(EmptyResponseError):
        GeminiAdapter(api_key="k", log=log).send(request_obj, 1.0)


def test_complete_retries_over_http(monkeypatch, request_obj, log) -> None:
    seen = _patch_urlopen(
        monkeypatch,
        [error.URLError("reset"), error.URLError("reset"), _success("done")],
    )
    sleeps: list[float] = []
    adapter = GeminiAdapter(api_key="k", sleep=sleeps.append, log=log)
    assert adapter.complete(request_obj, 5, 2.0) == "done"
    assert len(seen) == 3
    assert sleeps == [2.0, 4.0]


class _TruncatedResponse(_FakeResponse):
    def read(self) -> bytes:
        raise http.client.IncompleteRead(b'{"candi', 500)


def test_truncated_body_is_transport_error(monkeypatch, request_obj, log) -> None:
    monkeypatch.setattr(
        gemini_adapter.request,
        "urlopen",
        lambda req, timeout=None: _TruncatedResponse(b""),
    )
    with pytest.raises(TransportError, match="cut short"):
        GeminiAdapter(api_key="k", log=log).send(request_obj, 1.0)


def test_complete_retries_after_truncated_body(monkeypatch, request_obj, log) -> None:
    responses = [_TruncatedResponse(b""), _FakeResponse(_success("done"))]
    monkeypatch.setattr(gemini_adapter.request, "urlopen", lambda req, timeout=None: responses.pop(0))
    sleeps: list[float] = []

    adapter = GeminiAdapter(api_key="k", sleep=sleeps.append, log=log)

    assert adapter.complete(request_obj, 3, 1.0) == "done"
    assert sleeps == [2.0]
