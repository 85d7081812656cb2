from __future__ import annotations

import os
from pathlib import Path
from urllib import error

import pytest

from mdx_codegen.prompts import source as source_module
from mdx_codegen.prompts.source import PromptSource, UnavailableError

URL = "https://example.test/prompt.md"


class _FakeResponse:
    def __init__(self, body: bytes) -> None:
        self._body = body

    def __enter__(self) -> "_FakeResponse":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        return None

    def read(self) -> bytes:
        return self._body


def _serve(monkeypatch: pytest.MonkeyPatch, outcome: bytes | BaseException) -> list[str]:
    calls: list[str] = []

    def fake_urlopen(url, timeout=None):
        calls.append(url)
        if isinstance(outcome, BaseException):
            raise outcome
        return _FakeResponse(outcome)

    monkeypatch.setattr(source_module.request, "urlopen", fake_urlopen)
    return calls


def _cache(tmp_path: Path, text: str, age: float, now: float) -> Path:
    path = tmp_path / "prompt.md"
    path.write_text(text, encoding="utf-8")
    os.utime(path, (now - age, now - age))
    return path


def test_fresh_cache_skips_network(tmp_path: Path, monkeypatch, log) -> None:
    now = 1_700_000_000.0
    cache = _cache(tmp_path, "cached prompt", age=60, now=now)
    calls = _serve(monkeypatch, b"remote prompt")

    document = PromptSource(cache, clock=lambda: now, log=log).resolve(URL, 3600)

    assert document.text == "cached prompt"
    assert document.degraded is False
    assert calls == []


def test_stale_cache_is_refreshed(tmp_path: Path, monkeypatch, log) -> None:
    now = 1_700_000_000.0
    cache = _cache(tmp_path, "old prompt", age=7200, now=now)
    calls = _serve(monkeypatch, b"new prompt")

    document = PromptSource(cache, clock=lambda: now, log=log).resolve(URL, 3600)

    assert calls == [URL]
    assert document.text == "new prompt"
    assert cache.read_text(encoding="utf-8") == "new prompt"
    assert [p.name for p in tmp_path.iterdir()] == ["prompt.md"]


def test_fetch_failure_falls_back_to_stale_cache(tmp_path: Path, monkeypatch, log) -> None:
    now = 1_700_000_000.0
    cache = _cache(tmp_path, "old prompt", age=7200, now=now)
    _serve(monkeypatch, error.URLError("offline"))

    document = PromptSource(cache, clock=lambda: now, log=log).resolve(URL, 3600)

    assert document.text == "old prompt"
    assert document.degraded is True


def test_no_cache_and_failed_fetch_is_unavailable(tmp_path: Path, monkeypatch, log) -> None:
    cache = tmp_path / "prompt.md"
    _serve(monkeypatch, error.URLError("offline"))

    with pytest.raises(UnavailableError):
        PromptSource(cache, log=log).resolve(URL, 3600)
    assert not cache.exists()


def test_empty_body_counts_as_failed_fetch(tmp_path: Path, monkeypatch, log) -> None:
    now = 1_700_000_000.0
    cache = _cache(tmp_path, "old prompt", age=10, now=now)
    _serve(monkeypatch, b"   \n")

    document = PromptSource(cache, clock=lambda: now, log=log).resolve(URL, 0)

    assert document.text == "old prompt"
    assert document.degraded is True
    assert cache.read_text(encoding="utf-8") == "old prompt"


def test_local_path_is_read_directly(tmp_path: Path, monkeypatch, log) -> None:
    prompt = tmp_path / "todo.mdx"
    prompt.write_text("# Build a todo app\n", encoding="utf-8")
    calls = _serve(monkeypatch, b"remote")

    document = PromptSource(tmp_path / "cache.md", log=log).resolve(str(prompt), 0)

    assert document.text == "# Build a todo app\n"
    assert document.source == str(prompt)
    assert calls == []


def test_missing_local_path_is_unavailable(tmp_path: Path, log) -> None:
    with pytest.raises(UnavailableError):
        PromptSource(tmp_path / "cache.md", log=log).resolve(str(tmp_path / "missing.md"), 0)


def test_unreadable_fresh_cache_is_refetched(tmp_path: Path, monkeypatch, log) -> None:
    now = 1_700_000_000.0
    cache = tmp_path / "prompt.md"
    cache.write_bytes(b"\xff\xfe not utf-8")
    os.utime(cache, (now - 60, now - 60))
    calls = _serve(monkeypatch, b"remote prompt")

    document = PromptSource(cache, clock=lambda: now, log=log).resolve(URL, 3600)

    assert calls == [URL]
    assert document.text == "remote prompt"
    assert document.degraded is False
    assert cache.read_text(encoding="utf-8") == "remote prompt"


def test_unreadable_fresh_cache_and_failed_fetch_is_unavailable(tmp_path: Path, monkeypatch, log) -> None:
    now = 1_700_000_000.0
    cache = tmp_path / "prompt.md"
    cache.write_bytes(b"\xff\xfe not utf-8")
    os.utime(cache, (now - 60, now - 60))
    _serve(monkeypatch, error.URLError("offline"))

    with pytest.raises(UnavailableError):
        PromptSource(cache, clock=lambda: now, log=log).resolve(URL, 3600)
