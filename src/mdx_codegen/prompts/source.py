"""Prompt document resolution with a freshness-windowed local cache."""

from __future__ import annotations

import logging
import os
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable
from urllib import error, request

from mdx_codegen.logging_setup import get_logger, log_success

DEFAULT_FETCH_TIMEOUT = 30.0


class UnavailableError(RuntimeError):
    """Raised when no prompt document can be obtained."""


@dataclass(frozen=True)
class PromptDocument:
    """Immutable prompt text plus the timestamp of the copy it came from."""

    text: str
    source: str
    timestamp: float
    degraded: bool = False


def is_remote(source_ref: str) -> bool:
    return source_ref.startswith(("http://", "https://"))


def _write_atomic(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


class PromptSource:
    """Resolve prompt documents from a local path or a cached remote URL."""

    def __init__(
        self,
        cache_path: Path,
        *,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT,
        clock: Callable[[], float] = time.time,
        log: logging.Logger | None = None,
    ) -> None:
        self.cache_path = cache_path
        self.fetch_timeout = fetch_timeout
        self._clock = clock
        self.log = log or get_logger()

    def resolve(self, source_ref: str, cache_ttl: float) -> PromptDocument:
        """Return the prompt for ``source_ref``.

        A fresh cache short-circuits the network unless it cannot be read.
        A failed fetch falls back to a stale cache when one exists.
        """
        if not is_remote(source_ref):
            return self._read_local(Path(source_ref).expanduser())

        cached = self._cache_age()
        if cached is not None and cached < cache_ttl:
            try:
                document = self._read_cache(source_ref)
            except UnavailableError as exc:
                self.log.warning("Ignoring unreadable prompt cache: %s", exc)
                cached = None
            else:
                self.log.info("Using cached prompt (%s)", self.cache_path)
                return document

        self.log.info("Fetching latest prompt from %s", source_ref)
        try:
            text = self.fetch(source_ref)
        except UnavailableError as exc:
            if cached is None:
                self.log.error("Failed to fetch prompt and no local copy exists")
                raise UnavailableError(
                    f"Prompt fetch failed and no cache exists at {self.cache_path}: {exc}"
                ) from exc
            self.log.warning("Using cached prompt (network failed: %s)", exc)
            return self._read_cache(source_ref, degraded=True)

        try:
            _write_atomic(self.cache_path, text)
        except OSError as exc:
            self.log.warning("Could not update prompt cache %s: %s", self.cache_path, exc)
        else:
            log_success(self.log, "Prompt updated successfully")
        return PromptDocument(text=text, source=source_ref, timestamp=self._clock())

    def fetch(self, url: str) -> str:
        """Download ``url`` as UTF-8 text."""
        try:
            with request.urlopen(url, timeout=self.fetch_timeout) as response:
                raw = response.read()
        except error.HTTPError as exc:
            raise UnavailableError(f"HTTP {exc.code} fetching prompt") from exc
        except error.URLError as exc:
            raise UnavailableError(f"Prompt fetch failed: {exc.reason}") from exc
        except OSError as exc:
            raise UnavailableError(f"Prompt fetch failed: {exc}") from exc

        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise UnavailableError("Prompt document is not valid UTF-8.") from exc
        if not text.strip():
            raise UnavailableError("Fetched prompt document is empty.")
        return text

    def _cache_age(self) -> float | None:
        try:
            mtime = self.cache_path.stat().st_mtime
        except OSError:
            return None
        return self._clock() - mtime

    def _read_cache(self, source_ref: str, *, degraded: bool = False) -> PromptDocument:
        try:
            text = self.cache_path.read_text(encoding="utf-8")
            mtime = self.cache_path.stat().st_mtime
        except (OSError, UnicodeDecodeError) as exc:
            raise UnavailableError(f"Failed to read prompt cache: {exc}") from exc
        return PromptDocument(text=text, source=source_ref, timestamp=mtime, degraded=degraded)

    def _read_local(self, path: Path) -> PromptDocument:
        try:
            text = path.read_text(encoding="utf-8")
            mtime = path.stat().st_mtime
        except (OSError, UnicodeDecodeError) as exc:
            raise UnavailableError(f"Failed to read prompt file {path}: {exc}") from exc
        self.log.info("Using local prompt %s", path)
        return PromptDocument(text=text, source=str(path), timestamp=mtime)
