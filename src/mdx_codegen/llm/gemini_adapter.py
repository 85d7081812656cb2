"""Gemini ``generateContent`` implementation of the completion client."""

from __future__ import annotations

import http.client
import json
import logging
import time
from typing import Callable
from urllib import error, request

from mdx_codegen.llm.base import ApiError, EmptyResponseError, ModelClient, TransportError
from mdx_codegen.models.generation import GenerationRequest

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


class GeminiAdapter(ModelClient):
    """Generate completions using the Gemini REST API."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        *,
        sleep: Callable[[float], None] = time.sleep,
        log: logging.Logger | None = None,
    ) -> None:
        super().__init__(sleep=sleep, log=log)
        self.api_key = api_key
        self.base_url = base_url

    def endpoint(self, model: str) -> str:
        return f"{self.base_url.rstrip('/')}/models/{model}:generateContent"

    def send(self, generation_request: GenerationRequest, timeout: float) -> str:
        req = request.Request(
            self.endpoint(generation_request.model),
            method="POST",
            data=json.dumps(generation_request.to_payload()).encode("utf-8"),
            headers={
                "Content-Type": "application/json",
                "x-goog-api-key": self.api_key,
            },
        )

        try:
            with request.urlopen(req, timeout=timeout) as response:
                raw = response.read()
        except error.HTTPError as exc:
            details = exc.read().decode("utf-8", errors="replace")
            message = self._error_message(self._decode(details, strict=False))
            if message:
                raise ApiError(f"HTTP {exc.code}: {message}") from exc
            raise TransportError(f"Gemini request failed with HTTP {exc.code}.") from exc
        except error.URLError as exc:
            raise TransportError(f"Gemini request failed: {exc.reason}") from exc
        except TimeoutError as exc:
            raise TransportError("Gemini request timed out.") from exc
        except OSError as exc:
            raise TransportError(f"Gemini connection failed: {exc}") from exc
        except http.client.HTTPException as exc:
            raise TransportError(f"Gemini response was cut short: {exc!r}") from exc

        payload = self._decode(raw.decode("utf-8", errors="replace"), strict=True)
        message = self._error_message(payload)
        if message:
            raise ApiError(message)
        return self._extract_text(payload)

    @staticmethod
    def _decode(body: str, *, strict: bool) -> dict[str, object]:
        try:
            payload = json.loads(body)
        except json.JSONDecodeError as exc:
            if strict:
                raise TransportError("Gemini response was not valid JSON.") from exc
            return {}
        if not isinstance(payload, dict):
            if strict:
                raise TransportError("Gemini response root must be a JSON object.")
            return {}
        return payload

    @staticmethod
    def _error_message(payload: dict[str, object]) -> str:
        err = payload.get("error")
        if isinstance(err, dict):
            message = err.get("message")
            if isinstance(message, str) and message.strip():
                return message.strip()
        return ""

    @staticmethod
    def _extract_text(payload: dict[str, object]) -> str:
        candidates = payload.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            raise EmptyResponseError("Gemini response is missing candidates.")

        first = candidates[0]
        content = first.get("content") if isinstance(first, dict) else None
        parts = content.get("parts") if isinstance(content, dict) else None
        if not isinstance(parts, list) or not parts or not isinstance(parts[0], dict):
            raise EmptyResponseError("Gemini response is missing content parts.")

        text = parts[0].get("text")
        if not isinstance(text, str) or not text.strip():
            raise EmptyResponseError("Gemini completion text is empty.")
        return text
