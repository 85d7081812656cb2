"""Provider-independent completion client with bounded, classified retries."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Callable

from mdx_codegen.logging_setup import get_logger
from mdx_codegen.models.generation import (
    AttemptOutcome,
    GenerationAttempt,
    GenerationRequest,
    GenerationSession,
)

API_ERROR_BACKOFF_SECONDS = 3.0


class LLMError(RuntimeError):
    """Raised when LLM generation fails."""


class RetryableLLMError(LLMError):
    """A transient failure eligible for another attempt."""


class TransportError(RetryableLLMError):
    """The completion endpoint could not be reached or answered garbage."""


class ApiError(RetryableLLMError):
    """The completion endpoint returned a structured error payload."""


class EmptyResponseError(RetryableLLMError):
    """A well-formed response carried no completion text."""


class ExhaustedError(LLMError):
    """Every attempt of a generation session failed."""

    def __init__(self, session: GenerationSession) -> None:
        self.session = session
        self.attempts = len(session.attempts)
        self.last_cause = session.last_cause
        super().__init__(
            f"Completion failed after {self.attempts} attempts: {self.last_cause}"
        )


def backoff_seconds(error: RetryableLLMError, attempt: int) -> float:
    """Delay before the next attempt after ``error`` on 1-based ``attempt``."""
    if isinstance(error, TransportError):
        return float(attempt * 2)
    if isinstance(error, ApiError):
        return API_ERROR_BACKOFF_SECONDS
    return 0.0


class ModelClient(ABC):
    """Abstract completion client.

    Subclasses implement :meth:`send` for a single round trip; the retry
    policy lives here so every provider shares it.
    """

    def __init__(
        self,
        *,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
        log: logging.Logger | None = None,
    ) -> None:
        self._sleep = sleep
        self._clock = clock
        self.log = log or get_logger()

    @abstractmethod
    def send(self, request: GenerationRequest, timeout: float) -> str:
        """Perform one round trip and return non-empty completion text.

        Raises:
            TransportError, ApiError, EmptyResponseError: on retryable failures.
        """

    def run_session(
        self,
        request: GenerationRequest,
        max_attempts: int,
        per_attempt_timeout: float,
    ) -> GenerationSession:
        """Attempt ``request`` up to ``max_attempts`` times and record each try."""
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")

        session = GenerationSession(max_attempts=max_attempts)
        for attempt in range(1, max_attempts + 1):
            self.log.info("API attempt %d/%d", attempt, max_attempts)
            started = self._clock()
            try:
                text = self.send(request, per_attempt_timeout)
            except RetryableLLMError as exc:
                session.attempts.append(
                    GenerationAttempt(
                        index=attempt,
                        outcome=AttemptOutcome.RETRYABLE,
                        elapsed_seconds=self._clock() - started,
                        cause=exc,
                    )
                )
                self.log.warning(
                    "%s on attempt %d/%d: %s",
                    type(exc).__name__,
                    attempt,
                    max_attempts,
                    exc,
                )
                delay = backoff_seconds(exc, attempt)
                if attempt < max_attempts and delay > 0:
                    self._sleep(delay)
                continue
            except Exception as exc:
                session.attempts.append(
                    GenerationAttempt(
                        index=attempt,
                        outcome=AttemptOutcome.FATAL,
                        elapsed_seconds=self._clock() - started,
                        cause=exc,
                    )
                )
                raise

            if not text or not text.strip():
                # send() contract violation; treat like an empty payload
                exc = EmptyResponseError("Completion text is empty.")
                session.attempts.append(
                    GenerationAttempt(
                        index=attempt,
                        outcome=AttemptOutcome.RETRYABLE,
                        elapsed_seconds=self._clock() - started,
                        cause=exc,
                    )
                )
                self.log.warning("Empty API response on attempt %d/%d", attempt, max_attempts)
                continue

            session.attempts.append(
                GenerationAttempt(
                    index=attempt,
                    outcome=AttemptOutcome.SUCCESS,
                    elapsed_seconds=self._clock() - started,
                    text=text,
                )
            )
            return session

        return session

    def complete(
        self,
        request: GenerationRequest,
        max_attempts: int,
        per_attempt_timeout: float,
    ) -> str:
        """Return completion text or raise :class:`ExhaustedError`."""
        session = self.run_session(request, max_attempts, per_attempt_timeout)
        if session.succeeded and session.text is not None:
            return session.text

        self.log.error("API failed after %d attempts", len(session.attempts))
        raise ExhaustedError(session) from session.last_cause
