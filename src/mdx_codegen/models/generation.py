"""Typed request and attempt records for a generation session."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class GenerationRequest(BaseModel):
    """Single completion request sent on every attempt of a session."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    model: str = Field(min_length=1)
    system_instruction: str = ""
    user_content: str = Field(min_length=1)
    temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    top_p: float = Field(default=0.95, ge=0.0, le=1.0)
    max_output_tokens: int = Field(default=8000, gt=0)

    @property
    def prompt_text(self) -> str:
        if not self.system_instruction:
            return self.user_content
        return f"{self.system_instruction}\n\n{self.user_content}"

    def to_payload(self) -> dict[str, object]:
        return {
            "contents": [{"parts": [{"text": self.prompt_text}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "topP": self.top_p,
                "maxOutputTokens": self.max_output_tokens,
            },
        }


class AttemptOutcome(str, Enum):
    SUCCESS = "success"
    RETRYABLE = "retryable"
    FATAL = "fatal"


@dataclass(frozen=True)
class GenerationAttempt:
    """One network round trip."""

    index: int
    outcome: AttemptOutcome
    elapsed_seconds: float
    text: str | None = None
    cause: BaseException | None = None


@dataclass
class GenerationSession:
    """Ordered attempts bounded by ``max_attempts``."""

    max_attempts: int
    attempts: list[GenerationAttempt] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return bool(self.attempts) and self.attempts[-1].outcome is AttemptOutcome.SUCCESS

    @property
    def text(self) -> str | None:
        return self.attempts[-1].text if self.succeeded else None

    @property
    def last_cause(self) -> BaseException | None:
        for attempt in reversed(self.attempts):
            if attempt.cause is not None:
                return attempt.cause
        return None

    @property
    def exhausted(self) -> bool:
        return not self.succeeded and len(self.attempts) >= self.max_attempts
