"""Data model shared across pipeline stages."""

from mdx_codegen.models.generation import (
    AttemptOutcome,
    GenerationAttempt,
    GenerationRequest,
    GenerationSession,
)

__all__ = [
    "AttemptOutcome",
    "GenerationAttempt",
    "GenerationRequest",
    "GenerationSession",
]
