"""Completion clients and factory helpers."""

import logging

from mdx_codegen.config import Settings
from mdx_codegen.llm.base import (
    ApiError,
    EmptyResponseError,
    ExhaustedError,
    LLMError,
    ModelClient,
    RetryableLLMError,
    TransportError,
)
from mdx_codegen.llm.gemini_adapter import GeminiAdapter


def create_model_client(settings: Settings, log: logging.Logger | None = None) -> ModelClient:
    """Create default completion client for current settings."""
    return GeminiAdapter(
        api_key=settings.api_key,
        base_url=settings.gemini_base_url,
        log=log,
    )


__all__ = [
    "ApiError",
    "EmptyResponseError",
    "ExhaustedError",
    "GeminiAdapter",
    "LLMError",
    "ModelClient",
    "RetryableLLMError",
    "TransportError",
    "create_model_client",
]
