"""Prompt resolution and request builders for mdx-codegen."""

from mdx_codegen.prompts.generation import (
    SYSTEM_PROMPT,
    PromptBuildError,
    build_generation_request,
)
from mdx_codegen.prompts.source import PromptDocument, PromptSource, UnavailableError

__all__ = [
    "PromptBuildError",
    "PromptDocument",
    "PromptSource",
    "SYSTEM_PROMPT",
    "UnavailableError",
    "build_generation_request",
]
