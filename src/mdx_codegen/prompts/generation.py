"""Generation request builder for application scaffolding prompts."""

from __future__ import annotations

from mdx_codegen.models.generation import GenerationRequest

SYSTEM_PROMPT = (
    "You are an application generator. Follow these rules:\n"
    "1. STRICTLY adhere to MDX syntax in responses\n"
    "2. Generate COMPLETE, PRODUCTION-READY code\n"
    "3. Include ALL necessary files (configs, tests, etc.)\n"
    "4. Use modern best practices\n"
    "5. Validate all code before inclusion\n"
    "6. Maintain consistent style throughout\n"
    '7. Put every file in its own fenced code block whose info string names '
    'the language and the path, for example ```tsx file="src/app/page.tsx"'
)


class PromptBuildError(RuntimeError):
    """Raised when a generation request cannot be built."""


def build_generation_request(
    prompt_text: str,
    *,
    model: str,
    temperature: float = 0.2,
    top_p: float = 0.95,
    max_output_tokens: int = 8000,
    system_instruction: str = SYSTEM_PROMPT,
) -> GenerationRequest:
    """Wrap preprocessed prompt text in a request with the generator instruction."""
    normalized = prompt_text.strip()
    if not normalized:
        raise PromptBuildError("Prompt document is empty after preprocessing.")

    return GenerationRequest(
        model=model,
        system_instruction=system_instruction,
        user_content=normalized,
        temperature=temperature,
        top_p=top_p,
        max_output_tokens=max_output_tokens,
    )
