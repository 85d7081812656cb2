"""Sequential prompt-to-source-tree pipeline.

Stages run strictly in order and the first component error ends the run in
``Stage.FAILED``. Retries happen only inside the model client.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable

from mdx_codegen.config import Settings
from mdx_codegen.extract.codeblocks import EmptyOutputError, extract, materialize
from mdx_codegen.llm.base import ExhaustedError, LLMError, ModelClient
from mdx_codegen.logging_setup import get_logger, log_success
from mdx_codegen.mdx.preprocess import clean
from mdx_codegen.output.tree import prepare_output_root
from mdx_codegen.output.validator import (
    TypeCheck,
    ValidationError,
    ValidationReport,
    ensure_valid_output,
    resolve_type_check,
)
from mdx_codegen.prompts.generation import PromptBuildError, build_generation_request
from mdx_codegen.prompts.source import PromptDocument, PromptSource, UnavailableError

PIPELINE_ERRORS = (
    UnavailableError,
    PromptBuildError,
    LLMError,
    EmptyOutputError,
    ValidationError,
    OSError,
)


class Stage(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    PREPROCESSING = "preprocessing"
    GENERATING = "generating"
    EXTRACTING = "extracting"
    VALIDATING = "validating"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class PipelineConfig:
    """Inputs for one pipeline run."""

    source_ref: str
    output_root: Path
    model: str
    cache_ttl: float = 86400.0
    temperature: float = 0.2
    top_p: float = 0.95
    max_output_tokens: int = 8000
    max_attempts: int = 5
    per_attempt_timeout: float = 45.0
    required_paths: tuple[str, ...] = ()
    type_check: TypeCheck | None = None
    clean_response: bool = True

    @classmethod
    def from_settings(cls, settings: Settings, output_root: Path) -> PipelineConfig:
        return cls(
            source_ref=settings.prompt_url,
            output_root=output_root,
            model=settings.gemini_model,
            cache_ttl=float(settings.prompt_cache_ttl),
            temperature=settings.temperature,
            top_p=settings.top_p,
            max_output_tokens=settings.max_output_tokens,
            max_attempts=settings.max_retries,
            per_attempt_timeout=settings.request_timeout,
            required_paths=settings.required_files,
            type_check=resolve_type_check(settings.type_check),
        )


@dataclass
class PipelineResult:
    """Terminal state of a run; the output tree is left on disk either way."""

    output_root: Path
    stage: Stage = Stage.IDLE
    failed_stage: Stage | None = None
    cause: BaseException | None = None
    document: PromptDocument | None = None
    files: list[Path] = field(default_factory=list)
    report: ValidationReport | None = None

    @property
    def succeeded(self) -> bool:
        return self.stage is Stage.SUCCEEDED


def _describe_failure(stage: Stage, exc: BaseException) -> str:
    if isinstance(exc, ExhaustedError):
        return f"{stage.value} failed after {exc.attempts} attempts: {exc.last_cause}"
    if isinstance(exc, ValidationError):
        return f"{stage.value} failed with {exc.report.unmet_count} unmet requirements: {exc}"
    return f"{stage.value} failed: {type(exc).__name__}: {exc}"


def _fail(
    result: PipelineResult,
    exc: Exception,
    enter: Callable[[Stage], None],
    log: logging.Logger,
) -> PipelineResult:
    result.failed_stage = result.stage
    result.cause = exc
    log.error("Pipeline %s", _describe_failure(result.stage, exc))
    enter(Stage.FAILED)
    return result


def run_pipeline(
    config: PipelineConfig,
    client: ModelClient,
    prompt_source: PromptSource,
    log: logging.Logger | None = None,
) -> PipelineResult:
    """Run resolve → preprocess → generate → extract → validate."""
    log = log or get_logger()
    result = PipelineResult(output_root=config.output_root)

    def enter(stage: Stage) -> None:
        log.info("Stage %s -> %s", result.stage.value, stage.value)
        result.stage = stage

    try:
        enter(Stage.RESOLVING)
        result.document = prompt_source.resolve(config.source_ref, config.cache_ttl)

        enter(Stage.PREPROCESSING)
        request = build_generation_request(
            clean(result.document.text),
            model=config.model,
            temperature=config.temperature,
            top_p=config.top_p,
            max_output_tokens=config.max_output_tokens,
        )

        enter(Stage.GENERATING)
        log.info("Generating application with %s...", config.model)
        text = client.complete(request, config.max_attempts, config.per_attempt_timeout)

        enter(Stage.EXTRACTING)
        if config.clean_response:
            text = clean(text)
        blocks = extract(text, log=log)
        prepare_output_root(config.output_root)
        result.files = materialize(blocks, config.output_root, log=log)

        enter(Stage.VALIDATING)
        result.report = ensure_valid_output(
            config.output_root,
            config.required_paths,
            config.type_check,
            log=log,
        )
    except PIPELINE_ERRORS as exc:
        if isinstance(exc, ValidationError):
            result.report = exc.report
        return _fail(result, exc, enter, log)
    except Exception as exc:
        log.exception("Unexpected error during %s", result.stage.value)
        return _fail(result, exc, enter, log)

    enter(Stage.SUCCEEDED)
    log_success(log, "Application generated in %s/", config.output_root)
    return result
