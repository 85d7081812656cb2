"""Post-generation checks for a materialized output tree."""

from __future__ import annotations

import logging
import shlex
import shutil
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

from mdx_codegen.logging_setup import get_logger, log_success


class ValidationError(RuntimeError):
    """Raised when the output tree misses required files or fails its type check."""

    def __init__(self, report: ValidationReport) -> None:
        self.report = report
        failed = ", ".join(item.requirement for item in report.unmet)
        super().__init__(f"Found {report.unmet_count} critical issues: {failed}")


@dataclass(frozen=True)
class TypeCheck:
    """External static checker run read-only against the tree.

    ``command`` is a shell-style template; ``{root}`` expands to the
    output root. Built-in commands must not write caches or build info
    into the tree they check.
    """

    name: str
    command: str
    patterns: tuple[str, ...]
    timeout: float = 300.0

    @property
    def executable(self) -> str:
        return shlex.split(self.command)[0]

    def argv(self, root: Path) -> list[str]:
        return [part.replace("{root}", str(root)) for part in shlex.split(self.command)]


BUILTIN_TYPE_CHECKS = {
    "tsc": TypeCheck(name="tsc", command="tsc -p {root} --noEmit --incremental false", patterns=("*.ts", "*.tsx")),
    "mypy": TypeCheck(name="mypy", command="mypy --cache-dir=/dev/null {root}", patterns=("*.py",)),
}


@dataclass(frozen=True)
class RequirementResult:
    requirement: str
    satisfied: bool
    detail: str = ""


@dataclass(frozen=True)
class ValidationReport:
    """Requirement outcomes plus soft warnings for one output tree."""

    output_root: Path
    results: list[RequirementResult] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def unmet(self) -> list[RequirementResult]:
        return [item for item in self.results if not item.satisfied]

    @property
    def unmet_count(self) -> int:
        return len(self.unmet)

    @property
    def passed(self) -> bool:
        return self.unmet_count == 0


def resolve_type_check(name: str | None) -> TypeCheck | None:
    """Look up a built-in type check by name; ``None``/``"none"`` disables it."""
    if name is None or name == "none":
        return None
    try:
        return BUILTIN_TYPE_CHECKS[name]
    except KeyError as exc:
        raise ValueError(f"Unknown type check: {name!r}") from exc


def _has_sources(root: Path, patterns: tuple[str, ...]) -> bool:
    return any(next(root.rglob(pattern), None) is not None for pattern in patterns)


def _run_type_check(
    check: TypeCheck,
    root: Path,
    warnings: list[str],
    log: logging.Logger,
) -> RequirementResult | None:
    requirement = f"typecheck: {check.name}"
    if not _has_sources(root, check.patterns):
        log.debug("No %s sources found - skipping %s", "/".join(check.patterns), check.name)
        return None
    if shutil.which(check.executable) is None:
        message = f"{check.executable} not installed - skipping {check.name} check"
        log.warning(message)
        warnings.append(message)
        return None

    try:
        completed = subprocess.run(
            check.argv(root),
            cwd=root,
            capture_output=True,
            text=True,
            timeout=check.timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        log.error("%s timed out after %.0fs", check.name, check.timeout)
        return RequirementResult(requirement, False, f"timed out after {check.timeout:.0f}s")
    except OSError as exc:
        log.error("%s could not be started: %s", check.name, exc)
        return RequirementResult(requirement, False, str(exc))

    output = (completed.stdout + completed.stderr).strip()
    if output:
        log.debug("%s output:\n%s", check.name, output)
    if completed.returncode != 0:
        log.error("%s check failed (exit %d)", check.name, completed.returncode)
        return RequirementResult(requirement, False, f"exit status {completed.returncode}")
    return RequirementResult(requirement, True, "passed")


def validate_output(
    output_root: Path,
    required_paths: list[str] | tuple[str, ...],
    type_check: TypeCheck | None = None,
    log: logging.Logger | None = None,
) -> ValidationReport:
    """Check required files and, optionally, run ``type_check`` on the tree."""
    log = log or get_logger()
    log.info("Validating generated application...")

    results: list[RequirementResult] = []
    warnings: list[str] = []
    for relative in required_paths:
        present = (output_root / relative).is_file()
        if not present:
            log.error("Missing critical file: %s", relative)
        results.append(
            RequirementResult(
                requirement=f"exists: {relative}",
                satisfied=present,
                detail="present" if present else "missing",
            )
        )

    if type_check is not None:
        outcome = _run_type_check(type_check, output_root, warnings, log)
        if outcome is not None:
            results.append(outcome)

    report = ValidationReport(output_root=output_root, results=results, warnings=warnings)
    if report.passed:
        log_success(log, "Validation passed")
    else:
        log.error("Found %d critical issues", report.unmet_count)
    return report


def ensure_valid_output(
    output_root: Path,
    required_paths: list[str] | tuple[str, ...],
    type_check: TypeCheck | None = None,
    log: logging.Logger | None = None,
) -> ValidationReport:
    """Return the report when it passes; raise :class:`ValidationError` otherwise."""
    report = validate_output(output_root, required_paths, type_check, log=log)
    if not report.passed:
        raise ValidationError(report)
    return report
