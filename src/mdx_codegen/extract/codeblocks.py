"""Recover a file tree from fenced code blocks in model output."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from mdx_codegen.logging_setup import get_logger, log_success
from mdx_codegen.mdx.fences import Segment, split_fences

_FILE_ATTR = re.compile(
    r"""(?:^|\s)(?:file|filename)=(?:"(?P<dq>[^"]*)"|'(?P<sq>[^']*)'|(?P<bare>[^\s"']+))"""
)
_LANGUAGE_TOKEN = re.compile(r"^([A-Za-z0-9]+)")


class EmptyOutputError(RuntimeError):
    """Raised when a response yields no writable code blocks."""


@dataclass(frozen=True)
class CodeBlock:
    """One extracted file: relative POSIX path and text content."""

    path: str
    content: str
    language: str | None = None
    explicit_path: bool = False


def _declared_path(info: str) -> str | None:
    match = _FILE_ATTR.search(info)
    if match is None:
        return None
    value = next(
        (group for group in match.group("dq", "sq", "bare") if group is not None),
        "",
    )
    return value.strip() or None


def _language(info: str) -> str | None:
    if info.startswith(("file=", "filename=")):
        return None
    match = _LANGUAGE_TOKEN.match(info)
    return match.group(1) if match else None


def _safe_relative(path: str) -> str | None:
    candidate = PurePosixPath(path.replace("\\", "/"))
    if candidate.is_absolute() or not candidate.parts or ".." in candidate.parts:
        return None
    if re.match(r"^[A-Za-z]:", candidate.parts[0]):
        return None
    return candidate.as_posix()


def _trim_blank_lines(body: str) -> str:
    lines = body.split("\n")
    start, end = 0, len(lines)
    while start < end and not lines[start].strip():
        start += 1
    while end > start and not lines[end - 1].strip():
        end -= 1
    return "\n".join(lines[start:end])


def resolve_blocks(segments: list[Segment], log: logging.Logger | None = None) -> list[CodeBlock]:
    """Map code segments to blocks in document order.

    Synthetic names use the count of blocks accepted before the current
    one, so skipped segments never consume an index.
    """
    log = log or get_logger()
    blocks: list[CodeBlock] = []
    for segment in segments:
        if segment.kind != "code":
            continue
        info = segment.info
        language = _language(info)
        declared = _declared_path(info)

        if declared is not None:
            path = _safe_relative(declared)
            if path is None:
                log.warning("Skipping code block with unsafe path: %r", declared)
                continue
        elif language is not None:
            path = f"file_{len(blocks)}.{language}"
        else:
            log.debug("Skipping code block without language or file attribute")
            continue

        blocks.append(
            CodeBlock(
                path=path,
                content=_trim_blank_lines(segment.body),
                language=language,
                explicit_path=declared is not None,
            )
        )
    return blocks


def extract(text: str, log: logging.Logger | None = None) -> list[CodeBlock]:
    """Parse ``text`` into an ordered sequence of code blocks."""
    return resolve_blocks(split_fences(text), log=log)


def materialize(
    blocks: list[CodeBlock],
    output_root: Path,
    log: logging.Logger | None = None,
) -> list[Path]:
    """Write ``blocks`` under ``output_root`` in order, later blocks overwriting.

    Returns:
        Distinct written paths in first-write order.

    Raises:
        EmptyOutputError: when nothing was written.
    """
    log = log or get_logger()
    log.info("Generating files in %s/", output_root)
    written: dict[Path, None] = {}
    for block in blocks:
        target = output_root / block.path
        target.parent.mkdir(parents=True, exist_ok=True)
        data = block.content + "\n" if block.content else ""
        target.write_text(data, encoding="utf-8")
        if target in written:
            log.warning("Overwrote %s with a later block", block.path)
        else:
            log.info("  ✓ %s", block.path)
        written[target] = None

    if not written:
        log.error("No files generated - invalid response format")
        raise EmptyOutputError("Response contained no usable code blocks.")

    log_success(log, "Generated %d files", len(written))
    return list(written)


def extract_to_directory(
    text: str,
    output_root: Path,
    log: logging.Logger | None = None,
) -> list[Path]:
    """Extract code blocks from ``text`` and write them under ``output_root``."""
    return materialize(extract(text, log=log), output_root, log=log)
