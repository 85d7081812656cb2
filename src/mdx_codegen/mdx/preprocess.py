"""Strip non-code MDX directives from prompt and response text.

Fenced code is separated from prose by :func:`split_fences` before any rule
runs, and code segments are emitted untouched, so a removal rule can never
reach into a code block.
"""

from __future__ import annotations

import re

from mdx_codegen.mdx.fences import Segment, split_fences

NON_CODE_COMPONENTS = ("LinearProcessFlow", "Quiz", "Checklist", "VerificationSteps")

_THINKING_OPEN = re.compile(r"<Thinking(?:\s[^<>]*)?>")
_THINKING_CLOSE = re.compile(r"</Thinking\s*>")

_COMPONENT_NAMES = "|".join(NON_CODE_COMPONENTS)
_COMPONENT_TAG = (
    rf"<(?:{_COMPONENT_NAMES})\b[^<>]*?/>"
    rf"|<(?P<name>{_COMPONENT_NAMES})\b[^<>/]*>\s*</(?P=name)\s*>"
)
_COMPONENT_LINE = re.compile(rf"^[ \t]*(?:{_COMPONENT_TAG})[ \t]*(?:\r?\n|\Z)", re.MULTILINE)
_COMPONENT_INLINE = re.compile(_COMPONENT_TAG)
_INLINE_MATH = re.compile(r"\$\$[^\n]*?\$\$")


def _line_prefix_is_blank(chunk: str, index: int) -> bool:
    line_start = chunk.rfind("\n", 0, index) + 1
    return not chunk[line_start:index].strip(" \t")


def _strip_thinking(segments: list[Segment]) -> list[str]:
    """Remove paired reasoning regions from text segments.

    An open region carries over intervening code segments; an unterminated
    region swallows the remaining prose up to the end of the document.
    """
    pieces: list[str] = []
    in_region = False
    whole_lines = False
    for segment in segments:
        if segment.kind == "code":
            pieces.append(segment.raw)
            continue

        chunk = segment.raw
        kept: list[str] = []
        pos = 0
        while pos < len(chunk):
            if in_region:
                closing = _THINKING_CLOSE.search(chunk, pos)
                if closing is None:
                    pos = len(chunk)
                    break
                pos = closing.end()
                in_region = False
                if whole_lines:
                    rest = re.match(r"[ \t]*(?:\r?\n|\Z)", chunk[pos:])
                    if rest is not None:
                        pos += rest.end()
                continue

            opening = _THINKING_OPEN.search(chunk, pos)
            if opening is None:
                kept.append(chunk[pos:])
                break
            before = chunk[pos : opening.start()]
            whole_lines = _line_prefix_is_blank(chunk, opening.start())
            if whole_lines:
                before = before.rstrip(" \t")
            kept.append(before)
            pos = opening.end()
            in_region = True

        pieces.append("".join(kept))
    return pieces


def _strip_inline(text: str) -> str:
    text = _COMPONENT_LINE.sub("", text)
    text = _COMPONENT_INLINE.sub("", text)
    return _INLINE_MATH.sub("", text)


def _clean_once(text: str) -> str:
    segments = split_fences(text)
    pieces = _strip_thinking(segments)
    return "".join(
        piece if segment.kind == "code" else _strip_inline(piece)
        for segment, piece in zip(segments, pieces)
    )


def clean(text: str) -> str:
    """Remove reasoning regions, UI component tags and inline math from ``text``.

    Passes repeat until the text stops changing, so ``clean`` is idempotent
    even when a removal splices two fragments into a new directive.
    """
    while True:
        cleaned = _clean_once(text)
        if cleaned == text:
            return cleaned
        text = cleaned
