"""Split MDX/Markdown text into alternating prose and fenced-code segments."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal

_FENCE_RUN = re.compile(r"`{3,}")


@dataclass(frozen=True)
class Segment:
    """A contiguous span of the source text.

    ``raw`` always holds the exact source bytes of the span, delimiters
    included, so joining the ``raw`` of every segment reproduces the input.
    """

    kind: Literal["text", "code"]
    raw: str
    fence: str = ""
    inner: str = ""
    closed: bool = True

    @property
    def info(self) -> str:
        """Text following the opening delimiter on the same line."""
        return self.inner.split("\n", 1)[0].strip()

    @property
    def body(self) -> str:
        """Lines after the info string line."""
        parts = self.inner.split("\n", 1)
        return parts[1] if len(parts) > 1 else ""


def split_fences(text: str) -> list[Segment]:
    """Split ``text`` into ordered text/code segments.

    A run of three or more backticks opens a fence; the next run of at least
    the same length closes it. An unterminated fence extends to the end of
    the text.
    """
    segments: list[Segment] = []
    pos = 0
    while pos < len(text):
        opening = _FENCE_RUN.search(text, pos)
        if opening is None:
            segments.append(Segment(kind="text", raw=text[pos:]))
            break
        if opening.start() > pos:
            segments.append(Segment(kind="text", raw=text[pos : opening.start()]))

        fence = opening.group()
        closing = next(
            (
                match
                for match in _FENCE_RUN.finditer(text, opening.end())
                if len(match.group()) >= len(fence)
            ),
            None,
        )
        if closing is None:
            segments.append(
                Segment(
                    kind="code",
                    raw=text[opening.start() :],
                    fence=fence,
                    inner=text[opening.end() :],
                    closed=False,
                )
            )
            break

        segments.append(
            Segment(
                kind="code",
                raw=text[opening.start() : closing.end()],
                fence=fence,
                inner=text[opening.end() : closing.start()],
            )
        )
        pos = closing.end()
    return segments
