from __future__ import annotations

from mdx_codegen.mdx.fences import split_fences


def test_segments_reassemble_to_input() -> None:
    text = "intro\n```js file=a.js\nconst a = 1;\n```\nmiddle\n````md\n```inner```\n````\ntail"
    segments = split_fences(text)
    assert "".join(segment.raw for segment in segments) == text
    assert [segment.kind for segment in segments] == ["text", "code", "text", "code", "text"]


def test_info_and_body() -> None:
    code = split_fences("```tsx file=\"src/x.tsx\"\nline1\nline2\n```")[0]
    assert code.kind == "code"
    assert code.info == 'tsx file="src/x.tsx"'
    assert code.body == "line1\nline2\n"


def test_longer_fence_contains_shorter_runs() -> None:
    segments = split_fences("````md\n```py\nx\n```\n````")
    assert len(segments) == 1
    assert segments[0].body == "```py\nx\n```\n"


def test_unterminated_fence_runs_to_end() -> None:
    segments = split_fences("text\n```py\nprint(1)\n")
    assert segments[-1].kind == "code"
    assert segments[-1].closed is False
    assert segments[-1].body == "print(1)\n"


def test_plain_text_is_single_segment() -> None:
    segments = split_fences("no code here, just `inline` ticks")
    assert len(segments) == 1
    assert segments[0].kind == "text"


def test_empty_text() -> None:
    assert split_fences("") == []
