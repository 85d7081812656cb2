"""Code block extraction helpers."""

from mdx_codegen.extract.codeblocks import (
    CodeBlock,
    EmptyOutputError,
    extract,
    extract_to_directory,
    materialize,
    resolve_blocks,
)

__all__ = [
    "CodeBlock",
    "EmptyOutputError",
    "extract",
    "extract_to_directory",
    "materialize",
    "resolve_blocks",
]
