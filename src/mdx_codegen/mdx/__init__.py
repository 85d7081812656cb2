"""MDX tokenizing and directive-stripping helpers."""

from mdx_codegen.mdx.fences import Segment, split_fences
from mdx_codegen.mdx.preprocess import NON_CODE_COMPONENTS, clean

__all__ = [
    "NON_CODE_COMPONENTS",
    "Segment",
    "clean",
    "split_fences",
]
