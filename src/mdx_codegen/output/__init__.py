"""Output tree preparation and validation."""

from mdx_codegen.output.tree import (
    list_files,
    new_run_id,
    prepare_output_root,
    render_tree,
    run_output_dir,
)
from mdx_codegen.output.validator import (
    BUILTIN_TYPE_CHECKS,
    RequirementResult,
    TypeCheck,
    ValidationError,
    ValidationReport,
    ensure_valid_output,
    resolve_type_check,
    validate_output,
)

__all__ = [
    "BUILTIN_TYPE_CHECKS",
    "RequirementResult",
    "TypeCheck",
    "ValidationError",
    "ValidationReport",
    "ensure_valid_output",
    "list_files",
    "new_run_id",
    "prepare_output_root",
    "render_tree",
    "resolve_type_check",
    "run_output_dir",
    "validate_output",
]
