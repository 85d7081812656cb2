"""Command-line entrypoint for mdx-codegen."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from mdx_codegen import __version__

_MISSING_DEPS = (
    "Runtime dependencies are missing. "
    "Install project dependencies first (pip install -e .)."
)
_TYPE_CHECKS = ("none", "tsc", "mypy")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mdx-codegen",
        description=(
            "Generate a source tree from an MDX prompt document using an "
            "LLM completion API."
        ),
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")
    generate_parser = subparsers.add_parser(
        "generate",
        help="Run the full prompt-to-source-tree pipeline.",
    )
    generate_parser.add_argument(
        "-p",
        "--prompt",
        default=None,
        help="Prompt URL or local path (default: PROMPT_URL).",
    )
    generate_parser.add_argument(
        "-o",
        "--output-dir",
        default=None,
        help="Output directory base name; a run id suffix is appended.",
    )
    generate_parser.add_argument(
        "-m",
        "--model",
        default=None,
        help="Model identifier (default: GEMINI_MODEL).",
    )
    generate_parser.add_argument(
        "--run-id",
        default=None,
        help="Run identifier for the output directory suffix (default: timestamp).",
    )
    generate_parser.add_argument(
        "--required-file",
        action="append",
        default=None,
        help="Relative path that must exist after generation. Repeat for multiple files.",
    )
    generate_parser.add_argument(
        "--type-check",
        choices=_TYPE_CHECKS,
        default=None,
        help="Static checker to run on the generated tree (default: TYPE_CHECK).",
    )
    generate_parser.add_argument("--max-retries", type=int, default=None)
    generate_parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-attempt completion timeout in seconds.",
    )
    generate_parser.add_argument(
        "--cache-ttl",
        type=int,
        default=None,
        help="Prompt cache freshness window in seconds.",
    )
    generate_parser.add_argument(
        "--structure-file",
        type=Path,
        default=None,
        help="Write a directory structure report of the generated tree here.",
    )
    subparsers.add_parser(
        "config-check",
        help="Validate environment configuration for mdx-codegen.",
    )
    fetch_parser = subparsers.add_parser(
        "fetch-prompt",
        help="Resolve the prompt document into the local cache.",
    )
    fetch_parser.add_argument("-p", "--prompt", default=None, help="Prompt URL or path.")
    fetch_parser.add_argument(
        "--force",
        action="store_true",
        help="Ignore the freshness window and refetch.",
    )
    preprocess_parser = subparsers.add_parser(
        "preprocess",
        help="Strip non-code MDX directives from a file and print the result.",
    )
    preprocess_parser.add_argument("file", type=Path, help="MDX/Markdown file.")
    extract_parser = subparsers.add_parser(
        "extract",
        help="Write fenced code blocks from a saved response into a directory.",
    )
    extract_parser.add_argument("file", type=Path, help="Saved model response.")
    extract_parser.add_argument(
        "-o",
        "--output-dir",
        type=Path,
        required=True,
        help="Directory to recreate and populate.",
    )
    extract_parser.add_argument(
        "--raw",
        action="store_true",
        help="Skip MDX directive stripping before extraction.",
    )
    validate_parser = subparsers.add_parser(
        "validate",
        help="Check a generated tree for required files and run a type check.",
    )
    validate_parser.add_argument("directory", type=Path, help="Generated tree root.")
    validate_parser.add_argument("--required-file", action="append", default=None)
    validate_parser.add_argument("--type-check", choices=_TYPE_CHECKS, default=None)
    tree_parser = subparsers.add_parser(
        "tree",
        help="Print the directory structure report of a generated tree.",
    )
    tree_parser.add_argument("directory", type=Path, help="Generated tree root.")
    return parser


def _generate(args: argparse.Namespace) -> int:
    try:
        from mdx_codegen.config import ConfigError, load_settings, override_settings
        from mdx_codegen.llm import create_model_client
        from mdx_codegen.logging_setup import configure_logging
        from mdx_codegen.output.tree import new_run_id, render_tree, run_output_dir
        from mdx_codegen.pipeline import PipelineConfig, run_pipeline
        from mdx_codegen.prompts.source import PromptSource
    except ModuleNotFoundError:
        print(_MISSING_DEPS, file=sys.stderr)
        return 2

    try:
        settings = override_settings(
            load_settings(),
            prompt_url=args.prompt,
            output_dir=args.output_dir,
            gemini_model=args.model,
            required_files=args.required_file,
            type_check=args.type_check,
            max_retries=args.max_retries,
            request_timeout=args.timeout,
            prompt_cache_ttl=args.cache_ttl,
        )
        settings.validate_llm_requirements()
    except ConfigError as exc:
        print(f"Configuration error:\n{exc}", file=sys.stderr)
        return 2

    try:
        log = configure_logging(settings.resolved_log_file)
    except OSError as exc:
        print(f"Cannot open log file {settings.resolved_log_file}: {exc}", file=sys.stderr)
        return 2

    log.info("Starting mdx-codegen %s", __version__)
    output_root = run_output_dir(settings.output_dir, args.run_id or new_run_id())
    result = run_pipeline(
        PipelineConfig.from_settings(settings, output_root),
        create_model_client(settings, log=log),
        PromptSource(settings.prompt_cache_path, log=log),
        log=log,
    )

    if args.structure_file is not None and output_root.is_dir():
        try:
            args.structure_file.write_text(render_tree(output_root), encoding="utf-8")
        except OSError as exc:
            log.error("Cannot write structure report %s: %s", args.structure_file, exc)
            return 1
        log.info("Structure report written to %s", args.structure_file)

    if not result.succeeded:
        log.error("Run failed - check %s", settings.resolved_log_file)
        return 1

    log.info("Next steps:")
    print(f"  cd {output_root}")
    print("  npm install (if package.json exists)")
    print("  npm run dev to start development")
    return 0


def _config_check(args: argparse.Namespace) -> int:
    try:
        from mdx_codegen.config import ConfigError, load_settings
    except ModuleNotFoundError:
        print(
            "Configuration tooling dependencies are missing. "
            "Install project dependencies first (pip install -e .).",
            file=sys.stderr,
        )
        return 2

    try:
        settings = load_settings()
    except ConfigError as exc:
        print(f"Configuration error:\n{exc}", file=sys.stderr)
        return 2

    redacted = "***" if settings.api_key else "(not set)"
    print("Configuration loaded successfully:")
    print(f"- GEMINI_API_KEY: {redacted}")
    print(f"- GEMINI_MODEL: {settings.gemini_model}")
    print(f"- GEMINI_BASE_URL: {settings.gemini_base_url}")
    print(f"- PROMPT_URL: {settings.prompt_url}")
    print(f"- PROMPT_CACHE_PATH: {settings.prompt_cache_path}")
    print(f"- PROMPT_CACHE_TTL: {settings.prompt_cache_ttl}")
    print(f"- OUTPUT_DIR: {settings.output_dir}")
    print(f"- MAX_RETRIES: {settings.max_retries}")
    print(f"- REQUEST_TIMEOUT: {settings.request_timeout}")
    print(f"- LOG_FILE: {settings.resolved_log_file}")
    print(f"- REQUIRED_FILES: {', '.join(settings.required_files) or '(none)'}")
    print(f"- TYPE_CHECK: {settings.type_check}")
    return 0


def _fetch_prompt(args: argparse.Namespace) -> int:
    try:
        from mdx_codegen.config import ConfigError, load_settings
        from mdx_codegen.logging_setup import configure_logging
        from mdx_codegen.prompts.source import PromptSource, UnavailableError
    except ModuleNotFoundError:
        print(_MISSING_DEPS, file=sys.stderr)
        return 2

    try:
        settings = load_settings()
    except ConfigError as exc:
        print(f"Configuration error:\n{exc}", file=sys.stderr)
        return 2

    log = configure_logging(None)
    source = PromptSource(settings.prompt_cache_path, log=log)
    ttl = 0 if args.force else settings.prompt_cache_ttl
    try:
        document = source.resolve(args.prompt or settings.prompt_url, ttl)
    except UnavailableError as exc:
        print(f"Prompt fetch failed:\n{exc}", file=sys.stderr)
        return 1

    print("Prompt resolved:")
    print(f"- source: {document.source}")
    print(f"- cache_path: {settings.prompt_cache_path}")
    print(f"- characters: {len(document.text)}")
    print(f"- degraded: {'yes' if document.degraded else 'no'}")
    return 0


def _preprocess(args: argparse.Namespace) -> int:
    from mdx_codegen.mdx.preprocess import clean

    try:
        text = args.file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        print(f"Cannot read {args.file}: {exc}", file=sys.stderr)
        return 1
    sys.stdout.write(clean(text))
    return 0


def _extract(args: argparse.Namespace) -> int:
    from mdx_codegen.extract.codeblocks import EmptyOutputError, extract_to_directory
    from mdx_codegen.logging_setup import configure_logging
    from mdx_codegen.mdx.preprocess import clean
    from mdx_codegen.output.tree import prepare_output_root, render_tree

    try:
        text = args.file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        print(f"Cannot read {args.file}: {exc}", file=sys.stderr)
        return 1

    log = configure_logging(None)
    try:
        prepare_output_root(args.output_dir)
        extract_to_directory(text if args.raw else clean(text), args.output_dir, log=log)
    except EmptyOutputError as exc:
        print(f"Extraction failed:\n{exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"Extraction failed writing files:\n{exc}", file=sys.stderr)
        return 1

    print(render_tree(args.output_dir), end="")
    return 0


def _validate(args: argparse.Namespace) -> int:
    from mdx_codegen.config import DEFAULT_REQUIRED_FILES
    from mdx_codegen.logging_setup import configure_logging
    from mdx_codegen.output.validator import resolve_type_check, validate_output

    if not args.directory.is_dir():
        print(f"Not a directory: {args.directory}", file=sys.stderr)
        return 2

    log = configure_logging(None)
    report = validate_output(
        args.directory,
        args.required_file or list(DEFAULT_REQUIRED_FILES),
        resolve_type_check(args.type_check),
        log=log,
    )
    print("Validation report:")
    for item in report.results:
        marker = "ok" if item.satisfied else "FAIL"
        print(f"- [{marker}] {item.requirement} ({item.detail})")
    for warning in report.warnings:
        print(f"- [warn] {warning}")
    print(f"- unmet: {report.unmet_count}")
    return 0 if report.passed else 1


def _tree(args: argparse.Namespace) -> int:
    from mdx_codegen.output.tree import render_tree

    if not args.directory.is_dir():
        print(f"Not a directory: {args.directory}", file=sys.stderr)
        return 2
    print(render_tree(args.directory), end="")
    return 0


_HANDLERS = {
    "generate": _generate,
    "config-check": _config_check,
    "fetch-prompt": _fetch_prompt,
    "preprocess": _preprocess,
    "extract": _extract,
    "validate": _validate,
    "tree": _tree,
}


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return _HANDLERS[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
