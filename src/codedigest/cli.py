# /// script
# requires-python = ">=3.11"
# dependencies = [
#     "pydantic",
#     "python-dotenv",
#     "structlog",
# ]
# ///
"""
codedigest — Digest a directory into a single text file for an LLM.

Overview
--------
The tool walks a directory, keeps the files selected by include and ignore
glob patterns, and writes one text file made of:

1) **Directory Structure** — a box-drawing tree of the directory, optionally
   pruned to the selected entries (`--omit-excluded`).
2) **File Contents** — every selected text file under a `File: <path>` header.
3) **Summary** — counts, sizes, the ignore patterns that fired and any errors.

Ignore patterns follow `.gitignore` conventions: the last matching pattern
wins and `!pattern` re-includes. Include patterns, when given, restrict the
digest to files that match at least one of them. Size and depth budgets bound
the walk, and symlink cycles are detected and skipped.

Defaults for `--path`, `--output`, `--max-size`, `--max-total-size` and
`--max-depth` can be set with `CODEDIGEST_*` variables, in the environment or
in a `.env` file.

Usage
-----
Run `python -m codedigest.cli --help` for full options. Common examples:
    - Digest the current directory into digest.txt:
        uv run codedigest

    - Digest ./myproject, only Python and Markdown files:
        uv run codedigest -p ./myproject -o mydigest.txt -I '*.py' -I '*.md'

    - Ignore patterns from a file, plus one more, tree pruned to the selection:
        uv run codedigest -g .gitignore -i '*.log' --omit-excluded

    - Log to a file:
        uv run codedigest --log-file digest.log
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from codedigest import __version__, config
from codedigest.config import WalkConfig
from codedigest.exceptions import (
    ConfigurationError,
    InvalidArgumentsError,
    InvalidThresholdError,
    NotADirectoryRootError,
    PatternFileNotFoundError,
    RootPathNotFoundError,
)
from codedigest.file_manipulation import format_bytes, load_patterns_from_file, relpath
from codedigest.logging import set_verbosity, setup_logging
from codedigest.output_construction import assemble_digest, build_document, build_summary, digest_directory
from codedigest.settings import Settings, env_defaults

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = setup_logging()

_ENV_INT_KEYS = ("max_size", "max_total_size", "max_depth")
_ENV_PATH_KEYS = ("path", "output")


def _parser_defaults() -> dict[str, object]:
    """Turn usable `CODEDIGEST_*` values into parser defaults."""
    defaults: dict[str, object] = {}
    for key, raw in env_defaults().items():
        if key in _ENV_PATH_KEYS and raw.strip():
            defaults[key] = raw.strip()
        elif key in _ENV_INT_KEYS:
            try:
                defaults[key] = int(raw)
            except ValueError:
                logger.warning("invalid_env_value", key=f"CODEDIGEST_{key.upper()}", value=raw)
    return defaults


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="codedigest",
        description="Digest a directory tree into a single text file.",
    )
    p.add_argument("--path", "-p", type=str, default=".", help="Directory to process (default: .).")
    p.add_argument("--output", "-o", type=str, default="digest.txt", help="Output file (default: digest.txt).")
    p.add_argument("--ignore", "-g", type=str, default=None, help="File containing ignore patterns.")
    p.add_argument("--include", "-n", type=str, default=None, help="File containing include patterns.")
    p.add_argument(
        "--ignore-pattern",
        "-i",
        action="append",
        default=[],
        help="Ignore pattern (repeatable).",
    )
    p.add_argument(
        "--include-pattern",
        "-I",
        action="append",
        default=[],
        help="Include pattern (repeatable).",
    )
    p.add_argument(
        "--max-size",
        "-s",
        type=int,
        default=config.MAX_FILE_SIZE,
        help=f"Maximum file size in bytes (default: {format_bytes(config.MAX_FILE_SIZE)}).",
    )
    p.add_argument(
        "--max-total-size",
        "-t",
        type=int,
        default=config.MAX_TOTAL_SIZE_BYTES,
        help=f"Maximum total size in bytes (default: {format_bytes(config.MAX_TOTAL_SIZE_BYTES)}).",
    )
    p.add_argument(
        "--max-depth",
        "-d",
        type=int,
        default=config.MAX_DIRECTORY_DEPTH,
        help=f"Maximum directory depth (default: {config.MAX_DIRECTORY_DEPTH}).",
    )
    p.add_argument(
        "--omit-excluded",
        action="store_true",
        help="Omit excluded files from the directory tree.",
    )
    p.add_argument("--quiet", "-q", action="store_true", help="Suppress 'added' and 'skipped' messages.")
    p.add_argument("--ultra-quiet", "-uq", action="store_true", help="Suppress all non-error output.")
    p.add_argument(
        "--skip-default-ignore",
        "-k",
        action="store_true",
        help="Skip default ignore patterns; use only user-provided patterns.",
    )
    p.add_argument("--log-file", type=str, default="", help="Log file path.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.set_defaults(**_parser_defaults())
    return p


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    args = build_parser().parse_args(argv)
    return Settings(**vars(args))


def validate_settings(settings: Settings) -> None:
    """Check the settings before anything is walked.

    Raises:
        InvalidArgumentsError: listing every problem found
    """
    problems: list[ConfigurationError] = []
    for name in ("max_size", "max_total_size", "max_depth"):
        value = getattr(settings, name)
        if value <= 0:
            problems.append(InvalidThresholdError(name=name, value=value))
    if settings.ignore is not None and not settings.ignore.is_file():
        problems.append(PatternFileNotFoundError(path=settings.ignore, kind="Ignore"))
    if settings.include is not None and not settings.include.is_file():
        problems.append(PatternFileNotFoundError(path=settings.include, kind="Include"))
    if not settings.path.exists():
        problems.append(RootPathNotFoundError(path=settings.path))
    elif not settings.path.is_dir():
        problems.append(NotADirectoryRootError(path=settings.path))
    if problems:
        raise InvalidArgumentsError(problems=tuple(problems))


def resolve_patterns(settings: Settings, root: Path) -> tuple[list[str], list[str]]:
    """Assemble the final ignore and include pattern lists.

    Ignore patterns are the defaults (unless skipped), then the ignore file, then the
    command line, then an anchored pattern for the output file when it lies under the
    root. Include patterns are the include file, then the command line.

    Returns:
        tuple[list[str], list[str]]: the ignore and include patterns, in order
    """
    ignore = [] if settings.skip_default_ignore else list(config.DEFAULT_IGNORE_PATTERNS)
    if settings.ignore is not None:
        ignore.extend(load_patterns_from_file(settings.ignore, kind="Ignore"))
    ignore.extend(settings.ignore_pattern)

    output = settings.output.resolve()
    if output.is_relative_to(root):
        ignore.append("/" + relpath(output, root))

    include: list[str] = []
    if settings.include is not None:
        include.extend(load_patterns_from_file(settings.include, kind="Include"))
    include.extend(settings.include_pattern)
    return ignore, include


def resolve_config(settings: Settings) -> tuple[Path, WalkConfig]:
    """Validate the settings and turn them into the root and a `WalkConfig`.

    Raises:
        ConfigurationError: if the settings cannot be used for a run
    """
    validate_settings(settings)
    root = settings.path.resolve()
    ignore, include = resolve_patterns(settings, root)
    return root, WalkConfig(
        ignore_patterns=tuple(ignore),
        include_patterns=tuple(include),
        max_file_size=settings.max_size,
        max_total_size=settings.max_total_size,
        max_depth=settings.max_depth,
        quiet=settings.quiet,
        ultra_quiet=settings.ultra_quiet,
        omit_excluded=settings.omit_excluded,
    )


def main(argv: Sequence[str] | None = None) -> int:
    settings = parse_args(argv)
    if settings.log_file:
        setup_logging(settings.log_file)
    set_verbosity(quiet=settings.quiet, ultra_quiet=settings.ultra_quiet)

    try:
        root, walk_config = resolve_config(settings)
    except ConfigurationError as e:
        logger.error("fatal_error", error=str(e))
        print(f"Fatal error: {e}", file=sys.stderr)
        return 1

    result = digest_directory(root, walk_config)
    digest = assemble_digest(result.files)
    summary = build_summary(result.stats, str(settings.path), str(settings.output))

    out_path = settings.output
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_text(build_document(result.tree, digest, summary), encoding="utf-8")
    logger.info("digest_written", output=str(out_path), files=result.stats.file_count)

    if not settings.ultra_quiet:
        color = sys.stdout.isatty()
        print(build_summary(result.stats, str(settings.path), str(settings.output), color=color))
        if result.stats.error_count:
            print(
                f"\nWarning: {result.stats.error_count} errors occurred during processing. "
                "Check the log for details.",
                file=sys.stderr,
            )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
