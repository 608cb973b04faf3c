from __future__ import annotations

import io
import os
from typing import TYPE_CHECKING

from codedigest import config
from codedigest.config import DIGEST_SEPARATOR, TREE_TRUNCATED_MARKER, DigestResult
from codedigest.file_manipulation import format_bytes, relpath
from codedigest.logging import logger
from codedigest.patterns import SelectionRule
from codedigest.walker import walk

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path

    from codedigest.config import FileRecord, Statistics, WalkConfig

    Style = Callable[[str], str]


def _plain(text: str) -> str:
    return text


class _TreeBuffer:
    """Accumulates tree lines until the size cap is crossed."""

    def __init__(self, cap: int) -> None:
        self.out = io.StringIO()
        self.cap = cap
        self.length = 0
        self.truncated = False

    def write(self, line: str) -> None:
        self.out.write(line)
        self.length += len(line)


def render_directory_tree(
    root: Path,
    ignore_patterns: Sequence[str] = (),
    include_patterns: Sequence[str] = (),
    max_depth: int = config.MAX_DIRECTORY_DEPTH,
    *,
    prune_to_selection: bool = False,
    max_chars: int | None = None,
) -> str:
    """Render a box-drawing tree of a directory.

    Entries appear in directory-listing order, directories with a trailing `/`.
    Symbolic links are listed but not descended into. When `prune_to_selection` is set,
    entries excluded by the include and ignore patterns are left out entirely. Once the
    text grows past `max_chars` (default `CHUNK_SIZE`) rendering stops and a truncation
    marker is appended to what was rendered so far.

    Args:
        root (Path): the directory to render
        ignore_patterns (Sequence[str]): ordered ignore patterns, `!` negates
        include_patterns (Sequence[str]): include patterns, empty means everything
        max_depth (int): deepest level rendered, the root's children being level 0
        prune_to_selection (bool): omit excluded entries
        max_chars (int | None): size cap of the rendered text

    Returns:
        str: the tree, one entry per line
    """
    rule = SelectionRule(ignore_patterns, include_patterns) if prune_to_selection else None
    buf = _TreeBuffer(max_chars if max_chars is not None else config.CHUNK_SIZE)

    def walk(dir_path: Path, depth: int, prefix: str) -> None:
        if depth > max_depth or buf.truncated:
            return
        try:
            with os.scandir(dir_path) as it:
                entries = list(it)
            if rule is not None:
                entries = [
                    e
                    for e in entries
                    if not rule.is_excluded(relpath(dir_path / e.name, root), is_dir=e.is_dir())
                ]
        except OSError as e:
            logger.error("tree_render_failed", path=str(dir_path), error=str(e))
            return

        for idx, entry in enumerate(entries):
            if buf.length > buf.cap:
                buf.truncated = True
                return
            last = idx == len(entries) - 1
            is_dir = entry.is_dir(follow_symlinks=False)
            branch = "└── " if last else "├── "
            buf.write(prefix + branch + entry.name + ("/" if is_dir else "") + "\n")
            if is_dir:
                walk(dir_path / entry.name, depth + 1, prefix + ("    " if last else "│   "))
                if buf.truncated:
                    return

    walk(root, 0, "")
    text = buf.out.getvalue()
    if buf.truncated:
        logger.warning("tree_truncated", root=str(root), chars=buf.length)
        return f"{text}\n{TREE_TRUNCATED_MARKER}"
    return text


def assemble_digest(records: Sequence[FileRecord]) -> str:
    """Concatenate file records into the digest body.

    Each record becomes a separator line, a `File: <path>` header, the separator again,
    the content and a newline, in record order.

    Args:
        records (Sequence[FileRecord]): the selected files

    Returns:
        str: the digest text, empty when there are no records
    """
    out = io.StringIO()
    sep = DIGEST_SEPARATOR + "\n"
    for rec in records:
        out.write(f"{sep}File: {rec.rel}\n{sep}{rec.content}\n")
    return out.getvalue()


def _pattern_block(patterns: Sequence[str], style: Style) -> str:
    if not patterns:
        return "None"
    return "\n  " + style("\n  ".join(patterns))


def build_summary(stats: Statistics, path: str, output: str, *, color: bool = False) -> str:
    """Build the human-readable summary block of a run.

    Args:
        stats (Statistics): the statistics of the run
        path (str): the processed directory, as given by the user
        output (str): the digest file
        color (bool): wrap labels and values in ANSI escapes

    Returns:
        str: the summary text
    """

    def ansi(code: str) -> Style:
        if not color:
            return _plain
        return lambda text: f"\033[{code}m{text}\033[0m"

    bold, red, green, yellow, white, gray, invert = (
        ansi(c) for c in ("1", "31", "32", "33", "37", "90", "7")
    )

    def yes_no(flag: bool, *, good: bool) -> str:
        style = green if flag == good else red
        return style("Yes" if flag else "No")

    errors = "\n".join(f"{e.timestamp}: {e.message}" for e in stats.errors) or "No errors occurred"
    lines = [
        "",
        invert(bold(" Digest Summary ")),
        f"{white('Processed directory:')}         {gray(path)}",
        f"{white('Execution time:')}              {yellow(f'{stats.elapsed_seconds:.2f}')} {gray('seconds')}",
        f"{white('Files added to digest:')}       {green(str(stats.file_count))}",
        f"{white('Files excluded by pattern:')}   {red(str(stats.excluded_files))}",
        f"{white('Files excluded (non-text):')}   {red(str(stats.non_text_files))}",
        f"{white('Files skipped (size limit):')}  {red(str(stats.skipped_files))}",
        f"{white('Total size:')}                  {yellow(format_bytes(stats.total_size))}",
        f"{white('Size limit reached:')}          {yes_no(stats.size_limit_reached, good=False)}",
        "",
        invert(bold(" Configuration ")),
        f"{white('Max file size:')}       {yellow(format_bytes(stats.max_file_size))}",
        f"{white('Max total size:')}      {yellow(format_bytes(stats.max_total_size))}",
        f"{white('Max directory depth:')} {yellow(str(stats.max_depth))}",
        f"{white('Omit excluded from tree:')} {yes_no(stats.omit_excluded, good=True)}",
        f"{bold('Ignore patterns that matched:')} {_pattern_block(stats.matched_ignore_patterns, gray)}",
        f"{white('Include patterns:')}   {_pattern_block(stats.include_patterns, gray)}",
        "",
        invert(bold(f" Errors ({stats.error_count}) ")),
        errors,
        "",
        invert(bold(" Digest File ")),
        output,
        "",
    ]
    return "\n".join(lines)


def build_document(tree: str, digest: str, summary: str) -> str:
    """Lay out the digest file: tree, file contents and summary under their headings."""
    out = io.StringIO()
    out.write("Directory Structure\n==================\n")
    out.write(f"{tree}\n\n")
    out.write("File Contents\n=============\n")
    out.write(f"{digest}\n\n")
    out.write(summary)
    return out.getvalue()


def digest_directory(root: Path, walk_config: WalkConfig) -> DigestResult:
    """Walk a directory, render its tree and collect everything a digest needs.

    Args:
        root (Path): the directory to digest
        walk_config (WalkConfig): patterns, thresholds and flags for the run

    Returns:
        DigestResult: the selected files, the rendered tree and the run statistics
    """
    files, stats = walk(root, walk_config)
    tree = render_directory_tree(
        root,
        walk_config.ignore_patterns,
        walk_config.include_patterns,
        walk_config.max_depth,
        prune_to_selection=walk_config.omit_excluded,
    )
    return DigestResult(files=tuple(files), tree=tree, stats=stats)
