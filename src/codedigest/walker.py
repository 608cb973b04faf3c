"""Recursive, cycle-safe directory walk that selects the files of a digest.

One `TraversalState` is created per run and shared by every recursive call: it holds
the canonical directories already visited, the symlink edges already followed, the
running totals and the error log.
"""

from __future__ import annotations

import os
import time
from dataclasses import dataclass, field
from pathlib import Path

from codedigest.config import ErrorEntry, FileRecord, Statistics, WalkConfig
from codedigest.file_manipulation import is_text_file, now_iso, read_text, relpath
from codedigest.logging import logger
from codedigest.patterns import SelectionRule


@dataclass
class TraversalState:
    """Mutable accounting for one walk."""

    seen_paths: set[str] = field(default_factory=set)
    # canonical directories on the current descent path
    active_paths: set[str] = field(default_factory=set)
    seen_symlinks: set[tuple[str, str]] = field(default_factory=set)
    total_size: int = 0
    file_count: int = 0
    skipped_files: int = 0
    excluded_files: int = 0
    non_text_files: int = 0
    size_limit_reached: bool = False
    start_time: float = field(default_factory=time.monotonic)
    errors: list[ErrorEntry] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    # dict keys keep insertion order, which a set would not
    matched_ignore_patterns: dict[str, None] = field(default_factory=dict)

    def add_error(self, message: str) -> None:
        """Record a non-fatal error with the current UTC timestamp."""
        self.errors.append(ErrorEntry(timestamp=now_iso(), message=message))

    def add_warning(self, event: str, **context: object) -> None:
        """Log a traversal warning and keep it for the run report."""
        logger.warning(event, **context)
        details = ", ".join(f"{k}={v}" for k, v in context.items())
        self.warnings.append(f"{event}: {details}" if details else event)


class _MatchedPatterns:
    """Set-like adapter recording matched patterns into the state, in order."""

    def __init__(self, state: TraversalState) -> None:
        self._state = state

    def add(self, pattern: str) -> None:
        self._state.matched_ignore_patterns.setdefault(pattern, None)


class Walker:
    """Depth-first walker producing the `FileRecord`s of a digest.

    Every entry is checked against the selection rule before it is inspected;
    excluded entries are counted and never recursed into or read.
    """

    def __init__(self, root: Path, config: WalkConfig, state: TraversalState | None = None) -> None:
        self.root = root
        self.config = config
        self.state = state or TraversalState()
        self.rule = SelectionRule(config.ignore_patterns, config.include_patterns)
        self._matched = _MatchedPatterns(self.state)

    def walk(self) -> list[FileRecord]:
        """Walk from the root and return the accepted files in visit order."""
        files: list[FileRecord] = []
        self._walk_dir(self.root, 0, files)
        return files

    def _walk_dir(self, dir_path: Path, depth: int, files: list[FileRecord]) -> None:
        state = self.state
        if depth > self.config.max_depth:
            state.add_warning("max_depth_reached", path=str(dir_path), max_depth=self.config.max_depth)
            return

        real = os.path.realpath(dir_path)
        if real in state.seen_paths:
            event = "circular_reference" if real in state.active_paths else "already_visited"
            state.add_warning(event, path=str(dir_path), target=real)
            return
        state.seen_paths.add(real)
        state.active_paths.add(real)
        try:
            self._walk_entries(dir_path, depth, files)
        finally:
            state.active_paths.discard(real)

    def _walk_entries(self, dir_path: Path, depth: int, files: list[FileRecord]) -> None:
        state = self.state
        try:
            with os.scandir(dir_path) as it:
                entries = list(it)
        except OSError as e:
            state.add_error(f"Error reading directory {dir_path}: {e}")
            logger.error("directory_read_failed", path=str(dir_path), error=str(e))
            return

        for entry in entries:
            if state.size_limit_reached:
                break
            entry_path = Path(entry.path)
            try:
                is_dir = entry.is_dir()
                if self.rule.is_excluded(relpath(entry_path, self.root), is_dir=is_dir, matched=self._matched):
                    state.excluded_files += 1
                    continue
                if entry.is_symlink():
                    self._follow_symlink(entry_path, depth, files)
                elif entry.is_dir(follow_symlinks=False):
                    self._walk_dir(entry_path, depth + 1, files)
                elif entry.is_file(follow_symlinks=False):
                    self._process_file(entry_path, files)
            except OSError as e:
                state.add_error(f"Error processing {entry_path}: {e}")
                logger.error("entry_failed", path=str(entry_path), error=str(e))

    def _follow_symlink(self, link: Path, depth: int, files: list[FileRecord]) -> None:
        state = self.state
        target = os.path.realpath(link)
        edge = (str(link), target)
        if edge in state.seen_symlinks:
            state.add_warning("circular_symlink", link=str(link), target=target)
            return
        state.seen_symlinks.add(edge)

        try:
            target_is_dir = Path(target).is_dir()
            target_exists = target_is_dir or Path(target).is_file()
        except OSError:
            target_exists = False
        if not target_exists:
            state.add_warning("broken_symlink", link=str(link), target=target)
            return
        if target_is_dir:
            self._walk_dir(link, depth + 1, files)
        else:
            self._process_file(link, files)

    def _process_file(self, path: Path, files: list[FileRecord]) -> None:
        state = self.state
        cfg = self.config
        try:
            size = path.stat().st_size
            if size > cfg.max_file_size:
                state.skipped_files += 1
                logger.info("skipped_too_large", path=str(path), size=size, max_file_size=cfg.max_file_size)
                return
            if state.total_size + size > cfg.max_total_size:
                state.size_limit_reached = True
                state.add_warning("total_size_limit_reached", path=str(path), max_total_size=cfg.max_total_size)
                return
            if not is_text_file(path):
                state.non_text_files += 1
                logger.info("skipped_non_text", path=str(path))
                return

            content = read_text(path, size)
        except OSError as e:
            state.add_error(f"Error processing file {path}: {e}")
            logger.error("file_failed", path=str(path), error=str(e))
            return

        rel = relpath(path, self.root)
        state.total_size += size
        state.file_count += 1
        files.append(FileRecord(rel=rel, content=content, size=size))
        logger.info("added_to_digest", path=rel, size=size)


def summarize(state: TraversalState, config: WalkConfig) -> Statistics:
    """Freeze the traversal state into a `Statistics` snapshot.

    Args:
        state (TraversalState): the state of a finished walk
        config (WalkConfig): the configuration the walk ran under

    Returns:
        Statistics: counts, sizes, errors and the configuration echo
    """
    return Statistics(
        file_count=state.file_count,
        total_size=state.total_size,
        skipped_files=state.skipped_files,
        excluded_files=state.excluded_files,
        non_text_files=state.non_text_files,
        size_limit_reached=state.size_limit_reached,
        elapsed_seconds=max(0.0, time.monotonic() - state.start_time),
        matched_ignore_patterns=tuple(state.matched_ignore_patterns),
        include_patterns=tuple(config.include_patterns),
        errors=tuple(state.errors),
        max_file_size=config.max_file_size,
        max_total_size=config.max_total_size,
        max_depth=config.max_depth,
        omit_excluded=config.omit_excluded,
    )


def walk(root: Path, config: WalkConfig) -> tuple[list[FileRecord], Statistics]:
    """Walk a directory and select the files of its digest.

    Non-fatal problems (unreadable entries, cycles, depth and size limits) are logged
    and recorded; they never abort the walk.

    Args:
        root (Path): the directory to walk
        config (WalkConfig): patterns, thresholds and flags for the run

    Returns:
        tuple[list[FileRecord], Statistics]: accepted files in visit order, and the
            statistics of the run
    """
    state = TraversalState()
    files = Walker(root, config, state).walk()
    return files, summarize(state, config)
