"""Glob matching with gitignore-like "last match wins" selection.

A pattern is split on ``/`` into segments. ``**`` as a whole segment matches zero or
more path segments, ``*`` inside a segment matches any run of characters, and every
other character is literal. Patterns are compiled once and cached, so a whole walk
reuses the same matchers.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING

from codedigest.logging import logger

if TYPE_CHECKING:
    from collections.abc import Iterable, MutableSet, Sequence

NEGATION_PREFIX = "!"
GLOBSTAR = "**"


def normalize_rel(path: str) -> str:
    """Normalize a relative path to forward-slash segments.

    Args:
        path (str): the path to normalize, with either separator

    Returns:
        str: the path with `/` separators and no leading `./` or `/`
    """
    rel = path.replace("\\", "/")
    while rel.startswith("./"):
        rel = rel[2:]
    return rel.strip("/")


def _compile_segment(segment: str, *, case_insensitive: bool) -> re.Pattern[str] | None:
    if segment == GLOBSTAR:
        return None
    body = ".*".join(re.escape(part) for part in segment.split("*"))
    return re.compile(body, re.IGNORECASE if case_insensitive else 0)


def _match_segments(segments: Sequence[re.Pattern[str] | None], parts: Sequence[str]) -> bool:
    if not segments:
        return not parts
    head = segments[0]
    if head is None:
        if len(segments) == 1:
            return True
        return any(_match_segments(segments[1:], parts[i:]) for i in range(len(parts) + 1))
    if not parts or head.fullmatch(parts[0]) is None:
        return False
    return _match_segments(segments[1:], parts[1:])


@dataclass(frozen=True)
class CompiledPattern:
    """A glob compiled into per-segment matchers.

    Attributes:
        source: the pattern as given, without any negation marker.
        segments: one compiled regex per segment, None standing for `**`.
        basename: the pattern has no `/` and is matched against the last path segment.
        dir_only: the pattern ended with `/` and only matches directories.
        references_hidden: some pattern segment starts with `.`.
    """

    source: str
    segments: tuple[re.Pattern[str] | None, ...]
    basename: bool
    dir_only: bool
    references_hidden: bool

    def match(self, path: str, *, is_dir: bool = False, match_hidden: bool = False) -> bool:
        """Match a normalized relative path against this pattern.

        Args:
            path (str): forward-slash path relative to the walk root
            is_dir (bool): whether `path` names a directory
            match_hidden (bool): allow paths with dot-segments to match patterns
                that do not mention a hidden segment themselves

        Returns:
            bool: True if the path matches
        """
        if self.dir_only and not is_dir:
            return False
        parts = [p for p in normalize_rel(path).split("/") if p]
        if not match_hidden and not self.references_hidden and any(p.startswith(".") for p in parts):
            return False
        if self.basename:
            return bool(parts) and _match_segments(self.segments, parts[-1:])
        return _match_segments(self.segments, parts)


def is_usable(pattern: object) -> bool:
    """Tell whether a pattern, without negation marker, can ever match anything."""
    return isinstance(pattern, str) and bool(pattern.strip().replace("\\", "/").strip("/"))


def _checked(pattern: object, source: object = None) -> bool:
    if is_usable(pattern):
        return True
    logger.warning("invalid_pattern", pattern=repr(pattern if source is None else source))
    return False


@lru_cache(maxsize=4096)
def compile_pattern(pattern: str, *, case_insensitive: bool = False) -> CompiledPattern | None:
    """Compile a glob pattern, without negation marker, into a `CompiledPattern`.

    A trailing `/` makes the pattern directory-only and a leading `/` anchors it at the
    root. Patterns without any other `/` match the basename of a path.

    Args:
        pattern (str): the glob to compile
        case_insensitive (bool): compile segment matchers with IGNORECASE

    Returns:
        CompiledPattern | None: the compiled pattern, or None if the pattern is unusable
    """
    if not is_usable(pattern):
        return None
    text = pattern.strip().replace("\\", "/")
    dir_only = text.endswith("/")
    anchored = text.startswith("/")
    text = text.strip("/")
    raw_segments = [s for s in text.split("/") if s]
    return CompiledPattern(
        source=pattern,
        segments=tuple(_compile_segment(s, case_insensitive=case_insensitive) for s in raw_segments),
        basename=not anchored and len(raw_segments) == 1,
        dir_only=dir_only,
        references_hidden=any(s.startswith(".") for s in raw_segments),
    )


def matches(
    path: str,
    pattern: str,
    *,
    case_insensitive: bool = False,
    match_hidden: bool = False,
    is_dir: bool = False,
) -> bool:
    """Check whether a relative path matches a single glob pattern.

    The pattern must already have any leading `!` removed; negation is applied by the
    caller. An empty or non-string pattern never matches.

    Args:
        path (str): forward-slash path relative to the walk root
        pattern (str): the glob pattern
        case_insensitive (bool): compare segments ignoring case
        match_hidden (bool): let patterns match paths containing dot-segments
        is_dir (bool): whether `path` names a directory

    Returns:
        bool: True if the path matches the pattern
    """
    if not _checked(pattern):
        return False
    compiled = compile_pattern(pattern, case_insensitive=case_insensitive)
    return compiled is not None and compiled.match(path, is_dir=is_dir, match_hidden=match_hidden)


@dataclass(frozen=True)
class _IgnoreRule:
    pattern: str
    negated: bool
    compiled: CompiledPattern


class SelectionRule:
    """Include gate followed by last-match-wins ignore evaluation.

    Include patterns narrow the universe of files; ignore patterns, evaluated in order
    with `!` negation, carve exceptions out of it or back into it. Directories are only
    subject to ignore patterns, never to the include gate.
    """

    def __init__(
        self,
        ignore_patterns: Iterable[str] = (),
        include_patterns: Iterable[str] = (),
        *,
        case_insensitive: bool = True,
        match_hidden: bool = True,
    ) -> None:
        self.ignore_patterns = tuple(ignore_patterns)
        self.include_patterns = tuple(include_patterns)
        self.match_hidden = match_hidden

        self._ignore: list[_IgnoreRule] = []
        for pat in self.ignore_patterns:
            negated = isinstance(pat, str) and pat.startswith(NEGATION_PREFIX)
            body = pat[len(NEGATION_PREFIX) :] if negated else pat
            if not _checked(body, pat):
                continue
            compiled = compile_pattern(body, case_insensitive=case_insensitive)
            if compiled is None:
                continue
            self._ignore.append(_IgnoreRule(pattern=pat, negated=negated, compiled=compiled))

        self._include: list[CompiledPattern] = []
        for pat in self.include_patterns:
            if not _checked(pat):
                continue
            compiled = compile_pattern(pat, case_insensitive=case_insensitive)
            if compiled is None:
                continue
            self._include.append(compiled)

    def is_included(self, path: str, *, is_dir: bool = False) -> bool:
        """Check the include gate.

        Args:
            path (str): forward-slash path relative to the walk root
            is_dir (bool): whether `path` names a directory

        Returns:
            bool: True if there are no include patterns, the path is a directory,
                or the path matches at least one include pattern
        """
        if not self.include_patterns or is_dir:
            return True
        return any(p.match(path, match_hidden=self.match_hidden) for p in self._include)

    def is_ignored(self, path: str, *, is_dir: bool = False, matched: MutableSet[str] | None = None) -> bool:
        """Evaluate ignore patterns in order; the last matching pattern decides.

        Args:
            path (str): forward-slash path relative to the walk root
            is_dir (bool): whether `path` names a directory
            matched (MutableSet[str] | None): receives every non-negated pattern that matched

        Returns:
            bool: True if the path ends up ignored
        """
        ignored = False
        for rule in self._ignore:
            if rule.compiled.match(path, is_dir=is_dir, match_hidden=self.match_hidden):
                ignored = not rule.negated
                if not rule.negated and matched is not None:
                    matched.add(rule.pattern)
        return ignored

    def is_excluded(self, path: str, *, is_dir: bool = False, matched: MutableSet[str] | None = None) -> bool:
        """Decide whether a path is left out of the selection.

        Args:
            path (str): path relative to the walk root, either separator
            is_dir (bool): whether `path` names a directory
            matched (MutableSet[str] | None): receives ignore patterns that matched

        Returns:
            bool: True if the path fails the include gate or is ignored
        """
        rel = normalize_rel(path)
        if not self.is_included(rel, is_dir=is_dir):
            return True
        return self.is_ignored(rel, is_dir=is_dir, matched=matched)


def is_excluded(
    path: str,
    ignore_patterns: Sequence[str],
    include_patterns: Sequence[str] = (),
    *,
    matched: MutableSet[str] | None = None,
    is_dir: bool = False,
) -> bool:
    """Evaluate include and ignore patterns against a single path.

    Matching is case-insensitive and lets patterns match dot-segments, as during a walk.

    Args:
        path (str): path relative to the walk root
        ignore_patterns (Sequence[str]): ordered ignore patterns, `!` negates
        include_patterns (Sequence[str]): include patterns, empty means everything
        matched (MutableSet[str] | None): receives ignore patterns that matched
        is_dir (bool): whether `path` names a directory

    Returns:
        bool: True if the path is excluded
    """
    return SelectionRule(ignore_patterns, include_patterns).is_excluded(path, is_dir=is_dir, matched=matched)
