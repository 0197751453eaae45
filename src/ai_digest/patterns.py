"""Compile ignore and include pattern lists into path predicates.

Three flavours of pattern are understood:

- a bare name without extension (``node_modules``, ``folder-a/folder-b``) is a
  directory: it matches the path itself, everything below it, and the same
  segments at any depth;
- a bare name with an extension (``package-lock.json``) is a file name: it
  matches the literal path and the same name in any directory;
- anything containing ``*``, ``?``, ``[`` or ``]`` is a glob, matched against
  the full path and, unless it already starts with ``**``, anywhere below the
  root as well.

Matching is delegated to :mod:`pathspec` (git wildmatch syntax) once the
patterns have been expanded; callers only ever see :class:`PatternPredicate`.
"""

from __future__ import annotations

import posixpath
import re
from typing import TYPE_CHECKING

import pathspec

from ai_digest.config import PatternSource

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

_GLOB_CHARS = re.compile(r"[*?\[\]]")


def normalize_path(path: str) -> str:
    """Use forward slashes whatever the host separator.

    Args:
        path (str): the path or pattern to normalise

    Returns:
        str: the path with every backslash replaced by a forward slash
    """
    return path.replace("\\", "/")


def is_glob(pattern: str) -> bool:
    """Check whether a pattern holds glob metacharacters.

    Args:
        pattern (str): the pattern to test

    Returns:
        bool: True if the pattern contains ``*``, ``?``, ``[`` or ``]``
    """
    return bool(_GLOB_CHARS.search(pattern))


def expand_pattern(pattern: str) -> list[str]:
    """Expand one raw pattern into the wildmatch lines that implement it.

    Args:
        pattern (str): a raw pattern, already normalised to forward slashes

    Returns:
        list[str]: wildmatch lines, all anchored to the root with a leading ``/``
    """
    # every line gets a leading "/", so "!" and "#" at the start stay literal
    pat = pattern.strip()
    if is_glob(pat):
        pat = pat.lstrip("/")
        if pat.startswith("**"):
            return [f"/{pat}"]
        return [f"/{pat}", f"/**/{pat}"]

    pat = pat.strip("/")
    if not pat:
        return []
    if posixpath.splitext(pat)[1]:
        return [f"/{pat}", f"/**/{pat}"]
    return [f"/{pat}", f"/{pat}/**", f"/**/{pat}/**", f"/**/{pat}"]


class PatternPredicate:
    """Immutable predicate telling whether a path matches any compiled pattern."""

    __slots__ = ("_spec", "patterns", "source")

    def __init__(self, patterns: Sequence[str], source: PatternSource) -> None:
        self.patterns: tuple[str, ...] = tuple(normalize_path(p).strip() for p in patterns if p and p.strip())
        self.source = source
        lines = [line for p in self.patterns for line in expand_pattern(p)]
        self._spec = pathspec.PathSpec.from_lines("gitwildmatch", lines)

    def __bool__(self) -> bool:
        return bool(self.patterns)

    def __repr__(self) -> str:
        return f"PatternPredicate(source={self.source.value!r}, patterns={list(self.patterns)!r})"

    def matches(self, path: str) -> bool:
        """Test a relative path against the compiled patterns.

        Args:
            path (str): the candidate path, relative, any separator

        Returns:
            bool: True if at least one pattern matches
        """
        if not self.patterns:
            return False
        return self._spec.match_file(normalize_path(path).lstrip("/"))


def compile_patterns(
    patterns: Iterable[str],
    *,
    source: PatternSource = PatternSource.CLI,
) -> PatternPredicate:
    """Compile a pattern list into a :class:`PatternPredicate`.

    Args:
        patterns (Iterable[str]): raw patterns, blank entries are ignored
        source (PatternSource): provenance of the patterns, kept for reporting

    Returns:
        PatternPredicate: the compiled predicate
    """
    return PatternPredicate(list(patterns), source)
