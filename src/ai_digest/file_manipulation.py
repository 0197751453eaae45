from __future__ import annotations

import codecs
import glob
import os
import re
import stat
from pathlib import Path
from typing import TYPE_CHECKING

from ai_digest.config import EXT2TYPE, CandidateFile, Classification, FileType, PatternSource
from ai_digest.exceptions import PathResolutionError
from ai_digest.logging import get_logger
from ai_digest.patterns import compile_patterns, is_glob, normalize_path

if TYPE_CHECKING:
    from collections.abc import Sequence

    import structlog

_DIGITS = re.compile(r"(\d+)")
_WHITESPACE = re.compile(r"\s+")


def relpath(path: str | os.PathLike[str], root: str | os.PathLike[str]) -> str:
    """Send the relative path of path from root.

    Args:
        path: the path to "relativise"
        root: the root to relativise from

    Returns:
        str: the relative path from root to path, with POSIX separators.
            If no relative form exists (another drive), returns the absolute path.
    """
    try:
        return normalize_path(os.path.relpath(path, root))
    except ValueError:
        return normalize_path(os.path.abspath(path))


def walk_files(directory: Path) -> list[Path]:
    """Walk the directory tree rooted at `directory` and return every file, dotfiles included.

    Args:
        directory (Path): the root directory to walk

    Returns:
        list[Path]: a list of all files found
    """
    results: list[Path] = []
    for root, _dirs, files in os.walk(directory):
        for f in files:
            p = Path(root) / f
            if p.is_file():
                results.append(p)
    return results


def expand_glob(pattern: str, cwd: Path) -> list[Path]:
    """Expand a glob pattern relative to `cwd`, recursively and including dotfiles.

    Args:
        pattern (str): the glob pattern
        cwd (Path): the directory relative patterns are resolved from

    Returns:
        list[Path]: absolute paths of the matching files, directories left out
    """
    matches = glob.glob(normalize_path(pattern), root_dir=cwd, recursive=True, include_hidden=True)
    out: list[Path] = []
    for m in matches:
        p = cwd / m
        if p.is_file():
            out.append(p)
    return out


def apply_pattern_filters(
    candidates: Sequence[CandidateFile],
    includes: Sequence[str] | None,
    excludes: Sequence[str] | None,
) -> list[CandidateFile]:
    """Narrow candidates with include/exclude patterns.

    - If `excludes` is provided, a matching candidate is removed.
    - If `includes` is provided, a candidate must match at least one of them.
    - If neither is provided, `candidates` is returned as-is.

    Args:
        candidates (Sequence[CandidateFile]): the candidates to filter
        includes (Sequence[str] | None): patterns to keep
        excludes (Sequence[str] | None): patterns to drop, winning over includes

    Returns:
        list[CandidateFile]: the filtered candidates, order preserved
    """
    if not includes and not excludes:
        return list(candidates)
    inc = compile_patterns(includes or [], source=PatternSource.INCLUDE)
    exc = compile_patterns(excludes or [], source=PatternSource.CLI)
    out: list[CandidateFile] = []
    for c in candidates:
        if exc.matches(c.rel_path):
            continue
        if inc and not inc.matches(c.rel_path):
            continue
        out.append(c)
    return out


def resolve_inputs(
    inputs: Sequence[str],
    *,
    cwd: Path | None = None,
    includes: Sequence[str] | None = None,
    excludes: Sequence[str] | None = None,
    logger: structlog.BoundLogger | None = None,
) -> list[CandidateFile]:
    """Expand input files, directories and globs into candidate files.

    - a glob is expanded relative to `cwd`; each match keeps its path relative to `cwd`;
    - a directory is walked recursively; its own name prefixes every relative path
      and its parent becomes the base directory;
    - a literal file is anchored to its parent directory.

    Args:
        inputs (Sequence[str]): the input paths or glob patterns
        cwd (Path | None): working directory, defaults to the process one
        includes (Sequence[str] | None): optional patterns a candidate must match
        excludes (Sequence[str] | None): optional patterns dropping candidates
        logger (structlog.BoundLogger | None): logger to report on

    Raises:
        PathResolutionError: if a literal or directory input cannot be stat-ed

    Returns:
        list[CandidateFile]: the candidates, in discovery order
    """
    log = logger or get_logger()
    base = (cwd or Path.cwd()).absolute()
    candidates: list[CandidateFile] = []
    for raw in inputs:
        if is_glob(raw):
            files = expand_glob(raw, base)
            log.debug("glob_expanded", pattern=raw, matches=len(files))
            candidates.extend(CandidateFile(base_dir=str(base), rel_path=relpath(f, base)) for f in files)
            continue

        resolved = Path(os.path.abspath(base / raw))
        try:
            st = resolved.stat()
        except OSError as e:
            log.error("input_unresolvable", path=raw, error=str(e))
            raise PathResolutionError(path=raw, reason=e.strerror or str(e)) from e

        if stat.S_ISDIR(st.st_mode):
            files = walk_files(resolved)
            log.debug("directory_walked", path=str(resolved), files=len(files))
            parent = str(resolved.parent)
            for f in files:
                rel = f"{resolved.name}/{relpath(f, resolved)}"
                candidates.append(CandidateFile(base_dir=parent, rel_path=rel))
        else:
            log.debug("file_input", path=str(resolved))
            candidates.append(CandidateFile(base_dir=str(resolved.parent), rel_path=resolved.name))

    log.debug("inputs_resolved", candidates=len(candidates))
    return apply_pattern_filters(candidates, includes, excludes)


def natural_key(text: str) -> tuple[list[str | int], str]:
    """Build a sort key comparing digit runs as numbers, case-insensitively.

    Args:
        text (str): the string to sort

    Returns:
        tuple[list[str | int], str]: the natural key, ties broken by the raw string
    """
    parts: list[str | int] = []
    for i, chunk in enumerate(_DIGITS.split(text)):
        parts.append(int(chunk) if i % 2 else chunk.casefold())
    return parts, text


def sort_candidates(candidates: Sequence[CandidateFile]) -> list[CandidateFile]:
    """Sort candidates in natural order of their full path.

    Args:
        candidates (Sequence[CandidateFile]): the candidates to order

    Returns:
        list[CandidateFile]: a new, sorted list
    """
    return sorted(candidates, key=lambda c: natural_key(os.path.join(c.base_dir, c.rel_path)))


def is_binary(path: Path, nbytes: int = 4096) -> bool:
    """Check if path points to a binary file.

    Reads the first `nbytes` and looks for NUL bytes or bytes that are not valid
    UTF-8 (a multi-byte sequence cut at the end of the chunk is tolerated).

    Args:
        path (Path): path to test.
        nbytes (int, optional): number of bytes to read for testing. Defaults to 4096.

    Raises:
        OSError: if the file cannot be opened or read

    Returns:
        bool: True if the file looks binary, False otherwise.
    """
    with path.open("rb") as f:
        chunk = f.read(nbytes)
    if b"\x00" in chunk:
        return True
    try:
        codecs.getincrementaldecoder("utf-8")().decode(chunk, final=False)
    except UnicodeDecodeError:
        return True
    return False


def get_file_type(path: str | os.PathLike[str]) -> FileType:
    """Label a file from its extension.

    Args:
        path: the file path

    Returns:
        FileType: the label, `FileType.BINARY` for unknown extensions
    """
    return EXT2TYPE.get(os.path.splitext(path)[1].lower(), FileType.BINARY)


def should_treat_as_binary(path: str | os.PathLike[str]) -> bool:
    """Known binary-typed extensions (SVG included) are described, never inlined."""
    return get_file_type(path) is not FileType.BINARY


def classify(path: str | os.PathLike[str]) -> Classification:
    """Decide how a file's content is represented.

    Args:
        path: absolute path of the file

    Raises:
        OSError: if the file cannot be read

    Returns:
        Classification: text flag, forced-binary flag and type label
    """
    p = Path(path)
    file_type = get_file_type(p)
    is_text = not is_binary(p) and p.suffix.lower() != ".svg"
    return Classification(
        is_text=is_text,
        treat_as_binary=should_treat_as_binary(p),
        file_type=file_type,
    )


def escape_triple_backticks(content: str) -> str:
    """Escape ``` so the content cannot close the surrounding code fence."""
    return content.replace("```", "\\`\\`\\`")


def remove_whitespace(content: str) -> str:
    """Collapse every whitespace run to a single space and trim."""
    return _WHITESPACE.sub(" ", content).strip()
