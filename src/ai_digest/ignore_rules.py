from __future__ import annotations

import os
from typing import TYPE_CHECKING

from ai_digest.config import DEFAULT_IGNORES, PatternSource, Verdict
from ai_digest.exceptions import IgnoreFileReadError
from ai_digest.logging import get_logger
from ai_digest.patterns import PatternPredicate, compile_patterns

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    import structlog

    from ai_digest.config import CandidateFile


def parse_ignore_lines(text: str) -> list[str]:
    """Extract patterns from the content of an ignore file.

    Args:
        text (str): raw content of the ignore file

    Returns:
        list[str]: stripped patterns, without blank lines and `#` comments
    """
    out: list[str] = []
    for line in text.splitlines():
        s = line.strip()
        if not s or s.startswith("#"):
            continue
        out.append(s)
    return out


def read_ignore_file(path: Path, *, logger: structlog.BoundLogger | None = None) -> list[str]:
    """Read the patterns of an ignore file.

    A missing file is not an error and yields no pattern.

    Args:
        path (Path): the ignore file to read
        logger (structlog.BoundLogger | None): logger to report on, defaults to the package logger

    Raises:
        IgnoreFileReadError: if the file exists but cannot be read

    Returns:
        list[str]: the patterns found in the file
    """
    log = logger or get_logger()
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        log.info("ignore_file_missing", path=str(path))
        return []
    except (OSError, UnicodeDecodeError) as e:
        log.error("ignore_file_unreadable", path=str(path), error=str(e))
        raise IgnoreFileReadError(path=path, reason=str(e)) from e
    patterns = parse_ignore_lines(text)
    log.info("ignore_file_loaded", path=str(path), patterns=patterns)
    return patterns


class IgnoreResolver:
    """Decide the verdict of each candidate from the layered pattern sets.

    Rules are evaluated top to bottom and the first match wins:

    1. the candidate is the output file itself: excluded by default;
    2. a command line ``--ignore`` pattern matches: excluded by custom rules;
    3. an ignore-file pattern matches: excluded by custom rules;
    4. default ignores are enabled and match: excluded by default;
    5. include patterns were given and none matches: excluded by custom rules;
    6. otherwise the candidate is included.
    """

    def __init__(
        self,
        *,
        output_path: str | os.PathLike[str],
        default: PatternPredicate,
        custom: PatternPredicate,
        cli: PatternPredicate,
        include: PatternPredicate,
        use_default_ignores: bool = True,
    ) -> None:
        self.output_path = os.path.abspath(output_path)
        self.default = default
        self.custom = custom
        self.cli = cli
        self.include = include
        self.use_default_ignores = use_default_ignores

    @classmethod
    def from_patterns(
        cls,
        *,
        output_path: str | os.PathLike[str],
        ignore_file_patterns: Sequence[str] = (),
        cli_patterns: Sequence[str] = (),
        include_patterns: Sequence[str] = (),
        use_default_ignores: bool = True,
    ) -> IgnoreResolver:
        """Compile every pattern set and build the resolver.

        Args:
            output_path: path of the output file, always excluded
            ignore_file_patterns: patterns read from the ignore file
            cli_patterns: patterns given with ``--ignore``
            include_patterns: patterns a file must match to be kept, when any
            use_default_ignores: whether the built-in ignore list applies

        Returns:
            IgnoreResolver: the configured resolver
        """
        default_patterns = DEFAULT_IGNORES if use_default_ignores else []
        return cls(
            output_path=output_path,
            default=compile_patterns(default_patterns, source=PatternSource.DEFAULT),
            custom=compile_patterns(ignore_file_patterns, source=PatternSource.IGNORE_FILE),
            cli=compile_patterns(cli_patterns, source=PatternSource.CLI),
            include=compile_patterns(include_patterns, source=PatternSource.INCLUDE),
            use_default_ignores=use_default_ignores,
        )

    @property
    def include_active(self) -> bool:
        return bool(self.include)

    def verdict(self, candidate: CandidateFile) -> Verdict:
        """Classify one candidate.

        Args:
            candidate (CandidateFile): the candidate to classify

        Returns:
            Verdict: the first matching rule's verdict
        """
        rel = candidate.rel_path
        if candidate.absolute_path == self.output_path:
            return Verdict.EXCLUDED_DEFAULT
        if self.cli.matches(rel):
            return Verdict.EXCLUDED_CUSTOM
        if self.custom.matches(rel):
            return Verdict.EXCLUDED_CUSTOM
        if self.use_default_ignores and self.default.matches(rel):
            return Verdict.EXCLUDED_DEFAULT
        if self.include_active and not self.include.matches(rel):
            return Verdict.EXCLUDED_CUSTOM
        return Verdict.INCLUDED
