from __future__ import annotations

import io
import os
import sys
from typing import TYPE_CHECKING, TextIO

from ai_digest.config import (
    BINARY_TOKEN_COUNT,
    MAX_SINGLE_FILE_SIZE,
    WHITESPACE_DEPENDENT_EXTENSIONS,
    FileTokenInfo,
    FileType,
    RenderResult,
    Verdict,
)
from ai_digest.file_manipulation import classify, escape_triple_backticks, relpath, remove_whitespace
from ai_digest.logging import get_logger
from ai_digest.tokens import estimate_token_count

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    import structlog

    from ai_digest.config import CandidateFile
    from ai_digest.tokens import TokenEstimator


def oversized_snippet(display_path: str) -> str:
    """Placeholder emitted instead of the content of a text file above the size limit."""
    limit_mb = MAX_SINGLE_FILE_SIZE / 1024 / 1024
    return f"# {display_path}\n\n(This text file is > {limit_mb:.1f} MB, skipping content.)\n\n"


def text_snippet(display_path: str, extension: str, content: str) -> str:
    """Wrap file content in a fenced code block under a level-1 heading.

    Args:
        display_path (str): heading of the section
        extension (str): file extension with its leading dot, used as fence language
        content (str): content, already escaped

    Returns:
        str: the Markdown section, ending with a blank line
    """
    return f"# {display_path}\n\n```{extension.removeprefix('.')}\n{content}\n```\n\n"


def binary_snippet(display_path: str, file_type: FileType) -> str:
    """Describe a binary or SVG file instead of inlining it."""
    if file_type is FileType.SVG:
        description = f"This is a file of the type: {file_type}"
    else:
        description = f"This is a binary file of the type: {file_type}"
    return f"# {display_path}\n\n{description}\n\n"


def render_file(
    candidate: CandidateFile,
    *,
    output_path: str | os.PathLike[str],
    remove_whitespace_flag: bool = False,
    cwd: Path | None = None,
    estimate_tokens: TokenEstimator = estimate_token_count,
    logger: structlog.BoundLogger | None = None,
) -> RenderResult:
    """Turn one candidate into its Markdown section.

    Only called for candidates the ignore rules kept. An I/O error on this file
    is logged and yields an empty, non-included result flagged as failed.

    Args:
        candidate (CandidateFile): the file to render
        output_path: path of the output file, never rendered
        remove_whitespace_flag (bool): collapse whitespace of non whitespace-dependent files
        cwd (Path | None): directory display paths are relative to
        estimate_tokens (TokenEstimator): token estimator applied to text snippets
        logger (structlog.BoundLogger | None): logger to report on

    Returns:
        RenderResult: the snippet and its metadata
    """
    log = logger or get_logger()
    absolute_path = candidate.absolute_path
    if absolute_path == os.path.abspath(output_path):
        log.debug("output_file_skipped", path=absolute_path)
        return RenderResult(verdict=Verdict.EXCLUDED_DEFAULT)

    display_path = relpath(absolute_path, cwd or os.getcwd())
    try:
        size = os.stat(absolute_path).st_size
        kind = classify(absolute_path)
        log.debug(
            "file_classified",
            path=candidate.rel_path,
            size=size,
            is_text=kind.is_text,
            treat_as_binary=kind.treat_as_binary,
        )

        if kind.renders_as_text and size > MAX_SINGLE_FILE_SIZE:
            log.debug("file_too_large", path=candidate.rel_path, size=size)
            snippet = oversized_snippet(display_path)
            return RenderResult(
                snippet=snippet,
                verdict=Verdict.INCLUDED,
                display_path=display_path,
                token_count=estimate_tokens(snippet),
            )

        if kind.renders_as_text:
            with open(absolute_path, encoding="utf-8", errors="replace", newline="") as f:
                content = escape_triple_backticks(f.read())
            extension = candidate.extension
            if remove_whitespace_flag and extension not in WHITESPACE_DEPENDENT_EXTENSIONS:
                original_length = len(content)
                content = remove_whitespace(content)
                log.debug(
                    "whitespace_removed",
                    path=candidate.rel_path,
                    removed=original_length - len(content),
                )
            snippet = text_snippet(display_path, extension, content)
            return RenderResult(
                snippet=snippet,
                verdict=Verdict.INCLUDED,
                display_path=display_path,
                token_count=estimate_tokens(snippet),
            )

        return RenderResult(
            snippet=binary_snippet(display_path, kind.file_type),
            verdict=Verdict.INCLUDED,
            display_path=display_path,
            is_binary_or_svg=True,
            token_count=BINARY_TOKEN_COUNT,
        )
    except OSError as e:
        log.error("file_processing_failed", path=candidate.rel_path, base_dir=candidate.base_dir, error=str(e))
        return RenderResult(verdict=Verdict.EXCLUDED_DEFAULT, display_path=display_path, failed=True)


def build_output(results: Sequence[RenderResult]) -> str:
    """Concatenate the snippets of included results, in order.

    Args:
        results (Sequence[RenderResult]): results in sorted candidate order

    Returns:
        str: the final Markdown text
    """
    out = io.StringIO()
    for r in results:
        if r.was_included:
            out.write(r.snippet)
    return out.getvalue()


def token_breakdown(results: Sequence[RenderResult]) -> list[FileTokenInfo]:
    """Compute each included file's share of the total token count.

    Args:
        results (Sequence[RenderResult]): rendered results

    Returns:
        list[FileTokenInfo]: one entry per included file, largest first
    """
    included = [r for r in results if r.was_included]
    total = sum(r.token_count for r in included)
    infos = [
        FileTokenInfo(
            path=r.display_path,
            token_count=r.token_count,
            percentage=(r.token_count / total * 100) if total else 0.0,
        )
        for r in included
    ]
    return sorted(infos, key=lambda i: i.token_count, reverse=True)


def format_included_files(paths: Sequence[str]) -> str:
    """Render the ordered list of included files."""
    lines = ["Files included in the output:"]
    lines.extend(f"{i}. {p}" for i, p in enumerate(paths, start=1))
    return "\n".join(lines) + "\n"


def format_token_breakdown(infos: Sequence[FileTokenInfo]) -> str:
    """Render the per-file token table.

    Args:
        infos (Sequence[FileTokenInfo]): entries, already ordered

    Returns:
        str: one line per file with its token count and percentage, then the total
    """
    total = sum(i.token_count for i in infos)
    width = max((len(i.path) for i in infos), default=0)
    lines = ["Token analysis:"]
    lines.extend(
        f"{n:>4}. {i.path:<{width}}  {i.token_count:>8} tokens  {i.percentage:6.2f}%"
        for n, i in enumerate(infos, start=1)
    )
    lines.append(f"Total: {total} tokens")
    return "\n".join(lines) + "\n"


def display_included_files(
    paths: Sequence[str],
    infos: Sequence[FileTokenInfo] | None = None,
    *,
    stream: TextIO | None = None,
) -> None:
    """Write the included files, or their token breakdown when given, to `stream`.

    Args:
        paths (Sequence[str]): display paths of the included files, in output order
        infos (Sequence[FileTokenInfo] | None): token breakdown for the extended view
        stream (TextIO | None): destination, stdout by default
    """
    out = stream or sys.stdout
    if infos is not None:
        out.write(format_token_breakdown(infos))
    else:
        out.write(format_included_files(paths))
