"""Aggregate the input files into a single Markdown document.

The run is a straight pipeline: read the ignore file, compile the pattern
sets, resolve the inputs, sort the candidates, decide a verdict for each of
them, render the included ones (optionally on a bounded thread pool), join
the snippets, write the file and summarise.

Only rendering is concurrent. Every render task gets its own candidate and
returns its own :class:`RenderResult`; results are collected in candidate
order, so the number of workers never changes the output.
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

from ai_digest.config import MAX_OUTPUT_SIZE, AggregationSummary, RenderResult, Verdict
from ai_digest.exceptions import OutputSizeMismatchError
from ai_digest.file_manipulation import resolve_inputs, sort_candidates
from ai_digest.ignore_rules import IgnoreResolver, read_ignore_file
from ai_digest.logging import get_logger
from ai_digest.output_construction import build_output, display_included_files, render_file, token_breakdown
from ai_digest.tokens import estimate_token_count

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    import structlog

    from ai_digest.config import CandidateFile
    from ai_digest.settings import Settings
    from ai_digest.tokens import TokenEstimator


def to_abs(root: Path, maybe_rel: str | Path) -> Path:
    """Resolve `maybe_rel` against `root` unless it is already absolute.

    Args:
        root (Path): base directory
        maybe_rel (str | Path): absolute or relative path

    Returns:
        Path: the absolute path
    """
    p = Path(maybe_rel)
    return p if p.is_absolute() else root / p


def render_all(
    candidates: Sequence[CandidateFile],
    render: Callable[[CandidateFile], RenderResult],
    *,
    concurrency: int = 0,
) -> list[RenderResult]:
    """Render candidates, sequentially or with at most `concurrency` workers.

    Args:
        candidates (Sequence[CandidateFile]): candidates to render
        render (Callable[[CandidateFile], RenderResult]): per-file renderer
        concurrency (int): number of workers, 0 for sequential rendering

    Returns:
        list[RenderResult]: results, index-aligned with `candidates`
    """
    if concurrency <= 0 or len(candidates) <= 1:
        return [render(c) for c in candidates]
    with ThreadPoolExecutor(max_workers=concurrency, thread_name_prefix="ai-digest") as executor:
        return list(executor.map(render, candidates))


def write_output(output_path: Path, text: str, *, logger: structlog.BoundLogger) -> int:
    """Write the aggregate and check its size on disk.

    Args:
        output_path (Path): destination file, parent directories are created
        text (str): the aggregated Markdown
        logger (structlog.BoundLogger): logger to report on

    Raises:
        OutputSizeMismatchError: if the written file does not have the expected size

    Returns:
        int: the number of bytes written
    """
    data = text.encode("utf-8")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    started = time.perf_counter()
    output_path.write_bytes(data)
    logger.debug("output_written", path=str(output_path), elapsed_ms=round((time.perf_counter() - started) * 1000))
    actual = output_path.stat().st_size
    if actual != len(data):
        raise OutputSizeMismatchError(path=output_path, expected=len(data), actual=actual)
    return len(data)


def aggregate(
    settings: Settings,
    *,
    cwd: Path | None = None,
    logger: structlog.BoundLogger | None = None,
    estimate_tokens: TokenEstimator = estimate_token_count,
    stream: TextIO | None = None,
) -> AggregationSummary:
    """Aggregate the files selected by `settings` into one Markdown file.

    Args:
        settings (Settings): run options
        cwd (Path | None): working directory relative paths are resolved from
        logger (structlog.BoundLogger | None): logger shared by every stage
        estimate_tokens (TokenEstimator): token estimator for snippets and the full output
        stream (TextIO | None): where the included files listing is written, stdout by default

    Raises:
        IgnoreFileReadError: if the ignore file exists but cannot be read
        PathResolutionError: if an input path cannot be stat-ed
        OutputSizeMismatchError: if the written file does not have the expected size

    Returns:
        AggregationSummary: counts, size, token estimate and timing of the run
    """
    log = logger or get_logger()
    started = time.perf_counter()
    root = (cwd or Path.cwd()).absolute()
    output_path = to_abs(root, settings.output)
    inputs = settings.inputs or [str(root)]

    ignore_file = to_abs(root, settings.ignore_file)
    ignore_file_patterns = read_ignore_file(ignore_file, logger=log)
    resolver = IgnoreResolver.from_patterns(
        output_path=output_path,
        ignore_file_patterns=ignore_file_patterns,
        cli_patterns=settings.ignore_patterns,
        include_patterns=settings.include_patterns,
        use_default_ignores=settings.use_default_ignores,
    )
    log.info(
        "ignore_rules_ready",
        default_ignores=settings.use_default_ignores,
        ignore_file=str(ignore_file),
        ignore_file_patterns=len(ignore_file_patterns),
        cli_patterns=list(resolver.cli.patterns),
        include_patterns=list(resolver.include.patterns),
        remove_whitespace=settings.remove_whitespace,
    )

    candidates = sort_candidates(
        resolve_inputs(
            inputs,
            cwd=root,
            includes=settings.input_includes,
            excludes=settings.input_excludes,
            logger=log,
        ),
    )
    log.info("files_found", count=len(candidates))

    verdicts = [resolver.verdict(c) for c in candidates]
    for c, v in zip(candidates, verdicts, strict=True):
        if v is not Verdict.INCLUDED:
            log.debug("file_ignored", path=c.rel_path, verdict=v.value)
    selected = [c for c, v in zip(candidates, verdicts, strict=True) if v is Verdict.INCLUDED]

    render = partial(
        render_file,
        output_path=output_path,
        remove_whitespace_flag=settings.remove_whitespace,
        cwd=root,
        estimate_tokens=estimate_tokens,
        logger=log,
    )
    log.info("rendering", files=len(selected), concurrency=settings.concurrency)
    rendered = iter(render_all(selected, render, concurrency=settings.concurrency))
    results = [next(rendered) if v is Verdict.INCLUDED else RenderResult(verdict=v) for v in verdicts]

    final_output = build_output(results)
    size_bytes = len(final_output.encode("utf-8"))
    if settings.dry_run:
        log.info("dry_run", output=str(output_path), size_bytes=size_bytes)
    else:
        size_bytes = write_output(output_path, final_output, logger=log)
        log.info("output_written", output=str(output_path), size_bytes=size_bytes)

    token_count: int | None = None
    if size_bytes > MAX_OUTPUT_SIZE:
        log.warning(
            "token_estimation_skipped",
            size_mb=round(size_bytes / 1024 / 1024, 2),
            hint="add ignore patterns to reduce the output size",
        )
    else:
        token_count = estimate_tokens(final_output)

    included = [r for r in results if r.was_included]
    file_tokens = token_breakdown(results)
    summary = AggregationSummary(
        output_path=output_path,
        dry_run=settings.dry_run,
        total_found=len(candidates),
        included=len(included),
        excluded_default=sum(1 for r in results if r.verdict is Verdict.EXCLUDED_DEFAULT),
        excluded_custom=sum(1 for r in results if r.verdict is Verdict.EXCLUDED_CUSTOM),
        binary_and_svg=sum(1 for r in included if r.is_binary_or_svg),
        failed=sum(1 for r in results if r.failed),
        size_bytes=size_bytes,
        token_count=token_count,
        elapsed_seconds=time.perf_counter() - started,
        included_files=[r.display_path for r in included],
        file_tokens=file_tokens,
    )
    log.info(
        "aggregation_done",
        total_found=summary.total_found,
        included=summary.included,
        excluded_default=summary.excluded_default,
        excluded_custom=summary.excluded_custom,
        binary_and_svg=summary.binary_and_svg,
        failed=summary.failed,
        token_count=summary.token_count,
        elapsed_ms=round(summary.elapsed_seconds * 1000),
    )

    if settings.show_output_files:
        display_included_files(summary.included_files, stream=stream)
    if settings.show_tokens:
        display_included_files(summary.included_files, file_tokens, stream=stream)
    return summary
