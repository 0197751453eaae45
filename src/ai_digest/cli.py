"""
ai-digest: aggregate a codebase into a single Markdown file for an LLM.

Every file found under the inputs (files, directories or glob patterns) is
filtered through three layers of ignore rules: the built-in defaults, the
ignore file (``.aidigestignore`` by default) and ``--ignore`` patterns. The
survivors are written, in natural path order, as Markdown sections: a fenced
code block for text files, a one-line type description for binary and SVG
files. The token count of the result is estimated with the GPT-4o tokenizer.

Usage
-----
Run ``ai-digest --help`` for full options. Common examples:
    - Whole working directory into codebase.md:
        ai-digest

    - One folder, without its tests, on 8 workers:
        ai-digest -i src --ignore "**/tests/**" --concurrent 8 -o out/src.md

    - See what would be written and the token share of each file:
        ai-digest --dry-run --show-tokens
"""

from __future__ import annotations

import argparse
import sys
from typing import TYPE_CHECKING

from ai_digest import __version__
from ai_digest.aggregator import aggregate
from ai_digest.config import DEFAULT_CONCURRENCY, DEFAULT_IGNORE_FILE, DEFAULT_OUTPUT
from ai_digest.exceptions import AiDigestError
from ai_digest.logging import setup_logging
from ai_digest.settings import Settings

if TYPE_CHECKING:
    from collections.abc import Sequence


def non_negative_int(value: str) -> int:
    """Parse a worker count, rejecting negative numbers.

    Args:
        value (str): raw command line value

    Raises:
        argparse.ArgumentTypeError: if the value is not an integer >= 0

    Returns:
        int: the parsed count
    """
    try:
        n = int(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}") from e
    if n < 0:
        raise argparse.ArgumentTypeError(f"must be >= 0, got {n}")
    return n


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser.

    Returns:
        argparse.ArgumentParser: Configured parser.
    """
    p = argparse.ArgumentParser(
        prog="ai-digest",
        description="Aggregate files into a single Markdown file.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument(
        "-i",
        "--input",
        dest="inputs",
        nargs="+",
        action="extend",
        default=[],
        help="Input files, directories or glob patterns (default: working directory).",
    )
    p.add_argument("-o", "--output", type=str, default=DEFAULT_OUTPUT, help="Output file path.")
    p.add_argument("--ignore-file", type=str, default=DEFAULT_IGNORE_FILE, help="Path to ignore file.")
    p.add_argument(
        "--no-default-ignores",
        dest="use_default_ignores",
        action="store_false",
        help="Disable default ignore patterns.",
    )
    p.add_argument(
        "--whitespace-removal",
        dest="remove_whitespace",
        action="store_true",
        help="Remove unnecessary whitespace (except for whitespace-dependent languages).",
    )
    p.add_argument("--show-output-files", action="store_true", help="List the files included in the output.")
    p.add_argument("--show-tokens", action="store_true", help="Show the token count of each included file.")
    p.add_argument(
        "--ignore",
        dest="ignore_patterns",
        action="append",
        default=[],
        help="Ignore pattern, wins over every include (repeatable).",
    )
    p.add_argument(
        "--include",
        dest="include_patterns",
        action="append",
        default=[],
        help="Keep only files matching a pattern (repeatable).",
    )
    p.add_argument(
        "--input-include",
        dest="input_includes",
        action="append",
        default=[],
        help="Only gather files matching a pattern; others are not counted at all (repeatable).",
    )
    p.add_argument(
        "--input-exclude",
        dest="input_excludes",
        action="append",
        default=[],
        help="Do not gather files matching a pattern; they are not counted at all (repeatable).",
    )
    p.add_argument(
        "--concurrent",
        dest="concurrency",
        type=non_negative_int,
        nargs="?",
        const=DEFAULT_CONCURRENCY,
        default=0,
        help=f"Number of files processed concurrently (default when given without a value: {DEFAULT_CONCURRENCY}).",
    )
    p.add_argument("--dry-run", action="store_true", help="Show what would be done without writing.")
    p.add_argument("--verbose", action="store_true", help="Show debug-level logs.")
    p.add_argument("--log-file", type=str, default="", help="Log file path.")
    return p


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    """Parse CLI arguments into settings.

    Args:
        argv (Sequence[str] | None): Optional CLI args.

    Returns:
        Settings: Parsed settings.
    """
    args = build_parser().parse_args(argv)
    return Settings.model_validate(vars(args))


def main(argv: Sequence[str] | None = None) -> int:
    """Aggregate files according to the command line.

    Args:
        argv (Sequence[str] | None): Optional CLI arguments.

    Returns:
        int: Process exit code.
    """
    settings = parse_args(argv)
    logger = setup_logging(settings.log_file or None, verbose=settings.verbose)

    try:
        summary = aggregate(settings, logger=logger)
    except AiDigestError as e:
        logger.error("aggregation_failed", error=str(e), error_type=type(e).__name__)
        sys.stderr.write(f"Error: {e}\n")
        return 1

    tokens = "skipped" if summary.token_count is None else summary.token_count
    if summary.dry_run:
        print(f"Dry run: would write {summary.output_path} files={summary.included} tokens={tokens}")
    else:
        print(f"Wrote {summary.output_path} files={summary.included} bytes={summary.size_bytes} tokens={tokens}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
