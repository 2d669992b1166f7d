"""Main CLI entry point for llmdiff."""

import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import __version__
from .chunks import Chunk, ChunkWriter
from .config import DiffConfig, load_config
from .diffpack import DiffParser, decode_diff_bytes, encode_diff_text
from .errors import LlmDiffError
from .logging_utils import configure_logging
from .minimize import Minimizer
from .review import MergeResult, ReviewTracker
from .serialize import DeterministicSerializer
from .vcs import GitRepository

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create command line argument parser."""
    parser = argparse.ArgumentParser(
        prog="llmdiff",
        description="Minimize a unified diff for LLM context, or split it into "
        "review chunks with a persistent REVIEW.md",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  git diff | llmdiff
  git diff main... | llmdiff --json
  git diff --cached | llmdiff --save
  git diff main... | llmdiff --save --save-path /tmp/reviews --context "See docs/design.md"
        """,
    )

    parser.add_argument(
        "--save",
        action="store_true",
        help="Save one chunk per file and update the review tracking document",
    )
    parser.add_argument(
        "--save-path",
        help="Base directory for saved chunks (default: llm/diff)",
    )
    parser.add_argument(
        "--review-path",
        help="Location of the review tracking document (default: llm/REVIEW.md)",
    )
    parser.add_argument(
        "--context",
        help="Context information added to the tracking document (with --save)",
    )
    parser.add_argument(
        "--project-id",
        help="Project identifier used to isolate saved chunks "
        "(default: repository or directory name)",
    )
    parser.add_argument(
        "--changes-threshold",
        type=int,
        help="Summarize files with more changed lines than this (default: 100)",
    )
    parser.add_argument(
        "--lines-threshold",
        type=int,
        help="Summarize files with more diff lines than this (default: 500)",
    )
    parser.add_argument(
        "--max-empty-lines",
        type=int,
        help="Maximum consecutive empty lines kept in full diffs (default: 2)",
    )
    parser.add_argument(
        "--input",
        help="Read the diff from a file instead of standard input",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit the minimized diff as a JSON envelope",
    )
    parser.add_argument(
        "--config",
        help="Additional TOML configuration file",
    )
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error", "critical"],
        help="Diagnostic log level (default: warning, or LOG_LEVEL)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def validate_args(args: argparse.Namespace) -> None:
    """Validate command line arguments."""
    if args.changes_threshold is not None and args.changes_threshold <= 0:
        raise ValueError("--changes-threshold must be positive")
    if args.lines_threshold is not None and args.lines_threshold <= 0:
        raise ValueError("--lines-threshold must be positive")
    if args.max_empty_lines is not None and args.max_empty_lines < 0:
        raise ValueError("--max-empty-lines cannot be negative")
    if args.context is not None and not args.save:
        raise ValueError("--context requires --save")
    if args.json and args.save:
        raise ValueError("--json cannot be combined with --save")


def create_config(args: argparse.Namespace, cwd: Optional[Path] = None) -> DiffConfig:
    """Resolve configuration from files, environment and command line arguments."""
    overrides = {
        "output_root": args.save_path,
        "review_path": args.review_path,
        "project_id": args.project_id,
        "large_file_changes_threshold": args.changes_threshold,
        "large_file_lines_threshold": args.lines_threshold,
        "max_consecutive_empty_lines": args.max_empty_lines,
    }
    return load_config(
        config_file=Path(args.config) if args.config else None,
        cli_overrides=overrides,
        cwd=cwd,
    )


def read_input(input_path: Optional[str]) -> str:
    """Read the whole diff stream from a file or standard input."""
    if input_path:
        data = Path(input_path).read_bytes()
    else:
        data = sys.stdin.buffer.read()
    logger.debug("Read diff input", extra={"bytes": len(data)})
    return decode_diff_bytes(data)


def minimize_diff(diff_text: str, config: DiffConfig) -> Dict[str, Any]:
    """Parse and minimize a diff; return the serialized payload."""
    parse_result = DiffParser().parse(diff_text)
    representations = Minimizer(config).minimize(parse_result.files)

    serializer = DeterministicSerializer(config)
    return serializer.serialize_output(representations, parse_result.warnings)


@dataclass
class SaveResult:
    """Outcome of a save-mode run."""

    chunk_directory: Path
    review_path: Path
    chunks: List[Chunk] = field(default_factory=list)
    merge: Optional[MergeResult] = None
    warnings: List[LlmDiffError] = field(default_factory=list)


def save_diff(
    diff_text: str,
    config: DiffConfig,
    context: Optional[str] = None,
    cwd: Optional[Path] = None,
) -> SaveResult:
    """Write chunk files and merge them into the review tracking document.

    Chunk-directory failures abort the run before the tracking document is
    touched; tracking-document failures are reported as warnings and leave
    the written chunks in place.
    """
    cwd = cwd or Path.cwd()
    parse_result = DiffParser().parse(diff_text)
    warnings: List[LlmDiffError] = list(parse_result.warnings)
    if not parse_result.files:
        logger.warning("No file changes found in diff input")

    project_id = GitRepository(config, cwd).resolve_project_id()
    tracker = ReviewTracker(cwd / config.review_path)
    writer = ChunkWriter(cwd / config.output_root, project_id)

    try:
        previous = tracker.load()
    except LlmDiffError as exc:
        if exc.fatal:
            raise
        logger.warning(exc.message)
        warnings.append(exc)
        previous = None

    chunks = writer.write(parse_result.files)
    result = SaveResult(
        chunk_directory=writer.directory,
        review_path=tracker.review_path,
        chunks=chunks,
        warnings=warnings,
    )

    if previous is None:
        return result

    try:
        result.merge = tracker.update(chunks, previous, writer.directory, context)
    except LlmDiffError as exc:
        if exc.fatal:
            raise
        logger.warning(exc.message)
        warnings.append(exc)

    return result


def write_stdout(text: str) -> None:
    """Write text to stdout, passing undecodable input bytes through unchanged."""
    sys.stdout.flush()
    buffer = getattr(sys.stdout, "buffer", None)
    if buffer is None:
        sys.stdout.write(text)
    else:
        buffer.write(encode_diff_text(text))
        buffer.flush()


def output_result(serializer: DeterministicSerializer, result: Dict[str, Any]) -> None:
    """Output a JSON envelope to stdout."""
    write_stdout(serializer.to_json_string(result) + "\n")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level, default="WARNING")

    try:
        validate_args(args)
    except ValueError as e:
        parser.print_usage(sys.stderr)
        print(f"{parser.prog}: error: {e}", file=sys.stderr)
        return 2

    try:
        # Create configuration
        config = create_config(args)
        serializer = DeterministicSerializer(config)

        diff_text = read_input(args.input)

        if args.save:
            result = save_diff(diff_text, config, context=args.context)
            write_stdout(
                f"generated: {result.chunk_directory.resolve()}/\n"
                f"REVIEW.md: {result.review_path.resolve()}\n"
            )
            return 0

        payload = minimize_diff(diff_text, config)
        if args.json:
            output_result(serializer, serializer.create_success_envelope(payload))
        else:
            write_stdout(payload["text"])
        return 0

    except LlmDiffError as e:
        # Handle known llmdiff errors
        logger.debug("Run aborted", extra={"code": e.code})
        if args.json:
            serializer = DeterministicSerializer(DiffConfig())
            output_result(serializer, serializer.create_error_envelope(e.code, e.message, e.details))
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except Exception as e:
        logger.exception("Unexpected failure")
        if args.json:
            serializer = DeterministicSerializer(DiffConfig())
            output_result(
                serializer,
                serializer.create_error_envelope(
                    "INTERNAL_ERROR", f"Internal error: {e}", {"type": type(e).__name__}
                ),
            )
        print(f"Error: internal error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
