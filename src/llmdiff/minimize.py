"""Per-file minimization policy for llmdiff."""

import logging
from dataclasses import dataclass, field
from typing import ClassVar, List, Optional, Tuple, Union

from .config import DiffConfig
from .diffpack import ChangeKind, FileChange
from .keywords import KeywordExtractor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Full:
    """Complete file diff with blank-line runs collapsed."""

    kind: ClassVar[str] = "full"

    path: str
    change_kind: ChangeKind
    text: str


@dataclass(frozen=True)
class Summary:
    """Metadata standing in for a file too large to include."""

    kind: ClassVar[str] = "summary"

    path: str
    change_kind: ChangeKind
    content_lines: int
    keywords: Tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Deleted:
    """One-line notice for a removed file."""

    kind: ClassVar[str] = "deleted"

    path: str
    change_kind: ChangeKind = ChangeKind.DELETED


MinimizedRepresentation = Union[Full, Summary, Deleted]


def collapse_blank_lines(text: str, max_run: int = 2) -> str:
    """Collapse runs of more than ``max_run`` blank lines to exactly ``max_run``.

    Whitespace-only lines count as blank. Non-blank lines are never altered or
    reordered, and applying the function twice gives the same result.
    """
    lines = text.split("\n")
    terminated = len(lines) > 1 and lines[-1] == ""
    if terminated:
        lines.pop()

    kept: List[str] = []
    run = 0
    for line in lines:
        if line.strip():
            run = 0
            kept.append(line)
            continue
        run += 1
        if run <= max_run:
            kept.append(line)

    collapsed = "\n".join(kept)
    return collapsed + "\n" if terminated else collapsed


class Minimizer:
    """Decides between full content and a summary for each file."""

    def __init__(self, config: DiffConfig, extractor: Optional[KeywordExtractor] = None):
        """Initialize with configuration."""
        self.config = config
        self.extractor = extractor or KeywordExtractor(config.max_keywords)
        self.full_count = 0
        self.summarized_count = 0
        self.deleted_count = 0

    def is_large(self, change: FileChange) -> bool:
        """Check whether a file exceeds either size threshold."""
        return (
            change.stats.changed_line_count > self.config.large_file_changes_threshold
            or change.stats.total_line_count > self.config.large_file_lines_threshold
        )

    def minimize(self, files: List[FileChange]) -> List[MinimizedRepresentation]:
        """Minimize every file, preserving input order."""
        self.full_count = self.summarized_count = self.deleted_count = 0
        representations = [self.minimize_file(change) for change in files]

        logger.info(
            "Minimization complete",
            extra={
                "files": len(representations),
                "full": self.full_count,
                "summarized": self.summarized_count,
                "deleted": self.deleted_count,
            },
        )
        return representations

    def minimize_file(self, change: FileChange) -> MinimizedRepresentation:
        """Produce the representation for a single file."""
        if change.change_kind is ChangeKind.DELETED:
            self.deleted_count += 1
            return Deleted(path=change.old_path or change.path)

        if self.is_large(change):
            keywords = self.extractor.extract(change.path, change.post_image_lines())
            logger.debug(
                "Summarizing large file",
                extra={
                    "path": change.path,
                    "changed_lines": change.stats.changed_line_count,
                    "total_lines": change.stats.total_line_count,
                },
            )
            self.summarized_count += 1
            return Summary(
                path=change.path,
                change_kind=change.change_kind,
                content_lines=change.stats.total_line_count,
                keywords=tuple(keywords),
            )

        self.full_count += 1
        return Full(
            path=change.path,
            change_kind=change.change_kind,
            text=collapse_blank_lines(change.raw_text, self.config.max_consecutive_empty_lines),
        )
