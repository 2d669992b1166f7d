"""Review tracking document: fingerprints, merge across runs, atomic persistence."""

import enum
import hashlib
import logging
import os
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .chunks import Chunk
from .errors import TrackingDocumentWriteError

logger = logging.getLogger(__name__)

COMMENT_PLACEHOLDER = "<!-- Review comments go here -->"
SECTION_SEPARATOR = "---"
CONTEXT_HEADING = "Context"

_META_LINE = re.compile(r"^-\s*meta:([A-Za-z_]+):\s?(.*)$")


class StatusKind(str, enum.Enum):
    PENDING = "pending"
    REVIEWED = "reviewed"
    OUTDATED = "outdated"
    CUSTOM = "custom"


@dataclass(frozen=True)
class ReviewStatus:
    """Review state of one file: ``pending``, ``reviewed@<date>`` or ``outdated``.

    Values a reviewer typed that match none of these are kept verbatim as
    ``CUSTOM`` so that a re-run never rewrites them.
    """

    kind: StatusKind
    value: str = ""

    @classmethod
    def pending(cls) -> "ReviewStatus":
        return cls(StatusKind.PENDING)

    @classmethod
    def outdated(cls) -> "ReviewStatus":
        return cls(StatusKind.OUTDATED)

    @classmethod
    def reviewed(cls, date: str) -> "ReviewStatus":
        return cls(StatusKind.REVIEWED, date)

    @classmethod
    def parse(cls, text: str) -> "ReviewStatus":
        """Parse the status field of a tracking document entry."""
        value = text.strip()
        lowered = value.lower()
        if lowered == StatusKind.PENDING.value:
            return cls.pending()
        if lowered == StatusKind.OUTDATED.value:
            return cls.outdated()
        if lowered == StatusKind.REVIEWED.value:
            return cls(StatusKind.REVIEWED)
        if lowered.startswith("reviewed@"):
            return cls.reviewed(value.split("@", 1)[1].strip())

        logger.warning("Unrecognized review status kept as written", extra={"status": value})
        return cls(StatusKind.CUSTOM, value)

    def __str__(self) -> str:
        if self.kind is StatusKind.REVIEWED:
            return f"reviewed@{self.value}" if self.value else "reviewed"
        if self.kind is StatusKind.CUSTOM:
            return self.value
        return self.kind.value


@dataclass(frozen=True)
class ReviewEntry:
    """Tracking record for one changed file."""

    file_path: str
    content_hash: str
    chunk_reference: str
    status: ReviewStatus = field(default_factory=ReviewStatus.pending)
    comment: str = ""


@dataclass
class TrackingDocument:
    """Parsed tracking document."""

    entries: Dict[str, ReviewEntry] = field(default_factory=dict)
    context: Optional[str] = None


@dataclass
class MergeResult:
    """Merged entries plus the paths affected by each merge rule."""

    entries: List[ReviewEntry] = field(default_factory=list)
    added: List[str] = field(default_factory=list)
    unchanged: List[str] = field(default_factory=list)
    outdated: List[str] = field(default_factory=list)
    dropped: List[str] = field(default_factory=list)


def compute_fingerprint(content: bytes) -> str:
    """Return the SHA-256 hex digest identifying a chunk's content."""
    return hashlib.sha256(content).hexdigest()


def parse_tracking_document(text: str) -> TrackingDocument:
    """Parse a tracking document.

    Every ``## <path>`` section carrying ``meta:hash`` and ``meta:status``
    fields is an entry; anything else (guidelines, free text) is ignored
    except a ``## Context`` section, whose text is kept. The comment of an
    entry is everything after its status line up to the ``---`` separator.
    """
    document = TrackingDocument()
    heading: Optional[str] = None
    meta: Dict[str, str] = {}
    body: List[str] = []
    comment: List[str] = []
    in_comment = False

    def finish() -> None:
        if heading is None:
            return
        if "hash" in meta and "status" in meta:
            if heading in document.entries:
                logger.warning("Duplicate tracking entry ignored", extra={"path": heading})
                return
            document.entries[heading] = ReviewEntry(
                file_path=heading,
                content_hash=meta["hash"].strip(),
                chunk_reference=meta.get("diff_chunk", "").strip(),
                status=ReviewStatus.parse(meta["status"]),
                comment=_clean_comment(comment),
            )
        elif heading == CONTEXT_HEADING and not meta:
            context = _clean_comment(body)
            document.context = context or None

    for raw_line in text.split("\n"):
        line = raw_line.rstrip("\r")

        if in_comment:
            if line.strip() == SECTION_SEPARATOR:
                in_comment = False
            elif line.strip() != COMMENT_PLACEHOLDER and not _META_LINE.match(line):
                comment.append(line)
            continue

        if line.startswith("## "):
            finish()
            heading = line[3:].strip()
            meta, body, comment = {}, [], []
            continue

        if heading is None:
            continue

        match = _META_LINE.match(line)
        if match:
            key = match.group(1).lower()
            meta[key] = match.group(2)
            if key == "status":
                in_comment = True
        elif line.strip() != SECTION_SEPARATOR:
            body.append(line)

    finish()
    logger.debug("Parsed tracking document", extra={"entries": len(document.entries)})
    return document


def _clean_comment(lines: Iterable[str]) -> str:
    return "\n".join(lines).strip("\n").rstrip()


def merge_entries(
    previous: Dict[str, ReviewEntry], current: Sequence[ReviewEntry]
) -> MergeResult:
    """Merge freshly computed entries with those of the previous run.

    ``current`` holds one pending entry per file in diff order; the result
    keeps that order.
    """
    result = MergeResult()
    seen = set()

    for entry in current:
        if entry.file_path in seen:
            logger.warning("File appears twice in diff; keeping first entry", extra={"path": entry.file_path})
            continue
        seen.add(entry.file_path)

        old = previous.get(entry.file_path)
        if old is None:
            result.entries.append(replace(entry, status=ReviewStatus.pending(), comment=""))
            result.added.append(entry.file_path)
        elif old.content_hash == entry.content_hash:
            result.entries.append(replace(entry, status=old.status, comment=old.comment))
            result.unchanged.append(entry.file_path)
        else:
            result.entries.append(replace(entry, status=ReviewStatus.outdated(), comment=old.comment))
            result.outdated.append(entry.file_path)

    result.dropped = [path for path in previous if path not in seen]
    return result


def render_tracking_document(
    entries: Sequence[ReviewEntry], chunk_directory: str, context: Optional[str] = None
) -> str:
    """Render the complete tracking document."""
    parts = [
        "# Code Review Tracking\n\n",
        "This file tracks the review status of code changes.\n\n",
        "## Guidelines\n",
        f"- Diff chunks are stored in: {chunk_directory}/\n",
        "- Update `meta:status` after reviewing each file\n",
        "- Status values: `pending`, `reviewed@YYYY-MM-DD`, `outdated`\n",
        "- If file hash changes on subsequent runs, status will be automatically set to `outdated`\n",
        "- Add review comments in the placeholder section below each file\n",
        "- On each run, file sections not present in current diff are removed\n\n",
    ]
    if context:
        parts.append(f"## {CONTEXT_HEADING}\n\n{context.strip()}\n\n")
    parts.append(f"{SECTION_SEPARATOR}\n\n")

    for entry in entries:
        parts.append(f"## {entry.file_path}\n")
        parts.append(f"- meta:hash: {entry.content_hash}\n")
        parts.append(f"- meta:diff_chunk: {entry.chunk_reference}\n")
        parts.append(f"- meta:status: {entry.status}\n\n")
        parts.append(f"{entry.comment or COMMENT_PLACEHOLDER}\n\n")
        parts.append(f"{SECTION_SEPARATOR}\n\n")

    return "".join(parts)


class ReviewTracker:
    """Owns the tracking document at ``review_path``."""

    def __init__(self, review_path: Path):
        self.review_path = Path(review_path)

    def load(self) -> TrackingDocument:
        """Read the existing document; a missing file yields an empty one.

        An unreadable document raises ``TrackingDocumentWriteError`` so that it
        is never overwritten with state that lost the reviewer's edits.
        """
        try:
            text = self.review_path.read_text(encoding="utf-8", errors="surrogateescape")
        except FileNotFoundError:
            logger.debug("No tracking document yet", extra={"path": str(self.review_path)})
            return TrackingDocument()
        except OSError as exc:
            raise TrackingDocumentWriteError(
                str(self.review_path), f"cannot read existing document: {exc}"
            ) from exc
        return parse_tracking_document(text)

    def chunk_reference(self, chunk: Chunk) -> str:
        """Path of a chunk relative to the tracking document's directory."""
        base = self.review_path.parent.absolute()
        target = chunk.path_on_disk.absolute()
        try:
            return Path(os.path.relpath(target, base)).as_posix()
        except ValueError:
            return target.as_posix()

    def build_entries(self, chunks: Sequence[Chunk]) -> List[ReviewEntry]:
        """Fingerprint chunks into fresh pending entries."""
        return [
            ReviewEntry(
                file_path=chunk.source.path,
                content_hash=compute_fingerprint(chunk.content),
                chunk_reference=self.chunk_reference(chunk),
            )
            for chunk in chunks
        ]

    def update(
        self,
        chunks: Sequence[Chunk],
        previous: TrackingDocument,
        chunk_directory: Path,
        context: Optional[str] = None,
    ) -> MergeResult:
        """Merge ``chunks`` into ``previous`` and persist the result."""
        result = merge_entries(previous.entries, self.build_entries(chunks))
        document = render_tracking_document(
            result.entries,
            str(chunk_directory),
            context if context is not None else previous.context,
        )
        self.write(document)

        logger.info(
            "Tracking document updated",
            extra={
                "path": str(self.review_path),
                "added": len(result.added),
                "unchanged": len(result.unchanged),
                "outdated": len(result.outdated),
                "dropped": len(result.dropped),
            },
        )
        return result

    def write(self, document: str) -> None:
        """Replace the document in one step; on failure the old one is untouched."""
        temp_path = self.review_path.with_name(self.review_path.name + ".tmp")
        try:
            self.review_path.parent.mkdir(parents=True, exist_ok=True)
            with temp_path.open("wb") as handle:
                handle.write(document.encode("utf-8", "surrogateescape"))
                handle.flush()
                os.fsync(handle.fileno())
            temp_path.replace(self.review_path)
        except OSError as exc:
            try:
                temp_path.unlink()
            except OSError:
                logger.debug("No temporary tracking file to remove", extra={"path": str(temp_path)})
            raise TrackingDocumentWriteError(str(self.review_path), str(exc)) from exc
