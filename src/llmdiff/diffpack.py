"""Unified diff parsing into per-file change records for llmdiff."""

import enum
import logging
import re
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Tuple

from .errors import MalformedDiffError

logger = logging.getLogger(__name__)

#: Line prefixes that open a new file block.
FILE_HEADER_PREFIXES = ("diff --git ", "diff --cc ", "diff --combined ")

DEV_NULL = "/dev/null"


class ChangeKind(str, enum.Enum):
    """Kind of change a diff block describes."""

    ADDED = "added"
    DELETED = "deleted"
    MODIFIED = "modified"
    RENAMED = "renamed"


@dataclass(frozen=True)
class DiffStats:
    """Line counters for one file block."""

    changed_line_count: int = 0
    total_line_count: int = 0
    added: int = 0
    removed: int = 0
    hunk_count: int = 0


@dataclass(frozen=True)
class FileChange:
    """One file touched by the diff.

    ``raw_text`` is the exact slice of the input from this file's header line
    up to the next file's header (or end of input).
    """

    old_path: Optional[str]
    new_path: Optional[str]
    change_kind: ChangeKind
    raw_text: str
    stats: DiffStats
    is_binary: bool = False

    @property
    def path(self) -> str:
        """Effective path: the new path, or the old one for deletions."""
        return self.new_path or self.old_path or "unknown"

    def lines(self) -> List[str]:
        """Return the block's lines without their ``\\n`` endings."""
        return split_lines(self.raw_text)

    def post_image_lines(self) -> List[str]:
        """Return context and added hunk lines with their markers stripped."""
        return [line for _, line in _iter_hunk_lines(self.lines()) if line is not None]


@dataclass
class ParseResult:
    """Outcome of parsing a diff stream."""

    files: List[FileChange] = field(default_factory=list)
    warnings: List[MalformedDiffError] = field(default_factory=list)
    preamble: str = ""


class DiffParser:
    """Splits a unified diff stream into ordered ``FileChange`` records."""

    def __init__(self):
        """Initialize diff parser."""
        self.git_header_pattern = re.compile(r"^diff --git a/(.+) b/(.+)$")
        self.quoted_header_pattern = re.compile(
            r'^diff --git "a/((?:[^"\\]|\\.)*)" "b/((?:[^"\\]|\\.)*)"$'
        )
        self.binary_pattern = re.compile(r"^(?:Binary files .* differ|GIT binary patch)$")

    def parse(self, diff_text: str) -> ParseResult:
        """Parse the whole diff stream.

        Blocks whose header cannot be understood are skipped and reported as
        ``MalformedDiffError`` warnings; parsing continues with the next block.
        """
        result = ParseResult()
        blocks = list(self._split_blocks(diff_text))
        if not blocks:
            result.preamble = diff_text
            logger.debug("No file headers found in diff input")
            return result

        result.preamble = diff_text[: blocks[0][1]]

        for line_number, start, end in blocks:
            block = diff_text[start:end]
            try:
                result.files.append(self.parse_block(block, line_number))
            except MalformedDiffError as exc:
                logger.warning(exc.message, extra={"line": line_number})
                result.warnings.append(exc)

        logger.debug(
            "Parsed diff",
            extra={"files": len(result.files), "malformed": len(result.warnings)},
        )
        return result

    def parse_block(self, block: str, line_number: int = 1) -> FileChange:
        """Parse a single file block that starts with its header line.

        Raises ``MalformedDiffError`` when the header or a quoted path cannot
        be decoded.
        """
        try:
            return self._parse_block(block, line_number)
        except ValueError as exc:
            header = block.split("\n", 1)[0].rstrip("\r")
            raise MalformedDiffError(line_number, header, str(exc)) from exc

    def _parse_block(self, block: str, line_number: int) -> FileChange:
        lines = split_lines(block)
        header = lines[0] if lines else ""
        old_path, new_path = self._parse_header(header, line_number)

        change_kind = ChangeKind.MODIFIED
        is_binary = False
        rename_from = rename_to = None
        minus_path = plus_path = None
        saw_minus = saw_plus = False

        for line in _extended_header_lines(lines[1:]):
            if line.startswith("new file mode"):
                change_kind = ChangeKind.ADDED
            elif line.startswith("deleted file mode"):
                change_kind = ChangeKind.DELETED
            elif line.startswith(("rename from ", "copy from ")):
                rename_from = _unquote(line.split(" ", 2)[2])
            elif line.startswith(("rename to ", "copy to ")):
                rename_to = _unquote(line.split(" ", 2)[2])
            elif line.startswith("--- "):
                saw_minus = True
                minus_path = _strip_prefix(_unquote(line[4:].split("\t", 1)[0]), "a/")
            elif line.startswith("+++ "):
                saw_plus = True
                plus_path = _strip_prefix(_unquote(line[4:].split("\t", 1)[0]), "b/")
            elif self.binary_pattern.match(line):
                is_binary = True

        if rename_from is not None or rename_to is not None:
            if change_kind is ChangeKind.MODIFIED:
                change_kind = ChangeKind.RENAMED
            old_path = rename_from or old_path
            new_path = rename_to or new_path
        if saw_minus and minus_path != DEV_NULL:
            old_path = minus_path
        if saw_plus and plus_path != DEV_NULL:
            new_path = plus_path

        if change_kind is ChangeKind.ADDED:
            old_path = None
        elif change_kind is ChangeKind.DELETED:
            new_path = None

        stats = self._compute_stats(lines, is_binary)
        return FileChange(
            old_path=old_path,
            new_path=new_path,
            change_kind=change_kind,
            raw_text=block,
            stats=stats,
            is_binary=is_binary,
        )

    def _split_blocks(self, diff_text: str) -> Iterator[Tuple[int, int, int]]:
        """Yield ``(line_number, start, end)`` offsets for each file block."""
        starts: List[Tuple[int, int]] = []
        offset = 0
        for line_number, line in enumerate(diff_text.split("\n"), start=1):
            if line.startswith(FILE_HEADER_PREFIXES):
                starts.append((line_number, offset))
            offset += len(line) + 1

        for index, (line_number, start) in enumerate(starts):
            end = starts[index + 1][1] if index + 1 < len(starts) else len(diff_text)
            yield line_number, start, end

    def _parse_header(self, header: str, line_number: int) -> Tuple[str, str]:
        header = header.rstrip("\r")
        if not header.startswith("diff --git "):
            raise MalformedDiffError(line_number, header, "combined diffs are not supported")

        match = self.quoted_header_pattern.match(header)
        if match:
            return _unquote_body(match.group(1)), _unquote_body(match.group(2))

        rest = header[len("diff --git "):]
        # Identical paths containing " b/" split unambiguously at the midpoint.
        if len(rest) % 2 == 1:
            half = len(rest) // 2
            left, right = rest[:half], rest[half + 1:]
            if rest[half] == " " and left.startswith("a/") and right.startswith("b/"):
                if left[2:] == right[2:]:
                    return left[2:], right[2:]

        match = self.git_header_pattern.match(header)
        if not match:
            raise MalformedDiffError(line_number, header, "unrecognized file header")
        return match.group(1), match.group(2)

    def _compute_stats(self, lines: List[str], is_binary: bool) -> DiffStats:
        if is_binary:
            return DiffStats()

        added = removed = hunks = 0
        for marker, _ in _iter_hunk_lines(lines):
            if marker == "@":
                hunks += 1
            elif marker == "+":
                added += 1
            elif marker == "-":
                removed += 1

        return DiffStats(
            changed_line_count=added + removed,
            total_line_count=max(len(lines) - 1, 0),
            added=added,
            removed=removed,
            hunk_count=hunks,
        )


_HUNK_HEADER = re.compile(r"^@@ -\d+(?:,(\d+))? \+\d+(?:,(\d+))? @@")


def _iter_hunk_lines(lines: List[str]) -> Iterator[Tuple[str, Optional[str]]]:
    """Walk hunk bodies using the line counts announced in each hunk header.

    Yields ``("@", None)`` for a hunk header, ``("-", None)`` for a removed
    line and ``("+", text)`` / ``(" ", text)`` for post-image lines.
    """
    old_left = new_left = 0
    for line in lines:
        if old_left <= 0 and new_left <= 0:
            match = _HUNK_HEADER.match(line)
            if match:
                old_left = int(match.group(1) or "1")
                new_left = int(match.group(2) or "1")
                yield "@", None
            continue

        if line.startswith("\\"):
            continue
        if line.startswith("-"):
            old_left -= 1
            yield "-", None
        elif line.startswith("+"):
            new_left -= 1
            yield "+", line[1:]
        else:
            # Context line; some tools strip the leading space of blank lines.
            old_left -= 1
            new_left -= 1
            yield " ", line[1:]


def _extended_header_lines(lines: List[str]) -> Iterator[str]:
    """Yield the lines between the file header and its first hunk."""
    for line in lines:
        if line.startswith("@@"):
            return
        yield line.rstrip("\r")


def split_lines(text: str) -> List[str]:
    """Split on ``\\n`` only; form feeds and lone ``\\r`` stay inside lines."""
    lines = text.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def _strip_prefix(path: str, prefix: str) -> str:
    return path[len(prefix):] if path.startswith(prefix) else path


_ESCAPES = {"n": "\n", "t": "\t", '"': '"', "\\": "\\", "a": "\a", "b": "\b", "f": "\f", "r": "\r", "v": "\v"}


def _unquote(value: str) -> str:
    """Decode a git C-style quoted path; unquoted values are returned unchanged."""
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return _unquote_body(value[1:-1])
    return value


def _unquote_body(body: str) -> str:
    out = bytearray()
    index = 0
    while index < len(body):
        char = body[index]
        if char == "\\" and index + 1 < len(body):
            nxt = body[index + 1]
            octal = body[index + 1:index + 4]
            if len(octal) == 3 and all(c in "01234567" for c in octal):
                if octal[0] not in "0123":
                    raise ValueError(f"invalid octal escape \\{octal} in quoted path")
                out.append(int(octal, 8))
                index += 4
                continue
            out.extend(_ESCAPES.get(nxt, nxt).encode("utf-8", "surrogateescape"))
            index += 2
            continue
        out.extend(char.encode("utf-8", "surrogateescape"))
        index += 1
    return out.decode("utf-8", "surrogateescape")


def parse_diff(diff_text: str) -> ParseResult:
    """Parse diff text with a default ``DiffParser``."""
    return DiffParser().parse(diff_text)


def decode_diff_bytes(data: bytes) -> str:
    """Decode raw diff bytes; undecodable bytes survive a later re-encode."""
    return data.decode("utf-8", "surrogateescape")


def encode_diff_text(text: str) -> bytes:
    """Inverse of ``decode_diff_bytes``."""
    return text.encode("utf-8", "surrogateescape")
