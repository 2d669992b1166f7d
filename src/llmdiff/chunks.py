"""Chunk file writing for saved diffs."""

import logging
import shutil
import string
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from .diffpack import FileChange, encode_diff_text
from .errors import CapacityExceededError, DirectoryReplaceError

logger = logging.getLogger(__name__)

LETTER_SUFFIXES = 26 * 26
NUMERIC_SUFFIXES = 10_000
MAX_CHUNKS = LETTER_SUFFIXES + NUMERIC_SUFFIXES


def chunk_suffix(index: int) -> str:
    """Map a position to its suffix: ``aa``..``zz``, then ``0000``..``9999``."""
    if index < 0:
        raise ValueError("chunk index cannot be negative")
    if index < LETTER_SUFFIXES:
        first, second = divmod(index, 26)
        return string.ascii_lowercase[first] + string.ascii_lowercase[second]
    if index < MAX_CHUNKS:
        return f"{index - LETTER_SUFFIXES:04d}"
    raise CapacityExceededError(index + 1, MAX_CHUNKS)


def chunk_filename(index: int) -> str:
    """Return the file name used for the chunk at ``index``."""
    return f"chunk_{chunk_suffix(index)}.diff"


@dataclass(frozen=True)
class Chunk:
    """One persisted chunk file."""

    suffix: str
    source: FileChange
    path_on_disk: Path

    @property
    def filename(self) -> str:
        return self.path_on_disk.name

    @property
    def content(self) -> bytes:
        return encode_diff_text(self.source.raw_text)


class ChunkWriter:
    """Writes one chunk per file into ``{output_root}/{project_id}/``.

    The directory is replaced as a whole on every run: chunks are written to a
    staging directory which is then swapped in, so no stale chunk survives and
    a failed run leaves the previous directory in place.
    """

    def __init__(self, output_root: Path, project_id: str):
        self.output_root = Path(output_root)
        self.project_id = project_id

    @property
    def directory(self) -> Path:
        return self.output_root / self.project_id

    def write(self, files: Sequence[FileChange]) -> List[Chunk]:
        """Write all chunks and return them in input order."""
        if len(files) > MAX_CHUNKS:
            raise CapacityExceededError(len(files), MAX_CHUNKS)

        target = self.directory
        try:
            self.output_root.mkdir(parents=True, exist_ok=True)
            staging = Path(tempfile.mkdtemp(prefix=f".{self.project_id}-", suffix=".staging", dir=self.output_root))
        except OSError as exc:
            raise DirectoryReplaceError(str(target), str(exc)) from exc

        chunks = []
        try:
            for index, change in enumerate(files):
                suffix = chunk_suffix(index)
                staged_path = staging / f"chunk_{suffix}.diff"
                staged_path.write_bytes(encode_diff_text(change.raw_text))
                chunks.append(Chunk(suffix=suffix, source=change, path_on_disk=target / staged_path.name))
            self._swap_into_place(staging, target)
        except OSError as exc:
            shutil.rmtree(staging, ignore_errors=True)
            raise DirectoryReplaceError(str(target), str(exc)) from exc

        logger.info(
            "Chunks written",
            extra={"directory": str(target), "chunks": len(chunks)},
        )
        return chunks

    def _swap_into_place(self, staging: Path, target: Path) -> None:
        if not target.exists() and not target.is_symlink():
            staging.rename(target)
            return

        if target.is_symlink() or not target.is_dir():
            target.unlink()
            staging.rename(target)
            return

        retired = Path(tempfile.mkdtemp(prefix=f".{self.project_id}-", suffix=".old", dir=self.output_root))
        retired.rmdir()
        target.rename(retired)
        try:
            staging.rename(target)
        except OSError:
            retired.rename(target)
            raise
        shutil.rmtree(retired, ignore_errors=True)
        logger.debug("Replaced previous chunk directory", extra={"directory": str(target)})
