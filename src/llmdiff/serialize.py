"""Rendering of minimized diffs as text and deterministic JSON for llmdiff."""

import hashlib
import json
import logging
from typing import Any, Dict, List, Optional

from .config import DiffConfig
from .errors import LlmDiffError
from .minimize import Deleted, Full, MinimizedRepresentation, Summary

logger = logging.getLogger(__name__)


class DeterministicSerializer:
    """Renders minimized files in input order, as text or as a JSON payload."""

    def __init__(self, config: DiffConfig):
        """Initialize with configuration."""
        self.config = config

    def render(self, representation: MinimizedRepresentation) -> str:
        """Render one file as the text block written to stdout."""
        if isinstance(representation, Deleted):
            return f"Deleted file: {representation.path}\n"

        if isinstance(representation, Summary):
            lines = [
                f"Large file change: {representation.path}",
                f"Change type: {representation.change_kind.value}",
                f"Content lines: {representation.content_lines}",
            ]
            if representation.keywords:
                lines.append(f"Keywords: {', '.join(representation.keywords)}")
            return "\n".join(lines) + "\n"

        text = representation.text
        return text if text.endswith("\n") else text + "\n"

    def to_text(self, representations: List[MinimizedRepresentation]) -> str:
        """Render all files; each block is followed by one separating newline."""
        return "".join(self.render(rep) + "\n" for rep in representations)

    def serialize_output(
        self,
        representations: List[MinimizedRepresentation],
        warnings: Optional[List[LlmDiffError]] = None,
    ) -> Dict[str, Any]:
        """Serialize the minimized diff to a deterministic dictionary."""
        warnings = warnings or []
        logger.debug(
            "Serializing output",
            extra={"files": len(representations), "warnings": len(warnings)},
        )

        text = self.to_text(representations)
        payload = {
            "config": self.config.to_public_dict(),
            "files": [self._serialize_file(rep) for rep in representations],
            "text": text,
            "warnings": [warning.to_dict() for warning in warnings],
        }
        payload["checksum"] = self._compute_checksum(payload)

        logger.debug("Serialization finished", extra={"checksum": payload["checksum"]})
        return payload

    def _serialize_file(self, representation: MinimizedRepresentation) -> Dict[str, Any]:
        """Serialize a single file to dictionary."""
        file_data: Dict[str, Any] = {
            "kind": representation.kind,
            "path": representation.path,
            "change_kind": representation.change_kind.value,
        }

        if isinstance(representation, Summary):
            file_data["content_lines"] = representation.content_lines
            file_data["keywords"] = list(representation.keywords)
        elif isinstance(representation, Full):
            file_data["text"] = representation.text

        return file_data

    def _compute_checksum(self, payload: Dict[str, Any]) -> str:
        """Compute SHA-256 checksum of the payload without its checksum field."""
        body = {key: value for key, value in payload.items() if key != "checksum"}
        checksum = hashlib.sha256(self._to_deterministic_json_bytes(body)).hexdigest()
        logger.debug("Computed payload checksum", extra={"checksum": checksum})
        return checksum

    def _to_deterministic_json_bytes(self, obj: Any) -> bytes:
        """Convert object to deterministic JSON bytes."""
        json_str = json.dumps(
            obj,
            ensure_ascii=False,
            sort_keys=True,
            separators=(",", ":"),
            indent=None,
        )
        return json_str.encode("utf-8", errors="surrogateescape")

    def to_json_string(self, payload: Dict[str, Any]) -> str:
        """Convert payload to pretty-printed JSON string."""
        logger.debug("Rendering payload to JSON string")
        return json.dumps(payload, ensure_ascii=False, sort_keys=True, indent=2)

    def create_success_envelope(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Create success envelope around payload."""
        logger.debug("Creating success envelope")
        return {"ok": True, "data": payload}

    def create_error_envelope(
        self, error_code: str, error_message: str, details: Dict[str, Any] = None
    ) -> Dict[str, Any]:
        """Create error envelope."""
        logger.debug("Creating error envelope", extra={"code": error_code})
        error_data = {
            "code": error_code,
            "message": error_message,
        }
        if details:
            error_data["details"] = details

        return {"ok": False, "error": error_data}
