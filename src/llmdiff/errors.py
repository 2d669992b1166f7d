"""Error definitions and handling for llmdiff."""

from typing import Any, Dict, Optional


class LlmDiffError(Exception):
    """Base exception for llmdiff errors."""

    #: Fatal errors abort the run with a non-zero exit code.
    fatal = True

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize error with code, message, and optional details."""
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON serialization."""
        result = {
            "code": self.code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class MalformedDiffError(LlmDiffError):
    """A file header block could not be matched to a known pattern."""

    fatal = False

    def __init__(self, line_number: int, header: str, reason: str):
        super().__init__(
            code="MALFORMED_DIFF",
            message=f"Skipping unparsable diff block at line {line_number}: {reason}",
            details={"line": line_number, "header": header, "reason": reason},
        )


class DirectoryReplaceError(LlmDiffError):
    """The chunk directory could not be replaced cleanly."""

    def __init__(self, directory: str, reason: str):
        super().__init__(
            code="DIRECTORY_REPLACE_FAILED",
            message=f"Failed to replace chunk directory {directory}: {reason}",
            details={"directory": directory, "reason": reason},
        )


class TrackingDocumentWriteError(LlmDiffError):
    """The review tracking document could not be written."""

    fatal = False

    def __init__(self, path: str, reason: str):
        super().__init__(
            code="TRACKING_WRITE_FAILED",
            message=f"Failed to update tracking document {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class CapacityExceededError(LlmDiffError):
    """More files than the chunk suffix space can address."""

    def __init__(self, file_count: int, capacity: int):
        super().__init__(
            code="CAPACITY_EXCEEDED",
            message=f"Diff contains {file_count} files; at most {capacity} chunks "
            "can be written per run",
            details={"file_count": file_count, "capacity": capacity},
        )


class ConfigInvalidError(LlmDiffError):
    """Invalid configuration value or file."""

    def __init__(self, reason: str, source: Optional[str] = None):
        details = {"reason": reason}
        if source:
            details["source"] = source
        super().__init__(
            code="CONFIG_INVALID",
            message=f"Invalid configuration: {reason}",
            details=details,
        )
