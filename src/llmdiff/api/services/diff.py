"""Service layer for the llmdiff API."""

import logging
from typing import Any, Dict, Optional

from ...config import DiffConfig, load_config, merge_settings
from ...errors import LlmDiffError
from ...main import minimize_diff
from ...serialize import DeterministicSerializer

logger = logging.getLogger(__name__)


class DiffService:
    """Service class that encapsulates diff minimization for the API."""

    def __init__(self, base_config: Optional[DiffConfig] = None):
        self._base_config = base_config

    @property
    def base_config(self) -> DiffConfig:
        """Configuration from files and environment, resolved on first use."""
        if self._base_config is None:
            self._base_config = load_config()
        return self._base_config

    def process_minimize_request(
        self,
        diff: str,
        changes_threshold: Optional[int] = None,
        lines_threshold: Optional[int] = None,
        max_empty_lines: Optional[int] = None,
        max_keywords: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Minimize a diff and return the success or error envelope."""
        logger.info("Processing minimize request", extra={"bytes": len(diff)})

        try:
            config = merge_settings(
                self.base_config,
                {
                    "large_file_changes_threshold": changes_threshold,
                    "large_file_lines_threshold": lines_threshold,
                    "max_consecutive_empty_lines": max_empty_lines,
                    "max_keywords": max_keywords,
                },
                "request",
            )
            payload = minimize_diff(diff, config)

            serializer = DeterministicSerializer(config)
            result = serializer.create_success_envelope(payload)

            logger.info(
                "Minimize request succeeded",
                extra={
                    "files": len(payload.get("files", [])),
                    "warnings": len(payload.get("warnings", [])),
                },
            )
            return result

        except LlmDiffError as exc:
            logger.warning("Known llmdiff error", extra={"code": exc.code})
            serializer = DeterministicSerializer(DiffConfig())
            return serializer.create_error_envelope(exc.code, exc.message, exc.details)
