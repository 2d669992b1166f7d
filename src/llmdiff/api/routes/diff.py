"""Diff routes for the llmdiff API."""

import logging
from typing import Any, Dict

from fastapi import APIRouter

from ..models import MinimizeRequest
from ..services import DiffService

router = APIRouter(tags=["diff"])

logger = logging.getLogger(__name__)

diff_service = DiffService()


@router.post("/minimize")
def minimize(request: MinimizeRequest) -> Dict[str, Any]:
    """Minimize a unified diff; large files come back as summaries."""
    result = diff_service.process_minimize_request(
        diff=request.diff,
        changes_threshold=request.changes_threshold,
        lines_threshold=request.lines_threshold,
        max_empty_lines=request.max_empty_lines,
        max_keywords=request.max_keywords,
    )
    if result["ok"]:
        kinds = [entry["kind"] for entry in result["data"]["files"]]
        logger.info(
            "Minimize request served",
            extra={"files": len(kinds), "summarized": kinds.count("summary")},
        )
    return result
