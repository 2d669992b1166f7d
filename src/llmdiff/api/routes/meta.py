"""Meta endpoints for the llmdiff API."""

import logging

from fastapi import APIRouter

from .. import __version__
from ...policies import FilePolicies
from ...vcs import GitRepository
from ..models import HealthResponse, VersionResponse
from .diff import diff_service

router = APIRouter(tags=["meta"])

logger = logging.getLogger(__name__)


@router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Report liveness, git availability and the active thresholds."""
    config = diff_service.base_config
    git_version = GitRepository(config).version()
    logger.info("Health check invoked", extra={"git_version": git_version})
    return HealthResponse(
        status="healthy",
        version=__version__,
        git_available=git_version is not None,
        git_version=git_version,
        thresholds=config.to_public_dict()["thresholds"],
    )


@router.get("/version", response_model=VersionResponse)
def version_info() -> VersionResponse:
    strategies = sorted(set(FilePolicies.SOURCE_FAMILIES.values()) | {"json"})
    return VersionResponse(
        version=__version__,
        api_version="v1",
        keyword_strategies=strategies,
    )


@router.get("/", include_in_schema=False)
def root() -> dict:
    """List the available endpoints."""
    return {
        "name": "llmdiff API",
        "version": __version__,
        "description": "Unified diff minimization for language-model context",
        "endpoints": {
            "minimize": "POST /minimize - Minimize a unified diff",
            "health": "GET /health - Liveness and active thresholds",
            "version": "GET /version - Version and keyword strategies",
            "docs": "GET /docs - API documentation",
        },
    }
