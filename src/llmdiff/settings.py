"""Environment loading for llmdiff."""

import logging
import os
from typing import Dict, Mapping, Optional

from dotenv import find_dotenv, load_dotenv

logger = logging.getLogger(__name__)

load_dotenv(find_dotenv(usecwd=True))
logger.debug("Environment variables loaded from .env if present")

ENV_PREFIX = "LLMDIFF_"

_ENV_FIELDS = {
    "OUTPUT_ROOT": "output_root",
    "REVIEW_PATH": "review_path",
    "CHANGES_THRESHOLD": "large_file_changes_threshold",
    "LINES_THRESHOLD": "large_file_lines_threshold",
    "MAX_EMPTY_LINES": "max_consecutive_empty_lines",
    "MAX_KEYWORDS": "max_keywords",
    "PROJECT_ID": "project_id",
    "VCS_TIMEOUT": "vcs_timeout",
}


def get_env_overrides(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Return configuration overrides taken from ``LLMDIFF_*`` variables."""
    source = os.environ if environ is None else environ
    overrides = {}
    for suffix, field_name in _ENV_FIELDS.items():
        value = source.get(ENV_PREFIX + suffix)
        if value:
            overrides[field_name] = value

    if overrides:
        logger.debug("Environment overrides found", extra={"keys": sorted(overrides)})
    return overrides
