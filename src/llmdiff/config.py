"""Configuration management for llmdiff."""

import dataclasses
import logging
import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigInvalidError
from .settings import get_env_overrides

logger = logging.getLogger(__name__)

CONFIG_VERSION = "1"
SUPPORTED_CONFIG_VERSIONS = ("1",)

GLOBAL_CONFIG_PATH = Path("~/.config/llmdiff/config.toml")
REPO_CONFIG_NAME = ".llmdiff.toml"

# Older configuration files used these names in the [diff] table.
_KEY_ALIASES = {"output_dir": "output_root", "save_path": "output_root"}


@dataclass(frozen=True)
class DiffConfig:
    """Configuration for diff minimization and review tracking."""

    # Save-mode layout
    output_root: str = "llm/diff"
    review_path: str = "llm/REVIEW.md"

    # Minimization thresholds
    large_file_changes_threshold: int = 100
    large_file_lines_threshold: int = 500
    max_consecutive_empty_lines: int = 2
    max_keywords: int = 10

    # Project identifier resolution
    project_id: Optional[str] = None
    default_project_id: str = "default-project"
    vcs_timeout: float = 3.0

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if not self.output_root:
            raise ValueError("output_root cannot be empty")
        if not self.review_path:
            raise ValueError("review_path cannot be empty")
        if self.large_file_changes_threshold <= 0:
            raise ValueError("large_file_changes_threshold must be positive")
        if self.large_file_lines_threshold <= 0:
            raise ValueError("large_file_lines_threshold must be positive")
        if self.max_consecutive_empty_lines < 0:
            raise ValueError("max_consecutive_empty_lines cannot be negative")
        if self.max_keywords < 0:
            raise ValueError("max_keywords cannot be negative")
        if not self.default_project_id:
            raise ValueError("default_project_id cannot be empty")
        if self.vcs_timeout <= 0:
            raise ValueError("vcs_timeout must be positive")

    @property
    def git_env(self) -> Dict[str, str]:
        """Get Git environment variables for deterministic, non-interactive output."""
        env = os.environ.copy()
        env.update(
            {
                "LC_ALL": "C",
                "GIT_TERMINAL_PROMPT": "0",
                "GIT_ASKPASS": "echo",
                "SSH_ASKPASS": "echo",
                "GCM_INTERACTIVE": "never",
            }
        )
        return env

    def to_public_dict(self) -> Dict[str, Any]:
        """Convert config to a dictionary for JSON payloads."""
        return {
            "thresholds": {
                "changed_lines": self.large_file_changes_threshold,
                "total_lines": self.large_file_lines_threshold,
                "max_consecutive_empty_lines": self.max_consecutive_empty_lines,
                "max_keywords": self.max_keywords,
            },
            "output_root": self.output_root,
            "review_path": self.review_path,
        }


_FIELD_TYPES = {field.name: field.type for field in dataclasses.fields(DiffConfig)}
_INT_FIELDS = {
    "large_file_changes_threshold",
    "large_file_lines_threshold",
    "max_consecutive_empty_lines",
    "max_keywords",
}
_PATH_FIELDS = {"output_root", "review_path"}


def expand_path(value: str) -> str:
    """Expand ``~`` and ``$VAR`` references; unknown variables are left as-is."""
    return os.path.expanduser(os.path.expandvars(value))


def _coerce(key: str, value: Any, source: str) -> Any:
    if key in _INT_FIELDS:
        if isinstance(value, bool):
            raise ConfigInvalidError(f"{key} must be an integer", source)
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise ConfigInvalidError(f"{key} must be an integer, got {value!r}", source) from exc
    if key == "vcs_timeout":
        try:
            return float(value)
        except (TypeError, ValueError) as exc:
            raise ConfigInvalidError(f"vcs_timeout must be a number, got {value!r}", source) from exc
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigInvalidError(f"{key} must be a string", source)
    if key in _PATH_FIELDS:
        return expand_path(value)
    return value


def merge_settings(
    base: DiffConfig, overrides: Mapping[str, Any], source: str = "overrides"
) -> DiffConfig:
    """Return ``base`` with ``overrides`` applied; ``None`` values are ignored."""
    changes: Dict[str, Any] = {}
    for raw_key, value in overrides.items():
        if value is None:
            continue
        key = _KEY_ALIASES.get(raw_key, raw_key)
        if key not in _FIELD_TYPES:
            logger.warning("Ignoring unknown configuration key", extra={"key": raw_key, "source": source})
            continue
        changes[key] = _coerce(key, value, source)

    if not changes:
        return base

    try:
        return dataclasses.replace(base, **changes)
    except ValueError as exc:
        raise ConfigInvalidError(str(exc), source) from exc


def load_config_file(path: Path) -> Dict[str, Any]:
    """Load the ``[diff]`` table from a TOML configuration file."""
    try:
        with path.open("rb") as handle:
            payload = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigInvalidError(f"cannot parse TOML: {exc}", str(path)) from exc
    except OSError as exc:
        raise ConfigInvalidError(f"cannot read file: {exc}", str(path)) from exc

    version = str(payload.get("version", CONFIG_VERSION))
    if version not in SUPPORTED_CONFIG_VERSIONS:
        logger.warning(
            "Configuration version '%s' is not supported. Supported versions: %s. "
            "Using defaults where needed.",
            version,
            ", ".join(SUPPORTED_CONFIG_VERSIONS),
            extra={"path": str(path)},
        )

    section = payload.get("diff", {})
    if not isinstance(section, dict):
        raise ConfigInvalidError("section 'diff' must be a table", str(path))
    logger.debug("Loaded configuration file", extra={"path": str(path), "keys": sorted(section)})
    return section


def load_config(
    config_file: Optional[Path] = None,
    cli_overrides: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
    cwd: Optional[Path] = None,
    global_config: Optional[Path] = None,
) -> DiffConfig:
    """Resolve configuration.

    Precedence (later wins): defaults, global config file, repository
    ``.llmdiff.toml``, an explicit ``config_file``, ``LLMDIFF_*`` environment
    variables, then command line overrides.
    """
    config = DiffConfig()
    cwd = cwd or Path.cwd()
    global_path = (global_config or GLOBAL_CONFIG_PATH).expanduser()

    for path in (global_path, cwd / REPO_CONFIG_NAME):
        if path.is_file():
            config = merge_settings(config, load_config_file(path), str(path))

    if config_file is not None:
        if not config_file.is_file():
            raise ConfigInvalidError("config file does not exist", str(config_file))
        config = merge_settings(config, load_config_file(config_file), str(config_file))

    config = merge_settings(config, get_env_overrides(environ), "environment")

    if cli_overrides:
        config = merge_settings(config, cli_overrides, "command line")

    return config
