"""Version control lookups for llmdiff."""

import logging
import re
import subprocess
from pathlib import Path
from typing import List, Optional

from .config import DiffConfig

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_project_id(value: str) -> str:
    """Reduce a name to a short, filesystem-safe label."""
    cleaned = _UNSAFE_CHARS.sub("-", value.strip()).strip("-.")
    return cleaned[:64]


class GitRepository:
    """Read-only queries against the repository containing ``cwd``."""

    def __init__(self, config: DiffConfig, cwd: Optional[Path] = None):
        """Initialize with configuration."""
        self.config = config
        self.cwd = cwd or Path.cwd()

    def _run_git(self, args: List[str]) -> Optional[str]:
        """Run a git command; return stripped stdout or ``None`` on any failure."""
        cmd = ["git", "-c", "color.ui=false"] + args
        try:
            result = subprocess.run(
                cmd,
                cwd=self.cwd,
                env=self.config.git_env,
                timeout=self.config.vcs_timeout,
                check=True,
                capture_output=True,
                text=True,
            )
        except subprocess.TimeoutExpired:
            logger.warning(
                "git command timed out",
                extra={"git_args": args, "timeout": self.config.vcs_timeout},
            )
            return None
        except subprocess.CalledProcessError as exc:
            logger.debug(
                "git command failed",
                extra={"git_args": args, "returncode": exc.returncode, "stderr": (exc.stderr or "").strip()},
            )
            return None
        except OSError as exc:
            logger.debug("git is not available", extra={"error": str(exc)})
            return None
        return result.stdout.strip()

    def version(self) -> Optional[str]:
        """Return the installed git version, e.g. ``2.43.0``."""
        output = self._run_git(["--version"])
        return output.split()[-1] if output else None

    def top_level(self) -> Optional[Path]:
        """Return the working tree root, or ``None`` outside a repository."""
        output = self._run_git(["rev-parse", "--show-toplevel"])
        return Path(output) if output else None

    def resolve_project_id(self) -> str:
        """Resolve the project identifier.

        Order: explicit ``project_id`` from configuration, the repository's
        top-level directory name, the current directory name, then
        ``default_project_id``.
        """
        candidates = []
        if self.config.project_id:
            candidates.append(("config", self.config.project_id))
        else:
            root = self.top_level()
            if root is not None:
                candidates.append(("repository", root.name))
            candidates.append(("directory", self.cwd.resolve().name))

        for source, candidate in candidates:
            project_id = sanitize_project_id(candidate)
            if project_id:
                logger.debug("Resolved project identifier", extra={"project_id": project_id, "source": source})
                return project_id

        logger.info(
            "Falling back to default project identifier",
            extra={"project_id": self.config.default_project_id},
        )
        return sanitize_project_id(self.config.default_project_id) or "default-project"
