"""Pytest configuration and fixtures for llmdiff tests."""

import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Generator

import pytest


MODIFIED_DIFF = """\
diff --git a/src/app.py b/src/app.py
index 83db48f..bf269f4 100644
--- a/src/app.py
+++ b/src/app.py
@@ -1,3 +1,4 @@
 import os
+import sys
 
 def main():
"""

ADDED_DIFF = """\
diff --git a/docs/notes.md b/docs/notes.md
new file mode 100644
index 0000000..e69de29
--- /dev/null
+++ b/docs/notes.md
@@ -0,0 +1,2 @@
+# Notes
+First entry
"""

DELETED_DIFF = """\
diff --git a/old/legacy.py b/old/legacy.py
deleted file mode 100644
index e69de29..0000000
--- a/old/legacy.py
+++ /dev/null
@@ -1,2 +0,0 @@
-def legacy():
-    pass
"""

RENAMED_DIFF = """\
diff --git a/lib/util.py b/lib/helpers.py
similarity index 100%
rename from lib/util.py
rename to lib/helpers.py
"""

BINARY_DIFF = """\
diff --git a/assets/logo.png b/assets/logo.png
index 1234567..89abcde 100644
Binary files a/assets/logo.png and b/assets/logo.png differ
"""


def make_file_diff(path: str, added: int = 0, removed: int = 0, context: int = 0) -> str:
    """Build a single-hunk modification diff with the given line counts."""
    old_count = removed + context
    new_count = added + context
    lines = [
        f"diff --git a/{path} b/{path}",
        "index 1111111..2222222 100644",
        f"--- a/{path}",
        f"+++ b/{path}",
        f"@@ -1,{old_count} +1,{new_count} @@",
    ]
    lines.extend(f" context line {i}" for i in range(context))
    lines.extend(f"-removed line {i}" for i in range(removed))
    lines.extend(f"+added line {i}" for i in range(added))
    return "\n".join(lines) + "\n"


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    temp_path = Path(tempfile.mkdtemp(prefix="llmdiff_test_"))
    try:
        yield temp_path
    finally:
        if temp_path.exists():
            shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def sample_diff() -> str:
    """A diff touching one file of each change kind."""
    return MODIFIED_DIFF + ADDED_DIFF + DELETED_DIFF + RENAMED_DIFF


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path_factory):
    """Keep user configuration and LLMDIFF_* variables out of every test."""
    for key in list(os.environ):
        if key.startswith("LLMDIFF_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path_factory.mktemp("home")))


@pytest.fixture
def git_repo(temp_dir: Path) -> Generator[Path, None, None]:
    """Create a temporary git repository for testing."""
    if shutil.which("git") is None:
        pytest.skip("git is not installed")

    repo_path = temp_dir / "sample-repo"
    repo_path.mkdir()

    helper = GitRepoHelper(repo_path)
    helper.run_git(["init"])
    helper.run_git(["config", "user.name", "Test User"])
    helper.run_git(["config", "user.email", "test@example.com"])
    helper.create_file("README.md", "# Test Repository\n")
    helper.add_and_commit("Initial commit")

    yield repo_path


class GitRepoHelper:
    """Helper class for git repository operations in tests."""

    def __init__(self, repo_path: Path):
        self.repo_path = repo_path
        self.env = os.environ.copy()
        self.env.update({
            "GIT_AUTHOR_NAME": "Test User",
            "GIT_AUTHOR_EMAIL": "test@example.com",
            "GIT_COMMITTER_NAME": "Test User",
            "GIT_COMMITTER_EMAIL": "test@example.com",
        })

    def run_git(self, args: list[str]) -> subprocess.CompletedProcess:
        """Run git command in the repository."""
        return subprocess.run(
            ["git"] + args,
            cwd=self.repo_path,
            env=self.env,
            check=True,
            capture_output=True,
            text=True,
        )

    def create_file(self, path: str, content: str) -> None:
        """Create a file with content."""
        file_path = self.repo_path / path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(content)

    def delete_file(self, path: str) -> None:
        """Delete a file."""
        file_path = self.repo_path / path
        if file_path.exists():
            file_path.unlink()

    def add_and_commit(self, message: str) -> str:
        """Stage everything and commit, return commit SHA."""
        self.run_git(["add", "-A"])
        self.run_git(["commit", "-m", message])
        return self.run_git(["rev-parse", "HEAD"]).stdout.strip()

    def diff(self, *args: str) -> str:
        """Return ``git diff`` output for the working tree."""
        return self.run_git(["diff", *args]).stdout


@pytest.fixture
def git_helper(git_repo: Path) -> GitRepoHelper:
    """Create a git repository helper."""
    return GitRepoHelper(git_repo)
