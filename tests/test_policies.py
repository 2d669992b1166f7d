"""Tests for file policies module."""

import pytest

from llmdiff.policies import FilePolicies


class TestFilePolicies:
    """Test FilePolicies class."""

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("src/app.py", ".py"),
            ("Archive.TAR.GZ", ".gz"),
            ("Makefile", ""),
            (".gitignore", ""),
            ("dir.v2/file", ""),
        ],
    )
    def test_extension(self, path, expected):
        """Extensions are lower-cased and taken from the file name only."""
        assert FilePolicies.extension(path) == expected

    def test_is_json_like(self):
        """JSON documents are recognized by extension."""
        assert FilePolicies.is_json_like("package.json")
        assert FilePolicies.is_json_like("notebooks/analysis.ipynb")
        assert not FilePolicies.is_json_like("data.yaml")

    def test_language_family(self):
        """Source extensions map to their family."""
        assert FilePolicies.language_family("main.rs") == "rust"
        assert FilePolicies.language_family("index.tsx") == "javascript"
        assert FilePolicies.language_family("Main.kt") == "java"
        assert FilePolicies.language_family("lib.hpp") == "c"
        assert FilePolicies.language_family("image.png") is None

    def test_get_keyword_strategy(self):
        """JSON takes precedence; unknown files have no strategy."""
        assert FilePolicies.get_keyword_strategy("tsconfig.json") == "json"
        assert FilePolicies.get_keyword_strategy("app.py") == "python"
        assert FilePolicies.get_keyword_strategy("LICENSE") is None
