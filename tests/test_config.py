"""Tests for configuration module."""

from pathlib import Path

import pytest

from llmdiff.config import DiffConfig, load_config, load_config_file, merge_settings
from llmdiff.errors import ConfigInvalidError
from llmdiff.settings import get_env_overrides


class TestDiffConfig:
    """Test DiffConfig class."""

    def test_default_config(self):
        """Test default configuration values."""
        config = DiffConfig()

        assert config.output_root == "llm/diff"
        assert config.review_path == "llm/REVIEW.md"
        assert config.large_file_changes_threshold == 100
        assert config.large_file_lines_threshold == 500
        assert config.max_consecutive_empty_lines == 2
        assert config.max_keywords == 10
        assert config.project_id is None
        assert config.default_project_id == "default-project"

    @pytest.mark.parametrize(
        "kwargs,message",
        [
            ({"large_file_changes_threshold": 0}, "large_file_changes_threshold must be positive"),
            ({"large_file_lines_threshold": -1}, "large_file_lines_threshold must be positive"),
            ({"max_consecutive_empty_lines": -1}, "max_consecutive_empty_lines cannot be negative"),
            ({"output_root": ""}, "output_root cannot be empty"),
            ({"vcs_timeout": 0}, "vcs_timeout must be positive"),
        ],
    )
    def test_config_validation(self, kwargs, message):
        """Invalid values are rejected at construction."""
        with pytest.raises(ValueError, match=message):
            DiffConfig(**kwargs)

    def test_git_env(self):
        """Git runs non-interactively with a fixed locale."""
        env = DiffConfig().git_env
        assert env["LC_ALL"] == "C"
        assert env["GIT_TERMINAL_PROMPT"] == "0"

    def test_to_public_dict(self):
        """Public dictionary exposes thresholds and paths."""
        data = DiffConfig(large_file_changes_threshold=7).to_public_dict()
        assert data["thresholds"]["changed_lines"] == 7
        assert data["thresholds"]["total_lines"] == 500
        assert data["output_root"] == "llm/diff"


class TestMergeSettings:
    """Test applying overrides."""

    def test_none_values_are_ignored(self):
        """Unset overrides keep the base value."""
        base = DiffConfig()
        assert merge_settings(base, {"output_root": None}) is base

    def test_string_values_are_coerced(self):
        """Environment-style strings become integers."""
        config = merge_settings(DiffConfig(), {"large_file_changes_threshold": "42"})
        assert config.large_file_changes_threshold == 42

    def test_invalid_values(self):
        """Unparsable and out-of-range values raise ConfigInvalidError."""
        with pytest.raises(ConfigInvalidError):
            merge_settings(DiffConfig(), {"large_file_changes_threshold": "many"})
        with pytest.raises(ConfigInvalidError):
            merge_settings(DiffConfig(), {"large_file_changes_threshold": True})
        with pytest.raises(ConfigInvalidError) as exc_info:
            merge_settings(DiffConfig(), {"max_consecutive_empty_lines": -3}, "test")
        assert exc_info.value.details["source"] == "test"

    def test_aliases_and_unknown_keys(self):
        """Legacy names map to current fields; unknown keys are skipped."""
        config = merge_settings(DiffConfig(), {"save_path": "out", "colour": "blue"})
        assert config.output_root == "out"

    def test_paths_are_expanded(self, monkeypatch):
        """Home and variable references are expanded."""
        monkeypatch.setenv("REVIEW_DIR", "/srv/reviews")
        config = merge_settings(DiffConfig(), {"review_path": "$REVIEW_DIR/REVIEW.md"})
        assert config.review_path == "/srv/reviews/REVIEW.md"


class TestLoadConfig:
    """Test layered configuration loading."""

    def test_defaults_without_files(self, temp_dir: Path):
        """No files and no environment give the defaults."""
        config = load_config(cwd=temp_dir, environ={}, global_config=temp_dir / "missing.toml")
        assert config == DiffConfig()

    def test_layering(self, temp_dir: Path):
        """Later sources win over earlier ones."""
        global_file = temp_dir / "global.toml"
        global_file.write_text(
            'version = "1"\n[diff]\nlarge_file_changes_threshold = 10\nlarge_file_lines_threshold = 20\n'
            "max_keywords = 3\n"
        )
        (temp_dir / ".llmdiff.toml").write_text("[diff]\nlarge_file_lines_threshold = 30\nmax_keywords = 4\n")
        extra = temp_dir / "extra.toml"
        extra.write_text("[diff]\nmax_keywords = 5\nproject_id = 'from-file'\n")

        config = load_config(
            config_file=extra,
            cli_overrides={"project_id": "from-cli", "output_root": None},
            environ={"LLMDIFF_MAX_EMPTY_LINES": "0", "LLMDIFF_PROJECT_ID": "from-env"},
            cwd=temp_dir,
            global_config=global_file,
        )

        assert config.large_file_changes_threshold == 10
        assert config.large_file_lines_threshold == 30
        assert config.max_keywords == 5
        assert config.max_consecutive_empty_lines == 0
        assert config.project_id == "from-cli"
        assert config.output_root == "llm/diff"

    def test_missing_explicit_file(self, temp_dir: Path):
        """An explicit configuration file must exist."""
        with pytest.raises(ConfigInvalidError):
            load_config(config_file=temp_dir / "nope.toml", cwd=temp_dir, environ={})

    def test_invalid_toml(self, temp_dir: Path):
        """Syntax errors are reported with the file path."""
        path = temp_dir / "bad.toml"
        path.write_text("[diff\n")
        with pytest.raises(ConfigInvalidError) as exc_info:
            load_config_file(path)
        assert exc_info.value.details["source"] == str(path)

    def test_diff_section_must_be_table(self, temp_dir: Path):
        """A scalar ``diff`` key is rejected."""
        path = temp_dir / "bad.toml"
        path.write_text('diff = "yes"\n')
        with pytest.raises(ConfigInvalidError):
            load_config_file(path)


class TestEnvironment:
    """Test environment overrides."""

    def test_env_overrides(self):
        """Prefixed variables map to configuration fields."""
        overrides = get_env_overrides(
            {"LLMDIFF_OUTPUT_ROOT": "out", "LLMDIFF_CHANGES_THRESHOLD": "5", "OTHER": "x", "LLMDIFF_REVIEW_PATH": ""}
        )
        assert overrides == {"output_root": "out", "large_file_changes_threshold": "5"}
