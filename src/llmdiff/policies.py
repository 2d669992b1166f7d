"""File type policies and detection for llmdiff."""

import os
from typing import Dict, Optional


class FilePolicies:
    """Extension-based policies deciding how a summarized file is described."""

    # Files whose top-level mapping keys identify them
    JSON_EXTENSIONS = {
        ".json",
        ".jsonc",
        ".json5",
        ".geojson",
        ".webmanifest",
        ".ipynb",
        ".har",
    }

    # Extension -> language family for definition scanning
    SOURCE_FAMILIES: Dict[str, str] = {
        # Python
        ".py": "python",
        ".pyi": "python",
        ".pyw": "python",
        # Rust
        ".rs": "rust",
        # Go
        ".go": "go",
        # JavaScript / TypeScript
        ".js": "javascript",
        ".jsx": "javascript",
        ".mjs": "javascript",
        ".cjs": "javascript",
        ".ts": "javascript",
        ".tsx": "javascript",
        ".mts": "javascript",
        ".cts": "javascript",
        ".vue": "javascript",
        ".svelte": "javascript",
        # JVM and .NET
        ".java": "java",
        ".kt": "java",
        ".kts": "java",
        ".scala": "java",
        ".groovy": "java",
        ".cs": "java",
        # C family
        ".c": "c",
        ".h": "c",
        ".cc": "c",
        ".cpp": "c",
        ".cxx": "c",
        ".hh": "c",
        ".hpp": "c",
        ".hxx": "c",
        ".m": "c",
        ".mm": "c",
        # Scripting
        ".rb": "ruby",
        ".rake": "ruby",
        ".php": "php",
        ".swift": "swift",
        ".sh": "shell",
        ".bash": "shell",
        ".zsh": "shell",
        ".lua": "lua",
        ".pl": "perl",
        ".pm": "perl",
        # Markup and styles
        ".md": "markdown",
        ".markdown": "markdown",
        ".rst": "markdown",
        ".html": "markup",
        ".htm": "markup",
        ".xml": "markup",
        ".svg": "markup",
        ".css": "css",
        ".scss": "css",
        ".sass": "css",
        ".less": "css",
    }

    @classmethod
    def extension(cls, file_path: str) -> str:
        """Return the lower-cased extension of the file name, including the dot."""
        return os.path.splitext(os.path.basename(file_path))[1].lower()

    @classmethod
    def is_json_like(cls, file_path: str) -> bool:
        """Check if file holds a JSON document."""
        return cls.extension(file_path) in cls.JSON_EXTENSIONS

    @classmethod
    def language_family(cls, file_path: str) -> Optional[str]:
        """Return the source family for a recognized extension."""
        return cls.SOURCE_FAMILIES.get(cls.extension(file_path))

    @classmethod
    def get_keyword_strategy(cls, file_path: str) -> Optional[str]:
        """Return ``"json"``, a language family name, or ``None``."""
        if cls.is_json_like(file_path):
            return "json"
        return cls.language_family(file_path)
