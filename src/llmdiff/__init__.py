"""llmdiff.

Minimizes unified diffs for language-model context and splits them into
per-file review chunks tracked by a persistent REVIEW.md document.
"""

__version__ = "1.0.0"

__all__ = []
