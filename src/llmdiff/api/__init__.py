"""HTTP API for llmdiff."""

from .. import __version__

__all__ = ["__version__"]
