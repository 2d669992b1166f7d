"""Service layer for the llmdiff API."""

from .diff import DiffService

__all__ = ["DiffService"]
