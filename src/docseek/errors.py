"""Exceptions raised by docseek."""

from __future__ import annotations


class DocseekError(Exception):
    """Base class for docseek errors."""


class ExtractionError(DocseekError):
    """Raised when a file's text content cannot be extracted."""


class SnapshotError(DocseekError):
    """Raised when an index snapshot cannot be read or parsed."""


class IndexCorruptedError(DocseekError):
    """Raised when a fault interrupted a mutation of the shared index.

    Once raised, the index refuses every further operation: its statistics
    can no longer be trusted to be consistent.
    """
