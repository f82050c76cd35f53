"""Exception hierarchy for Recall."""

from __future__ import annotations


class RecallError(Exception):
    """Base class for all Recall errors."""


class StoreError(RecallError):
    """The result store failed to read or write."""


class RecordNotFoundError(StoreError):
    """No stored record exists for the requested file identity."""


class CorruptRecordError(RecallError):
    """A stored record holds a value that cannot be interpreted."""


class StalenessCheckError(RecallError):
    """The file's modification time could not be read."""


class ExtractionError(RecallError):
    """Text extraction failed for a single image."""


class ExtractionUnavailableError(ExtractionError):
    """The extraction backend could not be initialized."""
