"""Decide which files need (re-)indexing."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from recall.exceptions import RecordNotFoundError, StalenessCheckError
from recall.index.storage import SQLiteResultStore
from recall.models import FileIdentity
from recall.utils.files import file_mtime


def identity_for_path(path: Path) -> FileIdentity:
    """Build the identity of an already canonicalized absolute path."""
    return FileIdentity.from_path(path)


def needs_indexing(
    store: SQLiteResultStore, identity: FileIdentity, modified_at: datetime
) -> bool:
    """Return True if ``identity`` was never indexed or changed since extraction.

    A record extracted at exactly ``modified_at`` counts as fresh. Store and
    timestamp errors propagate to the caller.
    """
    try:
        extracted_at = store.get_extracted_at(identity)
    except RecordNotFoundError:
        return True
    return extracted_at < modified_at


def check_path(store: SQLiteResultStore, path: Path) -> bool:
    """``needs_indexing`` for a file on disk, reading its modification time."""
    try:
        modified_at = file_mtime(path)
    except OSError as exc:
        raise StalenessCheckError(f"Failed to read modification time of {path}: {exc}") from exc
    return needs_indexing(store, identity_for_path(path), modified_at)
