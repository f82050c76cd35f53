"""Utility helpers for working with image files."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterator

LOGGER = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = frozenset(
    {"jpg", "jpeg", "png", "gif", "bmp", "tiff", "webp", "avif", "heic", "heif", "jxl"}
)


def is_supported_image(path: Path) -> bool:
    """Return True when the extension is a supported image type (case-insensitive)."""
    return path.suffix[1:].lower() in SUPPORTED_EXTENSIONS


def iter_image_paths(directory: Path) -> Iterator[Path]:
    """Yield canonical paths of supported images directly inside ``directory``.

    Subdirectories are not descended into. Entries that cannot be inspected or
    canonicalized are logged and skipped.
    """
    try:
        entries = sorted(directory.iterdir())
    except OSError as exc:
        LOGGER.error("Failed to read directory %s: %s", directory, exc)
        return

    for entry in entries:
        try:
            if not entry.is_file():
                continue
            absolute = entry.resolve(strict=True)
        except (OSError, RuntimeError) as exc:
            LOGGER.error("Failed to canonicalize path %s: %s", entry, exc)
            continue

        if not is_supported_image(absolute):
            LOGGER.debug("Ignoring unsupported file %s", absolute)
            continue
        yield absolute


def file_mtime(path: Path) -> datetime:
    """Return the file's last modification time as an aware UTC datetime."""
    return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)


def canonical_directory(directory: Path) -> str:
    """Absolute, symlink-resolved form of ``directory`` as used in file identities.

    The directory does not need to exist, so searches can still run against
    records stored for it earlier.
    """
    return str(directory.expanduser().resolve())
