"""Core Recall data models."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path


@dataclass(frozen=True, slots=True)
class FileIdentity:
    """Stable key for an image file: its canonical parent directory and name.

    Callers build identities from canonical absolute paths only, so the same
    physical file maps to the same key regardless of the working directory.
    """

    path: str
    filename: str

    @classmethod
    def from_path(cls, path: Path) -> "FileIdentity":
        if not path.is_absolute():
            raise ValueError(f"File identity requires an absolute path: {path}")
        return cls(path=str(path.parent), filename=path.name)

    @property
    def full_path(self) -> str:
        return str(Path(self.path) / self.filename)


@dataclass(slots=True)
class ExtractionRecord:
    """Persisted result of a successful, non-empty text extraction."""

    identity: FileIdentity
    text: str
    extracted_at: datetime
    success: bool = True
    engine_tag: str = ""


@dataclass(slots=True)
class SearchCandidate:
    key: str
    text: str


@dataclass(slots=True)
class RankedResult:
    score: int
    key: str
    text: str
