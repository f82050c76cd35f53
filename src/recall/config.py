"""Application configuration defaults."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path

DEFAULT_ENGINE = "rapidocr"
DEFAULT_LIMIT = 10
APP_NAME = "recall"


def _get_data_dir() -> Path:
    """Get the per-user data directory based on platform."""
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_NAME

    if sys.platform == "win32":
        appdata = os.environ.get("APPDATA")
        base = Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
        return base / APP_NAME

    xdg_data = os.environ.get("XDG_DATA_HOME")
    base = Path(xdg_data) if xdg_data else Path.home() / ".local" / "share"
    return base / APP_NAME


def _get_default_db_path() -> Path:
    return _get_data_dir() / "data.sqlite"


@dataclass(slots=True)
class AppConfig:
    db_path: Path | None = None
    engine: str = DEFAULT_ENGINE
    num_threads: int | None = None
    limit: int = DEFAULT_LIMIT

    def __post_init__(self) -> None:
        if self.db_path is None:
            self.db_path = _get_default_db_path()

    def resolve_db_path(self, base_dir: Path | None = None) -> Path:
        if self.db_path is None:
            self.db_path = _get_default_db_path()
        if Path(self.db_path).is_absolute() or base_dir is None:
            return Path(self.db_path)
        return base_dir / self.db_path

    def resolve_num_threads(self) -> int:
        if self.num_threads is not None and self.num_threads > 0:
            return self.num_threads
        return os.cpu_count() or 1
