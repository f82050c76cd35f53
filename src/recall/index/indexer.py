"""Incremental OCR indexing of a directory."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from recall.exceptions import RecallError
from recall.index.staleness import check_path, identity_for_path
from recall.index.storage import SQLiteResultStore
from recall.models import ExtractionRecord
from recall.ocr.engine import TextExtractor
from recall.utils.files import iter_image_paths

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class IndexStats:
    indexed: int = 0
    fresh: int = 0
    empty: int = 0
    failed: int = 0
    processed_files: list[Path] = field(default_factory=list)

    def increment(self, status: str, path: Path) -> None:
        if status == "indexed":
            self.indexed += 1
        elif status == "fresh":
            self.fresh += 1
        elif status == "empty":
            self.empty += 1
        else:
            self.failed += 1
        self.processed_files.append(path)


class Indexer:
    """Runs OCR on new or modified images and stores the results."""

    def __init__(
        self,
        extractor: TextExtractor,
        store: SQLiteResultStore,
        *,
        num_threads: int = 1,
    ) -> None:
        self.extractor = extractor
        self.store = store
        self.num_threads = max(1, num_threads)

    def index_directory(self, directory: Path) -> IndexStats:
        """Index the supported images directly inside ``directory``.

        A missing directory is a no-op. Failures for one file are logged and
        counted; they never stop the rest of the directory from being indexed.
        """
        stats = IndexStats()
        if not directory.is_dir():
            LOGGER.debug("Not a directory, skipping indexing: %s", directory)
            return stats

        pending: list[Path] = []
        for path in iter_image_paths(directory):
            try:
                stale = check_path(self.store, path)
            except RecallError as exc:
                LOGGER.error("Failed to check if %s needs OCR: %s", path, exc)
                stats.increment("failed", path)
                continue

            if stale:
                pending.append(path)
            else:
                LOGGER.debug("Up to date: %s", path)
                stats.increment("fresh", path)

        if self.num_threads == 1 or len(pending) < 2:
            for path in pending:
                stats.increment(self._process(path), path)
            return stats

        with ThreadPoolExecutor(max_workers=self.num_threads) as pool:
            futures = {pool.submit(self._process, path): path for path in pending}
            for future in as_completed(futures):
                stats.increment(future.result(), futures[future])
        return stats

    def _process(self, path: Path) -> str:
        try:
            LOGGER.info("Processing file: %s", path)
            return self._index_single(path)
        except Exception as e:
            LOGGER.error(f"Error processing {path}: {e}")
            return "failed"

    def _index_single(self, path: Path) -> str:
        """OCR a single image and store its text if any was found."""
        # Taken before reading so edits made during OCR still look newer.
        started_at = datetime.now(timezone.utc)
        data = path.read_bytes()
        text = self.extractor.extract(data).strip()
        if not text:
            LOGGER.info("No text found in the image: %s", path)
            return "empty"

        self.store.upsert(
            ExtractionRecord(
                identity=identity_for_path(path),
                text=text,
                extracted_at=started_at,
                success=True,
                engine_tag=self.extractor.engine_tag,
            )
        )
        return "indexed"
