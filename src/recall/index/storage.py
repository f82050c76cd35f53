"""SQLite-backed store of OCR results."""

from __future__ import annotations

import sqlite3
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Tuple

from recall.exceptions import RecordNotFoundError, StoreError
from recall.models import ExtractionRecord, FileIdentity
from recall.utils.text import format_timestamp, parse_timestamp


class SQLiteResultStore:
    """Persistence layer mapping file identities to extracted text.

    One row per ``(filename, path)``; writes replace the whole row. A single
    connection is shared and every use of it is serialized by a lock, so the
    store can be called from indexing worker threads.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self._lock = threading.RLock()
        try:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL;")
            self._conn.execute("PRAGMA synchronous=NORMAL;")
            self._ensure_schema()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to open result store {self.db_path}: {exc}") from exc

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                yield self._conn
                self._conn.commit()
            except Exception:
                self._conn.rollback()
                raise

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS ocr_results (
                    filename TEXT NOT NULL,
                    path TEXT NOT NULL,
                    text TEXT NOT NULL,
                    ocr_date TEXT NOT NULL,
                    ocr_success BOOLEAN NOT NULL,
                    ocr_engine TEXT NOT NULL,
                    PRIMARY KEY (filename, path)
                )
                """
            )

    def upsert(self, record: ExtractionRecord) -> None:
        """Insert the record, replacing any existing row for its identity."""
        try:
            with self.transaction() as conn:
                conn.execute(
                    """
                    INSERT OR REPLACE INTO ocr_results
                        (filename, path, text, ocr_date, ocr_success, ocr_engine)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.identity.filename,
                        record.identity.path,
                        record.text,
                        format_timestamp(record.extracted_at),
                        record.success,
                        record.engine_tag,
                    ),
                )
        except sqlite3.Error as exc:
            raise StoreError(
                f"Failed to store OCR result for {record.identity.full_path}: {exc}"
            ) from exc

    def exists(self, identity: FileIdentity) -> bool:
        row = self._fetchone(
            "SELECT 1 FROM ocr_results WHERE filename = ? AND path = ? LIMIT 1",
            (identity.filename, identity.path),
        )
        return row is not None

    def get_extracted_at(self, identity: FileIdentity) -> datetime:
        """Return when the stored text for ``identity`` was extracted.

        Raises ``RecordNotFoundError`` when no row exists and
        ``CorruptRecordError`` when the stored date cannot be parsed.
        """
        row = self._fetchone(
            "SELECT ocr_date FROM ocr_results WHERE filename = ? AND path = ? LIMIT 1",
            (identity.filename, identity.path),
        )
        if row is None:
            raise RecordNotFoundError(f"No OCR result stored for {identity.full_path}")
        return parse_timestamp(row["ocr_date"])

    def query_scoped(self, directory: str) -> List[Tuple[str, str]]:
        """Return ``(filename, text)`` for rows stored under exactly ``directory``."""
        rows = self._fetchall(
            "SELECT filename, text FROM ocr_results WHERE path = ? ORDER BY rowid",
            (directory,),
        )
        return [(row["filename"], row["text"]) for row in rows]

    def query_global(self) -> List[Tuple[FileIdentity, str]]:
        """Return ``(identity, text)`` for every stored row."""
        rows = self._fetchall(
            "SELECT filename, path, text FROM ocr_results ORDER BY rowid", ()
        )
        return [
            (FileIdentity(path=row["path"], filename=row["filename"]), row["text"])
            for row in rows
        ]

    def count(self) -> int:
        row = self._fetchone("SELECT COUNT(*) AS n FROM ocr_results", ())
        return int(row["n"]) if row is not None else 0

    def _fetchone(self, sql: str, params: tuple) -> sqlite3.Row | None:
        try:
            with self._lock:
                return self._conn.execute(sql, params).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Result store query failed: {exc}") from exc

    def _fetchall(self, sql: str, params: tuple) -> List[sqlite3.Row]:
        try:
            with self._lock:
                return self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Result store query failed: {exc}") from exc
