"""Tests for staleness checks."""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from recall.exceptions import CorruptRecordError, StalenessCheckError
from recall.index.staleness import check_path, identity_for_path, needs_indexing
from recall.index.storage import SQLiteResultStore
from recall.models import ExtractionRecord, FileIdentity

T0 = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def store(tmp_path):
    store = SQLiteResultStore(tmp_path / "test.sqlite")
    yield store
    store.close()


def store_record(store: SQLiteResultStore, identity: FileIdentity, extracted_at: datetime) -> None:
    store.upsert(
        ExtractionRecord(identity=identity, text="text", extracted_at=extracted_at, engine_tag="fake")
    )


class TestNeedsIndexing:
    identity = FileIdentity("/photos", "img.png")

    def test_never_indexed(self, store):
        assert needs_indexing(store, self.identity, T0) is True

    def test_modified_after_extraction(self, store):
        store_record(store, self.identity, T0)

        assert needs_indexing(store, self.identity, T0 + timedelta(microseconds=1)) is True

    def test_equal_timestamps_are_fresh(self, store):
        store_record(store, self.identity, T0)

        assert needs_indexing(store, self.identity, T0) is False

    def test_modified_before_extraction(self, store):
        store_record(store, self.identity, T0)

        assert needs_indexing(store, self.identity, T0 - timedelta(days=1)) is False

    def test_compares_across_offsets(self, store):
        store_record(store, self.identity, T0)
        later_elsewhere = (T0 + timedelta(seconds=1)).astimezone(timezone(timedelta(hours=-5)))

        assert needs_indexing(store, self.identity, later_elsewhere) is True

    def test_corrupt_date_propagates(self, store):
        with store.transaction() as conn:
            conn.execute(
                "INSERT INTO ocr_results VALUES (?, ?, ?, ?, ?, ?)",
                ("img.png", "/photos", "text", "garbage", True, "fake"),
            )

        with pytest.raises(CorruptRecordError):
            needs_indexing(store, self.identity, T0)


    def test_reads_nanosecond_dates_from_existing_databases(self, store):
        with store.transaction() as conn:
            conn.execute(
                "INSERT INTO ocr_results VALUES (?, ?, ?, ?, ?, ?)",
                ("img.png", "/photos", "text", "2024-01-01T12:00:00.000000000+00:00", True, "ocrs"),
            )

        assert needs_indexing(store, self.identity, T0) is False
        assert needs_indexing(store, self.identity, T0 + timedelta(seconds=1)) is True


class TestCheckPath:
    def test_reads_file_mtime(self, store, tmp_path: Path):
        path = (tmp_path / "img.png").resolve()
        path.write_bytes(b"x")
        mtime = T0.timestamp()
        os.utime(path, (mtime, mtime))

        assert check_path(store, path) is True

        store_record(store, identity_for_path(path), T0)
        assert check_path(store, path) is False

        os.utime(path, (mtime + 10, mtime + 10))
        assert check_path(store, path) is True

    def test_unreadable_mtime_raises(self, store, tmp_path: Path):
        with pytest.raises(StalenessCheckError):
            check_path(store, (tmp_path / "missing.png").resolve())


class TestIdentityForPath:
    def test_splits_path(self):
        identity = identity_for_path(Path("/photos/2024/img.png"))

        assert identity == FileIdentity(path=str(Path("/photos/2024")), filename="img.png")
