"""Tests for text and timestamp helpers."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from recall.exceptions import CorruptRecordError
from recall.utils.text import format_timestamp, normalize_whitespace, parse_timestamp


class TestNormalizeWhitespace:
    def test_strips_and_drops_blank_lines(self) -> None:
        assert normalize_whitespace(["  hello ", "", "   ", "world\t"]) == "hello\nworld"

    def test_empty(self) -> None:
        assert normalize_whitespace([]) == ""


class TestTimestamps:
    def test_format_is_rfc3339_utc(self) -> None:
        value = datetime(2024, 5, 1, 12, 30, 15, 123456, tzinfo=timezone.utc)

        assert format_timestamp(value) == "2024-05-01T12:30:15.123456+00:00"

    def test_format_converts_offset_to_utc(self) -> None:
        value = datetime(2024, 5, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))

        assert format_timestamp(value) == "2024-05-01T12:00:00+00:00"

    def test_format_rejects_naive(self) -> None:
        with pytest.raises(ValueError):
            format_timestamp(datetime(2024, 5, 1))

    def test_parse_keeps_microseconds(self) -> None:
        value = datetime(2024, 5, 1, 12, 30, 15, 123456, tzinfo=timezone.utc)

        assert parse_timestamp(format_timestamp(value)) == value

    def test_parse_accepts_zulu_suffix(self) -> None:
        parsed = parse_timestamp("2024-05-01T12:30:15Z")

        assert parsed == datetime(2024, 5, 1, 12, 30, 15, tzinfo=timezone.utc)

    def test_parse_normalizes_offset(self) -> None:
        parsed = parse_timestamp("2024-05-01T14:30:15+02:00")

        assert parsed == datetime(2024, 5, 1, 12, 30, 15, tzinfo=timezone.utc)
        assert parsed.utcoffset() == timedelta(0)

    def test_parse_nanosecond_fraction(self) -> None:
        parsed = parse_timestamp("2024-05-01T10:20:30.123456789+00:00")

        assert parsed == datetime(2024, 5, 1, 10, 20, 30, 123456, tzinfo=timezone.utc)

    def test_parse_four_digit_fraction(self) -> None:
        parsed = parse_timestamp("2024-05-01T10:20:30.1234+00:00")

        assert parsed == datetime(2024, 5, 1, 10, 20, 30, 123400, tzinfo=timezone.utc)

    def test_parse_single_digit_fraction_with_zulu(self) -> None:
        parsed = parse_timestamp("2024-05-01T10:20:30.5Z")

        assert parsed == datetime(2024, 5, 1, 10, 20, 30, 500000, tzinfo=timezone.utc)

    def test_parse_lowercase_separator_and_zulu(self) -> None:
        parsed = parse_timestamp("2024-05-01t10:20:30.123456789z")

        assert parsed == datetime(2024, 5, 1, 10, 20, 30, 123456, tzinfo=timezone.utc)

    def test_parse_nanosecond_fraction_with_offset(self) -> None:
        parsed = parse_timestamp("2024-05-01T12:20:30.000000001+02:00")

        assert parsed == datetime(2024, 5, 1, 10, 20, 30, tzinfo=timezone.utc)

    @pytest.mark.parametrize("raw", ["", "yesterday", "2024-13-45T00:00:00+00:00"])
    def test_parse_rejects_garbage(self, raw: str) -> None:
        with pytest.raises(CorruptRecordError):
            parse_timestamp(raw)

    def test_parse_rejects_missing_offset(self) -> None:
        with pytest.raises(CorruptRecordError):
            parse_timestamp("2024-05-01T12:30:15")
