"""Text and timestamp helpers."""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Iterable

from recall.exceptions import CorruptRecordError

# Seconds fraction of any length, up to the offset or end of string.
_FRACTION_RE = re.compile(r"(?<=:\d\d)\.(\d+)(?=[+-]|$)")


def normalize_whitespace(lines: Iterable[str]) -> str:
    """Collapse whitespace and join lines."""
    return "\n".join(line.strip() for line in lines if line.strip())


def format_timestamp(value: datetime) -> str:
    """Serialize an aware datetime as an RFC3339 UTC string."""
    if value.tzinfo is None:
        raise ValueError("Timestamps must be timezone-aware")
    return value.astimezone(timezone.utc).isoformat()


def parse_timestamp(raw: str) -> datetime:
    """Parse an RFC3339 string back to an aware UTC datetime.

    Accepts any fraction length (truncated to microseconds), a lowercase
    ``t`` separator and ``Z``/``z`` for UTC. Values without an explicit
    offset are rejected rather than assumed UTC.
    """
    text = raw.strip() if isinstance(raw, str) else raw
    if not isinstance(text, str) or not text:
        raise CorruptRecordError(f"Invalid stored timestamp: {raw!r}")
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    if len(text) > 10 and text[10] == "t":
        text = text[:10] + "T" + text[11:]
    text = _FRACTION_RE.sub(lambda match: "." + match.group(1)[:6].ljust(6, "0"), text)
    try:
        value = datetime.fromisoformat(text)
    except ValueError as exc:
        raise CorruptRecordError(f"Invalid stored timestamp: {raw!r}") from exc
    if value.tzinfo is None:
        raise CorruptRecordError(f"Stored timestamp has no UTC offset: {raw!r}")
    return value.astimezone(timezone.utc)
