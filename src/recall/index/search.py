"""Fuzzy search over stored OCR text."""

from __future__ import annotations

import logging
import unicodedata
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Iterator, List, Sequence, Tuple

from rapidfuzz.distance import LCSseq

from recall.config import DEFAULT_LIMIT
from recall.index.storage import SQLiteResultStore
from recall.models import RankedResult, SearchCandidate
from recall.utils.files import canonical_directory

LOGGER = logging.getLogger(__name__)

SCORE_MATCH = 16
SCORE_GAP_START = -3
SCORE_GAP_EXTENSION = -1
BONUS_BOUNDARY_WHITE = 10
BONUS_BOUNDARY_DELIMITER = 9
BONUS_BOUNDARY = 8
BONUS_CAMEL_123 = 7
BONUS_CONSECUTIVE = -(SCORE_GAP_START + SCORE_GAP_EXTENSION)
BONUS_FIRST_CHAR_MULTIPLIER = 2

_DELIMITERS = frozenset("/,:;|")


@lru_cache(maxsize=4096)
def _fold_char(char: str) -> str:
    """Case- and accent-fold one character.

    The result may be longer than one character (``ß`` folds to ``ss``,
    ``ﬁ`` to ``fi``).
    """
    decomposed = unicodedata.normalize("NFKD", char)
    base = "".join(c for c in decomposed if not unicodedata.combining(c)) or char
    return base.casefold() or char


def fold_text(text: str) -> str:
    """Case- and accent-fold ``text``."""
    return "".join(map(_fold_char, text))


def _fold_with_offsets(text: str) -> Tuple[str, List[int]]:
    """Fold ``text`` and map every folded character back to its source index."""
    parts: List[str] = []
    offsets: List[int] = []
    for index, char in enumerate(text):
        folded = _fold_char(char)
        parts.append(folded)
        offsets.extend([index] * len(folded))
    return "".join(parts), offsets


def _char_class(char: str) -> str:
    if char.isspace():
        return "white"
    if char in _DELIMITERS:
        return "delimiter"
    if char.islower():
        return "lower"
    if char.isupper():
        return "upper"
    if char.isalpha():
        return "letter"
    if char.isdigit():
        return "number"
    return "nonword"


def _position_bonus(text: str, index: int) -> int:
    current = _char_class(text[index])
    previous = "white" if index == 0 else _char_class(text[index - 1])
    if current in ("white", "delimiter", "nonword"):
        return 0
    if previous == "white":
        return BONUS_BOUNDARY_WHITE
    if previous == "delimiter":
        return BONUS_BOUNDARY_DELIMITER
    if previous == "nonword":
        return BONUS_BOUNDARY
    if (previous == "lower" and current == "upper") or (
        previous != "number" and current == "number"
    ):
        return BONUS_CAMEL_123
    return 0


class FuzzyMatcher:
    """Subsequence matcher scoring how tightly a query aligns with a text.

    Every query character must appear in the text in order, ignoring case and
    diacritics. Matches are scored with a per-character base plus bonuses for
    word starts and consecutive runs, minus penalties for gaps. Every minimal
    window containing the query is scored and the best one wins, so a
    contiguous match always outranks a scattered one.
    """

    def match(self, query: str, text: str) -> int | None:
        """Return the match score, or ``None`` when ``query`` does not match."""
        needle = fold_text(query)
        if not needle:
            return None

        haystack, offsets = _fold_with_offsets(text)
        if len(needle) > len(haystack):
            return None
        # Cheap rejection: the whole needle must be a subsequence of the haystack.
        if LCSseq.similarity(needle, haystack, score_cutoff=len(needle)) < len(needle):
            return None

        best: int | None = None
        for positions in self._windows(needle, haystack):
            score = self._score(text, [offsets[pos] for pos in positions])
            if best is None or score > best:
                best = score
        return best

    @staticmethod
    def _windows(needle: str, haystack: str) -> Iterator[List[int]]:
        """Yield the alignment of every minimal window that contains ``needle``."""
        search_from = 0
        while True:
            # Forward scan finds the earliest end of a full match, backward
            # scan from there finds the latest start of that window.
            index = 0
            end = -1
            for pos in range(search_from, len(haystack)):
                if haystack[pos] == needle[index]:
                    index += 1
                    if index == len(needle):
                        end = pos
                        break
            if end < 0:
                return

            index = len(needle) - 1
            start = end
            for pos in range(end, search_from - 1, -1):
                if haystack[pos] == needle[index]:
                    index -= 1
                    if index < 0:
                        start = pos
                        break

            positions: List[int] = []
            index = 0
            for pos in range(start, end + 1):
                if haystack[pos] == needle[index]:
                    positions.append(pos)
                    index += 1
                    if index == len(needle):
                        break
            yield positions
            search_from = start + 1

    @staticmethod
    def _score(text: str, positions: Sequence[int]) -> int:
        score = 0
        first_bonus = 0
        consecutive = 0
        previous = -1
        for offset, pos in enumerate(positions):
            bonus = _position_bonus(text, pos)
            if offset == 0:
                bonus *= BONUS_FIRST_CHAR_MULTIPLIER
            elif pos - previous > 1:
                gap = pos - previous - 1
                score += SCORE_GAP_START + SCORE_GAP_EXTENSION * (gap - 1)
                consecutive = 0

            if consecutive == 0:
                first_bonus = bonus
            else:
                if bonus >= BONUS_BOUNDARY and bonus > first_bonus:
                    first_bonus = bonus
                bonus = max(bonus, first_bonus, BONUS_CONSECUTIVE)

            score += SCORE_MATCH + bonus
            consecutive += 1
            previous = pos
        return score


def rank_candidates(
    query: str,
    candidates: Iterable[Tuple[str, str]],
    *,
    limit: int = DEFAULT_LIMIT,
    matcher: FuzzyMatcher | None = None,
) -> List[RankedResult]:
    """Score ``(key, text)`` candidates against ``query`` and return the best ``limit``.

    Non-matching candidates are dropped. Equal scores keep their input order.
    """
    items = list(candidates)
    if not items or limit <= 0:
        return []

    matcher = matcher or FuzzyMatcher()
    ranked: List[RankedResult] = []
    for key, text in items:
        score = matcher.match(query, text)
        if score is not None:
            ranked.append(RankedResult(score=score, key=key, text=text))

    ranked.sort(key=lambda result: result.score, reverse=True)
    return ranked[:limit]


@dataclass(slots=True)
class SearchRequest:
    query: str
    directory: Path = Path(".")
    global_search: bool = False
    limit: int = DEFAULT_LIMIT


class Searcher:
    """High-level API to fuzzy-search the result store."""

    def __init__(self, store: SQLiteResultStore, matcher: FuzzyMatcher | None = None) -> None:
        self.store = store
        self.matcher = matcher or FuzzyMatcher()

    def candidates(self, directory: Path, *, global_search: bool = False) -> List[SearchCandidate]:
        """Load search candidates keyed by full file path."""
        if global_search:
            return [
                SearchCandidate(key=identity.full_path, text=text)
                for identity, text in self.store.query_global()
            ]

        scope = canonical_directory(directory)
        return [
            SearchCandidate(key=str(Path(scope) / filename), text=text)
            for filename, text in self.store.query_scoped(scope)
        ]

    def search(self, request: SearchRequest) -> List[RankedResult]:
        candidates = self.candidates(request.directory, global_search=request.global_search)
        LOGGER.debug("Searching %d candidates for %r", len(candidates), request.query)
        return rank_candidates(
            request.query,
            ((candidate.key, candidate.text) for candidate in candidates),
            limit=request.limit,
            matcher=self.matcher,
        )
