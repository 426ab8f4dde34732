"""Reconcile parsed verses with a chapter's canonical verses."""

from __future__ import annotations

import re
from collections.abc import Sequence

from core.verses.models import CanonicalVerseRef, MappedVerse, ParsedVerse, VerseMapResult

_WHITESPACE_RE = re.compile(r"\s+")
_SMART_DOUBLE_QUOTES_RE = re.compile("[\u201c\u201d]")

# bookId reserves one decimal digit per book for multi-volume splits.
BOOK_ID_STRIDE = 10
CHAPTER_STRIDE = 1000
BOOK_STRIDE = 100000


def map_to_canonical_verses(
    parsed: Sequence[ParsedVerse],
    canonical: Sequence[CanonicalVerseRef],
) -> VerseMapResult:
    """Map parsed verses onto canonical verses by verse number.

    ``mapped`` follows canonical order. Parsed verses with no canonical
    counterpart are reported in ``extra_verses`` with a warning each.
    """

    parsed_by_number = {verse.verse_number: verse for verse in parsed}
    canonical_numbers = {verse.verse_number for verse in canonical}

    warnings: list[str] = []
    extra_verses: list[int] = []
    for number in parsed_by_number:
        if number not in canonical_numbers:
            extra_verses.append(number)
            warnings.append(f"Verse {number} found in model output but not in canonical")

    mapped: list[MappedVerse] = []
    missing_verses: list[int] = []
    for verse in canonical:
        match = parsed_by_number.get(verse.verse_number)
        if match is None and verse.verse_number not in missing_verses:
            missing_verses.append(verse.verse_number)
        mapped.append(
            MappedVerse(
                verse_id=verse.verse_id,
                verse_number=verse.verse_number,
                canonical_text=verse.text_processed,
                canonical_hash=verse.hash_processed,
                extracted_text=match.text if match is not None else "",
                matched=match is not None,
            )
        )

    if missing_verses:
        warnings.append(f"Missing verses: {', '.join(str(number) for number in missing_verses)}")

    return VerseMapResult(
        mapped=mapped,
        missing_verses=missing_verses,
        extra_verses=extra_verses,
        warnings=warnings,
    )


def build_book_id(book_index: int) -> int:
    return book_index * BOOK_ID_STRIDE


def build_verse_id(book_id: int, chapter_number: int, verse_number: int) -> int:
    """Synthetic verse id shared by every collection that joins on verses.

    >>> build_verse_id(660, 22, 21)
    66022021
    """

    return book_id * BOOK_STRIDE + chapter_number * CHAPTER_STRIDE + verse_number


def normalize_verse_text(text: str) -> str:
    """Minimal normalization for extracted verse text."""

    text = _WHITESPACE_RE.sub(" ", text)
    text = text.replace("\u2019", "'")
    text = _SMART_DOUBLE_QUOTES_RE.sub('"', text)
    return text.strip()
