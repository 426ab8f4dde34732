"""Data models for verse parsing and canonical mapping."""

from __future__ import annotations

from pydantic import ConfigDict, Field, PositiveInt

from core.utils.wire import WireModel


class ParsedVerse(WireModel):
    """One verse extracted from model output.

    Offsets index into the original input text for traceability.
    """

    verse_number: PositiveInt
    text: str
    start_offset: int
    end_offset: int


class VerseParseResult(WireModel):
    """Verse parser output.

    Rules:
    - verses are sorted by verse_number and unique per number (last occurrence wins)
    - unmatched_text keeps text seen before the first verse marker
    - warnings describe non-fatal conditions such as duplicate verse numbers
    """

    verses: list[ParsedVerse] = Field(default_factory=list)
    unmatched_text: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    strategy: str | None = None


class CanonicalVerseRef(WireModel):
    """Minimal canonical verse projection used by the mapper."""

    verse_id: int
    verse_number: PositiveInt
    text_processed: str
    hash_processed: str


class CanonicalVerse(CanonicalVerseRef):
    """Canonical verse with its raw text, as produced by canonical preparation."""

    text_raw: str
    hash_raw: str


class MappedVerse(WireModel):
    verse_id: int
    verse_number: int
    canonical_text: str
    canonical_hash: str
    extracted_text: str
    matched: bool


class VerseMapResult(WireModel):
    """Parsed verses reconciled against one chapter's canonical verses."""

    mapped: list[MappedVerse] = Field(default_factory=list)
    missing_verses: list[int] = Field(default_factory=list)
    extra_verses: list[int] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class CanonicalVerseInput(WireModel):
    """Canonical verse as exported from storage; processed text is optional."""

    model_config = ConfigDict(extra="ignore")

    verse_id: int
    verse_number: PositiveInt
    text_raw: str
    text_processed: str | None = None
