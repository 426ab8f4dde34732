"""Verse parser for loosely structured model output.

Model responses rarely agree on a verse numbering convention, so parsing is a
list of strategies tried in order:
- ``line``: one verse marker per line (``1 ``, ``1. ``, ``1: ``, ``[1] ``,
  ``Verse 1:``, ``v1:``), unmarked lines continue the open verse
- ``inline``: verse numbers embedded in continuous prose

Parsing never fails. The worst case is an empty verse list with the text kept
in ``unmatched_text``.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterator, Sequence
from dataclasses import dataclass, field

from core.verses.models import ParsedVerse, VerseParseResult

logger = logging.getLogger("fidelity.verses")

VerseParseStrategy = Callable[[str], VerseParseResult]

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")
_WHITESPACE_RE = re.compile(r"\s+")

# Priority order matters: the first pattern that matches a line wins.
_LINE_MARKERS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("number_space", re.compile(r"^(\d{1,3})\s+(.+)$")),
    ("number_period", re.compile(r"^(\d{1,3})\.\s*(.+)$")),
    ("number_colon", re.compile(r"^(\d{1,3}):\s*(.+)$")),
    ("bracketed", re.compile(r"^\[(\d{1,3})\]\s*(.+)$")),
    ("verse_label", re.compile(r"^verse\s*(\d{1,3})[:.\s]\s*(.+)$", re.IGNORECASE)),
    ("v_label", re.compile(r"^v(\d{1,3})[:.\s]\s*(.+)$", re.IGNORECASE)),
)

_INLINE_VERSE_RE = re.compile(
    r"(?<!\S)\[?(\d{1,3})[.:\]\s]\s*([^0-9]+?)(?=\s+\[?\d{1,3}[.:\]\s]|\s*\Z)"
)


@dataclass
class _OpenVerse:
    verse_number: int
    parts: list[str]
    start_offset: int
    end_offset: int

    def close(self) -> ParsedVerse:
        return ParsedVerse(
            verse_number=self.verse_number,
            text=" ".join(self.parts),
            start_offset=self.start_offset,
            end_offset=self.end_offset,
        )


@dataclass
class _VerseCollector:
    """Keeps the last occurrence of each verse number and warns on duplicates."""

    verses: dict[int, ParsedVerse] = field(default_factory=dict)
    seen: set[int] = field(default_factory=set)
    warnings: list[str] = field(default_factory=list)

    def open(self, verse_number: int) -> None:
        if verse_number in self.seen:
            self.warnings.append(
                f"Duplicate verse number {verse_number} found; later occurrence replaces earlier text"
            )
        self.seen.add(verse_number)

    def add(self, verse: ParsedVerse) -> None:
        self.verses[verse.verse_number] = verse

    def sorted_verses(self) -> list[ParsedVerse]:
        return [self.verses[number] for number in sorted(self.verses)]


def parse_model_verses(text: str) -> VerseParseResult:
    """Parse model output with one verse marker per line."""

    collector = _VerseCollector()
    unmatched_text: list[str] = []
    current: _OpenVerse | None = None

    for line_start, line_end, line in _iter_lines(text):
        stripped = line.strip()
        if not stripped:
            continue

        marker = _match_line_marker(stripped)
        if marker is not None:
            verse_number, body = marker
            if current is not None:
                collector.add(current.close())
            collector.open(verse_number)
            current = _OpenVerse(verse_number, [body], line_start, line_end)
            continue

        if current is not None:
            current.parts.append(stripped)
            current.end_offset = line_end
        else:
            unmatched_text.append(stripped)

    if current is not None:
        collector.add(current.close())

    return VerseParseResult(
        verses=collector.sorted_verses(),
        unmatched_text=unmatched_text,
        warnings=collector.warnings,
        strategy="line",
    )


def parse_model_verses_inline(text: str) -> VerseParseResult:
    """Parse continuous prose where verse numbers are embedded without line breaks."""

    collector = _VerseCollector()
    unmatched_text: list[str] = []
    first_start: int | None = None

    for match in _INLINE_VERSE_RE.finditer(text):
        verse_number = int(match.group(1))
        if verse_number < 1:
            continue
        if first_start is None:
            first_start = match.start()
        collector.open(verse_number)
        collector.add(
            ParsedVerse(
                verse_number=verse_number,
                text=_WHITESPACE_RE.sub(" ", match.group(2)).strip(),
                start_offset=match.start(),
                end_offset=match.end(),
            )
        )

    leading = text if first_start is None else text[:first_start]
    if leading.strip():
        unmatched_text.append(_WHITESPACE_RE.sub(" ", leading).strip())

    return VerseParseResult(
        verses=collector.sorted_verses(),
        unmatched_text=unmatched_text,
        warnings=collector.warnings,
        strategy="inline",
    )


PARSE_STRATEGIES: tuple[tuple[str, VerseParseStrategy], ...] = (
    ("line", parse_model_verses),
    ("inline", parse_model_verses_inline),
)


def parse_model_verses_auto(
    text: str,
    strategies: Sequence[tuple[str, VerseParseStrategy]] = PARSE_STRATEGIES,
) -> VerseParseResult:
    """Return the first strategy result that found verses.

    When no strategy finds any, the first strategy's (empty) result is returned
    so its ``unmatched_text`` still carries the input.
    """

    first_result: VerseParseResult | None = None
    for name, strategy in strategies:
        result = strategy(text)
        if first_result is None:
            first_result = result
        if result.verses:
            if result is not first_result:
                logger.debug("verse parser fell back to %s strategy", name)
            return result

    return first_result if first_result is not None else VerseParseResult()


def _iter_lines(text: str) -> Iterator[tuple[int, int, str]]:
    cursor = 0
    for match in _LINE_BREAK_RE.finditer(text):
        yield cursor, match.start(), text[cursor : match.start()]
        cursor = match.end()
    yield cursor, len(text), text[cursor:]


def _match_line_marker(line: str) -> tuple[int, str] | None:
    for _name, pattern in _LINE_MARKERS:
        match = pattern.match(line)
        if match is None:
            continue
        verse_number = int(match.group(1))
        if verse_number < 1:
            return None
        return verse_number, match.group(2).strip()
    return None
