from __future__ import annotations

import pytest

from core.verses.parser import (
    PARSE_STRATEGIES,
    parse_model_verses,
    parse_model_verses_auto,
    parse_model_verses_inline,
)


def test_parses_numbered_lines_in_order() -> None:
    result = parse_model_verses("1 In the beginning...\n2 And the earth...")

    assert [verse.verse_number for verse in result.verses] == [1, 2]
    assert result.verses[0].text == "In the beginning..."
    assert result.verses[1].text == "And the earth..."
    assert result.warnings == []
    assert result.strategy == "line"


def test_sorts_out_of_order_verses() -> None:
    result = parse_model_verses("2 And the earth...\n1 In the beginning...")

    assert [verse.verse_number for verse in result.verses] == [1, 2]
    assert result.verses[0].text == "In the beginning..."


@pytest.mark.parametrize(
    "line",
    [
        "1 In the beginning",
        "1. In the beginning",
        "1: In the beginning",
        "[1] In the beginning",
        "Verse 1: In the beginning",
        "verse 1. In the beginning",
        "v1: In the beginning",
        "V1 In the beginning",
    ],
)
def test_recognizes_marker_conventions(line: str) -> None:
    result = parse_model_verses(line)

    assert len(result.verses) == 1
    assert result.verses[0].verse_number == 1
    assert result.verses[0].text == "In the beginning"


def test_duplicate_verse_keeps_last_occurrence_with_one_warning() -> None:
    result = parse_model_verses("1 First text\n2 Second\n1 Replacement text")

    assert [verse.verse_number for verse in result.verses] == [1, 2]
    assert result.verses[0].text == "Replacement text"
    assert len(result.warnings) == 1
    assert "Duplicate verse number 1" in result.warnings[0]


def test_continuation_lines_join_open_verse() -> None:
    text = "1 In the beginning God created\nthe heaven and the earth.\n\n2 And the earth"

    result = parse_model_verses(text)

    assert result.verses[0].text == "In the beginning God created the heaven and the earth."
    assert result.verses[0].start_offset == 0
    assert text[result.verses[0].end_offset - 5 : result.verses[0].end_offset] == "arth."


def test_text_before_first_verse_is_unmatched() -> None:
    result = parse_model_verses("Genesis 1\nHere is the text:\n1 In the beginning")

    assert result.unmatched_text == ["Genesis 1", "Here is the text:"]
    assert [verse.verse_number for verse in result.verses] == [1]


def test_offsets_point_into_original_text_with_crlf() -> None:
    text = "1 Alpha\r\n2 Beta"

    result = parse_model_verses(text)

    second = result.verses[1]
    assert text[second.start_offset : second.end_offset] == "2 Beta"


def test_verse_zero_is_not_a_marker() -> None:
    result = parse_model_verses("0 Preface\n1 Text")

    assert result.unmatched_text == ["0 Preface"]
    assert [verse.verse_number for verse in result.verses] == [1]


def test_unparseable_text_yields_empty_verses() -> None:
    result = parse_model_verses("I cannot help with that request.")

    assert result.verses == []
    assert result.unmatched_text == ["I cannot help with that request."]


def test_empty_input() -> None:
    result = parse_model_verses_auto("")

    assert result.verses == []
    assert result.unmatched_text == []


def test_inline_parser_splits_continuous_prose() -> None:
    text = "1 In the beginning God created. 2 And the earth was void. 3 And God said"

    result = parse_model_verses_inline(text)

    assert [verse.verse_number for verse in result.verses] == [1, 2, 3]
    assert result.verses[1].text == "And the earth was void."
    assert result.strategy == "inline"


def test_inline_parser_keeps_leading_prefix_as_unmatched() -> None:
    result = parse_model_verses_inline("Genesis chapter one: [1] In the beginning [2] And the earth")

    assert result.unmatched_text == ["Genesis chapter one:"]
    assert [verse.text for verse in result.verses] == ["In the beginning", "And the earth"]


def test_inline_parser_duplicates_are_last_write_wins() -> None:
    result = parse_model_verses_inline("1 first 2 second 1 again")

    assert [verse.verse_number for verse in result.verses] == [1, 2]
    assert result.verses[0].text == "again"
    assert len(result.warnings) == 1


def test_auto_prefers_line_parser() -> None:
    result = parse_model_verses_auto("1 In the beginning\n2 And the earth")

    assert result.strategy == "line"
    assert len(result.verses) == 2


def test_auto_falls_back_to_inline_parser() -> None:
    text = "Here it is: 1. In the beginning 2. And the earth"

    result = parse_model_verses_auto(text)

    assert result.strategy == "inline"
    assert [verse.verse_number for verse in result.verses] == [1, 2]


def test_auto_returns_line_result_when_nothing_parses() -> None:
    result = parse_model_verses_auto("No verses here at all.")

    assert result.verses == []
    assert result.strategy == "line"
    assert result.unmatched_text == ["No verses here at all."]


def test_strategy_order_is_line_then_inline() -> None:
    assert [name for name, _ in PARSE_STRATEGIES] == ["line", "inline"]
