from __future__ import annotations

import pytest

from core.orchestrator.pipeline import (
    prepare_canonical_verse,
    prepare_canonical_verses,
    score_chapter,
    score_verse,
)
from core.scoring.models import ScoreThresholds
from core.transforms.profile_loader import load_profiles, select_profile
from core.utils.errors import ChapterScoringError
from core.utils.hashing import EMPTY_SHA256, sha256
from core.verses.mapper import build_verse_id
from core.verses.models import CanonicalVerseInput

GENESIS_1 = [
    "1 ¶ In the beginning God created the heaven and the earth.",
    "2 And the earth was without form, and void; and darkness was upon the face of the deep.",
    "3 And God said, Let there be light: and there was light.",
]


@pytest.fixture(scope="module")
def profiles():
    loaded = load_profiles()
    return select_profile(loaded, "canonical"), select_profile(loaded, "model_output")


@pytest.fixture(scope="module")
def canonical_verses(profiles):
    canonical_profile, _ = profiles
    return [
        prepare_canonical_verse(build_verse_id(10, 1, number), number, text, canonical_profile)
        for number, text in enumerate(GENESIS_1, start=1)
    ]


def test_prepare_canonical_verse_hashes_raw_and_processed(canonical_verses) -> None:
    first = canonical_verses[0]

    assert first.verse_id == 1001001
    assert first.text_processed == "In the beginning God created the heaven and the earth."
    assert first.hash_raw == sha256(GENESIS_1[0])
    assert first.hash_processed == sha256(first.text_processed)


def test_prepare_canonical_verses_keeps_existing_processed_text() -> None:
    verses = prepare_canonical_verses(
        [
            CanonicalVerseInput(
                verse_id=1001001, verse_number=1, text_raw="1 raw", text_processed="kept"
            ),
            CanonicalVerseInput(verse_id=1001002, verse_number=2, text_raw="  spaced  "),
        ]
    )

    assert verses[0].text_processed == "kept"
    assert verses[0].hash_processed == sha256("kept")
    assert verses[1].text_processed == "  spaced  "


def test_score_verse_exact_match(canonical_verses, profiles) -> None:
    _, model_profile = profiles

    score = score_verse(
        canonical_verses[0],
        "  In the beginning God created the heaven and the earth. ",
        model_profile,
    )

    assert score.hash_match is True
    assert score.fidelity_score == 100
    assert score.category == "pass"
    assert score.hash_raw == sha256("  In the beginning God created the heaven and the earth. ")


def test_score_verse_without_profile_keeps_raw_text(canonical_verses) -> None:
    score = score_verse(canonical_verses[0], "In the beginning God created the heaven and the earth. ")

    assert score.response_processed.endswith(" ")
    assert score.hash_match is False


def test_score_chapter_with_missing_and_extra_verses(canonical_verses, profiles) -> None:
    _, model_profile = profiles
    response = (
        "Genesis 1\n"
        "1 In the beginning God created the heaven and the earth.\n"
        "3 And God said, Let there be light: and there was light.\n"
        "4 And God saw the light, that it was good."
    )

    score = score_chapter(response, canonical_verses, model_profile)

    assert score.strategy == "line"
    assert score.missing_verses == [2]
    assert score.extra_verses == [4]
    assert score.unmatched_text == ["Genesis 1"]
    missing = score.verses[1]
    assert missing.missing is True
    assert missing.fidelity_score == 0
    assert missing.diff is None
    assert missing.hash_processed == EMPTY_SHA256
    assert missing.category == "fail"
    assert score.summary.total == 3
    assert score.summary.matches == 2
    assert score.summary.perfect_rate == 0.6667
    assert score.summary.avg_fidelity == 66.67
    assert "Missing verses: 2" in score.warnings
    assert score.failed_verses == [2]


def test_score_chapter_inline_response(canonical_verses, profiles) -> None:
    _, model_profile = profiles
    response = "Here is the chapter: " + " ".join(
        [
            "1 In the beginning God created the heaven and the earth.",
            "2 And the earth was without form, and void; and darkness was upon the face of the deep.",
            "3 And God said, Let there be light: and there was light.",
        ]
    )

    score = score_chapter(response, canonical_verses, model_profile)

    assert score.strategy == "inline"
    assert score.summary.matches == 3
    assert all(verse.category == "pass" for verse in score.verses)


def test_score_chapter_uses_thresholds(canonical_verses, profiles) -> None:
    _, model_profile = profiles
    response = "1 In the beginning God made the heaven and the earth."
    thresholds = ScoreThresholds.model_validate({"pass": 100, "warning": 50, "fail": 49})

    score = score_chapter(response, canonical_verses[:1], model_profile, thresholds)

    assert score.verses[0].category == "warning"
    assert score.verses[0].hunks[0].kind == "substitution"


def test_score_chapter_requires_canonical_verses() -> None:
    with pytest.raises(ChapterScoringError, match="No canonical verses") as exc_info:
        score_chapter("1 text", [], chapter_ref="GEN.1")

    assert exc_info.value.chapter_ref == "GEN.1"
    assert isinstance(exc_info.value, ValueError)


def test_chapter_score_wire_format(canonical_verses) -> None:
    payload = score_chapter("1 In the beginning", canonical_verses[:1]).to_wire()

    assert set(payload) >= {"strategy", "verses", "missingVerses", "extraVerses", "summary", "warnings"}
    assert set(payload["verses"][0]) >= {"verseId", "hashMatch", "fidelityScore", "diff", "missing"}
