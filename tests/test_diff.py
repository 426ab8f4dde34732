from __future__ import annotations

import pytest

from core.scoring.diff import apply_transforms_and_score, compare_text
from core.transforms.engine import DEFAULT_COSMETIC_TRANSFORMS


@pytest.mark.parametrize(
    "text",
    ["", "a", "In the beginning God created the heaven and the earth."],
)
def test_identical_text_scores_100_with_no_edits(text: str) -> None:
    result = compare_text(text, text)

    assert result.fidelity_score == 100
    assert result.diff.substitutions == 0
    assert result.diff.omissions == 0
    assert result.diff.additions == 0
    assert result.hunks == []


def test_empty_candidate_scores_zero_and_counts_omissions() -> None:
    result = compare_text("abc", "")

    assert result.fidelity_score == 0
    assert result.diff.omissions == 3
    assert result.diff.additions == 0
    assert result.hunks[0].kind == "omission"


def test_empty_canonical_counts_additions() -> None:
    result = compare_text("", "abc")

    assert result.fidelity_score == 0
    assert result.diff.additions == 3


def test_single_substitution() -> None:
    result = compare_text("abc", "axc")

    assert result.fidelity_score == 66.67
    assert result.diff.substitutions == 1
    assert result.diff.omissions == 0
    assert result.diff.additions == 0


def test_single_addition() -> None:
    result = compare_text("ab", "abc")

    assert result.fidelity_score == 66.67
    assert result.diff.additions == 1


def test_substituted_word_is_one_substitution_hunk() -> None:
    result = compare_text("the LORD said", "the Lord said")

    assert [hunk.kind for hunk in result.hunks] == ["substitution"]
    assert result.hunks[0].canonical == "LORD"
    assert result.hunks[0].candidate == "Lord"
    assert result.hunks[0].canonical_start == 1
    assert result.diff.substitutions == 3
    assert result.fidelity_score == 76.92


def test_omitted_words() -> None:
    result = compare_text("and God said let there be light", "and God said light")

    assert [hunk.kind for hunk in result.hunks] == ["omission"]
    assert result.hunks[0].canonical == "let there be"
    assert result.diff.omissions == len("let there be ")
    assert 0 < result.fidelity_score < 100


def test_added_words() -> None:
    result = compare_text("God said", "God truly said")

    assert [hunk.kind for hunk in result.hunks] == ["addition"]
    assert result.hunks[0].candidate == "truly"
    assert result.diff.additions == len("truly ")


@pytest.mark.parametrize(
    ("canonical", "candidate", "omissions", "additions", "score"),
    [
        ("a b c", "a c", 2, 0, 60.0),
        ("a b c d", "a d", 4, 0, 42.86),
        ("a c", "a b c", 0, 2, 60.0),
        ("a b", "b", 2, 0, 33.33),
        ("a b", "a", 2, 0, 33.33),
    ],
)
def test_dropped_and_added_words_cost_their_separator(
    canonical: str, candidate: str, omissions: int, additions: int, score: float
) -> None:
    result = compare_text(canonical, candidate)

    assert result.diff.omissions == omissions
    assert result.diff.additions == additions
    assert result.fidelity_score == score


def test_whitespace_differences_do_not_count() -> None:
    result = compare_text("In the  beginning", " In the beginning\n")

    assert result.fidelity_score == 100
    assert result.diff.total == 0


def test_completely_different_text_does_not_go_negative() -> None:
    result = compare_text("xyz", "abc def")

    assert result.fidelity_score == 0


def test_score_is_rounded_to_two_decimals() -> None:
    result = compare_text("abcdefg", "abcdefx")

    assert result.fidelity_score == round((1 - 1 / 7) * 100, 2)


def test_transpositions_stay_zero() -> None:
    assert compare_text("a b", "b a").diff.transpositions == 0


def test_apply_transforms_and_score_normalizes_candidate() -> None:
    result = apply_transforms_and_score(
        "  The LORD’s  word ", "The LORD's word", DEFAULT_COSMETIC_TRANSFORMS
    )

    assert result.normalized_text == "The LORD's word"
    assert result.fidelity_score == 100
    assert result.diff.total == 0


def test_apply_transforms_and_score_accepts_raw_steps() -> None:
    steps = [{"order": 1, "type": "regexReplace", "params": {"pattern": "Lord", "replacement": "LORD"}}]

    result = apply_transforms_and_score("the Lord said", "the LORD said", steps)

    assert result.normalized_text == "the LORD said"
    assert result.fidelity_score == 100


def test_apply_transforms_and_score_without_transforms() -> None:
    result = apply_transforms_and_score("the Lord said", "the LORD said", [])

    assert result.normalized_text == "the Lord said"
    assert result.fidelity_score < 100
    assert result.to_wire()["normalizedText"] == "the Lord said"


def test_score_ties_round_half_up() -> None:
    canonical = "a" * 32
    candidate = "xxx" + "a" * 29

    result = compare_text(canonical, candidate)

    assert result.diff.substitutions == 3
    assert result.fidelity_score == 90.63
