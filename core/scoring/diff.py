"""Word-level diff and fidelity scoring.

Texts are aligned on whitespace-separated words with ``difflib``. Every
non-equal word run (hunk) is then costed at character level, so the score
reflects how much of the canonical text survived rather than how many words
were touched:

- ``replace`` hunks are substitutions; their character edits may also include
  omitted or added characters when the runs differ in length
- ``delete`` hunks are omissions, one per canonical character lost
- ``insert`` hunks are additions, one per candidate character gained

A ``delete`` or ``insert`` hunk that leaves other words on its side also
removes or adds one separating space, which is costed with the hunk.

``fidelity = 1 - distance / max(len(canonical), len(candidate))`` as a
percentage, where lengths are taken over the whitespace-normalized texts and
``distance`` is the character cost of the word-aligned edit script.
"""

from __future__ import annotations

from collections.abc import Iterable
from difflib import SequenceMatcher
from typing import Any

from core.scoring.models import DiffHunk, DiffResult, DiffSummary, TransformScore
from core.scoring.rounding import round_half_up
from core.transforms.engine import apply_transform_steps


def compare_text(canonical: str, candidate: str) -> DiffResult:
    """Diff ``candidate`` against ``canonical`` and score its fidelity."""

    source_words = canonical.split()
    target_words = candidate.split()
    source_length = len(" ".join(source_words))
    target_length = len(" ".join(target_words))

    summary = DiffSummary()
    hunks: list[DiffHunk] = []
    distance = 0

    matcher = SequenceMatcher(None, source_words, target_words, autojunk=False)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            continue
        removed = " ".join(source_words[i1:i2])
        added = " ".join(target_words[j1:j2])
        costed_removed, costed_added = _with_separator(
            tag, removed, added, i2 - i1 < len(source_words), j2 - j1 < len(target_words)
        )
        hunk_distance, substitutions, omissions, additions = _edit_ops(costed_removed, costed_added)
        distance += hunk_distance
        summary.substitutions += substitutions
        summary.omissions += omissions
        summary.additions += additions
        hunks.append(
            DiffHunk(
                kind=_HUNK_KINDS[tag],
                canonical=removed,
                candidate=added,
                canonical_start=i1,
                candidate_start=j1,
            )
        )

    max_length = max(source_length, target_length)
    ratio = 1.0 if max_length == 0 else max(0.0, 1 - distance / max_length)
    return DiffResult(fidelity_score=round_half_up(ratio * 100, 2), diff=summary, hunks=hunks)


def apply_transforms_and_score(
    candidate_raw: str,
    canonical_text: str,
    transforms: Iterable[Any],
) -> TransformScore:
    """Normalize the candidate with ``transforms`` and score it against canonical text.

    The canonical text is expected to be normalized already.
    """

    normalized = apply_transform_steps(candidate_raw, transforms)
    result = compare_text(canonical_text, normalized)
    return TransformScore(
        normalized_text=normalized,
        fidelity_score=result.fidelity_score,
        diff=result.diff,
        hunks=result.hunks,
    )


_HUNK_KINDS = {"replace": "substitution", "delete": "omission", "insert": "addition"}


def _with_separator(
    tag: str, removed: str, added: str, source_has_rest: bool, target_has_rest: bool
) -> tuple[str, str]:
    if tag == "delete" and source_has_rest:
        return removed + " ", added
    if tag == "insert" and target_has_rest:
        return removed, added + " "
    return removed, added


def _edit_ops(source: str, target: str) -> tuple[int, int, int, int]:
    """Levenshtein distance plus (substitutions, omissions, additions) on one hunk."""

    rows = len(source) + 1
    cols = len(target) + 1
    dp = [[0] * cols for _ in range(rows)]
    for i in range(rows):
        dp[i][0] = i
    for j in range(cols):
        dp[0][j] = j

    for i in range(1, rows):
        for j in range(1, cols):
            if source[i - 1] == target[j - 1]:
                dp[i][j] = dp[i - 1][j - 1]
            else:
                dp[i][j] = 1 + min(dp[i - 1][j - 1], dp[i - 1][j], dp[i][j - 1])

    substitutions = omissions = additions = 0
    i, j = len(source), len(target)
    while i > 0 or j > 0:
        if i > 0 and j > 0 and source[i - 1] == target[j - 1] and dp[i][j] == dp[i - 1][j - 1]:
            i -= 1
            j -= 1
        elif i > 0 and j > 0 and dp[i][j] == dp[i - 1][j - 1] + 1:
            substitutions += 1
            i -= 1
            j -= 1
        elif i > 0 and dp[i][j] == dp[i - 1][j] + 1:
            omissions += 1
            i -= 1
        else:
            additions += 1
            j -= 1

    return dp[-1][-1], substitutions, omissions, additions
