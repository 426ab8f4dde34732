"""Data models for diffs, fidelity scores and result summaries."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, NonNegativeInt

from core.utils.wire import WireModel

HunkKind = Literal["substitution", "omission", "addition"]
ScoreCategory = Literal["pass", "warning", "fail"]


class DiffHunk(WireModel):
    """One non-equal word run; indices are word positions in each text."""

    kind: HunkKind
    canonical: str
    candidate: str
    canonical_start: int
    candidate_start: int


class DiffSummary(WireModel):
    substitutions: NonNegativeInt = 0
    omissions: NonNegativeInt = 0
    additions: NonNegativeInt = 0
    # Kept at zero for stored-document compatibility; moves are not detected.
    transpositions: NonNegativeInt = 0

    @property
    def total(self) -> int:
        return self.substitutions + self.omissions + self.additions


class DiffResult(WireModel):
    fidelity_score: float
    diff: DiffSummary = Field(default_factory=DiffSummary)
    hunks: list[DiffHunk] = Field(default_factory=list)


class TransformScore(DiffResult):
    """Candidate normalized with a transform list, then scored."""

    normalized_text: str


class ResultEntry(WireModel):
    hash_match: bool
    fidelity_score: float


class ResultSummary(WireModel):
    """Aggregate over scored entries; all zero when there are none."""

    total: NonNegativeInt = 0
    matches: NonNegativeInt = 0
    perfect_rate: float = 0.0
    avg_fidelity: float = 0.0


class ScoreThresholds(WireModel):
    """Score bands: ``>= pass`` passes, ``>= warning`` warns, anything lower fails."""

    pass_: float = Field(default=100.0, alias="pass")
    warning: float = 95.0
    fail: float = 94.0
