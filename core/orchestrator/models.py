"""Result models produced by the scoring pipeline."""

from __future__ import annotations

from pydantic import Field

from core.scoring.models import DiffHunk, DiffSummary, ResultSummary, ScoreCategory
from core.utils.wire import WireModel


class VerseScore(WireModel):
    """Score for one canonical verse.

    ``diff`` is None when the verse was missing from the model output.
    """

    verse_id: int
    verse_number: int
    response_raw: str
    response_processed: str
    hash_raw: str
    hash_processed: str
    hash_match: bool
    fidelity_score: float
    diff: DiffSummary | None = None
    hunks: list[DiffHunk] = Field(default_factory=list)
    missing: bool = False
    category: ScoreCategory | None = None


class ChapterScore(WireModel):
    strategy: str | None = None
    verses: list[VerseScore] = Field(default_factory=list)
    missing_verses: list[int] = Field(default_factory=list)
    extra_verses: list[int] = Field(default_factory=list)
    unmatched_text: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    summary: ResultSummary = Field(default_factory=ResultSummary)

    @property
    def failed_verses(self) -> list[int]:
        return [verse.verse_number for verse in self.verses if verse.category == "fail"]
