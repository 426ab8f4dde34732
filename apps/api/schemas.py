"""Request bodies accepted by the HTTP API."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import ConfigDict

from core.scoring.models import ResultEntry
from core.transforms.models import ProfileScope, Severity
from core.utils.wire import WireModel
from core.verses.models import CanonicalVerseInput, CanonicalVerseRef, ParsedVerse

ParseStrategy = Literal["auto", "line", "inline"]


class _StepSelection(WireModel):
    """Either explicit raw steps or a named profile (default profile for the scope)."""

    steps: list[Any] | None = None
    profile_name: str | None = None
    scope: ProfileScope = "model_output"
    max_severity: Severity | None = None
    strict: bool = False


class TransformRequest(_StepSelection):
    text: str


class ParseRequest(WireModel):
    text: str
    strategy: ParseStrategy = "auto"


class MapRequest(WireModel):
    parsed: list[ParsedVerse]
    canonical: list[CanonicalVerseRef]


class CompareRequest(WireModel):
    canonical: str
    candidate: str


class ScoreVerseRequest(_StepSelection):
    candidate_raw: str
    canonical_text: str


class ScoreChapterRequest(WireModel):
    response_text: str
    canonical_verses: list[CanonicalVerseInput]
    chapter_ref: str | None = None
    canonical_profile_name: str | None = None
    model_profile_name: str | None = None


class StoredResultEntry(ResultEntry):
    model_config = ConfigDict(extra="ignore")


class SummarizeRequest(WireModel):
    entries: list[StoredResultEntry]
