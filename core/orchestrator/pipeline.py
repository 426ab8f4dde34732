"""Scoring pipeline: canonical preparation, verse scoring and chapter scoring."""

from __future__ import annotations

from collections.abc import Sequence

from core.orchestrator.models import ChapterScore, VerseScore
from core.scoring.diff import compare_text
from core.scoring.models import ScoreThresholds
from core.scoring.results import summarize_results
from core.scoring.thresholds import DEFAULT_THRESHOLDS, score_category
from core.transforms.engine import apply_transform_profile
from core.transforms.models import TransformProfile
from core.utils.errors import ChapterScoringError
from core.utils.hashing import EMPTY_SHA256, sha256
from core.verses.mapper import map_to_canonical_verses
from core.verses.models import CanonicalVerse, CanonicalVerseInput, CanonicalVerseRef
from core.verses.parser import parse_model_verses_auto


def prepare_canonical_verse(
    verse_id: int,
    verse_number: int,
    text_raw: str,
    profile: TransformProfile | None = None,
) -> CanonicalVerse:
    """Normalize canonical source text and hash both forms."""

    text_processed = apply_transform_profile(text_raw, profile)
    return CanonicalVerse(
        verse_id=verse_id,
        verse_number=verse_number,
        text_raw=text_raw,
        text_processed=text_processed,
        hash_raw=sha256(text_raw),
        hash_processed=sha256(text_processed),
    )


def prepare_canonical_verses(
    entries: Sequence[CanonicalVerseInput],
    profile: TransformProfile | None = None,
) -> list[CanonicalVerse]:
    """Prepare stored canonical verses; entries with processed text keep it as is."""

    verses: list[CanonicalVerse] = []
    for entry in entries:
        if entry.text_processed is None:
            verses.append(
                prepare_canonical_verse(entry.verse_id, entry.verse_number, entry.text_raw, profile)
            )
            continue
        verses.append(
            CanonicalVerse(
                verse_id=entry.verse_id,
                verse_number=entry.verse_number,
                text_raw=entry.text_raw,
                text_processed=entry.text_processed,
                hash_raw=sha256(entry.text_raw),
                hash_processed=sha256(entry.text_processed),
            )
        )
    return verses


def score_verse(
    canonical: CanonicalVerseRef,
    extracted_text: str,
    model_profile: TransformProfile | None = None,
    thresholds: ScoreThresholds = DEFAULT_THRESHOLDS,
) -> VerseScore:
    """Score one extracted verse against its canonical counterpart."""

    processed = apply_transform_profile(extracted_text, model_profile)
    hash_processed = sha256(processed)
    result = compare_text(canonical.text_processed, processed)
    return VerseScore(
        verse_id=canonical.verse_id,
        verse_number=canonical.verse_number,
        response_raw=extracted_text,
        response_processed=processed,
        hash_raw=sha256(extracted_text),
        hash_processed=hash_processed,
        hash_match=hash_processed == canonical.hash_processed,
        fidelity_score=result.fidelity_score,
        diff=result.diff,
        hunks=result.hunks,
        category=score_category(result.fidelity_score, thresholds),
    )


def score_chapter(
    response_text: str,
    canonical_verses: Sequence[CanonicalVerseRef],
    model_profile: TransformProfile | None = None,
    thresholds: ScoreThresholds = DEFAULT_THRESHOLDS,
    chapter_ref: str | None = None,
) -> ChapterScore:
    """Parse a chapter response, map it to canonical verses and score every verse.

    Missing verses score 0 and carry no diff. Raises ChapterScoringError when
    there are no canonical verses to score against.
    """

    if not canonical_verses:
        label = f" {chapter_ref}" if chapter_ref else ""
        raise ChapterScoringError(
            f"No canonical verses found for chapter{label}.", chapter_ref=chapter_ref
        )

    parse_result = parse_model_verses_auto(response_text)
    map_result = map_to_canonical_verses(parse_result.verses, canonical_verses)
    canonical_by_id = {verse.verse_id: verse for verse in canonical_verses}

    verses: list[VerseScore] = []
    for mapped in map_result.mapped:
        if mapped.matched:
            verses.append(
                score_verse(
                    canonical_by_id[mapped.verse_id],
                    mapped.extracted_text,
                    model_profile,
                    thresholds,
                )
            )
            continue
        verses.append(_missing_verse(mapped.verse_id, mapped.verse_number, thresholds))

    return ChapterScore(
        strategy=parse_result.strategy,
        verses=verses,
        missing_verses=map_result.missing_verses,
        extra_verses=map_result.extra_verses,
        unmatched_text=parse_result.unmatched_text,
        warnings=[*parse_result.warnings, *map_result.warnings],
        summary=summarize_results(verses),
    )


def _missing_verse(verse_id: int, verse_number: int, thresholds: ScoreThresholds) -> VerseScore:
    return VerseScore(
        verse_id=verse_id,
        verse_number=verse_number,
        response_raw="",
        response_processed="",
        hash_raw=EMPTY_SHA256,
        hash_processed=EMPTY_SHA256,
        hash_match=False,
        fidelity_score=0.0,
        missing=True,
        category=score_category(0.0, thresholds),
    )
