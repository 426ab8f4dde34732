"""Human-readable report rendering for CLI output."""

from __future__ import annotations

from collections import Counter

from core.orchestrator.models import ChapterScore
from core.scoring.models import ResultSummary
from core.verses.models import VerseParseResult

_PREVIEW_CHARS = 60


def render_summary_line(summary: ResultSummary) -> str:
    return (
        f"total={summary.total} matches={summary.matches} "
        f"perfect_rate={summary.perfect_rate:.4f} avg_fidelity={summary.avg_fidelity:.2f}"
    )


def render_parse_report(result: VerseParseResult) -> str:
    """Render parsed verses one per line with a short text preview."""

    lines: list[str] = ["parse_summary:"]
    lines.append(f"strategy={result.strategy or 'none'} verses={len(result.verses)}")
    for verse in result.verses:
        lines.append(f"  {verse.verse_number}: {_preview(verse.text)}")
    if result.unmatched_text:
        lines.append(f"unmatched: {len(result.unmatched_text)} line(s)")
    lines.extend(_warning_lines(result.warnings))
    return "\n".join(lines)


def render_chapter_report(score: ChapterScore) -> str:
    """Render one-screen chapter scoring summary."""

    lines: list[str] = ["chapter_summary:"]
    lines.append(render_summary_line(score.summary))
    lines.append(f"strategy={score.strategy or 'none'}")

    categories: Counter[str] = Counter(verse.category or "unscored" for verse in score.verses)
    lines.append(
        "categories: " + ", ".join(f"{name}={categories[name]}" for name in sorted(categories))
    )

    lines.append(f"missing: {_numbers(score.missing_verses)}")
    lines.append(f"extra: {_numbers(score.extra_verses)}")

    worst = sorted(
        (verse for verse in score.verses if not verse.hash_match),
        key=lambda verse: (verse.fidelity_score, verse.verse_number),
    )[:5]
    if worst:
        lines.append("lowest:")
        for verse in worst:
            marker = " (missing)" if verse.missing else ""
            lines.append(f"  {verse.verse_number}: {verse.fidelity_score:.2f}{marker}")

    lines.extend(_warning_lines(score.warnings))
    return "\n".join(lines)


def _warning_lines(warnings: list[str]) -> list[str]:
    if not warnings:
        return ["warnings: none"]
    return ["warnings:", *(f"  - {warning}" for warning in warnings)]


def _numbers(values: list[int]) -> str:
    return ", ".join(str(value) for value in values) if values else "none"


def _preview(text: str) -> str:
    if len(text) <= _PREVIEW_CHARS:
        return text
    return text[: _PREVIEW_CHARS - 3] + "..."
