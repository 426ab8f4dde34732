"""Aggregate scored results, independent of chapter or verse granularity."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from core.scoring.models import ResultEntry, ResultSummary
from core.scoring.rounding import round_half_up


def summarize_results(entries: Iterable[object]) -> ResultSummary:
    """Count hash matches and average fidelity over ``entries``.

    Entries may be models with ``hash_match``/``fidelity_score`` attributes or
    stored documents keyed ``hashMatch``/``fidelityScore`` (snake_case also works).
    """

    rows = [_as_entry(entry) for entry in entries]
    if not rows:
        return ResultSummary()

    total = len(rows)
    matches = sum(1 for row in rows if row.hash_match)
    fidelity_sum = sum(row.fidelity_score for row in rows)
    return ResultSummary(
        total=total,
        matches=matches,
        perfect_rate=round_half_up(matches / total, 4),
        avg_fidelity=round_half_up(fidelity_sum / total, 2),
    )


def _as_entry(entry: object) -> ResultEntry:
    if isinstance(entry, ResultEntry):
        return entry
    if isinstance(entry, Mapping):
        return ResultEntry(
            hash_match=_pick(entry, "hashMatch", "hash_match"),
            fidelity_score=_pick(entry, "fidelityScore", "fidelity_score"),
        )
    try:
        return ResultEntry(
            hash_match=getattr(entry, "hash_match"),
            fidelity_score=getattr(entry, "fidelity_score"),
        )
    except AttributeError as exc:
        raise TypeError(f"Cannot summarize result entry of type {type(entry).__name__}") from exc


def _pick(entry: Mapping[str, object], *keys: str) -> object:
    for key in keys:
        if key in entry:
            return entry[key]
    raise KeyError(f"Result entry is missing {keys[0]!r}")
