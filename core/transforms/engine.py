"""Ordered text-rewrite pipeline driven by transform steps."""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from functools import lru_cache
from typing import Any

from core.transforms.models import (
    SEVERITY_LEVELS,
    STEP_TYPES,
    CollapseWhitespaceStep,
    ReplaceMapParams,
    ReplaceMapStep,
    Severity,
    TransformProfile,
    TrimStep,
)
from core.transforms.profile_loader import validate_step

_WHITESPACE_RE = re.compile(r"\s+")

_SEVERITY_RANK: dict[str, int] = {
    severity: rank for rank, severity in enumerate(SEVERITY_LEVELS, start=1)
}

_SEVERITY_INFO: dict[str, tuple[str, str]] = {
    "cosmetic": ("Cosmetic", "No semantic meaning change (apostrophes, quotes, whitespace)"),
    "minor": ("Minor", "Minimal readability impact (punctuation)"),
    "significant": ("Significant", "Theological/contextual implications (LORD/Lord)"),
    "critical": ("Critical", "Doctrinal impact (word substitution)"),
}

UNICODE_PUNCTUATION_MAP: dict[str, str] = {
    "\u2018": "'",
    "\u2019": "'",
    "\u201c": '"',
    "\u201d": '"',
    "\u2014": "-",
    "\u2013": "-",
}

DEFAULT_COSMETIC_TRANSFORMS: tuple[Any, ...] = (
    ReplaceMapStep(
        order=1,
        severity="cosmetic",
        description="Normalize curly apostrophes and quotes to straight",
        params=ReplaceMapParams(replacements=UNICODE_PUNCTUATION_MAP),
    ),
    CollapseWhitespaceStep(
        order=2,
        severity="cosmetic",
        description="Collapse multiple whitespace to single space",
    ),
    TrimStep(
        order=3,
        severity="cosmetic",
        description="Trim leading and trailing whitespace",
    ),
)


def apply_transform_steps(text: str, steps: Iterable[Any]) -> str:
    """Apply enabled steps in ascending ``order``.

    ``steps`` may hold typed steps or raw step documents. Raw documents are
    validated leniently first; a step that cannot be used is skipped and the
    rest of the pipeline still runs.
    """

    typed_steps = _coerce_steps(steps)
    for step in sorted(typed_steps, key=lambda item: item.order):
        if not step.enabled:
            continue
        text = _STEP_HANDLERS[step.type](text, step.params)
    return text


def apply_transform_profile(text: str, profile: TransformProfile | None) -> str:
    """Apply a profile's steps; a missing profile leaves the text unchanged."""

    if profile is None:
        return text
    return apply_transform_steps(text, profile.steps)


def filter_transforms_by_severity(steps: Iterable[Any], max_severity: Severity) -> list[Any]:
    """Keep steps at or below ``max_severity``; steps without severity always stay."""

    max_rank = _SEVERITY_RANK[max_severity]
    kept: list[Any] = []
    for step in _coerce_steps(steps):
        if step.severity is None or _SEVERITY_RANK[step.severity] <= max_rank:
            kept.append(step)
    return kept


def severity_info(severity: str | None) -> dict[str, str]:
    """Return the display label and description for a severity."""

    label, description = _SEVERITY_INFO.get(severity or "", ("Unknown", "No severity specified"))
    return {"label": label, "description": description}


def _coerce_steps(steps: Iterable[Any]) -> list[Any]:
    typed: list[Any] = []
    for index, raw in enumerate(steps):
        step, _ = validate_step(raw, index=index)
        if step is not None:
            typed.append(step)
    return typed


@lru_cache(maxsize=128)
def _tag_regex(tag_name: str) -> re.Pattern[str]:
    return re.compile(rf"</?{re.escape(tag_name)}(?=[\s/>])[^>]*>", re.IGNORECASE)


def _strip_markup_tags(text: str, params: Any) -> str:
    for tag_name in params.tag_names:
        text = _tag_regex(tag_name).sub("", text)
    return text


def _strip_paragraph_markers(text: str, params: Any) -> str:
    for marker in params.markers:
        text = text.replace(marker, "")
    return text


def _strip_patterns(text: str, params: Any) -> str:
    for pattern in params.patterns:
        text = re.sub(pattern, "", text)
    return text


def _regex_replace(text: str, params: Any) -> str:
    if params.pattern is None:
        return text
    return re.sub(params.pattern, params.replacement, text)


def _replace_map(text: str, params: Any) -> str:
    for literal, replacement in params.replacements.items():
        text = text.replace(literal, replacement)
    return text


def _collapse_whitespace(text: str, _params: Any) -> str:
    return _WHITESPACE_RE.sub(" ", text)


def _trim(text: str, _params: Any) -> str:
    return text.strip()


_STEP_HANDLERS: dict[str, Callable[[str, Any], str]] = {
    "stripMarkupTags": _strip_markup_tags,
    "stripParagraphMarkers": _strip_paragraph_markers,
    "stripVerseNumbers": _strip_patterns,
    "stripHeadings": _strip_patterns,
    "regexReplace": _regex_replace,
    "replaceMap": _replace_map,
    "collapseWhitespace": _collapse_whitespace,
    "trim": _trim,
}


def _assert_handler_alignment() -> None:
    """Fail fast when a step type has no handler."""

    if set(_STEP_HANDLERS) != set(STEP_TYPES):
        raise RuntimeError(
            "Transform step handlers must match step types: "
            f"handlers={sorted(_STEP_HANDLERS)}, types={sorted(STEP_TYPES)}"
        )


_assert_handler_alignment()
