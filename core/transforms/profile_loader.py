"""Boundary validation for transform steps and profiles.

Profiles are user-editable, so this is where malformed configuration is caught.
Lenient loading drops what it cannot use and reports why; strict loading raises.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError

from core.transforms.models import (
    TRANSFORM_STEP_ADAPTER,
    ProfileScope,
    TransformProfile,
    is_transform_step,
)
from core.utils.errors import TransformProfileError

logger = logging.getLogger("fidelity.transforms")

DEFAULT_PROFILES_PATH = Path(__file__).with_name("profiles.yaml")


def validate_step(raw: object, *, index: int = 0, strict: bool = False) -> tuple[Any | None, list[str]]:
    """Validate one raw step.

    Returns the typed step (or None when it was dropped) and warnings describing
    anything that was discarded along the way.
    """

    if is_transform_step(raw):
        return raw, []

    step_type = raw.get("type") if isinstance(raw, Mapping) else None
    label = f"Transform step {index} ({step_type or 'unknown'})"
    dropped_patterns: list[str] = []
    try:
        step = TRANSFORM_STEP_ADAPTER.validate_python(
            raw,
            context={"lenient": not strict, "dropped_patterns": dropped_patterns},
        )
    except ValidationError as exc:
        if strict:
            raise TransformProfileError(
                f"{label} is invalid: {_first_error(exc)}", issues=_all_errors(exc, label)
            ) from exc
        message = f"{label} ignored: {_first_error(exc)}"
        logger.warning(message)
        return None, [message]

    warnings = [f"{label}: ignored invalid pattern {pattern!r}" for pattern in dropped_patterns]
    for warning in warnings:
        logger.warning(warning)
    return step, warnings


def load_profile_steps(raw_steps: object, *, strict: bool = False) -> tuple[list[Any], list[str]]:
    """Validate a profile's step list, enforcing unique ``order`` values."""

    if not isinstance(raw_steps, Sequence) or isinstance(raw_steps, (str, bytes)):
        message = "Transform steps must be a list"
        if strict:
            raise TransformProfileError(message)
        logger.warning(message)
        return [], [message]

    steps: list[Any] = []
    warnings: list[str] = []
    seen_orders: set[int] = set()
    for index, raw in enumerate(raw_steps):
        step, step_warnings = validate_step(raw, index=index, strict=strict)
        warnings.extend(step_warnings)
        if step is None:
            continue
        if step.order in seen_orders:
            message = f"Transform step {index} ({step.type}) ignored: duplicate order {step.order}"
            if strict:
                raise TransformProfileError(message)
            logger.warning(message)
            warnings.append(message)
            continue
        seen_orders.add(step.order)
        steps.append(step)

    return steps, warnings


def load_profile(raw: Mapping[str, Any], *, strict: bool = False) -> tuple[TransformProfile, list[str]]:
    """Build a profile from a stored document, validating steps at the boundary."""

    if not isinstance(raw, Mapping):
        raise TransformProfileError("Transform profile must be a mapping")

    steps, warnings = load_profile_steps(raw.get("steps", []), strict=strict)
    document = {key: value for key, value in raw.items() if key != "steps"}
    try:
        profile = TransformProfile.model_validate({**document, "steps": steps})
    except ValidationError as exc:
        name = raw.get("name", "unnamed")
        raise TransformProfileError(
            f"Invalid transform profile {name!r}: {_first_error(exc)}",
            issues=_all_errors(exc, str(name)),
        ) from exc
    return profile, warnings


def load_profiles(path: Path | None = None) -> list[TransformProfile]:
    """Load and strictly validate transform profiles from YAML."""

    profiles_path = path or DEFAULT_PROFILES_PATH

    try:
        raw = yaml.safe_load(profiles_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise ValueError(f"Profiles file not found: {profiles_path}") from exc
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in profiles file: {profiles_path}") from exc

    if not isinstance(raw, dict) or not isinstance(raw.get("profiles"), list):
        raise ValueError(f"Profiles file must contain a 'profiles' list: {profiles_path}")

    profiles: list[TransformProfile] = []
    for item in raw["profiles"]:
        try:
            profile, _ = load_profile(item, strict=True)
        except TransformProfileError as exc:
            raise ValueError(f"Invalid transform profile schema: {profiles_path}: {exc}") from exc
        profiles.append(profile)
    return profiles


def select_profile(
    profiles: Sequence[TransformProfile], scope: ProfileScope
) -> TransformProfile | None:
    """Return the default active profile for a scope, else the first active one."""

    candidates = [profile for profile in profiles if profile.scope == scope and profile.is_active]
    for profile in candidates:
        if profile.is_default:
            return profile
    return candidates[0] if candidates else None


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "invalid value")
    return f"{location}: {message}" if location else message


def _all_errors(exc: ValidationError, label: str) -> list[str]:
    issues: list[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        issues.append(f"{label}: {location}: {error.get('msg', 'invalid value')}")
    return issues
