"""Pass/warning/fail banding of fidelity scores."""

from __future__ import annotations

import math
import os
from collections.abc import Mapping

from core.scoring.models import ScoreCategory, ScoreThresholds

DEFAULT_THRESHOLDS = ScoreThresholds()

_ENV_KEYS = {
    "pass": "FIDELITY_SCORE_PASS",
    "warning": "FIDELITY_SCORE_WARNING",
    "fail": "FIDELITY_SCORE_FAIL",
}


def score_category(score: float, thresholds: ScoreThresholds = DEFAULT_THRESHOLDS) -> ScoreCategory:
    if score >= thresholds.pass_:
        return "pass"
    if score >= thresholds.warning:
        return "warning"
    return "fail"


def load_score_thresholds(environ: Mapping[str, str] | None = None) -> ScoreThresholds:
    """Read thresholds from the environment, keeping defaults for missing or bad values."""

    env = os.environ if environ is None else environ
    defaults = DEFAULT_THRESHOLDS.model_dump(by_alias=True)
    values = {
        name: _finite_or_default(env.get(key), defaults[name]) for name, key in _ENV_KEYS.items()
    }
    return ScoreThresholds.model_validate(values)


def _finite_or_default(raw: str | None, default: float) -> float:
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if math.isfinite(value) else default
