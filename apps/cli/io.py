"""CLI I/O helpers: input loading and atomic report writing."""

from __future__ import annotations

import json
import tempfile
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from core.orchestrator.pipeline import prepare_canonical_verses
from core.transforms.models import TransformProfile
from core.verses.models import CanonicalVerse, CanonicalVerseInput


def read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8")


def read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc.msg}") from exc


def load_canonical_verses(
    path: Path, profile: TransformProfile | None = None
) -> list[CanonicalVerse]:
    """Load canonical verses, normalizing any that lack processed text."""

    raw = read_json(path)
    if not isinstance(raw, list):
        raise ValueError(f"Canonical verses JSON must be a list: {path}")

    entries: list[CanonicalVerseInput] = []
    for item in raw:
        try:
            entries.append(CanonicalVerseInput.model_validate(item))
        except ValidationError as exc:
            raise ValueError(f"Invalid canonical verse in {path}: {exc.errors()[0]['msg']}") from exc
    return prepare_canonical_verses(entries, profile)


def load_result_entries(path: Path) -> list[Any]:
    raw = read_json(path)
    if not isinstance(raw, list):
        raise ValueError(f"Results JSON must be a list: {path}")
    return raw


def write_json_atomic(path: Path, payload: dict[str, Any]) -> None:
    """Write a JSON report using a temporary file + replace."""

    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        delete=False,
        prefix=f"{path.name}.",
        suffix=".tmp",
    ) as tmp:
        tmp_path = Path(tmp.name)
        try:
            json.dump(payload, tmp, ensure_ascii=False, sort_keys=True, indent=2)
        except Exception:
            tmp.close()
            tmp_path.unlink(missing_ok=True)
            raise

    try:
        tmp_path.replace(path)
    except Exception:
        tmp_path.unlink(missing_ok=True)
        raise
