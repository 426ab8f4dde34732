"""FastAPI wrapper for the scripture fidelity scoring core."""

from __future__ import annotations

import importlib.metadata
import json
import logging
import os
import uuid
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from apps.api.schemas import (
    CompareRequest,
    MapRequest,
    ParseRequest,
    ScoreChapterRequest,
    ScoreVerseRequest,
    SummarizeRequest,
    TransformRequest,
)
from core.orchestrator.pipeline import prepare_canonical_verses, score_chapter
from core.scoring.diff import apply_transforms_and_score, compare_text
from core.scoring.results import summarize_results
from core.scoring.thresholds import load_score_thresholds, score_category
from core.transforms.engine import apply_transform_steps, filter_transforms_by_severity
from core.transforms.models import PROFILE_SCOPES, SEVERITY_LEVELS, STEP_TYPES, TransformProfile
from core.transforms.profile_loader import load_profile_steps, load_profiles, select_profile
from core.utils.errors import ChapterScoringError, TransformProfileError
from core.verses.mapper import map_to_canonical_verses
from core.verses.parser import (
    parse_model_verses,
    parse_model_verses_auto,
    parse_model_verses_inline,
)

app = FastAPI(title="scripture-fidelity API", version="0.1.0")
logger = logging.getLogger("fidelity.api")

REQUEST_ID_HEADER = "X-Fidelity-Request-Id"
_DEFAULT_MAX_TEXT_CHARS = 200_000
_DEFAULT_MAX_DIFF_CELLS = 10_000_000

_PARSERS = {
    "auto": parse_model_verses_auto,
    "line": parse_model_verses,
    "inline": parse_model_verses_inline,
}


class ApiRequestError(Exception):
    def __init__(
        self,
        *,
        status_code: int,
        error_code: str,
        message: str,
        detail: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.error_code = error_code
        self.message = message
        self.detail = detail or {}


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    """Ensure every response has a request id header."""

    request_id = uuid.uuid4().hex
    request.state.request_id = request_id
    try:
        response = await call_next(request)
    except Exception:  # noqa: BLE001
        _log_event(
            logging.ERROR,
            "error",
            request_id,
            error_code="INTERNAL_ERROR",
            status_code=500,
            failure_stage="middleware",
        )
        response = _error_response(
            status_code=500,
            error_code="INTERNAL_ERROR",
            message="internal server error",
            request_id=request_id,
            detail={"path": request.url.path},
        )
    response.headers.setdefault(REQUEST_ID_HEADER, request_id)
    return response


@app.exception_handler(ApiRequestError)
async def api_request_error_handler(request: Request, exc: ApiRequestError) -> JSONResponse:
    request_id = _request_id_from_request(request)
    _log_event(
        logging.ERROR,
        "error",
        request_id,
        error_code=exc.error_code,
        status_code=exc.status_code,
        path=request.url.path,
    )
    return _error_response(
        status_code=exc.status_code,
        error_code=exc.error_code,
        message=exc.message,
        request_id=request_id,
        detail=exc.detail,
    )


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    request_id = _request_id_from_request(request)
    _log_event(
        logging.WARNING,
        "error",
        request_id,
        error_code="INVALID_REQUEST",
        status_code=422,
        path=request.url.path,
    )
    issues = [
        {"loc": [str(part) for part in error.get("loc", ())], "msg": error.get("msg", "")}
        for error in exc.errors()
    ]
    return _error_response(
        status_code=422,
        error_code="INVALID_REQUEST",
        message="request body failed validation",
        request_id=request_id,
        detail={"issues": issues},
    )


@app.get("/healthz")
async def healthz() -> dict[str, str]:
    """Liveness endpoint."""

    return {"status": "ok"}


@app.get("/v1/meta")
async def meta_v1(request: Request) -> JSONResponse:
    """Metadata endpoint for dashboard/bootstrap clients."""

    request_id = _request_id_from_request(request)
    payload = {
        "stepTypes": list(STEP_TYPES),
        "severities": list(SEVERITY_LEVELS),
        "profileScopes": list(PROFILE_SCOPES),
        "parseStrategies": list(_PARSERS),
        "scoreThresholds": load_score_thresholds().to_wire(),
        "maxTextChars": _max_text_chars(),
        "maxDiffCells": _max_diff_cells(),
        "version": app.version,
        "packageVersion": _package_version(),
    }
    return _json_response(payload, request_id)


@app.get("/v1/profiles")
async def profiles_v1(request: Request) -> JSONResponse:
    request_id = _request_id_from_request(request)
    profiles = _load_profiles_with_api_error()
    payload = [profile.model_dump(mode="json", by_alias=True) for profile in profiles]
    return _json_response({"profiles": payload}, request_id)


@app.post("/v1/transform")
async def transform_v1(body: TransformRequest, request: Request) -> JSONResponse:
    """Normalize text with explicit steps or a stored profile."""

    request_id = _request_id_from_request(request)
    _guard_text_size(body.text)
    steps, warnings, profile_name = _resolve_steps(body)
    text = apply_transform_steps(body.text, steps)
    _log_event(logging.INFO, "done", request_id, path="/v1/transform", step_count=len(steps))
    return _json_response(
        {"text": text, "profileName": profile_name, "warnings": warnings}, request_id
    )


@app.post("/v1/parse")
async def parse_v1(body: ParseRequest, request: Request) -> JSONResponse:
    request_id = _request_id_from_request(request)
    _guard_text_size(body.text)
    result = _PARSERS[body.strategy](body.text)
    _log_event(
        logging.INFO,
        "done",
        request_id,
        path="/v1/parse",
        strategy=result.strategy,
        verse_count=len(result.verses),
    )
    return _json_response(result.to_wire(), request_id)


@app.post("/v1/map")
async def map_v1(body: MapRequest, request: Request) -> JSONResponse:
    request_id = _request_id_from_request(request)
    result = map_to_canonical_verses(body.parsed, body.canonical)
    return _json_response(result.to_wire(), request_id)


@app.post("/v1/compare")
async def compare_v1(body: CompareRequest, request: Request) -> JSONResponse:
    request_id = _request_id_from_request(request)
    _guard_text_size(body.canonical, body.candidate)
    _guard_diff_size(len(body.canonical), len(body.candidate))
    result = compare_text(body.canonical, body.candidate)
    return _json_response(result.to_wire(), request_id)


@app.post("/v1/score/verse")
async def score_verse_v1(body: ScoreVerseRequest, request: Request) -> JSONResponse:
    """Re-score a stored response with a different normalization, without re-running a model."""

    request_id = _request_id_from_request(request)
    _guard_text_size(body.candidate_raw, body.canonical_text)
    _guard_diff_size(len(body.canonical_text), len(body.candidate_raw))
    steps, warnings, profile_name = _resolve_steps(body)
    result = apply_transforms_and_score(body.candidate_raw, body.canonical_text, steps)
    payload = result.to_wire()
    payload["category"] = score_category(result.fidelity_score, load_score_thresholds())
    payload["profileName"] = profile_name
    payload["warnings"] = warnings
    _log_event(
        logging.INFO,
        "done",
        request_id,
        path="/v1/score/verse",
        fidelity_score=result.fidelity_score,
    )
    return _json_response(payload, request_id)


@app.post("/v1/score/chapter")
async def score_chapter_v1(body: ScoreChapterRequest, request: Request) -> JSONResponse:
    request_id = _request_id_from_request(request)
    _guard_text_size(body.response_text, *(verse.text_raw for verse in body.canonical_verses))
    _guard_diff_size(
        max((len(verse.text_raw) for verse in body.canonical_verses), default=0),
        len(body.response_text),
    )

    profiles = _load_profiles_with_api_error()
    canonical_profile = _pick_profile(profiles, body.canonical_profile_name, "canonical")
    model_profile = _pick_profile(profiles, body.model_profile_name, "model_output")

    canonical_verses = prepare_canonical_verses(body.canonical_verses, canonical_profile)
    try:
        score = score_chapter(
            body.response_text,
            canonical_verses,
            model_profile,
            load_score_thresholds(),
            chapter_ref=body.chapter_ref,
        )
    except ChapterScoringError as exc:
        raise ApiRequestError(
            status_code=400,
            error_code="INVALID_ARGUMENT",
            message=str(exc),
            detail={"chapter_ref": exc.chapter_ref},
        ) from exc

    _log_event(
        logging.INFO,
        "done",
        request_id,
        path="/v1/score/chapter",
        strategy=score.strategy,
        verse_count=len(score.verses),
        missing_count=len(score.missing_verses),
        avg_fidelity=score.summary.avg_fidelity,
    )
    return _json_response(score.to_wire(), request_id)


@app.post("/v1/summarize")
async def summarize_v1(body: SummarizeRequest, request: Request) -> JSONResponse:
    request_id = _request_id_from_request(request)
    return _json_response(summarize_results(body.entries).to_wire(), request_id)


def _resolve_steps(body: Any) -> tuple[list[Any], list[str], str | None]:
    """Return (steps, warnings, profile name) for a step-selection request body."""

    profile_name: str | None = None
    if body.steps is not None:
        try:
            steps, warnings = load_profile_steps(body.steps, strict=body.strict)
        except TransformProfileError as exc:
            raise ApiRequestError(
                status_code=400,
                error_code="INVALID_TRANSFORM_PROFILE",
                message=str(exc),
                detail={"issues": exc.issues},
            ) from exc
    else:
        profile = _pick_profile(_load_profiles_with_api_error(), body.profile_name, body.scope)
        steps = profile.ordered_steps() if profile is not None else []
        warnings = []
        profile_name = profile.name if profile is not None else None

    if body.max_severity is not None:
        steps = filter_transforms_by_severity(steps, body.max_severity)
    return steps, warnings, profile_name


def _pick_profile(
    profiles: list[TransformProfile], name: str | None, scope: str
) -> TransformProfile | None:
    if name is None:
        return select_profile(profiles, scope)  # type: ignore[arg-type]
    for profile in profiles:
        if profile.name == name:
            return profile
    raise ApiRequestError(
        status_code=404,
        error_code="PROFILE_NOT_FOUND",
        message=f"transform profile not found: {name}",
        detail={"profile_name": name},
    )


def _load_profiles_with_api_error() -> list[TransformProfile]:
    raw_path = os.getenv("FIDELITY_PROFILES_PATH")
    path = Path(raw_path) if raw_path else None
    try:
        return load_profiles(path)
    except ValueError as exc:
        raise ApiRequestError(
            status_code=500,
            error_code="PROFILES_UNAVAILABLE",
            message="transform profiles could not be loaded",
            detail={"error": str(exc)},
        ) from exc


def _guard_text_size(*texts: str) -> None:
    limit = _max_text_chars()
    total = sum(len(text) for text in texts)
    if total > limit:
        raise ApiRequestError(
            status_code=413,
            error_code="TEXT_TOO_LARGE",
            message="request text exceeds size limit",
            detail={"max_text_chars": limit, "text_chars": total},
        )


def _guard_diff_size(canonical_chars: int, candidate_chars: int) -> None:
    """Reject comparisons whose character edit table would exceed the cell limit."""

    limit = _max_diff_cells()
    cells = (canonical_chars + 1) * (candidate_chars + 1)
    if cells > limit:
        raise ApiRequestError(
            status_code=413,
            error_code="TEXT_TOO_LARGE",
            message="comparison exceeds diff size limit",
            detail={"max_diff_cells": limit, "diff_cells": cells},
        )


def _max_text_chars() -> int:
    return _positive_env_int("FIDELITY_MAX_TEXT_CHARS", _DEFAULT_MAX_TEXT_CHARS)


def _max_diff_cells() -> int:
    return _positive_env_int("FIDELITY_MAX_DIFF_CELLS", _DEFAULT_MAX_DIFF_CELLS)


def _positive_env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        parsed = int(raw)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _request_id_from_request(request: Request) -> str:
    request_id = getattr(request.state, "request_id", None)
    if isinstance(request_id, str) and request_id:
        return request_id
    generated = uuid.uuid4().hex
    request.state.request_id = generated
    return generated


def _package_version() -> str:
    try:
        return importlib.metadata.version("scripture-fidelity")
    except importlib.metadata.PackageNotFoundError:
        return "unknown"


def _json_response(payload: dict[str, Any], request_id: str) -> JSONResponse:
    return JSONResponse(status_code=200, headers={REQUEST_ID_HEADER: request_id}, content=payload)


def _error_response(
    *,
    status_code: int,
    error_code: str,
    message: str,
    request_id: str,
    detail: dict[str, Any] | None = None,
) -> JSONResponse:
    payload_detail = dict(detail or {})
    payload_detail["request_id"] = request_id

    return JSONResponse(
        status_code=status_code,
        headers={REQUEST_ID_HEADER: request_id},
        content={
            "error_code": error_code,
            "message": message,
            "detail": payload_detail,
        },
    )


def _dump_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload, ensure_ascii=False, sort_keys=True, separators=(",", ":"))


def _log_event(level: int, event: str, request_id: str, **fields: Any) -> None:
    payload = {
        "event": event,
        "request_id": request_id,
        **fields,
    }
    logger.log(level, _dump_json(payload))
