"""Typer CLI entrypoint for scripture-fidelity."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any, Literal, cast

import typer

from apps.cli.format_human import render_chapter_report, render_parse_report, render_summary_line
from apps.cli.io import (
    load_canonical_verses,
    load_result_entries,
    read_json,
    read_text,
    write_json_atomic,
)
from core.orchestrator.pipeline import score_chapter
from core.scoring.results import summarize_results
from core.scoring.thresholds import load_score_thresholds
from core.transforms.engine import apply_transform_steps, filter_transforms_by_severity
from core.transforms.models import PROFILE_SCOPES, SEVERITY_LEVELS, ProfileScope, Severity
from core.transforms.profile_loader import load_profile_steps, load_profiles, select_profile
from core.utils.errors import ChapterScoringError, TransformProfileError
from core.verses.parser import (
    parse_model_verses,
    parse_model_verses_auto,
    parse_model_verses_inline,
)

app = typer.Typer(help="Scripture fidelity scoring CLI", rich_markup_mode=None)
ReportMode = Literal["human", "json", "both"]
ParseStrategy = Literal["auto", "line", "inline"]

_PARSERS = {
    "auto": parse_model_verses_auto,
    "line": parse_model_verses,
    "inline": parse_model_verses_inline,
}

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_INVALID_PROFILE = 2
EXIT_STRICT_FAILED = 4


@app.callback()
def cli_callback() -> None:
    """CLI root callback to keep subcommands explicit."""


@app.command("transform")
def transform_command(
    input_path: Annotated[
        Path, typer.Option("--input", exists=True, dir_okay=False, file_okay=True)
    ],
    scope: Annotated[str, typer.Option()] = "model_output",
    profiles: Annotated[Path | None, typer.Option()] = None,
    steps: Annotated[
        Path | None,
        typer.Option("--steps", help="JSON list of transform steps used instead of a profile."),
    ] = None,
    strict_profile: Annotated[
        bool,
        typer.Option("--strict-profile", help="Fail on invalid steps instead of skipping them."),
    ] = False,
    max_severity: Annotated[str | None, typer.Option()] = None,
) -> None:
    """Normalize a text file with a transform profile and print the result."""

    scope_typed = _choice(scope, PROFILE_SCOPES, "--scope")
    severity_typed = (
        cast(Severity, _choice(max_severity, SEVERITY_LEVELS, "--max-severity"))
        if max_severity is not None
        else None
    )

    try:
        if steps is not None:
            selected_steps, warnings = load_profile_steps(read_json(steps), strict=strict_profile)
            for warning in warnings:
                typer.echo(f"WARNING(transform): {warning}", err=True)
        else:
            profile = select_profile(load_profiles(profiles), cast(ProfileScope, scope_typed))
            selected_steps = profile.ordered_steps() if profile is not None else []
    except (TransformProfileError, ValueError) as exc:
        typer.echo(f"ERROR: invalid transform profile: {exc}", err=True)
        raise typer.Exit(code=EXIT_INVALID_PROFILE) from exc

    if severity_typed is not None:
        selected_steps = filter_transforms_by_severity(selected_steps, severity_typed)

    typer.echo(apply_transform_steps(read_text(input_path), selected_steps))


@app.command("parse")
def parse_command(
    input_path: Annotated[
        Path, typer.Option("--input", exists=True, dir_okay=False, file_okay=True)
    ],
    strategy: Annotated[str, typer.Option()] = "auto",
    report: Annotated[str, typer.Option()] = "json",
) -> None:
    """Split a model response into verses."""

    strategy_typed = cast(ParseStrategy, _choice(strategy, tuple(_PARSERS), "--strategy"))
    report_typed = cast(ReportMode, _choice(report, ("human", "json"), "--report"))

    result = _PARSERS[strategy_typed](read_text(input_path))
    if report_typed == "human":
        typer.echo(render_parse_report(result))
    else:
        _echo_json(result.to_wire())


@app.command("score-chapter")
def score_chapter_command(
    response: Annotated[Path, typer.Option(..., exists=True, dir_okay=False, file_okay=True)],
    canonical: Annotated[Path, typer.Option(..., exists=True, dir_okay=False, file_okay=True)],
    profiles: Annotated[Path | None, typer.Option()] = None,
    out: Annotated[Path | None, typer.Option(help="Write the JSON report to this file.")] = None,
    report: Annotated[str, typer.Option()] = "human",
    strict: Annotated[
        bool, typer.Option("--strict", help="Exit 4 when any verse falls in the fail band.")
    ] = False,
) -> None:
    """Score a chapter response against canonical verses."""

    report_typed = cast(ReportMode, _choice(report, ("human", "json", "both"), "--report"))

    try:
        loaded_profiles = load_profiles(profiles)
    except ValueError as exc:
        typer.echo(f"ERROR: invalid transform profile: {exc}", err=True)
        raise typer.Exit(code=EXIT_INVALID_PROFILE) from exc

    canonical_profile = select_profile(loaded_profiles, "canonical")
    model_profile = select_profile(loaded_profiles, "model_output")
    thresholds = load_score_thresholds()

    try:
        canonical_verses = load_canonical_verses(canonical, canonical_profile)
        score = score_chapter(
            read_text(response),
            canonical_verses,
            model_profile,
            thresholds,
            chapter_ref=canonical.stem,
        )
    except (ChapterScoringError, ValueError) as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=EXIT_ERROR) from exc

    payload = score.to_wire()
    if out is not None:
        try:
            write_json_atomic(out, payload)
        except OSError as exc:
            typer.echo(f"ERROR: write output failed: {exc}", err=True)
            raise typer.Exit(code=EXIT_ERROR) from exc
        typer.echo(f"INFO: wrote report to {out}")

    if report_typed in {"human", "both"}:
        typer.echo(render_chapter_report(score))
    if report_typed in {"json", "both"}:
        _echo_json(payload)

    if strict and score.failed_verses:
        failed = ", ".join(str(number) for number in score.failed_verses)
        typer.echo(f"ERROR: fidelity below threshold for verses: {failed}", err=True)
        raise typer.Exit(code=EXIT_STRICT_FAILED)


@app.command("summarize")
def summarize_command(
    results: Annotated[Path, typer.Option(..., exists=True, dir_okay=False, file_okay=True)],
    report: Annotated[str, typer.Option()] = "json",
) -> None:
    """Summarize a JSON list of scored results."""

    report_typed = cast(ReportMode, _choice(report, ("human", "json"), "--report"))

    try:
        summary = summarize_results(load_result_entries(results))
    except (KeyError, TypeError, ValueError) as exc:
        typer.echo(f"ERROR: {type(exc).__name__}: {exc}", err=True)
        raise typer.Exit(code=EXIT_ERROR) from exc

    if report_typed == "human":
        typer.echo(render_summary_line(summary))
    else:
        _echo_json(summary.to_wire())


def _choice(value: str, allowed: tuple[str, ...], option: str) -> str:
    normalized = value.strip()
    if normalized not in allowed:
        typer.echo(f"ERROR: {option} must be one of: {', '.join(allowed)}.", err=True)
        raise typer.Exit(code=EXIT_ERROR)
    return normalized


def _echo_json(payload: dict[str, Any]) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2))


def main() -> None:
    """Console script entrypoint."""

    app()


if __name__ == "__main__":
    main()
