"""Typer CLI entrypoint for figtag."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Annotated, Literal, cast

import typer

from apps.cli.format_human import render_resolution_summary
from apps.cli.io import (
    OutputPaths,
    build_output_paths,
    existing_output_files,
    write_fallback_json_atomic,
    write_resolution_output_atomic,
)
from figtag.candidates.index import build_index
from figtag.candidates.resolver import resolve_name
from figtag.charts.artifact_store import ArtifactStore
from figtag.charts.models import ChartDescriptor
from figtag.charts.payload import load_descriptors
from figtag.charts.validator import validate_descriptor
from figtag.config.models import ChartFormat, FigtagSettings
from figtag.config.settings_loader import load_settings
from figtag.orchestrator.pipeline import directory_lister, resolve_article
from figtag.tags.models import ResolutionResult
from figtag.utils.errors import SettingsError

app = typer.Typer(
    help="figtag: resolve image and chart tags in generated articles", rich_markup_mode=None
)
ReportMode = Literal["human", "json", "both"]


@app.callback()
def cli_callback(
    verbose: Annotated[
        bool, typer.Option("--verbose", help="Emit JSON event logs to stderr.")
    ] = False,
) -> None:
    """CLI root callback to keep subcommands explicit."""

    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s %(message)s")


@app.command("resolve")
def resolve_command(
    content: Annotated[Path, typer.Option(..., exists=True, dir_okay=False, file_okay=True)],
    uploads_dir: Annotated[Path | None, typer.Option(file_okay=False)] = None,
    charts: Annotated[Path | None, typer.Option(exists=True, dir_okay=False)] = None,
    out_dir: Annotated[Path, typer.Option()] = Path("."),
    chart_format: Annotated[str | None, typer.Option()] = None,
    settings: Annotated[Path | None, typer.Option(exists=True, dir_okay=False)] = None,
    report: Annotated[str, typer.Option()] = "human",
    strict: Annotated[
        bool,
        typer.Option(
            "--strict", help="Exit 2 when any tag stays unresolved or a chart is rejected."
        ),
    ] = False,
    no_overwrite: Annotated[
        bool, typer.Option("--no-overwrite", help="Fail when outputs already exist.")
    ] = False,
) -> None:
    """Resolve the tags of one article and write fixed output artifacts."""

    paths = build_output_paths(out_dir)

    normalized_report = report.lower().strip()
    if normalized_report not in {"human", "json", "both"}:
        typer.echo("ERROR: --report must be one of: human, json, both.")
        _safe_write_exit1_fallback(paths, "ArgumentValidationError", "invalid report", "args")
        raise typer.Exit(code=1)
    report_typed = cast(ReportMode, normalized_report)

    format_override: ChartFormat | None = None
    if chart_format is not None:
        normalized_format = chart_format.lower().strip()
        if normalized_format not in {"inline_vector", "raster_file"}:
            typer.echo("ERROR: --chart-format must be one of: inline_vector, raster_file.")
            _safe_write_exit1_fallback(
                paths, "ArgumentValidationError", "invalid chart_format", "args"
            )
            raise typer.Exit(code=1)
        format_override = cast(ChartFormat, normalized_format)

    existing = existing_output_files(paths)
    if existing and no_overwrite:
        typer.echo("ERROR: outputs already exist and --no-overwrite is enabled.")
        raise typer.Exit(code=1)
    if existing:
        names = ", ".join(path.name for path in existing)
        typer.echo(f"INFO: overwriting existing outputs: {names}")

    failure_stage = "load_settings"
    try:
        settings_model = _load_cli_settings(settings, format_override)
        failure_stage = "load_content"
        article = content.read_text(encoding="utf-8")
        failure_stage = "load_charts"
        descriptors: list[ChartDescriptor] = load_descriptors(charts) if charts is not None else []
        failure_stage = "resolve"
        store = ArtifactStore(uploads_dir if uploads_dir is not None else out_dir)
        result = resolve_article(
            article,
            directory_lister(uploads_dir) if uploads_dir is not None else None,
            descriptors,
            settings=settings_model,
            store=store,
        )
    except (SettingsError, ValueError, OSError) as exc:
        typer.echo(f"ERROR: {type(exc).__name__}: {exc}")
        _safe_write_exit1_fallback(paths, type(exc).__name__, str(exc), failure_stage)
        raise typer.Exit(code=1) from exc

    try:
        write_resolution_output_atomic(paths, result)
    except OSError as exc:
        typer.echo(f"ERROR: write output failed: {exc}")
        _safe_write_exit1_fallback(paths, type(exc).__name__, str(exc), "write_output", result)
        raise typer.Exit(code=1) from exc

    if report_typed in {"human", "both"}:
        typer.echo(render_resolution_summary(result.report))
    if report_typed in {"json", "both"}:
        typer.echo(result.report.model_dump_json())

    has_problems = bool(result.report.unresolved_requests or result.report.rejected_charts)
    if strict and has_problems:
        typer.echo("ERROR: unresolved tags or rejected charts (strict mode)")
        raise typer.Exit(code=2)

    if has_problems:
        typer.echo(
            "WARNING: unresolved tags or rejected charts "
            f"(unresolved={len(result.report.unresolved_requests)}, "
            f"rejected={len(result.report.rejected_charts)})."
        )
    typer.echo("INFO: success")


@app.command("match")
def match_command(
    name: Annotated[str, typer.Argument()],
    uploads_dir: Annotated[Path, typer.Option(..., exists=True, file_okay=False)],
    settings: Annotated[Path | None, typer.Option(exists=True, dir_okay=False)] = None,
) -> None:
    """Resolve one requested image name against a directory listing."""

    try:
        settings_model = load_settings(settings)
    except SettingsError as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=1) from exc

    index = build_index(directory_lister(uploads_dir)(), settings_model.image_extensions)
    result = resolve_name(name.strip(), index)
    if not result.matched or result.candidate is None or result.strategy_used is None:
        typer.echo(f"UNRESOLVED: {name.strip()} (candidates={len(index)})")
        raise typer.Exit(code=1)

    typer.echo(f"MATCHED: {result.candidate.raw_name} strategy={result.strategy_used.value}")


@app.command("validate-charts")
def validate_charts_command(
    charts: Annotated[Path, typer.Argument(exists=True, dir_okay=False)],
    settings: Annotated[Path | None, typer.Option(exists=True, dir_okay=False)] = None,
) -> None:
    """Validate chart descriptors and print one verdict per descriptor."""

    try:
        settings_model = load_settings(settings)
        descriptors = load_descriptors(charts)
    except (SettingsError, ValueError) as exc:
        typer.echo(f"ERROR: {exc}")
        raise typer.Exit(code=1) from exc

    rejected = 0
    for position, descriptor in enumerate(descriptors):
        outcome = validate_descriptor(descriptor, settings_model)
        label = outcome.chart_id or f"#{position}"
        if outcome.rejection is None:
            typer.echo(f"{label}: ok")
            continue
        rejected += 1
        typer.echo(f"{label}: {outcome.rejection.code} ({outcome.rejection.message})")

    typer.echo(f"checked={len(descriptors)} rejected={rejected}")
    if rejected:
        raise typer.Exit(code=1)


def _load_cli_settings(path: Path | None, chart_format: ChartFormat | None) -> FigtagSettings:
    settings_model = load_settings(path)
    if chart_format is None:
        return settings_model
    renderer = settings_model.renderer.model_copy(update={"chart_format": chart_format})
    return settings_model.model_copy(update={"renderer": renderer})


def _safe_write_exit1_fallback(
    paths: OutputPaths,
    error_type: str,
    error_message: str,
    stage: str,
    result: ResolutionResult | None = None,
) -> None:
    try:
        write_fallback_json_atomic(
            paths,
            error_type=error_type,
            error_message=error_message,
            stage=stage,
            base_report=result.report if result is not None else None,
        )
    except OSError:
        pass


def main() -> None:
    """Console script entrypoint."""

    app()


if __name__ == "__main__":
    main()
