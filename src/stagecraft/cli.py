# src/stagecraft/cli.py
"""Stagecraft Command Line Interface.

Entry point for the stagecraft CLI tool. Reads pipeline documents and
reports on them; it never writes files.
"""

from __future__ import annotations

import json
from enum import StrEnum
from pathlib import Path

import typer
import yaml
from pydantic import ValidationError

from stagecraft import __version__
from stagecraft.contracts import LayoutDirection, PipelineConfiguration, PipelineLoadError
from stagecraft.core.config import DEFAULT_SETTINGS, StagecraftSettings, load_pipeline, load_settings

__all__ = ["app"]


class ReportFormat(StrEnum):
    CONSOLE = "console"
    JSON = "json"


class DocumentFormat(StrEnum):
    YAML = "yaml"
    JSON = "json"


app = typer.Typer(
    name="stagecraft",
    help="Stagecraft: validate and lay out agent delivery pipelines.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"stagecraft version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """Stagecraft: validate and lay out agent delivery pipelines."""
    from stagecraft.core.logging import configure_logging

    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "INFO")


def _format_error(
    title: str,
    message: str,
    hint: str | None = None,
    details: list[str] | None = None,
) -> None:
    """Display a formatted error panel with optional hint and details."""
    from rich.console import Console
    from rich.panel import Panel
    from rich.text import Text

    console = Console(stderr=True)

    content = Text()
    content.append(message, style="white")

    if details:
        content.append("\n\n")
        for detail in details:
            content.append(f"  • {detail}\n", style="dim")

    if hint:
        content.append("\n")
        content.append("Hint: ", style="yellow bold")
        content.append(hint, style="yellow")

    console.print(
        Panel(
            content,
            title=f"[red bold]❌ {title}[/]",
            border_style="red",
            padding=(0, 1),
        )
    )


def _load_settings_or_exit(settings: str | None) -> StagecraftSettings:
    if settings is None:
        return DEFAULT_SETTINGS
    settings_path = Path(settings).expanduser()
    try:
        return load_settings(settings_path)
    except FileNotFoundError:
        _format_error(
            title="File Not Found",
            message=f"Settings file does not exist: {settings}",
            hint="Check the path and ensure the file exists.",
        )
        raise typer.Exit(1) from None
    except ValidationError as e:
        _format_error(
            title="Configuration Validation Failed",
            message=f"Invalid settings in {settings_path.name}",
            details=[f"{'.'.join(str(x) for x in error['loc'])}: {error['msg']}" for error in e.errors()],
            hint="Check field names, types, and allowed ranges.",
        )
        raise typer.Exit(1) from None


def _load_pipeline_or_exit(pipeline: Path) -> PipelineConfiguration:
    pipeline_path = pipeline.expanduser()
    try:
        return load_pipeline(pipeline_path)
    except FileNotFoundError:
        _format_error(
            title="File Not Found",
            message=f"Pipeline file does not exist: {pipeline}",
            hint="Check the path and ensure the file exists.",
        )
        raise typer.Exit(1) from None
    except ValidationError as e:
        _format_error(
            title="Pipeline Document Invalid",
            message=f"Invalid records in {pipeline_path.name}",
            details=[f"{'.'.join(str(x) for x in error['loc'])}: {error['msg']}" for error in e.errors()],
            hint="Check stage field names (nextStageIds, assignedAgentIds, branchType, ...) and types.",
        )
        raise typer.Exit(1) from None
    except PipelineLoadError as e:
        _format_error(
            title="Pipeline Document Unreadable",
            message=str(e),
            hint="The document must be YAML or JSON holding a pipeline mapping or a list of stages.",
        )
        raise typer.Exit(1) from None


_SETTINGS_OPTION = typer.Option(
    None,
    "--settings",
    "-s",
    help="Path to stagecraft settings YAML file.",
)


@app.command()
def validate(
    pipeline: Path = typer.Argument(..., help="Pipeline document (YAML or JSON)."),
    settings: str | None = _SETTINGS_OPTION,
    output_format: ReportFormat = typer.Option(
        ReportFormat.CONSOLE,
        "--format",
        "-f",
        help="Output format: 'console' (human-readable) or 'json'.",
    ),
) -> None:
    """Check a pipeline for cycles, orphans, missing entry/exit points and branch errors."""
    from stagecraft.core.graph import validate_pipeline_graph

    config = _load_settings_or_exit(settings)
    document = _load_pipeline_or_exit(pipeline)
    result = validate_pipeline_graph(document.stages, settings=config.validation)

    if output_format == ReportFormat.JSON:
        typer.echo(json.dumps(result.to_dict(), indent=2))
    else:
        for error in result.errors:
            typer.secho(f"  ✗ {error}", fg=typer.colors.RED)
        for warning in result.warnings:
            typer.secho(f"  ⚠ {warning}", fg=typer.colors.YELLOW)
        if result.is_valid:
            typer.echo(f"✅ Pipeline '{document.name}' is valid ({len(document.stages)} stages, {len(result.warnings)} warnings)")
        else:
            typer.echo(f"❌ Pipeline '{document.name}' is invalid: {len(result.errors)} errors, {len(result.warnings)} warnings")

    if not result.is_valid:
        raise typer.Exit(1)


@app.command()
def layout(
    pipeline: Path = typer.Argument(..., help="Pipeline document (YAML or JSON)."),
    settings: str | None = _SETTINGS_OPTION,
    direction: LayoutDirection | None = typer.Option(
        None,
        "--direction",
        "-d",
        case_sensitive=False,
        help="Rank direction: TB (top-to-bottom) or LR (left-to-right).",
    ),
    output_format: DocumentFormat = typer.Option(
        DocumentFormat.YAML,
        "--format",
        "-f",
        help="Output format for the arranged pipeline.",
    ),
) -> None:
    """Auto-arrange a pipeline and print it with the new stage positions."""
    from stagecraft.core.graph import arrange_pipeline

    config = _load_settings_or_exit(settings)
    document = _load_pipeline_or_exit(pipeline)

    arranged = arrange_pipeline(document, direction=direction, settings=config)
    payload = arranged.model_dump(mode="json", by_alias=True, exclude_none=True)

    if output_format == DocumentFormat.JSON:
        typer.echo(json.dumps(payload, indent=2))
    else:
        typer.echo(yaml.safe_dump(payload, sort_keys=False), nl=False)


@app.command()
def inspect(
    pipeline: Path = typer.Argument(..., help="Pipeline document (YAML or JSON)."),
    settings: str | None = _SETTINGS_OPTION,
) -> None:
    """Show entry/exit stages, graph size and the drawing's bounding box and centre."""
    from stagecraft.core.graph import calculate_bounding_box, find_entry_stages, find_exit_stages, stages_to_graph

    config = _load_settings_or_exit(settings)
    document = _load_pipeline_or_exit(pipeline)
    graph = stages_to_graph(document.stages)
    box = calculate_bounding_box(graph.nodes, settings=config.layout)
    center_x, center_y = box.center

    typer.echo(f"Pipeline: {document.name}")
    typer.echo(f"  Graph: {graph.node_count} nodes, {graph.edge_count} edges")
    typer.echo(f"  Entry stages: {', '.join(find_entry_stages(document.stages)) or '(none)'}")
    typer.echo(f"  Exit stages: {', '.join(find_exit_stages(document.stages)) or '(none)'}")
    typer.echo(f"  Bounding box: ({box.min_x:g}, {box.min_y:g}) - ({box.max_x:g}, {box.max_y:g}), {box.width:g} x {box.height:g}")
    typer.echo(f"  Center: ({center_x:g}, {center_y:g})")


if __name__ == "__main__":
    app()
