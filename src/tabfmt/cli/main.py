"""Command-line interface for tabfmt.

Python justification: Click library for CLI parsing, pandas for CSV input.
"""

import logging
import sys
from pathlib import Path

import click
import pandas as pd
import yaml

from tabfmt import __version__
from tabfmt.config.settings import RenderOptions
from tabfmt.core.grid import RenderedGrid
from tabfmt.engine import render_frame
from tabfmt.errors import TableFormatError
from tabfmt.spec.loader import dump_specification, load_layers
from tabfmt.spec.models import Specification

logger = logging.getLogger(__name__)


def _load(specs: tuple[Path, ...]) -> Specification:
    try:
        return load_layers(specs)
    except TableFormatError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _echo_grid(grid: RenderedGrid, output_format: str) -> None:
    frame = grid.to_frame()
    if output_format == "csv":
        click.echo(frame.to_csv(index=False), nl=False)
    else:
        click.echo(frame.to_string(index=False))
    if grid.footnotes or grid.notes:
        click.echo()
    for mark, text in grid.footnotes:
        click.echo(f"{mark} {text}")
    for text in grid.notes:
        click.echo(text)


@click.group()
@click.version_option(version=__version__, prog_name="tabfmt")
@click.option("--verbose", "-v", is_flag=True, help="Verbose (debug) logging.")
def cli(verbose: bool) -> None:
    """tabfmt - Declarative table formatting.

    Resolve long-format statistics into formatted tables from layered
    specification files.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.argument("specs", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
def validate(specs: tuple[Path, ...]) -> None:
    """Validate specification files and their layering.

    SPECS are YAML or JSON files, layered in the order given.

    Examples:

        tabfmt validate base.yaml study.yaml
    """
    spec = _load(specs)
    click.echo(
        f"OK: {len(specs)} layer(s), {len(spec.body_plan)} format rule(s), "
        f"{len(spec.footnote_plan)} footnote(s)"
    )
    if not spec.has_catch_all():
        click.echo("Warning: body plan has no catch-all rule", err=True)


@cli.command()
@click.argument("specs", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    help="Write the merged specification here instead of stdout.",
)
def merge(specs: tuple[Path, ...], output: Path | None) -> None:
    """Layer specification files and print the effective specification.

    Examples:

        tabfmt merge base.yaml study.yaml -o effective.yaml
    """
    spec = _load(specs)
    text = yaml.safe_dump(dump_specification(spec), sort_keys=False, allow_unicode=True)
    if output is None:
        click.echo(text, nl=False)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text)
    click.echo(f"Merged specification written to: {output}")


@cli.command()
@click.argument("specs", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option(
    "--data",
    "-d",
    "data_path",
    required=True,
    type=click.Path(exists=True, path_type=Path),
    help="Long-format CSV with one data point per row.",
)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["text", "csv"]),
    default="text",
    help="Output format (default: text).",
)
@click.option("--missing-marker", default=None, help="Text for missing values.")
@click.option(
    "--workers", "-w", default=None, type=click.IntRange(min=1), help="Threads for cell resolution."
)
def render(
    specs: tuple[Path, ...],
    data_path: Path,
    output_format: str,
    missing_marker: str | None,
    workers: int | None,
) -> None:
    """Render a table from data and specification files.

    Examples:

        tabfmt render base.yaml study.yaml --data stats.csv

        tabfmt render spec.yaml --data stats.csv --format csv --workers 4
    """
    spec = _load(specs)
    overrides: dict[str, object] = {}
    if missing_marker is not None:
        overrides["missing_marker"] = missing_marker
    if workers is not None:
        overrides["max_workers"] = workers

    try:
        options = RenderOptions(**overrides)
        frame = pd.read_csv(data_path)
        grid = render_frame(frame, spec, options)
    except TableFormatError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    _echo_grid(grid, output_format)
    for warning in grid.warnings:
        click.echo(f"Warning: {warning}", err=True)


if __name__ == "__main__":
    cli()
