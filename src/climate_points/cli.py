#!/usr/bin/env python
"""
Climate Points CLI

Extract monthly climate grid values at site coordinates and export them as a
tidy table.
"""

import json
from pathlib import Path
from typing import List, Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from typing_extensions import Annotated

from climate_points.exceptions import ClimatePointsError
from climate_points.pipeline import run_pipeline
from climate_points.point_config import PointExtractionConfig, get_config
from climate_points.reshape import parse_layer_name
from climate_points.utils.file_discovery import discover_raster_files, list_sub_periods

console = Console(highlight=False)
app = typer.Typer(
    name="climate-points",
    help="🌧️ Point extraction from monthly climate grids",
    rich_markup_mode="rich",
    no_args_is_help=True,
)


def print_banner():
    banner = Panel.fit(
        "[bold blue]🌧️ Climate Points[/bold blue]\n"
        "[dim]Monthly grids → site values → tidy CSV[/dim]",
        border_style="blue",
    )
    console.print(banner)


def load_cli_config(config_path: Optional[Path]) -> PointExtractionConfig:
    """Configuration from a JSON file, or from the environment."""
    if config_path is None:
        return PointExtractionConfig.from_env()
    if not config_path.exists():
        rprint(f"[red]❌ Config file not found: {config_path}[/red]")
        raise typer.Exit(1)
    return PointExtractionConfig.load_config(config_path)


@app.command("extract")
def extract(
    category_root: Annotated[Path, typer.Argument(help="Category directory with one sub-directory per period")],
    sites: Annotated[Path, typer.Argument(help="Site coordinate table (CSV)")],
    period: Annotated[Optional[List[str]], typer.Option("--period", "-p", help="Sub-period to process (repeatable)")] = None,
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Output file (default: date-stamped in output dir)")] = None,
    output_dir: Annotated[Optional[Path], typer.Option("--output-dir", "-d", help="Output directory")] = None,
    pattern: Annotated[Optional[str], typer.Option("--pattern", help="Raster file glob")] = None,
    projection: Annotated[Optional[str], typer.Option("--projection", help="Name of the .prj file in the category root")] = None,
    config_path: Annotated[Optional[Path], typer.Option("--config", "-c", help="JSON configuration file")] = None,
):
    """
    📍 Extract grid values at every site and write the tidy table.

    Examples:
        climate-points extract precipitation sites.csv
        climate-points extract precipitation sites.csv -p 01_Jan -p 02_Feb --pattern "*.tif"
    """
    print_banner()

    if not category_root.is_dir():
        rprint(f"[red]❌ Category directory not found: {category_root}[/red]")
        raise typer.Exit(1)

    if not sites.exists():
        rprint(f"[red]❌ Site table not found: {sites}[/red]")
        raise typer.Exit(1)

    config = load_cli_config(config_path)
    if output_dir is not None:
        config.output.output_dir = output_dir
    if pattern is not None:
        config.grid.raster_pattern = pattern
    if projection is not None:
        config.grid.projection_file = projection

    try:
        result = run_pipeline(
            category_root,
            sites,
            periods=period or None,
            config=config,
            output_path=output,
        )
    except (ClimatePointsError, FileNotFoundError) as e:
        rprint(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)

    table = Table(title="📊 Extraction Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="magenta")

    value_column = config.reshape.value_column
    table.add_row("Periods Processed", str(len(result.periods_processed)))
    table.add_row("Layers", str(sum(result.layer_counts.values())))
    table.add_row("Total Records", str(len(result.tidy_df)))
    table.add_row("Missing Values", str(int(result.tidy_df[value_column].isna().sum())))
    table.add_row("Output File", str(result.output_path))

    console.print(table)
    console.print("[green]✅ Extraction completed successfully![/green]")


@app.command("periods")
def periods(
    category_root: Annotated[Path, typer.Argument(help="Category directory")],
    pattern: Annotated[Optional[str], typer.Option("--pattern", help="Raster file glob (default: configured pattern)")] = None,
    config_path: Annotated[Optional[Path], typer.Option("--config", "-c", help="JSON configuration file")] = None,
):
    """📂 List sub-period directories and their raster files."""
    pattern = pattern or load_cli_config(config_path).grid.raster_pattern
    try:
        period_names = list_sub_periods(category_root)
    except (FileNotFoundError, ValueError) as e:
        rprint(f"[red]❌ {e}[/red]")
        raise typer.Exit(1)

    periods_table = Table(title=f"🗂️ Sub-periods in {category_root}")
    periods_table.add_column("Period", style="cyan")
    periods_table.add_column("Rasters", style="green")
    periods_table.add_column("First / Last", style="yellow")

    for name in period_names:
        try:
            files = discover_raster_files(category_root / name, pattern=pattern)
        except ClimatePointsError:
            periods_table.add_row(name, "0", "-")
            continue
        periods_table.add_row(name, str(len(files)), f"{files[0].name} / {files[-1].name}")

    console.print(periods_table)


@app.command("parse-name")
def parse_name(
    names: Annotated[List[str], typer.Argument(help="Layer names to parse")],
):
    """🔤 Show month and year parsed from layer names."""
    pattern = get_config().grid.layer_name_pattern

    names_table = Table(title="🔤 Layer Names")
    names_table.add_column("Layer", style="cyan")
    names_table.add_column("Month", style="green")
    names_table.add_column("Year", style="green")

    failed = False
    for name in names:
        try:
            parsed = parse_layer_name(name, pattern)
        except ClimatePointsError as e:
            rprint(f"[red]❌ {e}[/red]")
            failed = True
            continue
        names_table.add_row(name, parsed.month, parsed.year)

    console.print(names_table)
    if failed:
        raise typer.Exit(1)


@app.command("config")
def show_config(
    config_path: Annotated[Optional[Path], typer.Option("--config", "-c", help="JSON configuration file")] = None,
):
    """⚙️ Print the effective configuration as JSON."""
    config = load_cli_config(config_path)
    typer.echo(json.dumps(config.model_dump(), indent=2, default=str))


if __name__ == "__main__":
    app()
