"""Core pipeline: monthly grids -> point values -> tidy CSV.

Provides a single ``run_pipeline()`` function that loads the sites, reads the
grid reference, reprojects the sites once and then stacks, samples and
reshapes every sub-period of a category directory.
"""

from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pandas as pd
from pydantic import BaseModel, Field
from pyproj import CRS
from rich.console import Console

from climate_points.coordinates import load_sites
from climate_points.extraction import extract_points
from climate_points.point_config import PointExtractionConfig, get_config
from climate_points.reshape import check_layer_names, tidy_extractions
from climate_points.stacking import layer_name_for, stack_rasters
from climate_points.utils.file_discovery import (
    discover_raster_files,
    find_projection_file,
    list_sub_periods,
)
from climate_points.utils.output_utils import get_output_manager
from climate_points.utils.spatial_utils import read_projection_file, reproject_sites

console = Console()


class PipelineResult(BaseModel):
    """Result returned by ``run_pipeline``."""

    model_config = {"arbitrary_types_allowed": True}

    tidy_df: pd.DataFrame = Field(description="Final long-format table.")
    output_path: Optional[Path] = Field(
        default=None, description="Path where the table was written."
    )
    per_period: Dict[str, pd.DataFrame] = Field(
        default_factory=dict,
        description="Wide extraction result of every sub-period.",
    )
    periods_processed: List[str] = Field(default_factory=list)
    layer_counts: Dict[str, int] = Field(default_factory=dict)
    grid_crs: Optional[CRS] = Field(default=None, description="Reference of the grids.")


def run_pipeline(
    category_root: Path,
    sites_path: Path,
    periods: Optional[Sequence[str]] = None,
    *,
    config: Optional[PointExtractionConfig] = None,
    output_path: Optional[Path] = None,
    write: bool = True,
    run_date: Optional[datetime] = None,
) -> PipelineResult:
    """Run the point extraction pipeline for one category directory.

    Parameters
    ----------
    category_root : Path
        Category directory (e.g. ``precipitation``) holding one sub-directory
        per sub-period and the ``.prj`` grid descriptor.
    sites_path : Path
        Site coordinate table.
    periods : sequence of str, optional
        Sub-period directories to process. Defaults to all of them.
    config : PointExtractionConfig, optional
        Pipeline configuration. Defaults to the global configuration.
    output_path : Path, optional
        Explicit output file. Defaults to a date-stamped file in the
        configured output directory.
    write : bool
        Write the tidy table to disk.
    run_date : datetime, optional
        Date embedded in the output file name. Defaults to now.

    Returns
    -------
    PipelineResult
        Tidy table, per-period wide tables and run metadata.
    """
    config = config or get_config()
    category_root = Path(category_root)
    category = category_root.resolve().name

    if periods is None:
        periods = list_sub_periods(category_root)
    periods = list(periods)
    if not periods:
        raise FileNotFoundError(f"No sub-period directories in {category_root}")

    console.print(f"[bold]Pipeline: category={category}, periods={len(periods)}[/bold]")

    # ------------------------------------------------------------------
    # Stage 1: Sites and grid reference
    # ------------------------------------------------------------------
    console.print("[bold cyan]Stage 1: Sites and grid reference[/bold cyan]")
    sites = load_sites(sites_path, config.sites)
    prj_path = find_projection_file(category_root, config.grid.projection_file)
    grid_crs = read_projection_file(prj_path)

    # Reprojected once for every period.
    grid_sites = reproject_sites(sites, grid_crs)

    # ------------------------------------------------------------------
    # Stage 2: Stack and extract per sub-period
    # ------------------------------------------------------------------
    console.print("[bold cyan]Stage 2: Stack and extract[/bold cyan]")
    per_period: Dict[str, Optional[pd.DataFrame]] = dict.fromkeys(periods)
    layer_counts: Dict[str, int] = {}

    for period in periods:
        raster_files = discover_raster_files(
            category_root / period,
            pattern=config.grid.raster_pattern,
            validate=config.grid.validate_files,
        )
        console.print(f"[cyan]{period}: {len(raster_files)} rasters[/cyan]")
        # Every file must be a named layer; the reshaper melts only filtered columns.
        check_layer_names([layer_name_for(p) for p in raster_files], config.grid)

        stack = stack_rasters(raster_files, crs=grid_crs, name=category)
        wide = extract_points(stack, grid_sites)
        del stack

        per_period[period] = wide
        layer_counts[period] = len(raster_files)

    # ------------------------------------------------------------------
    # Stage 3: Reshape & write
    # ------------------------------------------------------------------
    console.print("[bold cyan]Stage 3: Reshape & write[/bold cyan]")
    tidy_df = tidy_extractions(
        per_period,
        site_columns=[config.sites.id_column, config.sites.category_column],
        grid_config=config.grid,
        reshape_config=config.reshape,
    )

    written_path = None
    if write:
        metadata = {
            "processing_info": {
                "category_root": str(category_root),
                "sites_path": str(sites_path),
                "projection_file": str(prj_path),
                "grid_crs": grid_crs.to_string(),
                "periods": periods,
            },
            "data_summary": {
                "sites": int(len(sites)),
                "layers_per_period": layer_counts,
                "total_records": int(len(tidy_df)),
                "missing_values": int(tidy_df[config.reshape.value_column].isna().sum()),
            },
        }
        written_path = get_output_manager(config).write_table(
            tidy_df,
            category=category,
            output_path=output_path,
            metadata=metadata,
            run_date=run_date,
        )
        console.print(f"[green]Saved: {written_path} ({len(tidy_df)} rows)[/green]")

    return PipelineResult(
        tidy_df=tidy_df,
        output_path=written_path,
        per_period=per_period,
        periods_processed=periods,
        layer_counts=layer_counts,
        grid_crs=grid_crs,
    )
