#!/usr/bin/env python
"""Site coordinate loading."""

from pathlib import Path
from typing import Optional

import pandas as pd
import geopandas as gpd
from pyproj import CRS
from rich.console import Console

from climate_points.exceptions import SiteTableError
from climate_points.point_config import SiteTableConfig, get_config

console = Console()


def _describe_rows(mask: pd.Series, limit: int = 5) -> list:
    # +2: header line and 1-based numbering
    return [int(i) + 2 for i in mask[mask].index[:limit]]


def sites_from_frame(
    table: pd.DataFrame,
    config: Optional[SiteTableConfig] = None,
) -> gpd.GeoDataFrame:
    """Validate a site table and turn it into points.

    Args:
        table: Raw site table
        config: Column layout and source reference

    Returns:
        GeoDataFrame with one point per site in the source reference

    Raises:
        SiteTableError: If a required column is missing or any row is malformed
    """
    config = config or get_config().sites

    missing = [c for c in config.required_columns if c not in table.columns]
    if missing:
        raise SiteTableError(
            f"Site table lacks required columns: {missing}",
            {"available": list(table.columns)},
        )

    table = table.reset_index(drop=True)
    lons = pd.to_numeric(table[config.lon_column], errors="coerce")
    lats = pd.to_numeric(table[config.lat_column], errors="coerce")

    problems = {}
    missing_id = table[config.id_column].isna()
    if missing_id.any():
        problems["missing_id_rows"] = _describe_rows(missing_id)
    missing_category = table[config.category_column].isna()
    if missing_category.any():
        problems["missing_category_rows"] = _describe_rows(missing_category)
    bad_coords = lons.isna() | lats.isna()
    if bad_coords.any():
        problems["bad_coordinate_rows"] = _describe_rows(bad_coords)

    source_crs = CRS.from_user_input(config.source_crs)
    if source_crs.is_geographic and not bad_coords.all():
        out_of_range = ~bad_coords & (
            ~lats.between(-90, 90) | ~lons.between(-180, 360)
        )
        if out_of_range.any():
            problems["out_of_range_rows"] = _describe_rows(out_of_range)

    if problems:
        raise SiteTableError("Malformed rows in site table", problems)

    table = table.copy()
    table[config.lon_column] = lons
    table[config.lat_column] = lats

    return gpd.GeoDataFrame(
        table,
        geometry=gpd.points_from_xy(lons, lats),
        crs=source_crs,
    )


def load_sites(
    sites_path: Path,
    config: Optional[SiteTableConfig] = None,
) -> gpd.GeoDataFrame:
    """Load the site coordinate table.

    The whole load fails on the first malformed table; no partial result is
    returned.

    Args:
        sites_path: Delimited text file with identifier, category, lon and lat columns
        config: Column layout and source reference

    Returns:
        GeoDataFrame tagged with the source reference
    """
    config = config or get_config().sites
    sites_path = Path(sites_path)

    console.print(f"[blue]Loading sites:[/blue] {sites_path}")
    try:
        table = pd.read_csv(
            sites_path,
            sep=config.separator,
            dtype={config.id_column: str, config.category_column: str},
        )
    except pd.errors.ParserError as e:
        raise SiteTableError(f"Cannot parse site table {sites_path.name}: {e}") from e

    sites = sites_from_frame(table, config)
    console.print(f"[green]Loaded {len(sites)} sites[/green]")
    return sites
