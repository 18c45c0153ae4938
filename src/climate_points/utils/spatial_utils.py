#!/usr/bin/env python
"""Spatial reference and grid indexing utilities."""

from pathlib import Path

import numpy as np
import geopandas as gpd
from pyproj import CRS
from pyproj.exceptions import CRSError
from rasterio.transform import rowcol
from rich.console import Console

from climate_points.exceptions import ProjectionFileError

console = Console()


def read_projection_file(prj_path: Path) -> CRS:
    """Read a coordinate reference from a .prj descriptor.

    Args:
        prj_path: Path to a WKT (ESRI or OGC) projection file

    Returns:
        Parsed CRS
    """
    text = Path(prj_path).read_text().strip()
    if not text:
        raise ProjectionFileError(prj_path, "file is empty")
    try:
        crs = CRS.from_user_input(text)
    except CRSError as e:
        raise ProjectionFileError(prj_path, str(e)) from e
    console.print(f"[cyan]Grid reference from {Path(prj_path).name}: {crs.name}[/cyan]")
    return crs


def as_crs(value) -> CRS:
    """Coerce a string, rasterio CRS or pyproj CRS to a pyproj CRS."""
    if isinstance(value, CRS):
        return value
    return CRS.from_user_input(value)


def same_crs(left, right) -> bool:
    """Check whether two references describe the same projection."""
    if left is None or right is None:
        return False
    left, right = as_crs(left), as_crs(right)
    if left.equals(right, ignore_axis_order=True):
        return True
    # WKT round trips can turn a datum ensemble into a plain datum
    left_epsg = left.to_epsg()
    return left_epsg is not None and left_epsg == right.to_epsg()


def reproject_sites(sites: gpd.GeoDataFrame, target_crs) -> gpd.GeoDataFrame:
    """Reproject site points into the grid reference.

    Args:
        sites: Site points with a CRS
        target_crs: Grid reference

    Returns:
        New GeoDataFrame in ``target_crs``
    """
    if sites.crs is None:
        raise ValueError("Site coordinates carry no spatial reference")

    target_crs = as_crs(target_crs)
    if same_crs(sites.crs, target_crs):
        return sites.copy()

    console.print(f"[yellow]Reprojecting {len(sites)} sites from {sites.crs.name} to {target_crs.name}[/yellow]")
    return sites.to_crs(target_crs)


def grid_indices(transform, shape: tuple[int, int], xs: np.ndarray, ys: np.ndarray):
    """Map point coordinates to grid row/column indices.

    Args:
        transform: Affine transform of the grid
        shape: Grid shape as (rows, cols)
        xs: Point x coordinates in the grid reference
        ys: Point y coordinates in the grid reference

    Returns:
        Tuple of (rows, cols, inside) where ``inside`` flags points within the extent
    """
    xs = np.asarray(xs, dtype=float)
    ys = np.asarray(ys, dtype=float)
    if xs.size == 0:
        empty = np.array([], dtype=int)
        return empty, empty, np.array([], dtype=bool)

    rows, cols = rowcol(transform, xs, ys)
    rows = np.atleast_1d(np.asarray(rows, dtype=int))
    cols = np.atleast_1d(np.asarray(cols, dtype=int))

    n_rows, n_cols = shape
    inside = (
        np.isfinite(xs) & np.isfinite(ys)
        & (rows >= 0) & (rows < n_rows)
        & (cols >= 0) & (cols < n_cols)
    )
    return rows, cols, inside
