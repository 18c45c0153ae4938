#!/usr/bin/env python
"""Sample raster grids and stacks at site coordinates."""

from typing import Union

import numpy as np
import pandas as pd
import geopandas as gpd
import xarray as xr
import rioxarray  # noqa: F401  registers the .rio accessor
from rich.console import Console

from climate_points.exceptions import CRSMismatchError
from climate_points.stacking import LAYER_DIM, layer_names
from climate_points.utils.spatial_utils import grid_indices, same_crs

console = Console()


def _check_reference(raster: xr.DataArray, sites: gpd.GeoDataFrame):
    raster_crs = raster.rio.crs
    if raster_crs is None:
        raise CRSMismatchError("Raster carries no spatial reference; assign one before extraction")
    if not same_crs(sites.crs, raster_crs):
        raise CRSMismatchError(
            "Sites and raster are in different spatial references; reproject the sites first",
            {"sites": str(sites.crs), "raster": str(raster_crs)},
        )


def sample_values(raster: xr.DataArray, sites: gpd.GeoDataFrame) -> np.ndarray:
    """Sample cell values under each site.

    Args:
        raster: 2-D grid or 3-D stack on (layer, y, x)
        sites: Points in the raster's reference

    Returns:
        Array of shape (n_sites,) for a grid or (n_sites, n_layers) for a stack;
        sites outside the extent are NaN
    """
    _check_reference(raster, sites)

    values = np.asarray(raster.values, dtype=float)
    if values.ndim == 2:
        values = values[np.newaxis, ...]
    elif values.ndim != 3:
        raise ValueError(f"Expected a 2-D grid or 3-D stack, got dims {raster.dims}")

    n_layers, n_rows, n_cols = values.shape
    xs = sites.geometry.x.to_numpy()
    ys = sites.geometry.y.to_numpy()
    rows, cols, inside = grid_indices(raster.rio.transform(), (n_rows, n_cols), xs, ys)

    sampled = np.full((len(sites), n_layers), np.nan)
    if inside.any():
        sampled[inside, :] = values[:, rows[inside], cols[inside]].T

    outside = int((~inside).sum())
    if outside:
        console.print(f"[yellow]{outside} of {len(sites)} sites fall outside the grid extent[/yellow]")

    if raster.ndim == 2:
        return sampled[:, 0]
    return sampled


def site_metadata(sites: gpd.GeoDataFrame) -> pd.DataFrame:
    """Site attributes without the geometry column."""
    return pd.DataFrame(sites.drop(columns=sites.geometry.name)).reset_index(drop=True)


def extract_points(
    raster: xr.DataArray,
    sites: gpd.GeoDataFrame,
) -> Union[pd.Series, pd.DataFrame]:
    """Extract raster values at site coordinates.

    For a single grid the result is one value per site. For a stack it is a
    wide table: the site metadata columns followed by one column per layer.

    Args:
        raster: Grid or stack with a spatial reference
        sites: Points already reprojected into the raster's reference

    Returns:
        Series (grid) or DataFrame (stack)
    """
    sampled = sample_values(raster, sites)

    if raster.ndim == 2:
        return pd.Series(sampled, index=sites.index, name=raster.name)
    if LAYER_DIM not in raster.dims:
        raise ValueError(f"Stack must have a '{LAYER_DIM}' dimension, got {raster.dims}")

    values = pd.DataFrame(sampled, columns=layer_names(raster))
    return pd.concat([site_metadata(sites), values], axis=1)
