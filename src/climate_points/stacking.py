#!/usr/bin/env python
"""Load same-geometry raster files into a multi-layer stack."""

from collections import defaultdict
from pathlib import Path
from typing import Optional, Sequence

import numpy as np
import xarray as xr
import rioxarray
from rich.console import Console

from climate_points.exceptions import DuplicateLayerError, GridGeometryError
from climate_points.utils.spatial_utils import as_crs

console = Console()

LAYER_DIM = "layer"


def layer_name_for(path: Path) -> str:
    """Layer name of a raster file: its base name without extension."""
    name = Path(path).name
    for suffix in (".gz", ".zip"):
        if name.endswith(suffix):
            name = name[: -len(suffix)]
    return Path(name).stem


def load_raster(path: Path, crs=None) -> xr.DataArray:
    """Load band 1 of a raster file into memory.

    The file handle is released before returning. Nodata cells become NaN.

    Args:
        path: Raster file
        crs: Reference to assign; the file's own reference is kept when omitted

    Returns:
        2-D DataArray on (y, x) named after the file
    """
    path = Path(path)
    with rioxarray.open_rasterio(path, masked=True) as da:
        grid = da.isel(band=0, drop=True).load()

    grid.name = layer_name_for(path)
    if crs is not None:
        transform = grid.rio.transform()
        grid = grid.rio.write_crs(as_crs(crs))
        grid = grid.rio.write_transform(transform)
    return grid


def _check_geometry(reference: xr.DataArray, grid: xr.DataArray, path: Path):
    if grid.shape != reference.shape:
        raise GridGeometryError(path, f"shape {grid.shape} != {reference.shape}")
    if not grid.rio.transform().almost_equals(reference.rio.transform()):
        raise GridGeometryError(
            path, f"transform {tuple(grid.rio.transform())[:6]} != {tuple(reference.rio.transform())[:6]}"
        )


def _check_unique_layers(paths: Sequence[Path]):
    seen = defaultdict(list)
    for path in paths:
        seen[layer_name_for(path)].append(path)
    for name, sources in seen.items():
        if len(sources) > 1:
            raise DuplicateLayerError(name, sources)


def stack_rasters(paths: Sequence[Path], crs=None, name: Optional[str] = None) -> xr.DataArray:
    """Stack raster files that share extent, resolution and cell size.

    Layers keep the order of ``paths`` and are named after the source files.
    Grid files carry no reference of their own, so ``crs`` is written onto the
    stack explicitly.

    Args:
        paths: Non-empty list of raster files
        crs: Grid reference to assign to the stack
        name: Optional name for the stacked DataArray

    Returns:
        3-D DataArray on (layer, y, x)

    Raises:
        ValueError: If ``paths`` is empty
        DuplicateLayerError: If two files derive the same layer name
        GridGeometryError: If a file does not match the first file's grid
    """
    paths = [Path(p) for p in paths]
    if not paths:
        raise ValueError("Cannot build a raster stack from an empty file list")

    _check_unique_layers(paths)

    first = load_raster(paths[0])
    transform = first.rio.transform()
    if crs is None:
        crs = first.rio.crs

    # Filled layer by layer; only one loaded grid is alive next to the stack.
    data = np.empty((len(paths),) + first.shape, dtype=np.result_type(first.dtype, np.float32))
    data[0] = first.values
    names = [first.name]
    for i, path in enumerate(paths[1:], start=1):
        grid = load_raster(path)
        _check_geometry(first, grid, path)
        data[i] = grid.values
        names.append(grid.name)
        del grid

    stack = xr.DataArray(
        data,
        dims=(LAYER_DIM, "y", "x"),
        coords={LAYER_DIM: names, "y": first["y"].values, "x": first["x"].values},
        name=name,
    )
    if crs is not None:
        stack = stack.rio.write_crs(as_crs(crs))
    stack = stack.rio.write_transform(transform)

    console.print(f"[cyan]Stacked {len(names)} layers of shape {first.shape}[/cyan]")
    return stack


def layer_names(stack: xr.DataArray) -> list[str]:
    """Layer names of a stack in layer order."""
    if LAYER_DIM not in stack.dims:
        return [stack.name]
    return [str(v) for v in np.asarray(stack[LAYER_DIM].values)]
