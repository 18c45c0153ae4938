#!/usr/bin/env python
"""Pytest configuration and shared fixtures for climate-points tests."""

import pytest
import numpy as np
import pandas as pd
import rasterio
from rasterio.transform import from_origin
from pyproj import CRS
from pathlib import Path

from climate_points.point_config import (
    GridConfig,
    OutputConfig,
    PointExtractionConfig,
)

# UTM 32N grid, 20 x 20 cells of 1 km
UTM_ORIGIN = (490000.0, 5550000.0)
UTM_SHAPE = (20, 20)
UTM_TRANSFORM = from_origin(UTM_ORIGIN[0], UTM_ORIGIN[1], 1000.0, 1000.0)

# Geographic grid, 10 x 10 cells of 1 degree covering 5-15E, 45-55N
GEO_TRANSFORM = from_origin(5.0, 55.0, 1.0, 1.0)
GEO_SHAPE = (10, 10)

NODATA = -9999.0


def write_grid(path: Path, data: np.ndarray, transform, crs=None, nodata=NODATA) -> Path:
    """Write a single-band GeoTIFF."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with rasterio.open(
        path,
        "w",
        driver="GTiff",
        height=data.shape[0],
        width=data.shape[1],
        count=1,
        dtype="float32",
        crs=crs,
        transform=transform,
        nodata=nodata,
    ) as dst:
        dst.write(data.astype("float32"), 1)
    return path


def write_prj(path: Path, epsg: int = 32632) -> Path:
    """Write an ESRI-style projection descriptor."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(CRS.from_epsg(epsg).to_wkt("WKT1_ESRI"))
    return path


def constant_grid(value: float, shape=UTM_SHAPE) -> np.ndarray:
    return np.full(shape, value, dtype="float32")


def index_grid(shape=GEO_SHAPE) -> np.ndarray:
    """Grid whose cell value is row * 100 + col."""
    rows, cols = np.indices(shape)
    return (rows * 100 + cols).astype("float32")


@pytest.fixture
def sites_frame():
    """Two sites inside the UTM test grid."""
    return pd.DataFrame(
        {
            "site": ["A", "B"],
            "species": ["Fagus", "Quercus"],
            "longitude": [9.0, 9.05],
            "latitude": [50.0, 50.05],
        }
    )


@pytest.fixture
def sites_csv(tmp_path, sites_frame):
    path = tmp_path / "sites.csv"
    sites_frame.to_csv(path, index=False)
    return path


@pytest.fixture
def category_dir(tmp_path):
    """Category root with a .prj file and two sub-periods of GeoTIFFs.

    Each grid is constant; its value is year + month / 100.
    """
    root = tmp_path / "precipitation"
    write_prj(root / "gk.prj")
    layout = {
        "01_Jan": [("01", 2000), ("01", 2001), ("01", 2002)],
        "02_Feb": [("02", 2000), ("02", 2001)],
    }
    for period, slices in layout.items():
        for month, year in slices:
            write_grid(
                root / period / f"RSMS_{month}_{year}_01.tif",
                constant_grid(year + int(month) / 100),
                UTM_TRANSFORM,
            )
    return root


@pytest.fixture
def jan_only_dir(tmp_path):
    """Category root with a single 'jan' period of three yearly grids."""
    root = tmp_path / "precip_jan"
    write_prj(root / "grid.prj")
    for year in (2000, 2001, 2002):
        write_grid(
            root / "jan" / f"RSMS_01_{year}_01.tif",
            constant_grid(float(year)),
            UTM_TRANSFORM,
        )
    return root


@pytest.fixture
def test_config(tmp_path):
    """Configuration reading GeoTIFFs and writing into tmp_path."""
    return PointExtractionConfig(
        grid=GridConfig(raster_pattern="*.tif"),
        output=OutputConfig(output_dir=tmp_path / "output"),
    )


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "integration: mark test as integration test")
    config.addinivalue_line("markers", "unit: mark test as unit test")


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically."""
    for item in items:
        if "pipeline" in item.nodeid or "cli" in item.nodeid:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
