#!/usr/bin/env python
"""Tests for sub-period and raster file discovery."""

import pytest

from climate_points.exceptions import ProjectionFileError, RasterDiscoveryError
from climate_points.utils.file_discovery import (
    discover_raster_files,
    find_projection_file,
    list_sub_periods,
    should_exclude_file,
)
from climate_points.utils.spatial_utils import read_projection_file

from conftest import UTM_TRANSFORM, constant_grid, write_grid, write_prj


class TestExclusion:
    """Test system and temporary file filtering."""

    @pytest.mark.parametrize(
        "name",
        ["._RSMS_01_2000_01.asc", ".hidden.asc", "~RSMS.asc", "RSMS.asc~", "RSMS.bak.asc", "Thumbs.db"],
    )
    def test_excluded(self, tmp_path, name):
        excluded, reason = should_exclude_file(tmp_path / name)
        assert excluded
        assert reason

    def test_regular_file(self, tmp_path):
        assert should_exclude_file(tmp_path / "RSMS_01_2000_01.asc") == (False, None)


class TestListSubPeriods:
    """Test listing period directories."""

    def test_sorted_directories_only(self, category_dir):
        (category_dir / ".cache").mkdir()
        assert list_sub_periods(category_dir) == ["01_Jan", "02_Feb"]

    def test_missing_root(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            list_sub_periods(tmp_path / "nope")


class TestDiscoverRasterFiles:
    """Test raster discovery inside one period."""

    def test_sorted_absolute_paths(self, category_dir):
        files = discover_raster_files(category_dir / "01_Jan", pattern="*.tif")

        assert [f.name for f in files] == [
            "RSMS_01_2000_01.tif", "RSMS_01_2001_01.tif", "RSMS_01_2002_01.tif"
        ]
        assert all(f.is_absolute() for f in files)

    def test_skips_hidden_files(self, category_dir):
        (category_dir / "01_Jan" / "._RSMS_01_1999_01.tif").write_bytes(b"\x00")
        files = discover_raster_files(category_dir / "01_Jan", pattern="*.tif")
        assert len(files) == 3

    def test_no_matches(self, category_dir):
        with pytest.raises(RasterDiscoveryError):
            discover_raster_files(category_dir / "01_Jan", pattern="*.asc")

    def test_missing_directory(self, category_dir):
        with pytest.raises(FileNotFoundError):
            discover_raster_files(category_dir / "13_Dec", pattern="*.tif")

    def test_validation_rejects_unreadable(self, tmp_path):
        period = tmp_path / "jan"
        write_grid(period / "RSMS_01_2000_01.tif", constant_grid(1.0), UTM_TRANSFORM)
        (period / "RSMS_01_2001_01.tif").write_text("not a raster")

        assert len(discover_raster_files(period, pattern="*.tif")) == 2
        with pytest.raises(RasterDiscoveryError):
            discover_raster_files(period, pattern="*.tif", validate=True)


class TestProjectionFile:
    """Test locating and reading the grid descriptor."""

    def test_single_prj(self, category_dir):
        assert find_projection_file(category_dir).name == "gk.prj"

    def test_named_prj(self, category_dir):
        write_prj(category_dir / "other.prj", epsg=31467)
        assert find_projection_file(category_dir, "other.prj").name == "other.prj"

    def test_ambiguous_prj(self, category_dir):
        write_prj(category_dir / "other.prj", epsg=31467)
        with pytest.raises(RasterDiscoveryError):
            find_projection_file(category_dir)

    def test_missing_prj(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            find_projection_file(tmp_path)

    def test_read_esri_wkt(self, category_dir):
        crs = read_projection_file(category_dir / "gk.prj")
        assert crs.is_projected
        assert "32N" in crs.name

    def test_empty_prj(self, tmp_path):
        path = tmp_path / "empty.prj"
        path.write_text("")
        with pytest.raises(ValueError):
            read_projection_file(path)

    def test_unparsable_prj(self, tmp_path):
        path = tmp_path / "broken.prj"
        path.write_text("not a projection")
        with pytest.raises(ProjectionFileError) as excinfo:
            read_projection_file(path)
        assert excinfo.value.path.name == "broken.prj"
