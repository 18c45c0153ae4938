#!/usr/bin/env python
"""Tests for configuration models."""

import pytest
from datetime import datetime
from pathlib import Path
from pydantic import ValidationError

from climate_points.point_config import (
    GridConfig,
    OutputConfig,
    PointExtractionConfig,
    ReshapeConfig,
    get_config,
    set_config,
)


class TestDefaults:
    """Test default settings."""

    def test_site_columns(self):
        config = PointExtractionConfig()
        assert config.sites.required_columns == ["site", "species", "longitude", "latitude"]
        assert config.sites.source_crs == "EPSG:4326"

    def test_grid_defaults(self):
        config = PointExtractionConfig()
        assert config.grid.raster_pattern == "*.asc"
        assert config.grid.projection_file is None
        assert config.reshape.sort_order == "chronological"


class TestValidation:
    """Test field validators."""

    def test_bad_filter_regex(self):
        with pytest.raises(ValidationError):
            GridConfig(layer_filter="(")

    def test_name_pattern_requires_groups(self):
        with pytest.raises(ValidationError):
            GridConfig(layer_name_pattern=r"^(\w+)_(\d+)$")

    def test_bad_sort_order(self):
        with pytest.raises(ValidationError):
            ReshapeConfig(sort_order="alphabetical")

    def test_bad_extension(self):
        with pytest.raises(ValidationError):
            OutputConfig(file_extension="xlsx")

    def test_extension_dot_stripped(self):
        assert OutputConfig(file_extension=".tsv").file_extension == "tsv"


class TestOutputNaming:
    """Test date-stamped file names."""

    def test_filename_embeds_date(self):
        output = OutputConfig(output_dir="out")
        name = output.generate_filename("precipitation", datetime(2024, 5, 1))
        assert name == "precipitation_point_values_2024-05-01.csv"

    def test_full_path(self):
        output = OutputConfig(output_dir="out", file_stem="sites")
        path = output.get_full_output_path("temperature", datetime(2023, 12, 31))
        assert path == Path("out") / "temperature_sites_2023-12-31.csv"


class TestEnvironmentAndFiles:
    """Test loading configuration from the environment and JSON."""

    def test_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CLIMATE_POINTS_RASTER_PATTERN", "*.tif")
        monkeypatch.setenv("CLIMATE_POINTS_OUTPUT_DIR", str(tmp_path))
        monkeypatch.setenv("CLIMATE_POINTS_SORT_ORDER", "month")
        monkeypatch.setenv("CLIMATE_POINTS_WRITE_METADATA", "false")

        config = PointExtractionConfig.from_env()

        assert config.grid.raster_pattern == "*.tif"
        assert config.output.output_dir == tmp_path
        assert config.reshape.sort_order == "month"
        assert config.output.write_metadata is False

    def test_save_and_load(self, tmp_path):
        config = PointExtractionConfig(grid=GridConfig(raster_pattern="*.tif"))
        path = tmp_path / "config.json"
        config.save_config(path)

        loaded = PointExtractionConfig.load_config(path)
        assert loaded.grid.raster_pattern == "*.tif"
        assert loaded.output.output_dir == config.output.output_dir

    def test_global_config(self):
        original = get_config()
        replacement = PointExtractionConfig(grid=GridConfig(raster_pattern="*.tif"))
        try:
            set_config(replacement)
            assert get_config() is replacement
        finally:
            set_config(original)
