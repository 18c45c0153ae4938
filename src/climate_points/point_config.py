#!/usr/bin/env python
"""Configuration management for point extraction from climate grids."""

from pathlib import Path
from typing import Literal, Optional
from pydantic import BaseModel, Field, field_validator
import os
import re
from datetime import datetime


DEFAULT_LAYER_NAME_PATTERN = (
    r"^(?P<prefix>[^_]+)_(?P<month>\d{1,2})_(?P<year>\d{4})_(?P<suffix>[^_]+)$"
)


class SiteTableConfig(BaseModel):
    """Layout of the site coordinate table."""

    id_column: str = Field(default="site", description="Site identifier column")
    category_column: str = Field(default="species", description="Category tag column")
    lon_column: str = Field(default="longitude", description="Longitude column")
    lat_column: str = Field(default="latitude", description="Latitude column")
    separator: str = Field(default=",", description="Field separator of the table")
    source_crs: str = Field(default="EPSG:4326", description="Reference of the site coordinates")

    @property
    def required_columns(self) -> list[str]:
        return [self.id_column, self.category_column, self.lon_column, self.lat_column]


class GridConfig(BaseModel):
    """Raster file discovery and naming settings."""

    raster_pattern: str = Field(default="*.asc", description="Glob for raster files in a period directory")
    projection_file: Optional[str] = Field(
        default=None,
        description="Name of the .prj descriptor in the category root (default: the only *.prj)",
    )
    validate_files: bool = Field(default=False, description="Open every raster before stacking")
    layer_filter: str = Field(default=r"^RSMS_", description="Regex selecting layer columns when melting")
    layer_name_pattern: str = Field(
        default=DEFAULT_LAYER_NAME_PATTERN,
        description="Regex with month and year groups for layer names",
    )

    @field_validator('layer_filter')
    def validate_layer_filter(cls, v):
        try:
            re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid layer filter regex: {e}")
        return v

    @field_validator('layer_name_pattern')
    def validate_layer_name_pattern(cls, v):
        try:
            compiled = re.compile(v)
        except re.error as e:
            raise ValueError(f"Invalid layer name regex: {e}")
        missing = {"month", "year"} - set(compiled.groupindex)
        if missing:
            raise ValueError(f"Layer name regex lacks named groups: {sorted(missing)}")
        return v


class ReshapeConfig(BaseModel):
    """Long table layout."""

    period_column: str = Field(default="period", description="Sub-period label column")
    value_column: str = Field(default="value", description="Extracted value column")
    month_column: str = Field(default="month", description="Parsed month column")
    year_column: str = Field(default="year", description="Parsed year column")
    sort_order: Literal["chronological", "month"] = Field(
        default="chronological",
        description="Sort by year then month, or by month then year",
    )


class OutputConfig(BaseModel):
    """Output file and directory configuration."""

    output_dir: Path = Field(default=Path('./output'), description="Directory receiving the tidy table")
    file_stem: str = Field(default="point_values", description="File name stem")
    date_format: str = Field(default="%Y-%m-%d", description="Date format for file names")
    file_extension: str = Field(default="csv", description="File extension")
    separator: str = Field(default=",", description="Field separator")
    na_rep: str = Field(default="NA", description="Marker written for missing values")
    write_metadata: bool = Field(default=True, description="Write a .metadata.json sidecar")

    @field_validator('output_dir', mode='before')
    def validate_output_dir(cls, v):
        return Path(v)

    @field_validator('file_extension')
    def validate_file_extension(cls, v):
        v = v.lstrip('.')
        valid_extensions = ['csv', 'tsv', 'txt']
        if v not in valid_extensions:
            raise ValueError(f"File extension must be one of {valid_extensions}")
        return v

    def generate_filename(self, category: str, run_date: Optional[datetime] = None) -> str:
        """Build '<category>_<stem>_<date>.<ext>'."""
        date_str = (run_date or datetime.now()).strftime(self.date_format)
        parts = [category, self.file_stem, date_str]
        return "_".join(p for p in parts if p) + f".{self.file_extension}"

    def get_full_output_path(self, category: str, run_date: Optional[datetime] = None) -> Path:
        return self.output_dir / self.generate_filename(category, run_date)


class PointExtractionConfig(BaseModel):
    """Main point extraction configuration."""

    sites: SiteTableConfig = Field(default_factory=SiteTableConfig)
    grid: GridConfig = Field(default_factory=GridConfig)
    reshape: ReshapeConfig = Field(default_factory=ReshapeConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    def setup_directories(self):
        """Create the output directory."""
        self.output.output_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_env(cls) -> 'PointExtractionConfig':
        """Create config from environment variables."""
        config_data = {}

        if source_crs := os.getenv('CLIMATE_POINTS_SOURCE_CRS'):
            config_data.setdefault('sites', {})['source_crs'] = source_crs

        if separator := os.getenv('CLIMATE_POINTS_SITE_SEPARATOR'):
            config_data.setdefault('sites', {})['separator'] = separator

        if pattern := os.getenv('CLIMATE_POINTS_RASTER_PATTERN'):
            config_data.setdefault('grid', {})['raster_pattern'] = pattern

        if projection_file := os.getenv('CLIMATE_POINTS_PROJECTION_FILE'):
            config_data.setdefault('grid', {})['projection_file'] = projection_file

        if layer_filter := os.getenv('CLIMATE_POINTS_LAYER_FILTER'):
            config_data.setdefault('grid', {})['layer_filter'] = layer_filter

        if sort_order := os.getenv('CLIMATE_POINTS_SORT_ORDER'):
            config_data.setdefault('reshape', {})['sort_order'] = sort_order

        if output_dir := os.getenv('CLIMATE_POINTS_OUTPUT_DIR'):
            config_data.setdefault('output', {})['output_dir'] = output_dir

        if write_metadata := os.getenv('CLIMATE_POINTS_WRITE_METADATA'):
            config_data.setdefault('output', {})['write_metadata'] = write_metadata.lower() == 'true'

        return cls(**config_data)

    def save_config(self, path: Path):
        """Save configuration to file."""
        import json
        with open(path, 'w') as f:
            json.dump(self.model_dump(), f, indent=2, default=str)

    @classmethod
    def load_config(cls, path: Path) -> 'PointExtractionConfig':
        """Load configuration from file."""
        import json
        with open(path, 'r') as f:
            data = json.load(f)
        return cls(**data)


# Global configuration instance
DEFAULT_CONFIG = PointExtractionConfig()

def get_config() -> PointExtractionConfig:
    """Get the global configuration instance."""
    return DEFAULT_CONFIG

def set_config(config: PointExtractionConfig):
    """Set the global configuration instance."""
    global DEFAULT_CONFIG
    DEFAULT_CONFIG = config
