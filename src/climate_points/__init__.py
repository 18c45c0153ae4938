"""
Climate Points

Batch extraction of monthly climate grid values at site coordinates, reshaped
into a tidy site/month/year table.
"""

from climate_points._version import __version__

# Public API exports
from climate_points.point_config import (
    PointExtractionConfig,
    SiteTableConfig,
    GridConfig,
    ReshapeConfig,
    OutputConfig,
    get_config,
    set_config,
)
from climate_points.coordinates import load_sites
from climate_points.stacking import load_raster, stack_rasters
from climate_points.extraction import extract_points
from climate_points.reshape import (
    LayerName,
    parse_layer_name,
    check_layer_names,
    melt_extraction,
    pivot_layers,
    tidy_extractions,
)
from climate_points.pipeline import PipelineResult, run_pipeline

__all__ = [
    "__version__",
    # Configuration
    "PointExtractionConfig",
    "SiteTableConfig",
    "GridConfig",
    "ReshapeConfig",
    "OutputConfig",
    "get_config",
    "set_config",
    # Pipeline steps
    "load_sites",
    "load_raster",
    "stack_rasters",
    "extract_points",
    "LayerName",
    "parse_layer_name",
    "check_layer_names",
    "melt_extraction",
    "pivot_layers",
    "tidy_extractions",
    "PipelineResult",
    "run_pipeline",
]
