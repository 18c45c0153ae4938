"""
Utility modules for point extraction.

This package provides file discovery, spatial reference helpers and output
writing.
"""

from .file_discovery import (
    discover_raster_files,
    find_projection_file,
    list_sub_periods,
    should_exclude_file,
)
from .spatial_utils import (
    grid_indices,
    read_projection_file,
    reproject_sites,
    same_crs,
)
from .output_utils import (
    OutputManager,
    get_output_manager,
)

__all__ = [
    # File discovery
    "discover_raster_files",
    "find_projection_file",
    "list_sub_periods",
    "should_exclude_file",
    # Spatial utilities
    "grid_indices",
    "read_projection_file",
    "reproject_sites",
    "same_crs",
    # Output utilities
    "OutputManager",
    "get_output_manager",
]
