#!/usr/bin/env python
"""Exceptions raised by the point extraction pipeline."""

from pathlib import Path
from typing import Any, Dict, Optional


class ClimatePointsError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class SiteTableError(ClimatePointsError, ValueError):
    """The site coordinate table is missing columns or has malformed rows."""


class RasterDiscoveryError(ClimatePointsError, ValueError):
    """A sub-period directory yielded no usable raster files."""


class GridGeometryError(ClimatePointsError, ValueError):
    """Rasters in one stack do not share shape and transform."""

    def __init__(self, path: Path, reason: str):
        super().__init__(
            f"Grid geometry of {Path(path).name} does not match the stack: {reason}",
            {"file": str(path)},
        )
        self.path = Path(path)


class DuplicateLayerError(ClimatePointsError, ValueError):
    """Two files in one stack derive the same layer name."""

    def __init__(self, layer_name: str, paths):
        super().__init__(
            f"Duplicate layer name '{layer_name}'",
            {"files": [str(p) for p in paths]},
        )
        self.layer_name = layer_name


class CRSMismatchError(ClimatePointsError, ValueError):
    """Site coordinates and grid are not in the same spatial reference."""


class LayerNameError(ClimatePointsError, ValueError):
    """A layer name does not follow <prefix>_<month>_<year>_<suffix>."""

    def __init__(self, name: str, reason: str):
        super().__init__(f"Cannot parse layer name '{name}': {reason}", {"name": name})
        self.name = name
        self.reason = reason


class ProjectionFileError(ClimatePointsError, ValueError):
    """The grid's .prj descriptor is empty or cannot be parsed."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Cannot read projection file {Path(path).name}: {reason}", {"file": str(path)})
        self.path = Path(path)
