#!/usr/bin/env python
"""Utilities for writing the tidy point table."""

from pathlib import Path
from typing import Optional, Dict
import json
import logging
from datetime import datetime

import pandas as pd

from climate_points.point_config import get_config, PointExtractionConfig

logger = logging.getLogger(__name__)


class OutputManager:
    """Writes date-stamped result tables."""

    def __init__(self, config: Optional[PointExtractionConfig] = None):
        """Initialize output manager with configuration."""
        self.config = config or get_config()

    def get_output_path(self, category: str, run_date: Optional[datetime] = None) -> Path:
        """Get the date-stamped output path for a category."""
        return self.config.output.get_full_output_path(category, run_date)

    def create_output_directory(self, output_path: Path) -> Path:
        """Create output directory and return the path."""
        output_dir = output_path.parent
        output_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Using output directory: {output_dir}")
        return output_dir

    def write_table(self,
                    table: pd.DataFrame,
                    category: str,
                    output_path: Optional[Path] = None,
                    metadata: Optional[Dict] = None,
                    run_date: Optional[datetime] = None) -> Path:
        """Write the long table as a delimited text file.

        A single attempt is made; an unwritable target raises ``OSError``.
        """
        output_cfg = self.config.output
        if output_path is None:
            output_path = self.get_output_path(category, run_date)
        output_path = Path(output_path)

        self.create_output_directory(output_path)
        table.to_csv(
            output_path,
            sep=output_cfg.separator,
            na_rep=output_cfg.na_rep,
            index=False,
        )
        logger.info(f"Saved {len(table)} rows to: {output_path}")

        if metadata is not None and output_cfg.write_metadata:
            self.save_metadata(output_path, metadata)

        return output_path

    def save_metadata(self, output_path: Path, metadata: Dict) -> Path:
        """Write a .metadata.json sidecar next to an output file."""
        metadata_path = output_path.with_suffix('.metadata.json')
        enhanced_metadata = {
            "file_info": {
                "filename": output_path.name,
                "created_at": datetime.now().isoformat(),
                "file_size_bytes": output_path.stat().st_size if output_path.exists() else None
            },
            "processing_config": self.config.model_dump(),
            **metadata
        }

        with open(metadata_path, 'w') as f:
            json.dump(enhanced_metadata, f, indent=2, default=str)

        logger.info(f"Saved metadata to: {metadata_path}")
        return metadata_path


def get_output_manager(config: Optional[PointExtractionConfig] = None) -> OutputManager:
    """Get a configured output manager instance."""
    return OutputManager(config)

