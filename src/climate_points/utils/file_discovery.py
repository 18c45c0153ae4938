"""
Raster file discovery for category/sub-period directory trees.

Handles common issues with file system artifacts, hidden files, and unreadable rasters.
"""

from pathlib import Path
from typing import List, Optional, Tuple
import rasterio
from rasterio.errors import RasterioIOError
from rich.console import Console

from climate_points.exceptions import RasterDiscoveryError

console = Console()


def is_valid_raster(file_path: Path) -> Tuple[bool, Optional[str]]:
    """
    Validate if a file is a readable raster.

    Args:
        file_path: Path to the file to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    try:
        with rasterio.open(file_path) as src:
            if src.count < 1:
                return False, "No raster bands found"
        return True, None
    except RasterioIOError as e:
        error_msg = str(e)
        if "not recognized as" in error_msg:
            error_msg = "Not a supported raster format"
        elif "No such file" in error_msg:
            error_msg = "File not found or inaccessible"
        return False, error_msg


def should_exclude_file(file_path: Path) -> Tuple[bool, Optional[str]]:
    """
    Check if a file should be excluded based on common patterns.

    Returns:
        Tuple of (should_exclude, reason)
    """
    filename = file_path.name

    # macOS resource fork files
    if filename.startswith('._'):
        return True, "macOS resource fork file"

    if filename.startswith('.'):
        return True, "Hidden file"

    if filename.startswith('~') or filename.endswith('~'):
        return True, "Temporary file"

    if any(suffix in filename for suffix in ['.corrupted', '.backup', '.bak', '.tmp']):
        return True, "Backup or corrupted file marker"

    # Windows thumbnail cache
    if filename.lower() == 'thumbs.db':
        return True, "Windows thumbnail cache"

    return False, None


def list_sub_periods(category_root: Path) -> List[str]:
    """
    List the sub-period directories of a category root.

    Args:
        category_root: Directory holding one sub-directory per sub-period

    Returns:
        Sub-period directory names in lexicographic order
    """
    category_root = Path(category_root)
    if not category_root.exists():
        raise FileNotFoundError(f"Directory not found: {category_root}")

    if not category_root.is_dir():
        raise ValueError(f"Path is not a directory: {category_root}")

    return sorted(
        entry.name
        for entry in category_root.iterdir()
        if entry.is_dir() and not should_exclude_file(entry)[0]
    )


def discover_raster_files(
    directory: Path,
    pattern: str = "*.asc",
    validate: bool = False,
    verbose: bool = False,
) -> List[Path]:
    """
    Discover raster files in a sub-period directory.

    Files are returned as absolute paths sorted by file name, which is also
    the layer order of the stack built from them.

    Args:
        directory: Directory to search
        pattern: Glob pattern to match files
        validate: If True, open each file with rasterio and fail on unreadable ones
        verbose: If True, print skipped files and a summary

    Returns:
        List of raster file paths

    Raises:
        FileNotFoundError: If the directory does not exist
        RasterDiscoveryError: If no raster files are found or a file is unreadable
    """
    directory = Path(directory)
    if not directory.exists():
        raise FileNotFoundError(f"Directory not found: {directory}")

    if not directory.is_dir():
        raise ValueError(f"Path is not a directory: {directory}")

    all_files = sorted(
        (p for p in directory.glob(pattern) if p.is_file()),
        key=lambda p: p.name,
    )

    if verbose:
        console.print(f"[dim]Scanning {directory} for {pattern} files...[/dim]")

    raster_files = []
    invalid_files = []

    for file_path in all_files:
        should_exclude, exclude_reason = should_exclude_file(file_path)
        if should_exclude:
            if verbose:
                console.print(f"[yellow]⏭️  Skipping {file_path.name}: {exclude_reason}[/yellow]")
            continue

        if validate:
            is_valid, error_msg = is_valid_raster(file_path)
            if not is_valid:
                invalid_files.append((file_path, error_msg))
                continue

        raster_files.append(file_path.resolve())

    if verbose:
        console.print(f"  • Found: {len(all_files)} files matching {pattern}")
        console.print(f"  • Usable: [green]{len(raster_files)}[/green]")

    if invalid_files:
        error_msg = f"Found {len(invalid_files)} unreadable raster files in {directory}"
        raise RasterDiscoveryError(
            error_msg,
            {"files": {p.name: err for p, err in invalid_files[:5]}},
        )

    if not raster_files:
        raise RasterDiscoveryError(
            f"No raster files matching '{pattern}' in {directory}",
            {"directory": str(directory), "pattern": pattern},
        )

    return raster_files


def find_projection_file(category_root: Path, name: Optional[str] = None) -> Path:
    """
    Locate the projection descriptor (.prj) that sits in the category root.

    Args:
        category_root: Category directory
        name: Explicit file name; if omitted exactly one *.prj must exist

    Returns:
        Path to the descriptor
    """
    category_root = Path(category_root)
    if name is not None:
        prj_path = category_root / name
        if not prj_path.is_file():
            raise FileNotFoundError(f"Projection file not found: {prj_path}")
        return prj_path

    candidates = sorted(
        p for p in category_root.glob("*.prj") if not should_exclude_file(p)[0]
    )
    if not candidates:
        raise FileNotFoundError(f"No .prj projection file in {category_root}")
    if len(candidates) > 1:
        raise RasterDiscoveryError(
            f"Found {len(candidates)} .prj files in {category_root}; configure one explicitly",
            {"candidates": [p.name for p in candidates]},
        )
    return candidates[0]
