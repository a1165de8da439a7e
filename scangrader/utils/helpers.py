"""
Utility functions for the application
"""
import logging
from pathlib import Path
from datetime import datetime
from typing import List, Union

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "bmp", "tif", "tiff", "webp"}


def ensure_directory(path: Union[str, Path]) -> Path:
    """Ensure a directory exists, create if not"""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def generate_timestamp_id(prefix: str = "") -> str:
    """Generate a unique ID based on timestamp"""
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    if prefix:
        return f"{prefix}_{timestamp}"
    return timestamp


def get_file_extension(filename: Union[str, Path]) -> str:
    """Get file extension without dot"""
    return Path(filename).suffix.lstrip(".")


def is_valid_image(filename: Union[str, Path]) -> bool:
    """Check if file is a scan image OpenCV can decode"""
    return get_file_extension(filename).lower() in IMAGE_EXTENSIONS


def list_files(
    directory: Union[str, Path],
    pattern: str = "*",
    recursive: bool = False
) -> List[Path]:
    """List files in directory matching pattern"""
    directory = Path(directory)
    if not directory.exists():
        return []

    if recursive:
        return list(directory.rglob(pattern))
    return list(directory.glob(pattern))


def list_scans(directory: Union[str, Path], recursive: bool = False) -> List[Path]:
    """Scan images in a directory, sorted by name"""
    scans = sorted(
        p for p in list_files(directory, recursive=recursive)
        if p.is_file() and is_valid_image(p)
    )
    logger.debug(f"Found {len(scans)} scans in {directory}")
    return scans
