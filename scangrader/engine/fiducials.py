"""
Fiducial Detection Module
Finds the four corner alignment marks of a scanned page
"""
import numpy as np
from dataclasses import dataclass
from typing import Dict, Optional
import logging

from .components import ComponentSearchConfig, SELECT_NEAREST, locate_blob
from .image_processing import luminance
from .types import Corners, Point, Region
from ..config import settings

logger = logging.getLogger(__name__)

CORNER_LABELS = ("tl", "tr", "br", "bl")


@dataclass
class FiducialDetectionConfig:
    """Configuration for corner mark search"""
    # Fraction of page width/height searched from each corner
    search_margin_ratio: float = 0.30

    # Blob size limits; the floor is absolute so small marks still qualify
    min_blob_size: float = 9
    min_blob_area_fraction: float = 0.000005
    max_blob_area_fraction: float = 0.02

    # Adaptive threshold: min(cap, corner brightness * factor)
    brightness_factor: float = 0.6
    brightness_cap: float = 120
    sample_step: int = 8

    selection: str = SELECT_NEAREST

    @classmethod
    def from_settings(cls) -> "FiducialDetectionConfig":
        return cls(search_margin_ratio=settings.FIDUCIAL_SEARCH_MARGIN)

    def component_config(self, width: int, height: int) -> ComponentSearchConfig:
        page_area = width * height
        return ComponentSearchConfig(
            min_blob_size=max(self.min_blob_size, page_area * self.min_blob_area_fraction),
            max_blob_size=page_area * self.max_blob_area_fraction,
            fixed_threshold_cap=self.brightness_cap,
            brightness_factor=self.brightness_factor,
            sample_step=self.sample_step,
            selection=self.selection,
        )


def corner_search_regions(width: int, height: int, margin_ratio: float = 0.30) -> Dict[str, Region]:
    """
    The four corner quadrants searched for marks.

    Returns:
        Mapping of corner label (tl, tr, br, bl) to search Region
    """
    cw = int(width * margin_ratio)
    ch = int(height * margin_ratio)
    return {
        "tl": Region(0, 0, cw, ch),
        "tr": Region(width - cw, 0, cw, ch),
        "br": Region(width - cw, height - ch, cw, ch),
        "bl": Region(0, height - ch, cw, ch),
    }


def _corner_targets(width: int, height: int) -> Dict[str, Point]:
    return {
        "tl": Point(0, 0),
        "tr": Point(width - 1, 0),
        "br": Point(width - 1, height - 1),
        "bl": Point(0, height - 1),
    }


def find_alignment_marks(
    image: np.ndarray,
    config: FiducialDetectionConfig = None
) -> Optional[Corners]:
    """
    Locate one alignment mark in each page corner.

    Each quadrant is searched independently with the blob closest to the
    quadrant's page corner winning.

    Args:
        image: RGBA page image
        config: Detection configuration

    Returns:
        Corners when all four marks are found, otherwise None
    """
    config = config or FiducialDetectionConfig()
    height, width = image.shape[:2]

    gray = luminance(image)
    search_cfg = config.component_config(width, height)
    regions = corner_search_regions(width, height, config.search_margin_ratio)
    targets = _corner_targets(width, height)

    found = {}
    missing = []
    for label in CORNER_LABELS:
        region = regions[label]
        if region.is_empty:
            missing.append(label)
            continue
        blob = locate_blob(gray, region, search_cfg, target=targets[label])
        if blob is None:
            missing.append(label)
        else:
            found[label] = blob.centroid

    if missing:
        logger.warning(f"Alignment marks not found in corners: {', '.join(missing)}")
        return None

    corners = Corners(found["tl"], found["tr"], found["br"], found["bl"])
    logger.debug(
        "Alignment marks: " + ", ".join(
            f"{label}=({p.x:.1f}, {p.y:.1f})" for label, p in zip(CORNER_LABELS, corners.as_list())
        )
    )
    return corners
