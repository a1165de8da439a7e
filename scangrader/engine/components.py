"""
Connected Component Module
Flood-fill blob search for fiducial and timing marks
"""
import numpy as np
from dataclasses import dataclass
from typing import List, Optional
import logging

from .image_processing import luminance, opaque_mask
from .types import Point, Region
from ..core.exceptions import MalformedInputError

logger = logging.getLogger(__name__)

SELECT_LARGEST = "largest"
SELECT_NEAREST = "nearest"


@dataclass
class Blob:
    """A 4-connected group of dark pixels"""
    size: int
    centroid: Point
    bbox: Region

    @property
    def aspect_ratio(self) -> float:
        """Long side over short side of the bounding box (>= 1)"""
        long_side = max(self.bbox.width, self.bbox.height)
        short_side = max(1.0, min(self.bbox.width, self.bbox.height))
        return long_side / short_side


@dataclass
class ComponentSearchConfig:
    """Configuration for blob search"""
    min_blob_size: float = 9
    max_blob_size: float = float("inf")

    # Adaptive threshold: min(cap, average brightness * factor)
    fixed_threshold_cap: float = 120
    brightness_factor: float = 0.6
    sample_step: int = 8

    # Reject elongated blobs (lines, scan artifacts); None disables
    max_aspect_ratio: Optional[float] = None

    selection: str = SELECT_LARGEST


def adaptive_threshold(
    gray: np.ndarray,
    bounds: Region,
    cap: float = 120,
    factor: float = 0.6,
    step: int = 8
) -> float:
    """
    Darkness threshold relative to the local paper brightness.

    Brightness is averaged over a sparse grid (every step-th pixel) of the
    bounds clipped to the image.

    Returns:
        min(cap, mean_brightness * factor)
    """
    clip = bounds.clipped(gray.shape[1], gray.shape[0])
    if clip.is_empty:
        raise MalformedInputError(f"Empty search bounds: {bounds}")
    x0, y0, x1, y1 = clip.bounds()
    sample = gray[y0:y1:step, x0:x1:step]
    return min(cap, float(sample.mean()) * factor)


def find_blobs(
    gray: np.ndarray,
    bounds: Region,
    threshold: float,
    min_blob_size: float = 9,
    max_blob_size: float = float("inf"),
    max_aspect_ratio: Optional[float] = None,
    mask: Optional[np.ndarray] = None
) -> List[Blob]:
    """
    All 4-connected components of sub-threshold pixels inside bounds.

    Uses an explicit stack so large blobs cannot overflow the call stack.

    Args:
        gray: Luminance image (H x W)
        bounds: Search rectangle in image coordinates (clipped to the image)
        threshold: Pixels strictly below this are dark
        min_blob_size: Smallest accepted pixel count
        max_blob_size: Largest accepted pixel count
        max_aspect_ratio: Reject blobs whose bbox is more elongated than this
        mask: Optional boolean H x W mask of pixels that carry data

    Returns:
        Accepted blobs in scan order (top-to-bottom, left-to-right seed)
    """
    clip = bounds.clipped(gray.shape[1], gray.shape[0])
    if clip.is_empty:
        raise MalformedInputError(f"Empty search bounds: {bounds}")

    x0, y0, x1, y1 = clip.bounds()
    dark = gray[y0:y1, x0:x1] < threshold
    if mask is not None:
        dark &= mask[y0:y1, x0:x1]

    h, w = dark.shape
    visited = np.zeros((h, w), dtype=bool)
    blobs = []

    seeds_y, seeds_x = np.nonzero(dark)
    for sy, sx in zip(seeds_y.tolist(), seeds_x.tolist()):
        if visited[sy, sx]:
            continue

        size = 0
        sum_x = 0
        sum_y = 0
        min_x, max_x, min_y, max_y = sx, sx, sy, sy

        stack = [(sx, sy)]
        visited[sy, sx] = True
        while stack:
            cx, cy = stack.pop()
            size += 1
            sum_x += cx
            sum_y += cy
            if cx < min_x:
                min_x = cx
            elif cx > max_x:
                max_x = cx
            if cy < min_y:
                min_y = cy
            elif cy > max_y:
                max_y = cy

            for nx, ny in ((cx + 1, cy), (cx - 1, cy), (cx, cy + 1), (cx, cy - 1)):
                if 0 <= nx < w and 0 <= ny < h and not visited[ny, nx] and dark[ny, nx]:
                    visited[ny, nx] = True
                    stack.append((nx, ny))

        if size < min_blob_size or size > max_blob_size:
            continue

        blob = Blob(
            size=size,
            centroid=Point(x0 + sum_x / size, y0 + sum_y / size),
            bbox=Region(x0 + min_x, y0 + min_y, max_x - min_x + 1, max_y - min_y + 1)
        )
        if max_aspect_ratio is not None and blob.aspect_ratio > max_aspect_ratio:
            continue
        blobs.append(blob)

    return blobs


def select_blob(
    blobs: List[Blob],
    selection: str = SELECT_LARGEST,
    target: Optional[Point] = None
) -> Optional[Blob]:
    """Pick the largest blob, or the one nearest to target"""
    if not blobs:
        return None
    if selection == SELECT_NEAREST:
        if target is None:
            raise MalformedInputError("Nearest-blob selection needs a target point")
        return min(blobs, key=lambda b: b.centroid.distance_to(target))
    if selection == SELECT_LARGEST:
        return max(blobs, key=lambda b: b.size)
    raise MalformedInputError(f"Unknown selection policy: {selection!r}")


def locate_blob(
    pixels: np.ndarray,
    bounds: Region,
    config: ComponentSearchConfig = None,
    threshold: Optional[float] = None,
    target: Optional[Point] = None
) -> Optional[Blob]:
    """
    Locate the best dark blob inside bounds.

    Args:
        pixels: RGBA image or precomputed luminance (H x W)
        bounds: Search rectangle
        config: Size/shape filters and selection policy
        threshold: Fixed darkness threshold; adaptive when None
        target: Expected position for the "nearest" policy

    Returns:
        Selected Blob, or None when nothing passes the filters
    """
    config = config or ComponentSearchConfig()
    gray = luminance(pixels)
    mask = opaque_mask(pixels) if pixels.ndim == 3 else None

    if threshold is None:
        threshold = adaptive_threshold(
            gray, bounds,
            config.fixed_threshold_cap, config.brightness_factor, config.sample_step
        )

    blobs = find_blobs(
        gray, bounds, threshold,
        min_blob_size=config.min_blob_size,
        max_blob_size=config.max_blob_size,
        max_aspect_ratio=config.max_aspect_ratio,
        mask=mask
    )
    blob = select_blob(blobs, config.selection, target)

    if blob is None:
        logger.debug(f"No blob in {bounds} (threshold={threshold:.1f}, candidates=0)")
    else:
        logger.debug(
            f"Blob in {bounds}: size={blob.size} centroid=({blob.centroid.x:.1f}, "
            f"{blob.centroid.y:.1f}) of {len(blobs)} candidates"
        )
    return blob
