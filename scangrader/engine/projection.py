"""
Projection Profile Module
1-D ink histograms along an axis and peak extraction for bubble/line centers
"""
import math
import numpy as np
from typing import List, Optional, Sequence
import logging

from .image_processing import luminance, opaque_mask
from .types import Region
from ..core.exceptions import MalformedInputError

logger = logging.getLogger(__name__)


def projection_profile(
    pixels: np.ndarray,
    axis: str,
    threshold: float = 150,
    region: Optional[Region] = None
) -> np.ndarray:
    """
    Count dark pixels per column or per row.

    Args:
        pixels: RGBA image (or gray H x W)
        axis: 'x' for one value per column, 'y' for one value per row
        threshold: Luminance below which a pixel counts as ink
        region: Optional sub-rectangle to scan (clipped to the image)

    Returns:
        int array with one entry per column/row of the scanned area
    """
    if axis not in ("x", "y"):
        raise MalformedInputError(f"axis must be 'x' or 'y', got {axis!r}")

    if region is not None:
        clip = region.clipped(pixels.shape[1], pixels.shape[0])
        x0, y0, x1, y1 = clip.bounds()
        pixels = pixels[y0:y1, x0:x1]

    if pixels.size == 0:
        return np.zeros(0, dtype=np.int64)

    dark = (luminance(pixels) < threshold) & opaque_mask(pixels)
    return dark.sum(axis=0 if axis == "x" else 1).astype(np.int64)


def find_peaks(
    profile: Sequence[float],
    threshold_ratio: float = 0.35,
    min_threshold: float = 0.0
) -> List[float]:
    """
    Find centers of contiguous runs above max(profile) * threshold_ratio.

    Each run contributes its intensity-weighted centroid (sum of i*v over
    sum of v), which stays accurate for asymmetric or anti-aliased marks.

    Args:
        profile: Projection profile
        threshold_ratio: Fraction of the profile maximum a value must exceed
        min_threshold: Absolute floor for the threshold

    Returns:
        Ascending list of peak positions
    """
    values = np.asarray(profile, dtype=np.float64)
    if values.size == 0:
        return []

    threshold = max(min_threshold, float(values.max()) * threshold_ratio)

    peaks = []
    in_peak = False
    weighted = 0.0
    mass = 0.0
    for i, v in enumerate(values):
        if v > threshold:
            if not in_peak:
                in_peak = True
                weighted = 0.0
                mass = 0.0
            weighted += i * v
            mass += v
        elif in_peak:
            in_peak = False
            if mass > 0:
                peaks.append(weighted / mass)

    if in_peak and mass > 0:
        peaks.append(weighted / mass)

    return peaks


def uniform_centers(length: float, count: int) -> List[float]:
    """Centers of count equal segments spanning [0, length)"""
    if count < 1:
        raise MalformedInputError(f"count must be >= 1, got {count}")
    step = length / count
    return [step * (i + 0.5) for i in range(count)]


def min_viable_peaks(expected: int) -> int:
    """Fewest detected peaks worth trusting over uniform spacing"""
    return max(1, math.ceil(expected / 2))


def cell_boundaries(centers: Sequence[float], length: float) -> List[float]:
    """
    Cell edges around a sorted list of centers.

    Inner edges are midpoints between neighbours; the outer edges extend
    half a step beyond the first/last center and are clamped to [0, length].

    Returns:
        len(centers) + 1 boundaries
    """
    if not centers:
        return []

    n = len(centers)
    first_step = centers[1] - centers[0] if n > 1 else length / n
    last_step = centers[-1] - centers[-2] if n > 1 else first_step

    bounds = [max(0.0, centers[0] - first_step / 2)]
    for i in range(n - 1):
        bounds.append((centers[i] + centers[i + 1]) / 2)
    bounds.append(min(float(length), centers[-1] + last_step / 2))
    return bounds
