"""
Mark Sheet Module
Decides which bubble(s) of a rectified answer region are filled
"""
import math
import numpy as np
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
import logging

from .image_processing import luminance, opaque_mask
from .projection import (
    cell_boundaries,
    find_peaks,
    min_viable_peaks,
    projection_profile,
    uniform_centers,
)
from .types import BubbleLayout, DetectionResult, MarkSheetResult, Point, Region
from ..config import settings
from ..core.constants import NO_MARK
from ..core.exceptions import MalformedInputError

logger = logging.getLogger(__name__)


@dataclass
class MarkSheetConfig:
    """Configuration for bubble decoding"""
    # Luminance below which a pixel counts as ink inside a bubble
    dark_threshold: float = 170
    # Luminance threshold for printed reference marks
    reference_threshold: float = 150
    peak_threshold_ratio: float = 0.35

    # Central fraction of each bubble cell that is sampled
    roi_fraction: float = 0.5

    # Student grading: winner-take-all
    min_fill_ratio: float = 0.30
    winner_margin: float = 1.1

    # Answer-key detection on the blank template
    key_threshold_ratio: float = 0.80
    key_min_diff: float = 30

    @classmethod
    def from_settings(cls) -> "MarkSheetConfig":
        return cls(
            min_fill_ratio=settings.MARK_FILL_THRESHOLD,
            winner_margin=settings.MARK_WINNER_MARGIN,
        )


def _as_result(marked: List[int]) -> DetectionResult:
    if not marked:
        return NO_MARK
    if len(marked) == 1:
        return marked[0]
    return sorted(marked)


def bubble_centers(
    crop: np.ndarray,
    layout: BubbleLayout,
    config: MarkSheetConfig = None,
    reference: Optional[np.ndarray] = None,
    reference_offset: float = 0.0
) -> Tuple[List[float], bool]:
    """
    Bubble center positions along the layout axis, in crop coordinates.

    Args:
        crop: Rectified answer region
        layout: Bubble layout
        config: Decoder configuration
        reference: Optional strip of printed marks aligned with the bubbles
            (below the region for horizontal layouts, beside it for vertical)
        reference_offset: Position of the strip's first pixel relative to the
            crop's first pixel along the layout axis

    Returns:
        (centers, used_reference)
    """
    config = config or MarkSheetConfig()
    axis = "x" if layout.is_horizontal else "y"
    length = crop.shape[1] if layout.is_horizontal else crop.shape[0]

    if reference is not None and reference.size > 0:
        profile = projection_profile(reference, axis, config.reference_threshold)
        peaks = find_peaks(profile, config.peak_threshold_ratio)
        if len(peaks) >= min_viable_peaks(layout.option_count):
            if len(peaks) != layout.option_count:
                logger.debug(
                    f"Reference strip shows {len(peaks)} marks for {layout.option_count} options"
                )
            return [reference_offset + p for p in peaks], True
        logger.warning(
            f"Reference strip yielded {len(peaks)} peaks for {layout.option_count} options, "
            "using uniform spacing"
        )

    return uniform_centers(length, layout.option_count), False


def bubble_rois(
    crop_shape: Sequence[int],
    layout: BubbleLayout,
    centers: Sequence[float],
    roi_fraction: float = 0.5
) -> List[Region]:
    """
    Sampling rectangle for each bubble.

    Each bubble owns the cell between the midpoints to its neighbours; the
    ROI keeps roi_fraction of that cell on either side of the center along
    the layout axis and the central roi_fraction across it.
    """
    height, width = crop_shape[:2]
    along_len, cross_len = (width, height) if layout.is_horizontal else (height, width)

    bounds = cell_boundaries(centers, along_len)
    cross_size = cross_len * roi_fraction
    cross_start = (cross_len - cross_size) / 2

    rois = []
    for i, c in enumerate(centers):
        start = c - (c - bounds[i]) * roi_fraction
        end = c + (bounds[i + 1] - c) * roi_fraction
        size = max(1.0, end - start)
        if layout.is_horizontal:
            rois.append(Region(start, cross_start, size, max(1.0, cross_size)))
        else:
            rois.append(Region(cross_start, start, max(1.0, cross_size), size))
    return rois


def _roi_pixels(crop: np.ndarray, roi: Region) -> Tuple[np.ndarray, np.ndarray]:
    x0 = max(0, int(math.floor(roi.x)))
    y0 = max(0, int(math.floor(roi.y)))
    x1 = min(crop.shape[1], int(math.ceil(roi.x + roi.width)))
    y1 = min(crop.shape[0], int(math.ceil(roi.y + roi.height)))
    patch = crop[y0:y1, x0:x1]
    if patch.size == 0:
        return np.zeros(0, dtype=np.float32), np.zeros(0, dtype=bool)
    return luminance(patch), opaque_mask(patch)


def fill_ratio(crop: np.ndarray, roi: Region, threshold: float = 170) -> float:
    """Fraction of opaque ROI pixels darker than threshold"""
    gray, mask = _roi_pixels(crop, roi)
    total = int(mask.sum())
    if total == 0:
        return 0.0
    return float(((gray < threshold) & mask).sum()) / total


def mean_brightness(crop: np.ndarray, roi: Region) -> float:
    """Average luminance of opaque ROI pixels (nan when none)"""
    gray, mask = _roi_pixels(crop, roi)
    if not mask.any():
        return float("nan")
    return float(gray[mask].mean())


def classify_fill_ratios(ratios: Sequence[float], config: MarkSheetConfig = None) -> DetectionResult:
    """
    Winner-take-all over per-bubble fill ratios.

    Bubbles above min_fill_ratio are candidates. With several candidates the
    darkest wins only if it beats the runner-up by winner_margin; otherwise
    every candidate is returned so the sheet can be reviewed.

    Returns:
        NO_MARK, a single index, or an ascending list of indices
    """
    config = config or MarkSheetConfig()
    candidates = [i for i, r in enumerate(ratios) if r > config.min_fill_ratio]
    if len(candidates) <= 1:
        return _as_result(candidates)

    ranked = sorted(candidates, key=lambda i: ratios[i], reverse=True)
    winner, runner_up = ranked[0], ranked[1]
    if ratios[winner] > ratios[runner_up] * config.winner_margin:
        return winner
    return _as_result(candidates)


def classify_answer_key(brightness: Sequence[float], config: MarkSheetConfig = None) -> DetectionResult:
    """
    Find marked bubbles on a template relative to its brightest bubble.

    The brightest bubble is taken as unmarked paper. A bubble is marked when
    it is below baseline * key_threshold_ratio and at least key_min_diff
    darker than the baseline.
    """
    config = config or MarkSheetConfig()
    valid = [b for b in brightness if not math.isnan(b)]
    if not valid:
        return NO_MARK

    baseline = max(valid)
    marked = [
        i for i, b in enumerate(brightness)
        if not math.isnan(b)
        and b < baseline * config.key_threshold_ratio
        and baseline - b >= config.key_min_diff
    ]
    return _as_result(marked)


def _check_crop(crop: np.ndarray) -> None:
    if crop is None or crop.ndim < 2 or crop.shape[0] == 0 or crop.shape[1] == 0:
        raise MalformedInputError("Answer region crop is empty")


def _sample(
    crop: np.ndarray,
    layout: BubbleLayout,
    config: MarkSheetConfig,
    reference: Optional[np.ndarray],
    reference_offset: float
) -> MarkSheetResult:
    _check_crop(crop)
    centers, used_reference = bubble_centers(crop, layout, config, reference, reference_offset)
    rois = bubble_rois(crop.shape, layout, centers, config.roi_fraction)

    height, width = crop.shape[:2]
    if layout.is_horizontal:
        positions = [Point(c, height / 2) for c in centers]
    else:
        positions = [Point(width / 2, c) for c in centers]

    return MarkSheetResult(
        positions=positions,
        fill_ratios=[fill_ratio(crop, roi, config.dark_threshold) for roi in rois],
        brightness=[mean_brightness(crop, roi) for roi in rois],
        rois=rois,
        used_reference=used_reference,
    )


def decode_mark_sheet(
    crop: np.ndarray,
    layout: BubbleLayout,
    config: MarkSheetConfig = None,
    reference: Optional[np.ndarray] = None,
    reference_offset: float = 0.0
) -> MarkSheetResult:
    """
    Read a student's answer from a rectified mark-sheet region.

    Args:
        crop: RGBA answer region (transparent pixels are ignored)
        layout: Bubble count and orientation
        config: Decoder configuration
        reference: Optional reference strip (see bubble_centers)
        reference_offset: Strip offset relative to the crop along the layout axis

    Returns:
        MarkSheetResult whose index is NO_MARK, one index, or a list of
        indices for a double-marked question
    """
    config = config or MarkSheetConfig()
    result = _sample(crop, layout, config, reference, reference_offset)
    result.index = classify_fill_ratios(result.fill_ratios, config)

    logger.debug(
        f"Mark sheet: ratios=[{', '.join(f'{r:.2f}' for r in result.fill_ratios)}] "
        f"-> {result.index}"
    )
    return result


def detect_answer_key(
    crop: np.ndarray,
    layout: BubbleLayout,
    config: MarkSheetConfig = None,
    reference: Optional[np.ndarray] = None,
    reference_offset: float = 0.0
) -> MarkSheetResult:
    """
    Detect the key bubble marked on the master sheet.

    Uses brightness relative to the brightest bubble instead of absolute
    fill, since the master carries exactly one mark on clean paper.
    """
    config = config or MarkSheetConfig()
    result = _sample(crop, layout, config, reference, reference_offset)
    result.index = classify_answer_key(result.brightness, config)

    logger.debug(
        f"Answer key: brightness=[{', '.join(f'{b:.0f}' for b in result.brightness)}] "
        f"-> {result.index}"
    )
    return result
