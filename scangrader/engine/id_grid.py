"""
Student ID Grid Module
Reads a digit grid (one mark per row) using printed timing marks or
projection peaks to locate rows and columns
"""
import numpy as np
from dataclasses import dataclass, field
from typing import List, Optional, Tuple
import logging

from .components import find_blobs
from .image_processing import luminance, opaque_mask
from .projection import (
    cell_boundaries,
    find_peaks,
    min_viable_peaks,
    projection_profile,
    uniform_centers,
)
from .types import Region
from ..core.constants import NO_MARK

logger = logging.getLogger(__name__)

# Scan sources, in order of preference when counts tie
SOURCE_REFERENCE = "reference"
SOURCE_EDGE_MARKS = "edge_marks"
SOURCE_EDGE = "edge"
SOURCE_CENTER = "center"
SOURCE_UNIFORM = "uniform"

_PRIORITY = {
    SOURCE_REFERENCE: 0,
    SOURCE_EDGE_MARKS: 1,
    SOURCE_EDGE: 2,
    SOURCE_CENTER: 3,
}


@dataclass
class IdGridConfig:
    """Configuration for student ID grid reading"""
    default_rows: int = 3
    default_cols: int = 10

    # Luminance below which a pixel counts as a pencil mark
    mark_threshold: float = 170
    # Luminance threshold for printed structure (timing marks, grid lines)
    structure_threshold: float = 160

    # Fraction of the region width/height scanned at the right/bottom edge
    edge_scan_fraction: float = 0.15
    reference_peak_ratio: float = 0.30
    auto_peak_ratio: float = 0.35

    # Timing marks: blob filters in the edge strip
    timing_min_blob_size: int = 6
    timing_max_aspect_ratio: float = 3.0

    roi_fraction: float = 0.4
    min_fill_ratio: float = 0.30
    winner_margin: float = 1.1


@dataclass
class IdGridResult:
    """Decoded grid"""
    indices: Optional[List[int]]
    rows: List[float] = field(default_factory=list)
    cols: List[float] = field(default_factory=list)
    row_source: str = SOURCE_UNIFORM
    col_source: str = SOURCE_UNIFORM
    fill_ratios: List[List[float]] = field(default_factory=list)

    @property
    def digits(self) -> str:
        """Column index per row as text, '?' for unread rows"""
        if self.indices is None:
            return ""
        return "".join("?" if i == NO_MARK else str(i % 10) for i in self.indices)


def _edge_strip(crop: np.ndarray, axis: str, fraction: float) -> Tuple[np.ndarray, Region]:
    """Right strip for row scans (axis 'y'), bottom strip for column scans"""
    h, w = crop.shape[:2]
    if axis == "y":
        start = int(w * (1 - fraction))
        region = Region(start, 0, w - start, h)
    else:
        start = int(h * (1 - fraction))
        region = Region(0, start, w, h - start)
    x0, y0, x1, y1 = region.bounds()
    return crop[y0:y1, x0:x1], region


def _timing_mark_centers(strip: np.ndarray, axis: str, config: IdGridConfig) -> List[float]:
    if strip.size == 0:
        return []
    gray = luminance(strip)
    bounds = Region(0, 0, strip.shape[1], strip.shape[0])
    blobs = find_blobs(
        gray, bounds, config.structure_threshold,
        min_blob_size=config.timing_min_blob_size,
        max_blob_size=strip.shape[0] * strip.shape[1] * 0.25,
        max_aspect_ratio=config.timing_max_aspect_ratio,
        mask=opaque_mask(strip)
    )
    return sorted(b.centroid.y if axis == "y" else b.centroid.x for b in blobs)


def _scan_candidates(
    crop: np.ndarray,
    axis: str,
    config: IdGridConfig,
    reference: Optional[np.ndarray],
    reference_offset: float
) -> List[Tuple[str, List[float]]]:
    candidates = []

    if reference is not None and reference.size > 0:
        profile = projection_profile(reference, axis, config.structure_threshold)
        peaks = find_peaks(profile, config.reference_peak_ratio)
        candidates.append((SOURCE_REFERENCE, [reference_offset + p for p in peaks]))

    strip, region = _edge_strip(crop, axis, config.edge_scan_fraction)
    offset = region.y if axis == "y" else region.x
    marks = _timing_mark_centers(strip, axis, config)
    candidates.append((SOURCE_EDGE_MARKS, [offset + m for m in marks]))

    profile = projection_profile(strip, axis, config.structure_threshold)
    peaks = find_peaks(profile, config.auto_peak_ratio, min_threshold=1)
    candidates.append((SOURCE_EDGE, [offset + p for p in peaks]))

    profile = projection_profile(crop, axis, config.structure_threshold)
    candidates.append((SOURCE_CENTER, find_peaks(profile, config.auto_peak_ratio, min_threshold=1)))

    return candidates


def locate_grid_lines(
    crop: np.ndarray,
    axis: str,
    expected: int,
    config: IdGridConfig = None,
    reference: Optional[np.ndarray] = None,
    reference_offset: float = 0.0
) -> Tuple[List[float], str]:
    """
    Row (axis 'y') or column (axis 'x') centers of the grid.

    Every scan whose count is viable is ranked by how close its count is
    to expected, preferring reference and edge scans on ties. Without a
    viable scan the centers are spaced uniformly.

    Returns:
        (centers, source)
    """
    config = config or IdGridConfig()
    viable = min_viable_peaks(expected)

    best = None
    for source, centers in _scan_candidates(crop, axis, config, reference, reference_offset):
        if len(centers) < viable:
            logger.debug(f"{axis}-scan '{source}': {len(centers)} peaks, need {viable}")
            continue
        rank = (abs(len(centers) - expected), _PRIORITY[source])
        if best is None or rank < best[0]:
            best = (rank, source, centers)

    if best is None:
        length = crop.shape[0] if axis == "y" else crop.shape[1]
        logger.warning(f"No usable {axis}-scan, spacing {expected} lines uniformly")
        return uniform_centers(length, expected), SOURCE_UNIFORM

    _, source, centers = best
    return centers, source


def _cell_roi(
    row_bounds: List[float],
    col_bounds: List[float],
    r: int,
    c: int,
    fraction: float
) -> Tuple[int, int, int, int]:
    top, bottom = row_bounds[r], row_bounds[r + 1]
    left, right = col_bounds[c], col_bounds[c + 1]
    roi_w = max(2.0, (right - left) * fraction)
    roi_h = max(2.0, (bottom - top) * fraction)
    x0 = left + ((right - left) - roi_w) / 2
    y0 = top + ((bottom - top) - roi_h) / 2
    return int(x0), int(y0), int(np.ceil(x0 + roi_w)), int(np.ceil(y0 + roi_h))


def decode_id_grid(
    crop: np.ndarray,
    config: IdGridConfig = None,
    expected_rows: Optional[int] = None,
    expected_cols: Optional[int] = None,
    ref_right: Optional[np.ndarray] = None,
    ref_right_offset: float = 0.0,
    ref_bottom: Optional[np.ndarray] = None,
    ref_bottom_offset: float = 0.0
) -> IdGridResult:
    """
    Read one marked column per row of an ID grid.

    Args:
        crop: Rectified RGBA grid region
        config: Grid configuration
        expected_rows: Number of digits (rows); config default when None
        expected_cols: Choices per digit (columns); config default when None
        ref_right: Optional strip of row timing marks
        ref_right_offset: Its vertical offset relative to the crop
        ref_bottom: Optional strip of column timing marks
        ref_bottom_offset: Its horizontal offset relative to the crop

    Returns:
        IdGridResult; indices is None when no row carries a confident mark
    """
    config = config or IdGridConfig()
    expected_rows = expected_rows or config.default_rows
    expected_cols = expected_cols or config.default_cols
    h, w = crop.shape[:2]

    rows, row_source = locate_grid_lines(crop, "y", expected_rows, config, ref_right, ref_right_offset)
    cols, col_source = locate_grid_lines(crop, "x", expected_cols, config, ref_bottom, ref_bottom_offset)
    row_bounds = cell_boundaries(rows, h)
    col_bounds = cell_boundaries(cols, w)

    gray = luminance(crop)
    mask = opaque_mask(crop)
    dark = (gray < config.mark_threshold) & mask

    indices = []
    all_ratios = []
    for r in range(len(rows)):
        scores = []
        ratios = []
        for c in range(len(cols)):
            x0, y0, x1, y1 = _cell_roi(row_bounds, col_bounds, r, c, config.roi_fraction)
            x0, y0 = max(0, x0), max(0, y0)
            total = int(mask[y0:y1, x0:x1].sum())
            dark_count = int(dark[y0:y1, x0:x1].sum())
            scores.append(dark_count)
            ratios.append(dark_count / total if total else 0.0)
        all_ratios.append(ratios)

        order = sorted(range(len(scores)), key=lambda i: scores[i], reverse=True)
        winner = order[0]
        clear_winner = len(order) < 2 or scores[winner] > scores[order[1]] * config.winner_margin
        if ratios[winner] > config.min_fill_ratio and clear_winner:
            indices.append(winner)
        else:
            indices.append(NO_MARK)

    logger.debug(
        f"ID grid: rows={len(rows)} ({row_source}), cols={len(cols)} ({col_source}), "
        f"indices={indices}"
    )

    return IdGridResult(
        indices=indices if any(i != NO_MARK for i in indices) else None,
        rows=rows,
        cols=cols,
        row_source=row_source,
        col_source=col_source,
        fill_ratios=all_ratios,
    )
