"""
Sheet Processor Module
Aligned region cropping and per-page question decoding

Pipeline for one region on one page:
1. Detect the page's alignment marks (once per page)
2. Warp the template-space region out of the scan (plain crop if alignment fails)
3. Decode the crop
"""
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Hashable, Iterable, List, Optional
import logging

import numpy as np

from .fiducials import FiducialDetectionConfig, find_alignment_marks
from .id_grid import IdGridConfig, IdGridResult, decode_id_grid
from .image_processing import load_image
from .mark_sheet import MarkSheetConfig, decode_mark_sheet, detect_answer_key
from .pixel_cache import ImageLoader, PixelBufferCache
from .types import BubbleLayout, Corners, MarkSheetResult, Region
from .warper import RegionWarper
from ..core.constants import AlignmentStatus
from ..core.exceptions import DegenerateHomographyError, ImageLoadError, MalformedInputError

logger = logging.getLogger(__name__)


@dataclass
class CorrectedCrop:
    """A region cropped from one page"""
    pixels: np.ndarray
    status: AlignmentStatus
    corners: Optional[Corners] = None

    @property
    def aligned(self) -> bool:
        return self.status == AlignmentStatus.ALIGNED


@dataclass
class PageReading:
    """Decoded question for one page"""
    image_key: Hashable
    result: Optional[MarkSheetResult] = None
    alignment: Optional[AlignmentStatus] = None
    corners: Optional[Corners] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None


def _require_area(region: Region, label: str = "region") -> None:
    if region.is_empty:
        raise MalformedInputError(f"{label} has zero area: {region}")


class PageAligner:
    """
    Produces template-aligned crops from scanned pages.

    Detected corners are remembered per page so that every region on a page
    reuses one detection. Call clear() between batches.
    """

    def __init__(
        self,
        ideal_corners: Optional[Corners],
        fiducial_config: FiducialDetectionConfig = None,
        interpolation: str = None,
        cache: Optional[PixelBufferCache] = None
    ):
        """
        Args:
            ideal_corners: Mark positions on the template; None disables alignment
            fiducial_config: Corner search configuration
            interpolation: 'nearest' or 'bilinear'
            cache: Pixel buffer cache for the batch
        """
        self.ideal_corners = ideal_corners
        self.fiducial_config = fiducial_config or FiducialDetectionConfig.from_settings()
        self.warper = RegionWarper(cache, interpolation)
        self._corners: Dict[Hashable, Optional[Corners]] = {}
        self._lock = threading.Lock()

    @property
    def cache(self) -> PixelBufferCache:
        return self.warper.cache

    def detect_corners(self, image_key: Hashable, loader: ImageLoader) -> Optional[Corners]:
        """Alignment marks of a page, detected on first request"""
        with self._lock:
            if image_key in self._corners:
                return self._corners[image_key]

        pixels = self.cache.get_or_load(image_key, loader)
        corners = find_alignment_marks(pixels, self.fiducial_config)

        with self._lock:
            self._corners.setdefault(image_key, corners)
            return self._corners[image_key]

    def corrected_crop(
        self,
        image_key: Hashable,
        loader: ImageLoader,
        region: Region
    ) -> CorrectedCrop:
        """
        Crop a template-space region from a page, compensating skew and shift.

        Falls back to a plain crop at the template coordinates when the page
        has no usable alignment; the returned status says which path was used.
        """
        _require_area(region)

        if self.ideal_corners is None:
            return CorrectedCrop(self.warper.crop(image_key, loader, region), AlignmentStatus.IDENTITY)

        corners = self.detect_corners(image_key, loader)
        if corners is None:
            logger.warning(f"[{image_key}] alignment marks not found, using uncorrected crop")
            return CorrectedCrop(
                self.warper.crop(image_key, loader, region), AlignmentStatus.MARKS_NOT_FOUND
            )

        try:
            pixels = self.warper.warp(image_key, loader, corners, self.ideal_corners, region)
        except DegenerateHomographyError as e:
            logger.warning(f"[{image_key}] {e.detail}, using uncorrected crop")
            return CorrectedCrop(
                self.warper.crop(image_key, loader, region), AlignmentStatus.DEGENERATE, corners
            )

        return CorrectedCrop(pixels, AlignmentStatus.ALIGNED, corners)

    def clear(self) -> None:
        """Forget detected corners and cached pixels"""
        with self._lock:
            self._corners.clear()
        self.cache.clear()


def _reference_offset(region: Region, reference: Region, layout: BubbleLayout) -> float:
    return reference.x - region.x if layout.is_horizontal else reference.y - region.y


class SheetProcessor:
    """
    Decodes mark-sheet questions and ID grids across scanned pages.
    """

    def __init__(
        self,
        aligner: PageAligner,
        mark_config: MarkSheetConfig = None,
        id_config: IdGridConfig = None,
        loader: ImageLoader = None
    ):
        """
        Args:
            aligner: Page aligner holding the template corners and cache
            mark_config: Bubble decoding configuration
            id_config: ID grid configuration
            loader: Decodes an image key into RGBA pixels (default: file path loader)
        """
        self.aligner = aligner
        self.mark_config = mark_config or MarkSheetConfig.from_settings()
        self.id_config = id_config or IdGridConfig()
        self.loader = loader or load_image

    def decode_question(
        self,
        image_key: Hashable,
        region: Region,
        layout: BubbleLayout,
        reference: Optional[Region] = None
    ) -> PageReading:
        """
        Read one mark-sheet question from one student page.

        Args:
            image_key: Page identifier passed to the loader
            region: Answer region in template coordinates
            layout: Bubble layout of the question
            reference: Optional reference strip in template coordinates

        Returns:
            PageReading with the MarkSheetResult and alignment status
        """
        _require_area(region)
        crop = self.aligner.corrected_crop(image_key, self.loader, region)

        ref_pixels = None
        offset = 0.0
        if reference is not None and not reference.is_empty:
            ref_pixels = self.aligner.corrected_crop(image_key, self.loader, reference).pixels
            offset = _reference_offset(region, reference, layout)

        result = decode_mark_sheet(crop.pixels, layout, self.mark_config, ref_pixels, offset)
        return PageReading(image_key, result, crop.status, crop.corners)

    def detect_key(
        self,
        image_key: Hashable,
        region: Region,
        layout: BubbleLayout,
        reference: Optional[Region] = None
    ) -> MarkSheetResult:
        """
        Detect the marked key bubble on the master sheet.

        The master defines the template coordinates, so regions are cropped
        without correction.
        """
        _require_area(region)
        crop = self.aligner.warper.crop(image_key, self.loader, region)

        ref_pixels = None
        offset = 0.0
        if reference is not None and not reference.is_empty:
            ref_pixels = self.aligner.warper.crop(image_key, self.loader, reference)
            offset = _reference_offset(region, reference, layout)

        return detect_answer_key(crop, layout, self.mark_config, ref_pixels, offset)

    def read_student_id(
        self,
        image_key: Hashable,
        region: Region,
        expected_rows: Optional[int] = None,
        expected_cols: Optional[int] = None,
        ref_right: Optional[Region] = None,
        ref_bottom: Optional[Region] = None
    ) -> IdGridResult:
        """Read the student ID grid from one page"""
        _require_area(region)
        crop = self.aligner.corrected_crop(image_key, self.loader, region)

        right_pixels = bottom_pixels = None
        right_offset = bottom_offset = 0.0
        if ref_right is not None and not ref_right.is_empty:
            right_pixels = self.aligner.corrected_crop(image_key, self.loader, ref_right).pixels
            right_offset = ref_right.y - region.y
        if ref_bottom is not None and not ref_bottom.is_empty:
            bottom_pixels = self.aligner.corrected_crop(image_key, self.loader, ref_bottom).pixels
            bottom_offset = ref_bottom.x - region.x

        return decode_id_grid(
            crop.pixels, self.id_config, expected_rows, expected_cols,
            right_pixels, right_offset, bottom_pixels, bottom_offset
        )

    def grade_question(
        self,
        image_keys: Iterable[Hashable],
        region: Region,
        layout: BubbleLayout,
        reference: Optional[Region] = None,
        should_stop: Optional[Callable[[], bool]] = None
    ) -> List[PageReading]:
        """
        Decode one question across many student pages.

        Pages are independent; a page that fails to load or decode is
        reported with its error and the loop continues. should_stop is
        checked between pages.

        Raises:
            MalformedInputError: For invalid region or layout (caller bug)
        """
        _require_area(region)

        readings = []
        for image_key in image_keys:
            if should_stop is not None and should_stop():
                logger.info(f"Grading stopped after {len(readings)} pages")
                break

            try:
                reading = self.decode_question(image_key, region, layout, reference)
            except MalformedInputError:
                raise
            except ImageLoadError as e:
                logger.error(f"[{image_key}] {e.detail}")
                reading = PageReading(image_key, error=e.detail)
            except Exception as e:
                logger.exception(f"Unexpected error decoding {image_key}")
                reading = PageReading(image_key, error=f"Unexpected error: {str(e)}")

            readings.append(reading)

        decoded = sum(1 for r in readings if r.success)
        logger.info(f"Decoded {decoded}/{len(readings)} pages")
        return readings
