"""
Engine Module
Fiducial alignment, homography warping and mark-sheet decoding

Usage:
    from scangrader.engine import PageAligner, SheetProcessor, BubbleLayout, Region

    aligner = PageAligner(ideal_corners)
    processor = SheetProcessor(aligner)

    # One question on one page
    reading = processor.decode_question("scans/s01.png", region, BubbleLayout(4))

    # One question across a class
    readings = processor.grade_question(paths, region, layout)
"""

from .types import (
    Point,
    Corners,
    Region,
    BubbleLayout,
    MarkSheetResult,
    DetectionResult,
)

from .image_processing import (
    as_rgba,
    luminance,
    load_image,
)

from .pixel_cache import PixelBufferCache

from .projection import (
    projection_profile,
    find_peaks,
    uniform_centers,
    cell_boundaries,
)

from .components import (
    Blob,
    ComponentSearchConfig,
    find_blobs,
    locate_blob,
)

from .fiducials import (
    FiducialDetectionConfig,
    find_alignment_marks,
)

from .homography import (
    solve_homography,
    apply_homography,
    homography_for_inverse_sampling,
)

from .warper import (
    RegionWarper,
    warp_region,
    crop_region,
)

from .mark_sheet import (
    MarkSheetConfig,
    decode_mark_sheet,
    detect_answer_key,
    classify_fill_ratios,
    classify_answer_key,
)

from .id_grid import (
    IdGridConfig,
    IdGridResult,
    decode_id_grid,
)

from .processor import (
    CorrectedCrop,
    PageReading,
    PageAligner,
    SheetProcessor,
)

from .grading_engine import (
    GradingEngine,
    QuestionResult,
    score_detection,
    save_results,
    load_results,
)

__all__ = [
    # Types
    "Point",
    "Corners",
    "Region",
    "BubbleLayout",
    "MarkSheetResult",
    "DetectionResult",
    # Image processing
    "as_rgba",
    "luminance",
    "load_image",
    "PixelBufferCache",
    # Projection
    "projection_profile",
    "find_peaks",
    "uniform_centers",
    "cell_boundaries",
    # Components
    "Blob",
    "ComponentSearchConfig",
    "find_blobs",
    "locate_blob",
    # Fiducials
    "FiducialDetectionConfig",
    "find_alignment_marks",
    # Homography and warping
    "solve_homography",
    "apply_homography",
    "homography_for_inverse_sampling",
    "RegionWarper",
    "warp_region",
    "crop_region",
    # Mark sheet
    "MarkSheetConfig",
    "decode_mark_sheet",
    "detect_answer_key",
    "classify_fill_ratios",
    "classify_answer_key",
    # ID grid
    "IdGridConfig",
    "IdGridResult",
    "decode_id_grid",
    # Processor
    "CorrectedCrop",
    "PageReading",
    "PageAligner",
    "SheetProcessor",
    # Grading
    "GradingEngine",
    "QuestionResult",
    "score_detection",
    "save_results",
    "load_results",
]
