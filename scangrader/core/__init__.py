# Core package
from .constants import (
    Orientation,
    AreaType,
    ScoringStatus,
    AlignmentStatus,
    NO_MARK,
    LUMA_WEIGHTS,
)
from .exceptions import (
    ScanGraderException,
    MalformedInputError,
    GeometryError,
    DegenerateHomographyError,
    ImageLoadError,
)
from .logger import logger, setup_logger, detection_logger, grading_logger

__all__ = [
    # Constants
    "Orientation",
    "AreaType",
    "ScoringStatus",
    "AlignmentStatus",
    "NO_MARK",
    "LUMA_WEIGHTS",
    # Exceptions
    "ScanGraderException",
    "MalformedInputError",
    "GeometryError",
    "DegenerateHomographyError",
    "ImageLoadError",
    # Logging
    "logger",
    "setup_logger",
    "detection_logger",
    "grading_logger",
]
