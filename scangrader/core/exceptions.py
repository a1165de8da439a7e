"""
Custom exceptions for the scan grader engine
"""


class ScanGraderException(Exception):
    """Base exception for all engine errors"""

    def __init__(self, detail: str, error_code: str = None):
        super().__init__(detail)
        self.detail = detail
        self.error_code = error_code


class MalformedInputError(ScanGraderException):
    """Caller passed geometry or layout that violates the engine contract"""

    def __init__(self, message: str):
        super().__init__(
            detail=message,
            error_code="MALFORMED_INPUT"
        )


class GeometryError(ScanGraderException):
    """Alignment could not be computed for a page"""

    def __init__(self, message: str, error_code: str = "GEOMETRY_ERROR"):
        super().__init__(detail=message, error_code=error_code)


class DegenerateHomographyError(GeometryError):
    """Correspondence points are colinear or otherwise singular"""

    def __init__(self, pivot_index: int, pivot: float):
        super().__init__(
            f"Homography system is singular at column {pivot_index} (pivot={pivot:.3e})",
            error_code="DEGENERATE_HOMOGRAPHY"
        )
        self.pivot_index = pivot_index
        self.pivot = pivot


class ImageLoadError(ScanGraderException):
    """Error decoding a source image"""

    def __init__(self, source: str, reason: str):
        super().__init__(
            detail=f"Cannot load image '{source}': {reason}",
            error_code="IMAGE_LOAD_ERROR"
        )
        self.source = source
