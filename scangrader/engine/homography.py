"""
Homography Module
Solves the 3x3 projective transform between four point correspondences
"""
import numpy as np
from typing import Sequence, Tuple
import logging

from .types import Corners, Point
from ..core.exceptions import DegenerateHomographyError, MalformedInputError

logger = logging.getLogger(__name__)

PIVOT_EPSILON = 1e-8


def _build_system(src: Sequence[Point], dst: Sequence[Point]) -> np.ndarray:
    """
    8 x 9 augmented matrix for H with h22 fixed at 1.

    For each pair (x, y) -> (u, v):
        h00 x + h01 y + h02 - u (h20 x + h21 y) = u
        h10 x + h11 y + h12 - v (h20 x + h21 y) = v
    """
    rows = []
    for p, q in zip(src, dst):
        x, y, u, v = p.x, p.y, q.x, q.y
        rows.append([x, y, 1.0, 0.0, 0.0, 0.0, -x * u, -y * u, u])
        rows.append([0.0, 0.0, 0.0, x, y, 1.0, -x * v, -y * v, v])
    return np.array(rows, dtype=np.float64)


def solve_homography(
    src: Sequence[Point],
    dst: Sequence[Point],
    epsilon: float = PIVOT_EPSILON
) -> np.ndarray:
    """
    Compute H such that H * src_i ~ dst_i in homogeneous coordinates.

    Gauss-Jordan elimination with partial pivoting on the 8-equation system.

    Args:
        src: Four source points
        dst: Four destination points
        epsilon: Smallest pivot magnitude accepted

    Returns:
        3x3 float64 matrix

    Raises:
        MalformedInputError: If either side does not have exactly 4 points
        DegenerateHomographyError: If the system is singular (colinear points)
    """
    src = list(src)
    dst = list(dst)
    if len(src) != 4 or len(dst) != 4:
        raise MalformedInputError(
            f"Homography needs 4 correspondences, got {len(src)} -> {len(dst)}"
        )

    m = _build_system(src, dst)
    n = 8

    for col in range(n):
        pivot_row = col + int(np.argmax(np.abs(m[col:, col])))
        if pivot_row != col:
            m[[col, pivot_row]] = m[[pivot_row, col]]

        pivot = m[col, col]
        if abs(pivot) < epsilon:
            raise DegenerateHomographyError(col, pivot)

        m[col, col:] /= pivot
        for row in range(n):
            if row != col:
                factor = m[row, col]
                if factor != 0.0:
                    m[row, col:] -= factor * m[col, col:]

    h = np.append(m[:, 8], 1.0)
    return h.reshape(3, 3)


def homography_for_inverse_sampling(ideal: Corners, detected: Corners) -> np.ndarray:
    """
    H mapping template (ideal) coordinates onto the scanned page.

    Used to fill a template-space rectangle by sampling the distorted scan,
    so the system is built with src=ideal, dst=detected.
    """
    return solve_homography(ideal.as_list(), detected.as_list())


def apply_homography(H: np.ndarray, point: Point) -> Point:
    """Map a point through H with projective division"""
    x, y = point.x, point.y
    denom = H[2, 0] * x + H[2, 1] * y + H[2, 2]
    return Point(
        (H[0, 0] * x + H[0, 1] * y + H[0, 2]) / denom,
        (H[1, 0] * x + H[1, 1] * y + H[1, 2]) / denom,
    )


def apply_homography_array(
    H: np.ndarray,
    xs: np.ndarray,
    ys: np.ndarray
) -> Tuple[np.ndarray, np.ndarray]:
    """Vectorised apply_homography over coordinate arrays"""
    denom = H[2, 0] * xs + H[2, 1] * ys + H[2, 2]
    sx = (H[0, 0] * xs + H[0, 1] * ys + H[0, 2]) / denom
    sy = (H[1, 0] * xs + H[1, 1] * ys + H[1, 2]) / denom
    return sx, sy


def is_identity(H: np.ndarray, tolerance: float = 1e-9) -> bool:
    return bool(np.allclose(H, np.eye(3), atol=tolerance))
