"""
Shared synthetic page builders
"""
import cv2
import numpy as np
import pytest

from scangrader.core.constants import Orientation
from scangrader.engine.types import Corners, Point, Region

WHITE = (255, 255, 255, 255)
BLACK = (0, 0, 0, 255)

PAGE_WIDTH = 1000
PAGE_HEIGHT = 1400
MARK_SIZE = 20
MARK_INSET = 40

QUESTION_REGION = Region(400, 600, 200, 50)


def blank_page(width: int = PAGE_WIDTH, height: int = PAGE_HEIGHT) -> np.ndarray:
    """White opaque RGBA page"""
    return np.full((height, width, 4), 255, dtype=np.uint8)


def draw_square(img: np.ndarray, x: int, y: int, size: int, color=BLACK) -> None:
    img[y:y + size, x:x + size] = color


def draw_fiducials(img: np.ndarray, size: int = MARK_SIZE, inset: int = MARK_INSET) -> Corners:
    """Four solid squares near the page corners; returns their centroids"""
    h, w = img.shape[:2]
    origins = [
        (inset, inset),
        (w - inset - size, inset),
        (w - inset - size, h - inset - size),
        (inset, h - inset - size),
    ]
    for x, y in origins:
        draw_square(img, x, y, size)
    half = (size - 1) / 2
    return Corners(*[Point(x + half, y + half) for x, y in origins])


def draw_bubbles(
    img: np.ndarray,
    region: Region,
    count: int,
    filled=(),
    orientation: Orientation = Orientation.HORIZONTAL,
    radius: int = 15
) -> list:
    """Outlined bubbles evenly spaced across region; indices in filled are solid"""
    centers = []
    for i in range(count):
        if orientation == Orientation.HORIZONTAL:
            cx = region.x + region.width / count * (i + 0.5)
            cy = region.y + region.height / 2
        else:
            cx = region.x + region.width / 2
            cy = region.y + region.height / count * (i + 0.5)
        center = (int(cx), int(cy))
        thickness = -1 if i in filled else 1
        cv2.circle(img, center, radius, BLACK, thickness)
        centers.append(center)
    return centers


def shift_page(img: np.ndarray, dx: int, dy: int) -> np.ndarray:
    """Translate page content by (dx, dy), padding with white"""
    out = np.full_like(img, 255)
    h, w = img.shape[:2]
    out[dy:, dx:] = img[:h - dy, :w - dx]
    return out


@pytest.fixture
def template_page():
    """Master page with fiducials and one 4-option question keyed to bubble 1"""
    page = blank_page()
    corners = draw_fiducials(page)
    draw_bubbles(page, QUESTION_REGION, 4, filled=(1,))
    return page, corners


@pytest.fixture
def shifted_page(template_page):
    """The template page scanned 15 px right and down"""
    page, corners = template_page
    return shift_page(page, 15, 15), corners.translated(15, 15)
