"""
Image Processing Module
Decodes source images into RGBA pixel buffers and derives luminance
"""
import cv2
import numpy as np
from pathlib import Path
from typing import Union
import logging

from ..core.constants import LUMA_WEIGHTS
from ..core.exceptions import ImageLoadError, MalformedInputError

logger = logging.getLogger(__name__)


def as_rgba(img: np.ndarray, bgr: bool = False) -> np.ndarray:
    """
    Normalise a decoded image to an H x W x 4 uint8 RGBA buffer.

    Args:
        img: Grayscale (H x W), 3-channel or 4-channel image
        bgr: Whether 3/4-channel input is in OpenCV BGR(A) order

    Returns:
        RGBA image
    """
    if img is None or img.size == 0:
        raise MalformedInputError("Empty image buffer")

    if img.dtype != np.uint8:
        img = np.clip(img, 0, 255).astype(np.uint8)

    if img.ndim == 2:
        return cv2.cvtColor(img, cv2.COLOR_GRAY2RGBA)

    channels = img.shape[2]
    if channels == 4:
        return cv2.cvtColor(img, cv2.COLOR_BGRA2RGBA) if bgr else img
    if channels == 3:
        return cv2.cvtColor(img, cv2.COLOR_BGR2RGBA if bgr else cv2.COLOR_RGB2RGBA)
    if channels == 1:
        return cv2.cvtColor(img[:, :, 0], cv2.COLOR_GRAY2RGBA)

    raise MalformedInputError(f"Unsupported channel count: {channels}")


def luminance(pixels: np.ndarray) -> np.ndarray:
    """
    Per-pixel luminance 0.299R + 0.587G + 0.114B.

    Args:
        pixels: RGBA (or RGB) image, or an already-gray H x W array

    Returns:
        float32 H x W array
    """
    if pixels.ndim == 2:
        return pixels.astype(np.float32)
    rgb = pixels[:, :, :3].astype(np.float32)
    r_w, g_w, b_w = LUMA_WEIGHTS
    return r_w * rgb[:, :, 0] + g_w * rgb[:, :, 1] + b_w * rgb[:, :, 2]


def opaque_mask(pixels: np.ndarray) -> np.ndarray:
    """Boolean mask of pixels carrying data (alpha > 0)"""
    if pixels.ndim == 3 and pixels.shape[2] == 4:
        return pixels[:, :, 3] > 0
    return np.ones(pixels.shape[:2], dtype=bool)


def load_image(path: Union[str, Path]) -> np.ndarray:
    """
    Load an image file as RGBA.

    Reads the bytes first and decodes with cv2.imdecode so that non-ASCII
    paths work on every platform.

    Args:
        path: Path to image file

    Returns:
        RGBA image

    Raises:
        ImageLoadError: If the file is missing or cannot be decoded
    """
    path = Path(path)
    try:
        stream = np.fromfile(str(path), np.uint8)
    except OSError as e:
        raise ImageLoadError(str(path), str(e)) from e

    img = cv2.imdecode(stream, cv2.IMREAD_UNCHANGED)
    if img is None:
        raise ImageLoadError(str(path), "unsupported or corrupt image data")

    logger.debug(f"Decoded {path.name}: {img.shape[1]}x{img.shape[0]}")
    return as_rgba(img, bgr=True)
