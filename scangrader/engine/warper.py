"""
Region Warping Module
Inverse-samples a template-space rectangle from a distorted scan
"""
import cv2
import numpy as np
from typing import Hashable, Optional
import logging

from .homography import apply_homography_array, homography_for_inverse_sampling
from .pixel_cache import ImageLoader, PixelBufferCache
from .types import Corners, Region
from ..config import settings
from ..core.exceptions import MalformedInputError

logger = logging.getLogger(__name__)

NEAREST = "nearest"
BILINEAR = "bilinear"


def _target_grid(target: Region):
    w = int(target.width)
    h = int(target.height)
    if w <= 0 or h <= 0:
        raise MalformedInputError(f"Target region has zero area: {target}")
    ys, xs = np.mgrid[0:h, 0:w].astype(np.float64)
    return xs + target.x, ys + target.y


def warp_region(
    source: np.ndarray,
    H: np.ndarray,
    target: Region,
    interpolation: str = NEAREST
) -> np.ndarray:
    """
    Fill a target rectangle by sampling source through H.

    Output pixel (dx, dy) takes the source pixel at
    H * (target.x + dx, target.y + dy). H must map target (template)
    coordinates to source coordinates.

    Args:
        source: RGBA source image
        H: 3x3 destination -> source homography
        target: Rectangle in destination coordinates
        interpolation: 'nearest' or 'bilinear'

    Returns:
        RGBA image of size floor(height) x floor(width); samples that fall
        outside the source are fully transparent
    """
    if source.ndim != 3 or source.shape[2] != 4:
        raise MalformedInputError("warp_region expects an RGBA source image")

    src_h, src_w = source.shape[:2]
    tx, ty = _target_grid(target)
    sx, sy = apply_homography_array(H, tx, ty)

    ix = np.floor(sx + 0.5)
    iy = np.floor(sy + 0.5)
    inside = (ix >= 0) & (ix < src_w) & (iy >= 0) & (iy < src_h)

    if interpolation == NEAREST:
        out = np.zeros(tx.shape + (4,), dtype=np.uint8)
        out[inside] = source[iy[inside].astype(np.intp), ix[inside].astype(np.intp)]
        return out

    if interpolation == BILINEAR:
        out = cv2.remap(
            np.ascontiguousarray(source),
            sx.astype(np.float32),
            sy.astype(np.float32),
            interpolation=cv2.INTER_LINEAR,
            borderMode=cv2.BORDER_REPLICATE
        )
        out[~inside] = 0
        return out

    raise MalformedInputError(f"Unknown interpolation: {interpolation!r}")


def crop_region(source: np.ndarray, target: Region) -> np.ndarray:
    """
    Plain axis-aligned crop with the same bounds policy as warp_region.

    Parts of the target outside the source are fully transparent.
    """
    w = int(target.width)
    h = int(target.height)
    if w <= 0 or h <= 0:
        raise MalformedInputError(f"Target region has zero area: {target}")

    out = np.zeros((h, w, 4), dtype=np.uint8)
    x0, y0 = int(np.floor(target.x + 0.5)), int(np.floor(target.y + 0.5))
    src_h, src_w = source.shape[:2]

    sx0, sy0 = max(0, x0), max(0, y0)
    sx1, sy1 = min(src_w, x0 + w), min(src_h, y0 + h)
    if sx1 > sx0 and sy1 > sy0:
        out[sy0 - y0:sy1 - y0, sx0 - x0:sx1 - x0] = source[sy0:sy1, sx0:sx1]
    return out


class RegionWarper:
    """
    Warps template regions out of scanned pages, decoding each page once.
    """

    def __init__(self, cache: Optional[PixelBufferCache] = None, interpolation: str = None):
        """
        Args:
            cache: Pixel buffer cache shared by one warp batch
            interpolation: 'nearest' or 'bilinear' (defaults to settings)
        """
        self.cache = cache if cache is not None else PixelBufferCache()
        self.interpolation = interpolation or settings.INTERPOLATION

    def warp(
        self,
        image_key: Hashable,
        loader: ImageLoader,
        detected: Corners,
        ideal: Corners,
        target: Region
    ) -> np.ndarray:
        """
        Rectified crop of a template-space region from one page.

        Args:
            image_key: Stable identifier of the source page
            loader: Decodes the page for image_key on a cache miss
            detected: Fiducial positions found on the page
            ideal: Fiducial positions on the template
            target: Region in template coordinates

        Raises:
            DegenerateHomographyError: If the corners cannot define a transform
        """
        source = self.cache.get_or_load(image_key, loader)
        H = homography_for_inverse_sampling(ideal, detected)
        return warp_region(source, H, target, self.interpolation)

    def crop(self, image_key: Hashable, loader: ImageLoader, target: Region) -> np.ndarray:
        """Uncorrected crop of a region from one page"""
        source = self.cache.get_or_load(image_key, loader)
        return crop_region(source, target)
