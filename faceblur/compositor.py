"""
Blur compositing for the face blur pipeline.

Responsibility:
    Blur rectangular regions of an image and write the result back,
    either over the whole rectangle or only inside the ellipse
    inscribed in it.

Non-goals:
    - No detection or model logic.
    - No decoding, encoding or file writing.

Behavior:
    - Rects are clamped to the image; anything that clamps to zero
      width or height is skipped without error.
    - Rects are applied one after another in input order, so where they
      overlap the later rect wins.
    - The image is modified in place.
    - Blur method and strength come from configuration, never from
      the call.
"""

import logging
from functools import lru_cache
from typing import Iterable, Optional, Union

import cv2
import numpy as np

from faceblur.config import BlurConfig, load_config
from faceblur.detection import Rect, ShapeMode

logger = logging.getLogger(__name__)

# Pixelation block size: max(_MIN_BLOCK, min(w, h) // _BLOCK_DIVISOR)
_MIN_BLOCK = 8
_BLOCK_DIVISOR = 10


def clamp_rect(rect: Rect, image_width: int, image_height: int) -> Optional[Rect]:
    """Clamp a rect to the image bounds.

    The origin is moved onto the image and the size is cut at the right
    and bottom edges. Returns None when nothing of the rect remains.
    """
    x = max(0, rect.x)
    y = max(0, rect.y)
    w = min(rect.w, image_width - x)
    h = min(rect.h, image_height - y)

    if w <= 0 or h <= 0:
        return None
    return Rect(x=x, y=y, w=w, h=h)


def ellipse_mask(width: int, height: int) -> np.ndarray:
    """Boolean (height, width) mask of the ellipse inscribed in a rect.

    Pixel (dx, dy) is inside when nx² + ny² <= 1 with
    nx = (dx - w/2) / (w/2) and ny = (dy - h/2) / (h/2).
    """
    rx = width / 2.0
    ry = height / 2.0
    dy, dx = np.mgrid[0:height, 0:width]
    nx = (dx - rx) / rx
    ny = (dy - ry) / ry
    return nx * nx + ny * ny <= 1.0


def _pixelate(region: np.ndarray) -> np.ndarray:
    h, w = region.shape[:2]
    block = max(_MIN_BLOCK, min(w, h) // _BLOCK_DIVISOR)
    small = cv2.resize(
        region,
        (max(1, w // block), max(1, h // block)),
        interpolation=cv2.INTER_AREA,
    )
    return cv2.resize(small, (w, h), interpolation=cv2.INTER_NEAREST)


def blur_region(region: np.ndarray, config: BlurConfig) -> np.ndarray:
    """Return a blurred copy of region using the configured primitive."""
    if config.method == "pixelate":
        return _pixelate(region)

    # Replicated borders keep the crop from bleeding in reflected pixels
    return cv2.GaussianBlur(
        region,
        (0, 0),
        sigmaX=config.sigma,
        sigmaY=config.sigma,
        borderType=cv2.BORDER_REPLICATE,
    )


class Compositor:
    """Applies the configured blur to rectangles of decoded images.

    Blur method and strength are fixed when the compositor is built;
    only the rects and the shape mode vary per call.

    Usage:
        compositor = Compositor(config.blur)
        compositor.apply(image, rects, ShapeMode.ELLIPSE)
    """

    def __init__(self, config: Optional[BlurConfig] = None) -> None:
        self._config = config or BlurConfig()

    @property
    def config(self) -> BlurConfig:
        return self._config

    def apply(
        self,
        image: np.ndarray,
        rects: Iterable[Rect],
        shape: Union[ShapeMode, str] = ShapeMode.RECTANGLE,
    ) -> np.ndarray:
        """Blur every rect of image in place.

        Args:
            image: Pixel buffer (H, W) or (H, W, C). Modified in place.
            rects: Regions to blur, applied in order.
            shape: RECTANGLE overwrites the whole region; ELLIPSE only the
                   pixels inside the inscribed ellipse.

        Returns:
            The same image object, for chaining.
        """
        shape = ShapeMode(shape)

        img_h, img_w = image.shape[:2]
        applied = 0

        for rect in rects:
            clamped = clamp_rect(rect, img_w, img_h)
            if clamped is None:
                logger.debug("Skipping rect outside image bounds: %s", rect)
                continue

            x, y, w, h = clamped.x, clamped.y, clamped.w, clamped.h
            region = image[y:y + h, x:x + w]
            blurred = blur_region(region, self._config)

            if shape is ShapeMode.ELLIPSE:
                mask = ellipse_mask(w, h)
                region[mask] = blurred[mask]
            else:
                region[...] = blurred
            applied += 1

        logger.debug("Applied %s blur to %d region(s)", shape.value, applied)
        return image


@lru_cache(maxsize=None)
def default_compositor() -> Compositor:
    """Compositor for the process-wide configuration, built on first use."""
    return Compositor(load_config().blur)


def apply_blur(
    image: np.ndarray,
    rects: Iterable[Rect],
    shape: Union[ShapeMode, str] = ShapeMode.RECTANGLE,
) -> np.ndarray:
    """Blur every rect of image in place with the process-wide settings."""
    return default_compositor().apply(image, rects, shape)
