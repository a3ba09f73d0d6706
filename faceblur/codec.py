"""
Image codec helpers.

Thin wrappers over cv2.imdecode / cv2.imencode that turn codec failures
into library errors. Decoding keeps the source channel layout by
default so a blurred image re-encodes with the same dimensions and
channel count it came in with.
"""

import cv2
import numpy as np

from faceblur.errors import ImageDecodeError, ImageEncodeError


def decode_image(data: bytes, flags: int = cv2.IMREAD_UNCHANGED) -> np.ndarray:
    """Decode compressed image bytes into a pixel buffer.

    Raises:
        ImageDecodeError: If data is empty or no codec can read it.
    """
    if not data:
        raise ImageDecodeError("Cannot decode an empty image buffer.")

    image = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), flags)
    if image is None or image.size == 0:
        raise ImageDecodeError(
            f"Unable to decode image ({len(data)} bytes). "
            f"The data is corrupt or in an unsupported format."
        )
    return image


def encode_image(image: np.ndarray, ext: str = ".png") -> bytes:
    """Encode a pixel buffer with the codec selected by ext.

    Raises:
        ImageEncodeError: If the codec rejects the buffer or extension.
    """
    try:
        ok, buf = cv2.imencode(ext, image)
    except cv2.error as e:
        raise ImageEncodeError(f"Failed to encode image as '{ext}': {e}") from e

    if not ok:
        raise ImageEncodeError(f"Failed to encode image as '{ext}'.")
    return buf.tobytes()


def to_bgr(image: np.ndarray) -> np.ndarray:
    """Return a 3-channel 8-bit BGR view of a decoded image for detection."""
    if image.dtype != np.uint8:
        # Integer depths scale by their range; float images are assumed in [0, 1]
        if np.issubdtype(image.dtype, np.integer):
            alpha = 255.0 / np.iinfo(image.dtype).max
        else:
            alpha = 255.0
        image = cv2.convertScaleAbs(image, alpha=alpha)

    if image.ndim == 2:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    if image.shape[2] == 1:
        return cv2.cvtColor(image, cv2.COLOR_GRAY2BGR)
    return image
