"""
Tests for the codec helpers.
"""

import cv2
import numpy as np
import pytest

from faceblur.codec import decode_image, encode_image, to_bgr
from faceblur.errors import FaceBlurError, ImageDecodeError, ImageEncodeError

_PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"


def test_decode_empty_bytes():
    with pytest.raises(ImageDecodeError, match="empty"):
        decode_image(b"")


def test_decode_garbage_bytes():
    with pytest.raises(ImageDecodeError):
        decode_image(b"definitely not an image")


def test_decode_error_is_value_error():
    """Callers that only know builtins can still catch decode failures."""
    with pytest.raises(ValueError):
        decode_image(b"\x00\x01\x02")
    assert issubclass(ImageDecodeError, FaceBlurError)


def test_png_preserves_pixels():
    image = np.random.default_rng(3).integers(0, 256, (32, 48, 3), dtype=np.uint8)
    data = encode_image(image, ".png")

    assert data.startswith(_PNG_SIGNATURE)
    assert np.array_equal(decode_image(data), image)


def test_decode_keeps_alpha_by_default():
    image = np.zeros((10, 10, 4), dtype=np.uint8)
    image[..., 3] = 128
    decoded = decode_image(encode_image(image))
    assert decoded.shape == (10, 10, 4)
    assert (decoded[..., 3] == 128).all()


def test_decode_color_flag_forces_bgr():
    gray = np.full((10, 12), 90, dtype=np.uint8)
    decoded = decode_image(encode_image(gray), cv2.IMREAD_COLOR)
    assert decoded.shape == (10, 12, 3)


def test_encode_unknown_extension():
    with pytest.raises(ImageEncodeError):
        encode_image(np.zeros((4, 4, 3), dtype=np.uint8), ".notaformat")


@pytest.mark.parametrize("shape", [(10, 10), (10, 10, 4), (10, 10, 3)])
def test_to_bgr_shapes(shape):
    assert to_bgr(np.zeros(shape, dtype=np.uint8)).shape == (10, 10, 3)


def test_to_bgr_sixteen_bit():
    image = np.full((4, 4, 3), 65535, dtype=np.uint16)
    out = to_bgr(image)
    assert out.dtype == np.uint8
    assert (out == 255).all()
