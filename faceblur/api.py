"""
Byte-level entry points.

These functions take and return encoded image bytes, which is what a
host application (mobile bridge, web handler, CLI) usually holds. They
decode with the OpenCV codec, run the detector and/or compositor, and
re-encode to the configured output format (PNG by default).

Every entry point decodes the same way, so rects returned by
detect_faces address the same pixels blur_faces later writes to.
Blur method and strength are process-wide settings and are not
accepted per call.
"""

import logging
from typing import Iterable, List, Optional, Tuple, Union

from faceblur.codec import decode_image, encode_image, to_bgr
from faceblur.compositor import Compositor, clamp_rect, default_compositor
from faceblur.config import AppConfig
from faceblur.detection import Rect, ShapeMode
from faceblur.detector import Detector

logger = logging.getLogger(__name__)


def detect_faces(
    image_bytes: bytes,
    model_bytes: Optional[bytes] = None,
    config: Optional[AppConfig] = None,
    detector: Optional[Detector] = None,
) -> List[Rect]:
    """Detect faces in an encoded image.

    Args:
        image_bytes: Encoded image in any format the codec reads.
        model_bytes: ONNX model payload. Ignored when detector is given;
                     when both are None the configured model path is used.
        config: Configuration for a newly built detector.
        detector: Reuse an existing detector instead of loading the model.

    Returns:
        Face rectangles, highest score first, in the pixel frame of
        decode_image(image_bytes). Empty if no face is found.

    Raises:
        ImageDecodeError: If image_bytes cannot be decoded.
        ModelConfigurationError: If the model does not match the priors.
    """
    frame = to_bgr(decode_image(image_bytes))
    if detector is None:
        detector = Detector(config=config, model_bytes=model_bytes)
    return detector.detect_rects(frame)


def blur_faces(image_bytes: bytes, rects: Iterable[Rect], is_circle: bool = False) -> bytes:
    """Blur every rect of an encoded image and re-encode it.

    Args:
        image_bytes: Encoded source image.
        rects: Regions to blur; out-of-bounds parts are ignored.
        is_circle: Blur the inscribed ellipse instead of the full rect.

    Returns:
        The re-encoded image. With no effective rects the pixels are
        unchanged but the bytes are still re-encoded.
    """
    compositor = default_compositor()
    image = decode_image(image_bytes)
    compositor.apply(image, rects, ShapeMode.from_flag(is_circle))
    return encode_image(image, compositor.config.output_format)


def blur_face_area(image_bytes: bytes, x: int, y: int, w: int, h: int) -> bytes:
    """Blur a single rectangle of an encoded image.

    Returns image_bytes itself, untouched and not re-encoded, when the
    rectangle lies entirely outside the image.
    """
    image = decode_image(image_bytes)
    img_h, img_w = image.shape[:2]
    rect = Rect(x=x, y=y, w=w, h=h)

    if clamp_rect(rect, img_w, img_h) is None:
        logger.debug("Rect %s is outside the %dx%d image; returning input", rect, img_w, img_h)
        return image_bytes

    compositor = default_compositor()
    compositor.apply(image, [rect], ShapeMode.RECTANGLE)
    return encode_image(image, compositor.config.output_format)


def redact_faces(
    image_bytes: bytes,
    detector: Detector,
    shape: Union[ShapeMode, str, None] = None,
    compositor: Optional[Compositor] = None,
) -> Tuple[bytes, List[Rect]]:
    """Detect faces and blur them in one pass.

    Decodes once, keeping the source channel layout for the output while
    the detector sees a BGR copy. Without a compositor the blur settings
    of the detector's configuration are used.

    Returns:
        (re-encoded blurred image, detected rects)
    """
    if compositor is None:
        compositor = Compositor(detector.config.blur)
    if shape is None:
        shape = detector.config.blur.shape

    image = decode_image(image_bytes)
    rects = detector.detect_rects(to_bgr(image))
    compositor.apply(image, rects, shape)
    return encode_image(image, compositor.config.output_format), rects
