"""
Face Blur — on-device face detection and region blurring using OpenCV.

Public API:
    - Detector: Face detection over decoded BGR frames.
    - Detection, Rect, ShapeMode: Value types.
    - Compositor, apply_blur: Blur rectangles of a decoded image in place.
    - detect_faces, blur_faces, blur_face_area, redact_faces:
      Byte-in / byte-out entry points.

Usage:
    from faceblur import Detector, apply_blur, ShapeMode

    detector = Detector()
    rects = detector.detect_rects(frame)
    apply_blur(frame, rects, ShapeMode.ELLIPSE)
"""

from faceblur.api import blur_face_area, blur_faces, detect_faces, redact_faces
from faceblur.compositor import Compositor, apply_blur
from faceblur.detection import Detection, Rect, ShapeMode
from faceblur.detector import Detector

__all__ = [
    "Detector",
    "Detection",
    "Rect",
    "ShapeMode",
    "Compositor",
    "apply_blur",
    "detect_faces",
    "blur_faces",
    "blur_face_area",
    "redact_faces",
]
