"""
Postprocessing for the face detection pipeline.

Responsibility:
    Collapse duplicate candidate boxes with greedy hard non-maximum
    suppression, clamp survivors to the frame and convert them to the
    integer Rects handed to callers.

Non-goals:
    - No drawing, saving, or display logic.
    - No model loading, inference or box decoding.

Hard-coded:
    - Float → int conversion truncates toward zero.
    - Equal scores keep their input order (stable sort).
"""

from typing import Iterable, List

from faceblur.detection import Detection, Rect


def iou(a: Detection, b: Detection) -> float:
    """Intersection over union of two axis-aligned boxes.

    Returns 0.0 when the union is empty, so degenerate boxes never
    divide by zero.
    """
    inter_w = max(0.0, min(a.x2, b.x2) - max(a.x1, b.x1))
    inter_h = max(0.0, min(a.y2, b.y2) - max(a.y1, b.y1))
    inter_area = inter_w * inter_h

    union = a.area + b.area - inter_area

    if union <= 0.0:
        return 0.0
    return inter_area / union


def hard_nms(detections: Iterable[Detection], iou_threshold: float) -> List[Detection]:
    """Greedy hard NMS.

    Walk boxes by descending score; keep each box not yet suppressed and
    suppress every later box whose IoU with it exceeds iou_threshold.

    Args:
        detections: Candidate boxes in any order.
        iou_threshold: Overlap above which the lower-scored box is dropped.

    Returns:
        Surviving detections, sorted by score (descending).
    """
    ordered = sorted(detections, key=lambda d: d.score, reverse=True)
    suppressed = [False] * len(ordered)
    picked: List[Detection] = []

    for i, current in enumerate(ordered):
        if suppressed[i]:
            continue
        picked.append(current)
        for j in range(i + 1, len(ordered)):
            if not suppressed[j] and iou(current, ordered[j]) > iou_threshold:
                suppressed[j] = True

    return picked


def clamp_detection(det: Detection, frame_width: int, frame_height: int) -> Detection:
    """Clamp a box to [0, frame_width] x [0, frame_height]."""
    return Detection(
        x1=min(max(det.x1, 0.0), float(frame_width)),
        y1=min(max(det.y1, 0.0), float(frame_height)),
        x2=min(max(det.x2, 0.0), float(frame_width)),
        y2=min(max(det.y2, 0.0), float(frame_height)),
        score=det.score,
    )


def to_rects(
    detections: Iterable[Detection],
    frame_width: int,
    frame_height: int,
) -> List[Rect]:
    """Clamp detections to the frame and convert them to integer Rects.

    Boxes that end up with zero or negative width/height are dropped.
    Input order is preserved.
    """
    rects: List[Rect] = []
    for det in detections:
        rect = clamp_detection(det, frame_width, frame_height).to_rect()
        if rect.is_empty:
            continue
        rects.append(rect)
    return rects
