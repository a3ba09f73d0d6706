"""
Box decoding for the face detection pipeline.

Responsibility:
    Combine each prior with the model's regression offsets to produce
    absolute pixel-space face boxes, keeping only priors whose face
    score exceeds the threshold.

Non-goals:
    - No suppression, clamping or integer conversion (see postprocessor).
    - No inference.

Hard-coded:
    - Confidence layout: [1, N, 2] (or [N, 2]); column 1 is the face class.
    - Offset layout: [1, N, 4] (or [N, 4]) as (cx, cy, w, h).
"""

import logging
from typing import List, Sequence, Union

import numpy as np

from faceblur.detection import Detection
from faceblur.errors import ModelConfigurationError
from faceblur.priors import Prior, as_array

logger = logging.getLogger(__name__)

_FACE_CLASS = 1


def _as_rows(tensor: np.ndarray, columns: int, name: str) -> np.ndarray:
    """Drop the batch axis and return an (N, columns) view."""
    arr = np.asarray(tensor, dtype=np.float32)
    if arr.ndim == 3 and arr.shape[0] == 1:
        arr = arr[0]
    if arr.ndim != 2 or arr.shape[1] != columns:
        raise ModelConfigurationError(
            f"Expected {name} of shape (1, N, {columns}) or (N, {columns}), "
            f"got {np.shape(tensor)}."
        )
    return arr


def decode(
    priors: Union[Sequence[Prior], np.ndarray],
    confidences: np.ndarray,
    box_offsets: np.ndarray,
    image_width: int,
    image_height: int,
    score_threshold: float,
    center_variance: float,
    size_variance: float,
) -> List[Detection]:
    """Decode raw model outputs into pixel-space detections.

    Args:
        priors: Prior table (sequence of Prior or an (N, 4) array).
        confidences: Per-prior class scores, shape (1, N, 2).
        box_offsets: Per-prior regression offsets, shape (1, N, 4).
        image_width: Width of the ORIGINAL image in pixels.
        image_height: Height of the ORIGINAL image in pixels.
        score_threshold: Priors scoring at or below this are dropped.
        center_variance: Scale for center offsets.
        size_variance: Scale for log-size offsets.

    Returns:
        Detections in prior order (not sorted).

    Raises:
        ModelConfigurationError: If the tensors do not match the prior count.
    """
    anchors = priors if isinstance(priors, np.ndarray) else as_array(priors)
    scores = _as_rows(confidences, 2, "confidences")[:, _FACE_CLASS]
    offsets = _as_rows(box_offsets, 4, "box offsets")

    if scores.shape[0] != anchors.shape[0] or offsets.shape[0] != anchors.shape[0]:
        raise ModelConfigurationError(
            f"Prior table has {anchors.shape[0]} entries but the model produced "
            f"{scores.shape[0]} confidences and {offsets.shape[0]} box offsets. "
            f"Check model.input_size and the prior schedule against the model."
        )

    # Filter before decoding so rejected priors are never materialized
    keep = np.flatnonzero(scores > score_threshold)
    if keep.size == 0:
        return []

    p = anchors[keep]
    loc = offsets[keep]

    cx = p[:, 0] + loc[:, 0] * center_variance * p[:, 2]
    cy = p[:, 1] + loc[:, 1] * center_variance * p[:, 3]
    w = p[:, 2] * np.exp(loc[:, 2] * size_variance)
    h = p[:, 3] * np.exp(loc[:, 3] * size_variance)

    x1 = (cx - w / 2.0) * image_width
    y1 = (cy - h / 2.0) * image_height
    x2 = x1 + w * image_width
    y2 = y1 + h * image_height

    detections = [
        Detection(
            x1=float(x1[n]),
            y1=float(y1[n]),
            x2=float(x2[n]),
            y2=float(y2[n]),
            score=float(scores[idx]),
        )
        for n, idx in enumerate(keep)
    ]

    logger.debug("Decoded %d candidate boxes above %.2f", len(detections), score_threshold)
    return detections
