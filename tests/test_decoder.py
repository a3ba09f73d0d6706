"""
Tests for the box decoding module.
"""

import math

import numpy as np
import pytest

from faceblur.config import ModelConfig
from faceblur.decoder import decode
from faceblur.errors import ModelConfigurationError
from faceblur.priors import Prior, priors_from_config

from conftest import SMALL_PRIOR_COUNT, SMALL_PRIORS, make_outputs

_PRIORS = priors_from_config(ModelConfig(input_size=(64, 64)), SMALL_PRIORS)


def _decode(confidences, boxes, priors=_PRIORS, threshold=0.6, width=640, height=640):
    return decode(
        priors, confidences, boxes,
        image_width=width, image_height=height,
        score_threshold=threshold,
        center_variance=0.1, size_variance=0.2,
    )


def test_zero_offsets_reproduce_prior():
    """With zero offsets the box is the prior scaled to the image."""
    # Row 2, column 3, second size (16px): index (2 * 8 + 3) * 2 + 1
    conf, boxes = make_outputs(SMALL_PRIOR_COUNT, {39: 0.9})

    detections = _decode(conf, boxes)

    assert len(detections) == 1
    det = detections[0]
    assert det.x1 == pytest.approx(200.0)
    assert det.y1 == pytest.approx(120.0)
    assert det.x2 == pytest.approx(360.0)
    assert det.y2 == pytest.approx(280.0)
    assert det.score == pytest.approx(0.9)


def test_offsets_follow_formula():
    prior = Prior(cx=0.5, cy=0.4, w=0.2, h=0.1)
    offsets = (1.5, -2.0, 0.5, -1.0)
    conf = np.array([[[0.2, 0.8]]], dtype=np.float32)
    boxes = np.array([[offsets]], dtype=np.float32)

    det = _decode(conf, boxes, priors=[prior], width=300, height=200)[0]

    cx = 0.5 + 1.5 * 0.1 * 0.2
    cy = 0.4 + -2.0 * 0.1 * 0.1
    w = 0.2 * math.exp(0.5 * 0.2)
    h = 0.1 * math.exp(-1.0 * 0.2)
    assert det.x1 == pytest.approx((cx - w / 2) * 300, rel=1e-5)
    assert det.y1 == pytest.approx((cy - h / 2) * 200, rel=1e-5)
    assert det.x2 == pytest.approx((cx - w / 2) * 300 + w * 300, rel=1e-5)
    assert det.y2 == pytest.approx((cy - h / 2) * 200 + h * 200, rel=1e-5)


def test_threshold_is_strict():
    conf, boxes = make_outputs(SMALL_PRIOR_COUNT, {10: 0.5, 11: 0.75, 12: 0.25})
    detections = _decode(conf, boxes, threshold=0.5)
    assert [d.score for d in detections] == [0.75]


def test_no_scores_above_threshold():
    conf, boxes = make_outputs(SMALL_PRIOR_COUNT)
    assert _decode(conf, boxes) == []


def test_output_in_prior_order():
    conf, boxes = make_outputs(SMALL_PRIOR_COUNT, {100: 0.7, 5: 0.95})
    detections = _decode(conf, boxes)
    assert [d.score for d in detections] == [pytest.approx(0.95), pytest.approx(0.7)]


def test_accepts_unbatched_tensors():
    conf, boxes = make_outputs(SMALL_PRIOR_COUNT, {39: 0.9})
    assert len(_decode(conf[0], boxes[0])) == 1


def test_deterministic():
    conf, boxes = make_outputs(SMALL_PRIOR_COUNT, {3: (0.9, (0.3, -0.2, 0.1, 0.4))})
    assert _decode(conf, boxes) == _decode(conf, boxes)


def test_prior_count_mismatch_raises():
    conf, boxes = make_outputs(SMALL_PRIOR_COUNT - 1)
    with pytest.raises(ModelConfigurationError, match="Prior table"):
        _decode(conf, boxes)


def test_bad_tensor_shape_raises():
    conf = np.zeros((1, SMALL_PRIOR_COUNT, 3), dtype=np.float32)
    _, boxes = make_outputs(SMALL_PRIOR_COUNT)
    with pytest.raises(ModelConfigurationError, match="confidences"):
        _decode(conf, boxes)
