"""
Shared fixtures: a synthetic model evaluator and a small prior schedule.

The small schedule uses a 64x64 input so every prior coordinate is an
exact binary fraction and decoded boxes land on whole pixels.
"""

import numpy as np
import pytest

from faceblur.compositor import default_compositor
from faceblur.config import AppConfig, ModelConfig, PriorConfig

# 8x8 grid with two sizes + 4x4 grid with one size = 144 priors
SMALL_PRIORS = PriorConfig(
    feature_maps=((8, 8), (4, 4)),
    min_sizes=((8.0, 16.0), (32.0,)),
    steps=(8.0, 16.0),
)
SMALL_PRIOR_COUNT = 144


class FakeEvaluator:
    """Returns fixed tensors and records the shape of every input."""

    def __init__(self, confidences: np.ndarray, boxes: np.ndarray) -> None:
        self.confidences = confidences
        self.boxes = boxes
        self.input_shapes = []

    def evaluate(self, tensor):
        self.input_shapes.append(tensor.shape)
        return self.confidences, self.boxes


def make_outputs(num_priors, hits=None):
    """Build (confidences, boxes) with face scores at the given prior indices.

    hits maps prior index → score or (score, (dcx, dcy, dw, dh)).
    """
    confidences = np.zeros((1, num_priors, 2), dtype=np.float32)
    confidences[0, :, 0] = 1.0
    boxes = np.zeros((1, num_priors, 4), dtype=np.float32)

    for idx, value in (hits or {}).items():
        if isinstance(value, tuple):
            score, offsets = value
            boxes[0, idx] = offsets
        else:
            score = value
        confidences[0, idx] = (1.0 - score, score)

    return confidences, boxes


@pytest.fixture
def small_config():
    return AppConfig(model=ModelConfig(input_size=(64, 64)), priors=SMALL_PRIORS)


@pytest.fixture
def checkerboard():
    """200x200 BGR image alternating black/white every pixel."""
    yy, xx = np.mgrid[0:200, 0:200]
    board = (((yy + xx) % 2) * 255).astype(np.uint8)
    return np.dstack([board, board, board])


@pytest.fixture(autouse=True)
def fresh_default_compositor():
    """Rebuild the process-wide compositor from the environment of each test."""
    default_compositor.cache_clear()
    yield
    default_compositor.cache_clear()
