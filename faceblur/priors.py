"""
Prior (anchor) generation for the RFB face detector.

Responsibility:
    Produce the fixed, ordered table of anchor boxes the model predicts
    offsets against. Every value is in normalized [0, 1] coordinates.

Ordering contract:
    Scales in schedule order, then grid rows, then grid columns, then
    anchor sizes in the given order. The model flattens its output
    tensors the same way, so prior i pairs with output row i. Any other
    order silently misaligns every decoded box.

The table is a pure function of hashable constants and is memoized
process-wide; the returned tuple is immutable and safe to share.
"""

from functools import lru_cache
from typing import NamedTuple, Sequence, Tuple

import numpy as np

from faceblur.config import ModelConfig, PriorConfig


class Prior(NamedTuple):
    """Normalized anchor center and size."""

    cx: float
    cy: float
    w: float
    h: float


@lru_cache(maxsize=8)
def generate_priors(
    input_w: int,
    input_h: int,
    feature_maps: Tuple[Tuple[int, int], ...],
    min_sizes: Tuple[Tuple[float, ...], ...],
    steps: Tuple[float, ...],
) -> Tuple[Prior, ...]:
    """Tile anchors over every feature map of the schedule.

    Args:
        input_w: Model input width in pixels.
        input_h: Model input height in pixels.
        feature_maps: (cols, rows) grid size per scale.
        min_sizes: Anchor sizes in input pixels per scale.
        steps: Grid stride in input pixels per scale.

    Returns:
        Tuple of Prior, ordered scale → row → column → size.

    Raises:
        ValueError: If the per-scale sequences differ in length.
    """
    if not (len(feature_maps) == len(min_sizes) == len(steps)):
        raise ValueError(
            f"feature_maps, min_sizes and steps must have the same length, "
            f"got {len(feature_maps)}, {len(min_sizes)} and {len(steps)}."
        )

    priors = []
    for (cols, rows), sizes, step in zip(feature_maps, min_sizes, steps):
        for i in range(rows):
            for j in range(cols):
                cx = (j + 0.5) * step / input_w
                cy = (i + 0.5) * step / input_h
                for size in sizes:
                    priors.append(Prior(cx, cy, size / input_w, size / input_h))

    return tuple(priors)


def count_priors(
    feature_maps: Sequence[Sequence[int]],
    min_sizes: Sequence[Sequence[float]],
) -> int:
    """Number of priors a schedule yields: sum of rows * cols * len(sizes)."""
    return sum(cols * rows * len(sizes) for (cols, rows), sizes in zip(feature_maps, min_sizes))


def priors_from_config(model: ModelConfig, priors: PriorConfig) -> Tuple[Prior, ...]:
    """Generate (or fetch the memoized) prior table for a configuration."""
    input_w, input_h = model.input_size
    return generate_priors(
        int(input_w),
        int(input_h),
        tuple(tuple(grid) for grid in priors.feature_maps),
        tuple(tuple(sizes) for sizes in priors.min_sizes),
        tuple(priors.steps),
    )


def as_array(priors: Sequence[Prior]) -> np.ndarray:
    """Stack priors into an (N, 4) float32 array of [cx, cy, w, h] rows."""
    if len(priors) == 0:
        return np.zeros((0, 4), dtype=np.float32)
    return np.asarray(priors, dtype=np.float32).reshape(-1, 4)
