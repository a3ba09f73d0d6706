"""
Model evaluation seam.

The detection pipeline only needs ``evaluate(tensor) -> (confidences,
box_offsets)``. Keeping the network behind this narrow interface lets
the geometric core run against synthetic tensors in tests.
"""

import logging
from typing import Protocol, Tuple

import cv2
import numpy as np

from faceblur.errors import ModelConfigurationError

logger = logging.getLogger(__name__)


class ModelEvaluator(Protocol):
    """Anything that turns an input tensor into raw detector outputs."""

    def evaluate(self, tensor: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """Return (confidences [1, N, 2], box_offsets [1, N, 4])."""
        ...


class DnnEvaluator:
    """ModelEvaluator backed by an OpenCV DNN network.

    Outputs are matched by their trailing dimension (2 for class scores,
    4 for box offsets) rather than by position, so models that list
    ``boxes`` before ``scores`` still decode correctly.
    """

    def __init__(self, net: cv2.dnn.Net) -> None:
        self._net = net
        self._output_names = list(net.getUnconnectedOutLayersNames())
        logger.debug("Model outputs: %s", self._output_names)

    def evaluate(self, tensor: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        self._net.setInput(tensor)
        outputs = self._net.forward(self._output_names)

        confidences = None
        boxes = None
        for out in outputs:
            if out.shape[-1] == 2 and confidences is None:
                confidences = out
            elif out.shape[-1] == 4 and boxes is None:
                boxes = out

        if confidences is None or boxes is None:
            raise ModelConfigurationError(
                f"Model outputs {[o.shape for o in outputs]} do not contain "
                f"a (.., 2) confidence tensor and a (.., 4) box tensor."
            )

        return confidences, boxes
