"""
Model loading for the face blur system.

Responsibility:
    Load the ONNX face detector, either from disk or from an in-memory
    payload, configure the compute backend, and return a ready-to-infer
    cv2.dnn.Net object.

Non-goals:
    - No preprocessing, inference, or frame-level logic.
    - No automatic model downloading.
    - No fallback to alternative models.

Failure behavior:
    - Missing model files raise FileNotFoundError with the exact
      missing path and expected location.
    - An empty payload raises ValueError.
    - Incompatible backend raises RuntimeError.
    - Unparseable models surface OpenCV's own cv2.error unchanged.
"""

import logging
from pathlib import Path
from typing import Optional

import cv2
import numpy as np

from faceblur.config import ModelConfig, get_project_root

logger = logging.getLogger(__name__)


def _resolve_model_path(config: ModelConfig) -> Path:
    path = Path(config.model_path)
    if not path.is_absolute():
        path = get_project_root() / path

    if not path.is_file():
        raise FileNotFoundError(
            f"Model file not found.\n"
            f"  Expected: {path}\n"
            f"  Place the RFB-640 ONNX model at the path above,\n"
            f"  update 'model.model_path' in your config, or pass the model bytes."
        )
    return path


def _configure_backend(net: cv2.dnn.Net, backend: str) -> None:
    if backend == "cuda":
        logger.info("Setting CUDA backend and target.")
        try:
            net.setPreferableBackend(cv2.dnn.DNN_BACKEND_CUDA)
            net.setPreferableTarget(cv2.dnn.DNN_TARGET_CUDA)
        except cv2.error as e:
            raise RuntimeError(
                f"Failed to set CUDA backend. Ensure OpenCV was built with "
                f"CUDA support (custom build).\n"
                f"  OpenCV error: {e}"
            ) from e
    else:
        logger.info("Using CPU backend.")
        net.setPreferableBackend(cv2.dnn.DNN_BACKEND_OPENCV)
        net.setPreferableTarget(cv2.dnn.DNN_TARGET_CPU)


def load_model(config: ModelConfig, model_bytes: Optional[bytes] = None) -> cv2.dnn.Net:
    """Load and configure the ONNX face detection model.

    Args:
        config: ModelConfig containing the model path and backend preference.
        model_bytes: Serialized ONNX model. When given, config.model_path
                     is ignored and nothing is read from disk.

    Returns:
        A configured cv2.dnn.Net ready for inference.

    Raises:
        FileNotFoundError: If no payload is given and the model file does not exist.
        ValueError: If model_bytes is empty.
        RuntimeError: If the requested backend is unavailable.
    """
    if model_bytes is not None:
        if len(model_bytes) == 0:
            raise ValueError("Model payload is empty.")
        logger.info("Loading model from memory (%d bytes)", len(model_bytes))
        net = cv2.dnn.readNetFromONNX(np.frombuffer(model_bytes, dtype=np.uint8))
    else:
        path = _resolve_model_path(config)
        logger.info("Loading model: %s", path)
        net = cv2.dnn.readNetFromONNX(str(path))

    _configure_backend(net, config.backend)

    logger.info("Model loaded successfully.")
    return net
