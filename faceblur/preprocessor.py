"""
Preprocessing for the face detection pipeline.

Responsibility:
    Convert a raw BGR frame (numpy array) into the 4D channel-first
    input tensor of the RFB model using cv2.dnn.blobFromImage.

Non-goals:
    - No frame acquisition or decoding.
    - No inference or coordinate mapping.

Hard-coded:
    - Bilinear resampling (blobFromImage resizes with INTER_LINEAR).
      The model was trained on bilinear-resized input; changing the
      filter shifts scores.
    - No center crop: the frame is stretched to the input size, so
      decoded normalized boxes map back by plain scaling.
"""

import numpy as np
import cv2

from faceblur.config import ModelConfig


def preprocess(frame: np.ndarray, config: ModelConfig) -> np.ndarray:
    """Convert a raw BGR frame into a model input tensor.

    Each channel value becomes (raw - mean_value) * scale_factor, which
    with the default config is (raw - 127.0) / 128.0.

    Args:
        frame: Input image as a BGR numpy array (H, W, 3).
        config: ModelConfig providing input_size, mean_value,
                scale_factor and swap_rb.

    Returns:
        A float32 array of shape (1, 3, input_h, input_w).

    Raises:
        ValueError: If the frame is empty.
    """
    if frame is None or frame.size == 0:
        raise ValueError(
            "Cannot preprocess an empty frame. "
            "Ensure the input image decoded to a non-empty buffer."
        )

    mean = config.mean_value
    blob = cv2.dnn.blobFromImage(
        image=frame,
        scalefactor=config.scale_factor,
        size=tuple(int(d) for d in config.input_size),
        mean=(mean, mean, mean),
        swapRB=config.swap_rb,
        crop=False,
    )

    return blob
