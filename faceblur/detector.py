"""
Detector — the programmatic API for face detection.

Public contract:
    Detector.detect(frame: np.ndarray) -> list[Detection]
    Detector.detect_rects(frame: np.ndarray) -> list[Rect]

Pipeline:
    frame → preprocess → evaluate → decode → hard NMS → clamp → Rect

Constraints:
    - Input must be a BGR numpy array (as returned by OpenCV).
    - The method is stateless per call and deterministic.
    - Thread-safety is not guaranteed (single-threaded design); the
      shared prior table is read-only.

Non-goals:
    - No file reading or encoding.
    - No blurring (see compositor).
"""

import logging
from typing import List, Optional, Tuple

import numpy as np

from faceblur.config import AppConfig, load_config
from faceblur.decoder import decode
from faceblur.detection import Detection, Rect
from faceblur.errors import ModelConfigurationError
from faceblur.evaluator import DnnEvaluator, ModelEvaluator
from faceblur.model_loader import load_model
from faceblur.postprocessor import hard_nms, to_rects
from faceblur.preprocessor import preprocess
from faceblur.priors import Prior, as_array, priors_from_config

logger = logging.getLogger(__name__)


class Detector:
    """Face detector using the RFB-640 model via OpenCV DNN.

    Usage:
        detector = Detector()                         # Model from config path
        detector = Detector(model_bytes=payload)      # Model from memory
        detector = Detector(evaluator=fake)           # Any ModelEvaluator
        rects = detector.detect_rects(frame)          # BGR numpy array

    The constructor loads the model once and checks that its outputs
    line up with the prior table. Subsequent detect() calls reuse both.
    """

    def __init__(
        self,
        config: Optional[AppConfig] = None,
        model_bytes: Optional[bytes] = None,
        evaluator: Optional[ModelEvaluator] = None,
    ) -> None:
        """Initialize the detector and load the model.

        Args:
            config: Application configuration. If None, safe defaults
                    are used (no config file required).
            model_bytes: Serialized ONNX model to load instead of
                         config.model.model_path.
            evaluator: Pre-built evaluator. Takes precedence over both
                       model_bytes and the configured path.

        Raises:
            FileNotFoundError: If model files are missing.
            RuntimeError: If the requested backend is unavailable.
            ModelConfigurationError: If model outputs do not match the priors.
        """
        if config is None:
            config = load_config()

        self._config = config
        self._priors = priors_from_config(config.model, config.priors)
        self._anchors = as_array(self._priors)

        if evaluator is None:
            evaluator = DnnEvaluator(load_model(config.model, model_bytes))
        self._evaluator = evaluator

        self._check_alignment()

        logger.info(
            "Detector initialized (backend=%s, priors=%d, score_threshold=%.2f)",
            config.model.backend,
            len(self._priors),
            config.detection.score_threshold,
        )

    def _check_alignment(self) -> None:
        """Run one blank forward pass and compare output rows to the priors."""
        input_w, input_h = self._config.model.input_size
        probe = np.zeros((1, 3, int(input_h), int(input_w)), dtype=np.float32)
        confidences, boxes = self._evaluator.evaluate(probe)

        conf_rows = int(np.prod(np.shape(confidences)[:-1]))
        box_rows = int(np.prod(np.shape(boxes)[:-1]))
        expected = len(self._priors)

        if conf_rows != expected or box_rows != expected:
            raise ModelConfigurationError(
                f"Model produces {conf_rows} confidence rows and {box_rows} box "
                f"rows but the prior schedule yields {expected} priors for "
                f"input size {self._config.model.input_size}."
            )

    def detect(self, frame: np.ndarray) -> List[Detection]:
        """Detect faces in a single BGR frame.

        Args:
            frame: A BGR image with shape (H, W, 3) and dtype uint8.

        Returns:
            Detections after suppression, sorted by score (descending),
            in original-image pixel coordinates (unclamped floats).
            Empty list if no faces are detected.

        Raises:
            TypeError: If frame is not a numpy ndarray.
            ValueError: If frame has incorrect shape or is empty.
        """
        self._validate_frame(frame)

        tensor = preprocess(frame, self._config.model)
        confidences, boxes = self._evaluator.evaluate(tensor)

        h, w = frame.shape[:2]
        det_cfg = self._config.detection
        candidates = decode(
            self._anchors,
            confidences,
            boxes,
            image_width=w,
            image_height=h,
            score_threshold=det_cfg.score_threshold,
            center_variance=det_cfg.center_variance,
            size_variance=det_cfg.size_variance,
        )
        faces = hard_nms(candidates, det_cfg.iou_threshold)

        logger.debug("Candidates: %d, after NMS: %d", len(candidates), len(faces))
        return faces

    def detect_rects(self, frame: np.ndarray) -> List[Rect]:
        """Detect faces and return them as clamped integer Rects."""
        faces = self.detect(frame)
        h, w = frame.shape[:2]
        return to_rects(faces, w, h)

    @property
    def config(self) -> AppConfig:
        """Return the active configuration (read-only)."""
        return self._config

    @property
    def priors(self) -> Tuple[Prior, ...]:
        """Return the prior table aligned with the model outputs."""
        return self._priors

    @staticmethod
    def _validate_frame(frame: np.ndarray) -> None:
        """Validate that the input frame meets the API contract.

        Raises:
            TypeError: If frame is not a numpy ndarray.
            ValueError: If frame is empty or has wrong dimensions.
        """
        if not isinstance(frame, np.ndarray):
            raise TypeError(
                f"Expected frame to be a numpy ndarray, "
                f"got {type(frame).__name__}. "
                f"Use faceblur.codec.decode_image() to obtain frames."
            )

        if frame.size == 0:
            raise ValueError(
                "Frame is empty (zero size). "
                "Ensure the input image decoded to a non-empty buffer."
            )

        if frame.ndim != 3:
            raise ValueError(
                f"Expected a 3-dimensional frame (H, W, C), "
                f"got {frame.ndim} dimensions with shape {frame.shape}. "
                f"Grayscale images must be converted to BGR first."
            )

        if frame.shape[2] != 3:
            raise ValueError(
                f"Expected 3 channels (BGR), got {frame.shape[2]} channels. "
                f"Use faceblur.codec.to_bgr() to convert."
            )
