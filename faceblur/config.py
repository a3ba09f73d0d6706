"""
Configuration management for the face blur system.

Provides a layered configuration system with the following precedence
(highest to lowest):

    CLI arguments > Environment variables > YAML config file > Defaults

Design constraints:
    - The system MUST run with zero configuration (safe defaults only).
    - Defaults reproduce the constants the RFB-640 model was trained with.
    - Missing or invalid values fail early and loudly.
    - No detection logic, I/O, or model loading belongs here.

Non-goals:
    - No dynamic reloading.
    - No per-call blur strength; intensity is a system-wide setting.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

import yaml

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Project root resolution
# ---------------------------------------------------------------------------
# Resolved relative to this file's location: faceblur/config.py → repo root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent


def get_project_root() -> Path:
    """Return the resolved project root directory."""
    return _PROJECT_ROOT


# ---------------------------------------------------------------------------
# Configuration dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ModelConfig:
    """Model-related configuration.

    Attributes:
        model_path: Path to the ONNX model (relative to project root).
        backend: Compute backend — 'cpu' or 'cuda'.
        input_size: Spatial dimensions (width, height) of the model input.
        mean_value: Value subtracted from every channel before scaling.
        scale_factor: Multiplier applied after mean subtraction.
        swap_rb: Swap the codec's BGR order to the RGB order the model expects.

    With the defaults every channel becomes (raw - 127.0) / 128.0.
    """

    model_path: str = "models/version-RFB-640.onnx"
    backend: str = "cpu"
    input_size: Tuple[int, int] = (640, 480)
    mean_value: float = 127.0
    scale_factor: float = 1.0 / 128.0
    swap_rb: bool = True


@dataclass(frozen=True)
class PriorConfig:
    """Multi-scale anchor schedule.

    Attributes:
        feature_maps: Grid size (cols, rows) per scale.
        min_sizes: Anchor sizes in input pixels per scale, in emission order.
        steps: Stride in input pixels per scale.

    The three tuples are indexed by scale and must have equal length.
    """

    feature_maps: Tuple[Tuple[int, int], ...] = ((80, 60), (40, 30), (20, 15), (10, 8))
    min_sizes: Tuple[Tuple[float, ...], ...] = (
        (10.0, 16.0, 24.0),
        (32.0, 48.0),
        (64.0, 96.0),
        (128.0, 192.0, 256.0),
    )
    steps: Tuple[float, ...] = (8.0, 16.0, 32.0, 64.0)


@dataclass(frozen=True)
class DetectionConfig:
    """Detection thresholds and box-decoding constants.

    Attributes:
        score_threshold: A prior is decoded only if its face score exceeds this.
        iou_threshold: IoU above which a lower-scored box is suppressed.
        center_variance: Scale applied to center offsets.
        size_variance: Scale applied to log-size offsets.
    """

    score_threshold: float = 0.6
    iou_threshold: float = 0.3
    center_variance: float = 0.1
    size_variance: float = 0.2


@dataclass(frozen=True)
class BlurConfig:
    """Blur application parameters.

    Attributes:
        shape: Default shape mode, 'rectangle' or 'ellipse'.
        method: Blur primitive, 'gaussian' or 'pixelate'.
        sigma: Gaussian blur strength (system-wide constant).
        output_format: Codec extension used when re-encoding.
    """

    shape: str = "rectangle"
    method: str = "gaussian"
    sigma: float = 20.0
    output_format: str = ".png"


@dataclass(frozen=True)
class InputConfig:
    """Input source configuration.

    Attributes:
        source: Image file path or directory of images.
    """

    source: str = "images/"


@dataclass(frozen=True)
class OutputConfig:
    """Output behavior configuration.

    Attributes:
        mode: Output mode(s). Supports multiple comma-separated values:
              'save_image', 'save_json', 'save_csv'.
              Example: "save_image,save_json"
        save_path: Directory where output artifacts are written.
    """

    mode: str = "save_image"
    save_path: str = "output/"


@dataclass(frozen=True)
class AppConfig:
    """Top-level application configuration.

    Aggregates all sub-configurations into a single, frozen object.
    """

    model: ModelConfig = field(default_factory=ModelConfig)
    priors: PriorConfig = field(default_factory=PriorConfig)
    detection: DetectionConfig = field(default_factory=DetectionConfig)
    blur: BlurConfig = field(default_factory=BlurConfig)
    input: InputConfig = field(default_factory=InputConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

_VALID_BACKENDS = {"cpu", "cuda"}
_VALID_SHAPES = {"rectangle", "ellipse"}
_VALID_METHODS = {"gaussian", "pixelate"}
_VALID_OUTPUT_MODES = {"save_image", "save_json", "save_csv"}


def _validate_priors(priors: PriorConfig) -> None:
    n = len(priors.feature_maps)
    if n == 0:
        raise ValueError("priors.feature_maps must contain at least one scale.")

    if len(priors.min_sizes) != n or len(priors.steps) != n:
        raise ValueError(
            f"priors.feature_maps, priors.min_sizes and priors.steps must have "
            f"the same length, got {n}, {len(priors.min_sizes)} and "
            f"{len(priors.steps)}."
        )

    for k, (grid, sizes, step) in enumerate(
        zip(priors.feature_maps, priors.min_sizes, priors.steps)
    ):
        if len(grid) != 2 or any(d <= 0 for d in grid):
            raise ValueError(
                f"priors.feature_maps[{k}] must be a positive (cols, rows) pair, "
                f"got {grid}."
            )
        if not sizes or any(s <= 0 for s in sizes):
            raise ValueError(
                f"priors.min_sizes[{k}] must be a non-empty list of positive "
                f"sizes, got {sizes}."
            )
        if step <= 0:
            raise ValueError(f"priors.steps[{k}] must be positive, got {step}.")


def validate(config: AppConfig) -> None:
    """Validate configuration values. Raises ValueError on invalid state."""

    if config.model.backend not in _VALID_BACKENDS:
        raise ValueError(
            f"Invalid model.backend: '{config.model.backend}'. "
            f"Must be one of {_VALID_BACKENDS}."
        )

    if config.blur.shape not in _VALID_SHAPES:
        raise ValueError(
            f"Invalid blur.shape: '{config.blur.shape}'. "
            f"Must be one of {_VALID_SHAPES}."
        )

    if config.blur.method not in _VALID_METHODS:
        raise ValueError(
            f"Invalid blur.method: '{config.blur.method}'. "
            f"Must be one of {_VALID_METHODS}."
        )

    # Validate each mode in comma-separated list
    modes = set(m.strip() for m in config.output.mode.split(","))
    invalid_modes = modes - _VALID_OUTPUT_MODES
    if invalid_modes:
        raise ValueError(
            f"Invalid output.mode(s): {invalid_modes}. "
            f"Valid modes: {_VALID_OUTPUT_MODES}. "
            f"Use comma-separated values for multiple outputs."
        )

    for name in ("score_threshold", "iou_threshold"):
        value = getattr(config.detection, name)
        if not (0.0 <= value <= 1.0):
            raise ValueError(f"detection.{name} must be in [0.0, 1.0], got {value}.")

    for name in ("center_variance", "size_variance"):
        value = getattr(config.detection, name)
        if value <= 0:
            raise ValueError(f"detection.{name} must be positive, got {value}.")

    if len(config.model.input_size) != 2:
        raise ValueError(
            f"model.input_size must be a (width, height) tuple, "
            f"got {config.model.input_size}."
        )

    if any(d <= 0 for d in config.model.input_size):
        raise ValueError(
            f"model.input_size dimensions must be positive, "
            f"got {config.model.input_size}."
        )

    if config.model.scale_factor <= 0:
        raise ValueError(
            f"model.scale_factor must be positive, "
            f"got {config.model.scale_factor}."
        )

    if config.blur.sigma <= 0:
        raise ValueError(f"blur.sigma must be positive, got {config.blur.sigma}.")

    if not config.blur.output_format.startswith("."):
        raise ValueError(
            f"blur.output_format must be a file extension like '.png', "
            f"got '{config.blur.output_format}'."
        )

    _validate_priors(config.priors)


# ---------------------------------------------------------------------------
# YAML loading
# ---------------------------------------------------------------------------

def _parse_tuple(value, expected_len: int, cast_type=float):
    """Convert a list from YAML into a tuple of the expected type and length."""
    if isinstance(value, (list, tuple)):
        if len(value) != expected_len:
            raise ValueError(
                f"Expected {expected_len} values, got {len(value)}: {value}"
            )
        return tuple(cast_type(v) for v in value)
    return value


def _parse_bool(value) -> bool:
    """Accept YAML booleans as well as env-style strings ('true', '0', ...)."""
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def _build_model_config(raw: dict) -> ModelConfig:
    """Build ModelConfig from a raw YAML dict."""
    kwargs = {}
    if "model_path" in raw:
        kwargs["model_path"] = str(raw["model_path"])
    if "backend" in raw:
        kwargs["backend"] = str(raw["backend"]).lower()
    if "input_size" in raw:
        kwargs["input_size"] = _parse_tuple(raw["input_size"], 2, int)
    if "mean_value" in raw:
        kwargs["mean_value"] = float(raw["mean_value"])
    if "scale_factor" in raw:
        kwargs["scale_factor"] = float(raw["scale_factor"])
    if "swap_rb" in raw:
        kwargs["swap_rb"] = _parse_bool(raw["swap_rb"])
    return ModelConfig(**kwargs)


def _build_prior_config(raw: dict) -> PriorConfig:
    """Build PriorConfig from a raw YAML dict."""
    kwargs = {}
    if "feature_maps" in raw:
        kwargs["feature_maps"] = tuple(
            _parse_tuple(grid, 2, int) for grid in raw["feature_maps"]
        )
    if "min_sizes" in raw:
        kwargs["min_sizes"] = tuple(
            tuple(float(s) for s in sizes) for sizes in raw["min_sizes"]
        )
    if "steps" in raw:
        kwargs["steps"] = tuple(float(s) for s in raw["steps"])
    return PriorConfig(**kwargs)


def _build_detection_config(raw: dict) -> DetectionConfig:
    """Build DetectionConfig from a raw YAML dict."""
    kwargs = {}
    for key in ("score_threshold", "iou_threshold", "center_variance", "size_variance"):
        if key in raw:
            kwargs[key] = float(raw[key])
    return DetectionConfig(**kwargs)


def _build_blur_config(raw: dict) -> BlurConfig:
    """Build BlurConfig from a raw YAML dict."""
    kwargs = {}
    if "shape" in raw:
        kwargs["shape"] = str(raw["shape"]).lower()
    if "method" in raw:
        kwargs["method"] = str(raw["method"]).lower()
    if "sigma" in raw:
        kwargs["sigma"] = float(raw["sigma"])
    if "output_format" in raw:
        kwargs["output_format"] = str(raw["output_format"]).lower()
    return BlurConfig(**kwargs)


def _build_input_config(raw: dict) -> InputConfig:
    """Build InputConfig from a raw YAML dict."""
    kwargs = {}
    if "source" in raw:
        kwargs["source"] = str(raw["source"])
    return InputConfig(**kwargs)


def _build_output_config(raw: dict) -> OutputConfig:
    """Build OutputConfig from a raw YAML dict."""
    kwargs = {}
    if "mode" in raw:
        kwargs["mode"] = str(raw["mode"]).lower()
    if "save_path" in raw:
        kwargs["save_path"] = str(raw["save_path"])
    return OutputConfig(**kwargs)


# ---------------------------------------------------------------------------
# Environment variable overrides
# ---------------------------------------------------------------------------

_ENV_PREFIX = "FACE_BLUR_"


def _apply_env_overrides(raw: dict) -> dict:
    """Apply environment variable overrides to the raw config dict.

    Environment variables follow the pattern:
        FACE_BLUR_MODEL_BACKEND=cuda
        FACE_BLUR_DETECTION_SCORE_THRESHOLD=0.5

    Only scalar settings are exposed; the prior schedule is YAML-only.
    """
    env_map = {
        f"{_ENV_PREFIX}MODEL_PATH": ("model", "model_path"),
        f"{_ENV_PREFIX}MODEL_BACKEND": ("model", "backend"),
        f"{_ENV_PREFIX}DETECTION_SCORE_THRESHOLD": ("detection", "score_threshold"),
        f"{_ENV_PREFIX}DETECTION_IOU_THRESHOLD": ("detection", "iou_threshold"),
        f"{_ENV_PREFIX}BLUR_SHAPE": ("blur", "shape"),
        f"{_ENV_PREFIX}BLUR_METHOD": ("blur", "method"),
        f"{_ENV_PREFIX}BLUR_SIGMA": ("blur", "sigma"),
        f"{_ENV_PREFIX}INPUT_SOURCE": ("input", "source"),
        f"{_ENV_PREFIX}OUTPUT_MODE": ("output", "mode"),
        f"{_ENV_PREFIX}OUTPUT_SAVE_PATH": ("output", "save_path"),
    }

    for env_var, (section, key) in env_map.items():
        value = os.environ.get(env_var)
        if value is not None:
            raw.setdefault(section, {})[key] = value
            logger.debug("Config override from env: %s=%s", env_var, value)

    return raw


# ---------------------------------------------------------------------------
# Public loader
# ---------------------------------------------------------------------------

def load_config(config_path: Optional[str] = None) -> AppConfig:
    """Load and validate application configuration.

    Precedence (highest → lowest):
        Environment variables > YAML file > Hard-coded defaults

    Args:
        config_path: Path to a YAML configuration file. If None,
                     the system runs entirely on defaults (safe for
                     programmatic usage).

    Returns:
        A validated, frozen AppConfig instance.

    Raises:
        FileNotFoundError: If config_path is provided but does not exist.
        ValueError: If any configuration value is invalid.
        yaml.YAMLError: If the YAML file is malformed.
    """
    raw: dict = {}

    # --- Layer 1: YAML file ---
    if config_path is not None:
        resolved = Path(config_path)
        if not resolved.is_absolute():
            resolved = _PROJECT_ROOT / resolved

        if not resolved.is_file():
            raise FileNotFoundError(
                f"Configuration file not found: {resolved}. "
                f"Provide a valid path or omit to use defaults."
            )

        logger.info("Loading config from: %s", resolved)
        with open(resolved, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

    # --- Layer 2: Environment variable overrides ---
    raw = _apply_env_overrides(raw)

    # --- Build typed configs ---
    config = AppConfig(
        model=_build_model_config(raw.get("model", {})),
        priors=_build_prior_config(raw.get("priors", {})),
        detection=_build_detection_config(raw.get("detection", {})),
        blur=_build_blur_config(raw.get("blur", {})),
        input=_build_input_config(raw.get("input", {})),
        output=_build_output_config(raw.get("output", {})),
    )

    # --- Validate ---
    validate(config)

    logger.debug("Configuration loaded: %s", config)
    return config
