"""
Tests for the configuration module.
"""

import pytest

from faceblur.config import (
    AppConfig,
    BlurConfig,
    DetectionConfig,
    ModelConfig,
    OutputConfig,
    PriorConfig,
    load_config,
    validate,
)


def test_load_defaults():
    """Test loading configuration without any file."""
    config = load_config(None)
    assert isinstance(config, AppConfig)
    assert config.model.backend == "cpu"
    assert config.model.input_size == (640, 480)
    assert config.detection.score_threshold == 0.6
    assert config.detection.iou_threshold == 0.3
    assert config.blur.sigma == 20.0
    assert config.blur.shape == "rectangle"


def test_default_normalization_constants():
    model = ModelConfig()
    assert model.mean_value == 127.0
    assert model.scale_factor * 128.0 == 1.0


@pytest.mark.parametrize("bad_config, message", [
    (AppConfig(detection=DetectionConfig(score_threshold=1.5)), "score_threshold"),
    (AppConfig(detection=DetectionConfig(iou_threshold=-0.1)), "iou_threshold"),
    (AppConfig(detection=DetectionConfig(size_variance=0.0)), "size_variance"),
    (AppConfig(model=ModelConfig(backend="invalid")), "backend"),
    (AppConfig(model=ModelConfig(input_size=(0, 480))), "input_size"),
    (AppConfig(blur=BlurConfig(shape="triangle")), "shape"),
    (AppConfig(blur=BlurConfig(method="smudge")), "method"),
    (AppConfig(blur=BlurConfig(sigma=0.0)), "sigma"),
    (AppConfig(blur=BlurConfig(output_format="png")), "output_format"),
    (AppConfig(output=OutputConfig(mode="save_image,display")), "output.mode"),
    (AppConfig(priors=PriorConfig(steps=(8.0, 16.0))), "same length"),
    (AppConfig(priors=PriorConfig(feature_maps=((80, 0),), min_sizes=((10.0,),), steps=(8.0,))),
     "feature_maps"),
    (AppConfig(priors=PriorConfig(feature_maps=((80, 60),), min_sizes=((),), steps=(8.0,))),
     "min_sizes"),
])
def test_validation_failure(bad_config, message):
    """Test fail-fast validation."""
    with pytest.raises(ValueError, match=message):
        validate(bad_config)


def test_env_override(monkeypatch):
    """Test environment variable overrides."""
    monkeypatch.setenv("FACE_BLUR_DETECTION_SCORE_THRESHOLD", "0.9")
    monkeypatch.setenv("FACE_BLUR_MODEL_BACKEND", "cuda")
    monkeypatch.setenv("FACE_BLUR_BLUR_SHAPE", "ellipse")

    config = load_config(None)

    assert config.detection.score_threshold == 0.9
    assert config.model.backend == "cuda"
    assert config.blur.shape == "ellipse"


def test_invalid_env_override(monkeypatch):
    monkeypatch.setenv("FACE_BLUR_BLUR_METHOD", "smear")
    with pytest.raises(ValueError, match="method"):
        load_config(None)


def test_yaml_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "model:\n"
        "  input_size: [320, 240]\n"
        "priors:\n"
        "  feature_maps: [[40, 30], [20, 15], [10, 8], [5, 4]]\n"
        "detection:\n"
        "  iou_threshold: 0.45\n"
        "blur:\n"
        "  method: pixelate\n",
        encoding="utf-8",
    )

    config = load_config(str(path))

    assert config.model.input_size == (320, 240)
    assert config.priors.feature_maps[0] == (40, 30)
    assert config.priors.min_sizes == PriorConfig().min_sizes
    assert config.detection.iou_threshold == 0.45
    assert config.blur.method == "pixelate"


def test_env_beats_yaml(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text("blur:\n  sigma: 5.0\n", encoding="utf-8")
    monkeypatch.setenv("FACE_BLUR_BLUR_SIGMA", "12.5")

    assert load_config(str(path)).blur.sigma == 12.5


def test_missing_config_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "missing.yaml"))


def test_shipped_config_matches_defaults():
    assert load_config("config.yaml") == AppConfig()
