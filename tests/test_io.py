"""
Tests for batch input/output handling and serialization.
"""

import csv
import json

import pytest

from faceblur.config import AppConfig, OutputConfig
from faceblur.detection import Rect
from faceblur.input_handler import InputHandler
from faceblur.output_handler import OutputHandler
from faceblur.serializer import save_csv, save_json

_RECTS = {
    "b_photo": [Rect(1, 2, 3, 4)],
    "a_photo": [Rect(10, 20, 30, 40), Rect(5, 5, 5, 5)],
}


def test_input_single_file(tmp_path):
    path = tmp_path / "face.png"
    path.write_bytes(b"payload")

    handler = InputHandler(str(path))
    assert list(handler) == [("face", b"payload")]


def test_input_directory_sorted_images_only(tmp_path):
    (tmp_path / "b.jpg").write_bytes(b"b")
    (tmp_path / "a.png").write_bytes(b"a")
    (tmp_path / "notes.txt").write_text("skip me")

    handler = InputHandler(str(tmp_path))
    assert len(handler) == 2
    assert list(handler) == [("a", b"a"), ("b", b"b")]


def test_input_shared_stem_uses_file_names(tmp_path):
    (tmp_path / "photo.png").write_bytes(b"png")
    (tmp_path / "photo.bmp").write_bytes(b"bmp")
    (tmp_path / "other.jpg").write_bytes(b"jpg")

    handler = InputHandler(str(tmp_path))
    assert list(handler) == [
        ("other", b"jpg"),
        ("photo.bmp", b"bmp"),
        ("photo.png", b"png"),
    ]


def test_input_missing_source(tmp_path):
    with pytest.raises(FileNotFoundError):
        InputHandler(str(tmp_path / "nope"))


def test_input_directory_without_images(tmp_path):
    (tmp_path / "notes.txt").write_text("x")
    with pytest.raises(ValueError, match="No image files"):
        InputHandler(str(tmp_path))


def test_input_unsupported_extension(tmp_path):
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"x")
    with pytest.raises(ValueError, match="Unrecognized"):
        InputHandler(str(path))


def test_save_json(tmp_path):
    out = tmp_path / "nested" / "rects.json"
    save_json(_RECTS, str(out))

    payload = json.loads(out.read_text())
    assert payload["total_images"] == 2
    assert payload["total_faces"] == 3
    assert payload["images"][0] == {
        "image_id": "a_photo",
        "faces": [{"x": 10, "y": 20, "w": 30, "h": 40}, {"x": 5, "y": 5, "w": 5, "h": 5}],
    }


def test_save_csv(tmp_path):
    out = tmp_path / "rects.csv"
    save_csv(_RECTS, str(out))

    with open(out, newline="", encoding="utf-8") as f:
        rows = list(csv.DictReader(f))

    assert len(rows) == 3
    assert rows[-1] == {"image_id": "b_photo", "x": "1", "y": "2", "w": "3", "h": "4"}


def test_output_handler_all_modes(tmp_path):
    config = AppConfig(
        output=OutputConfig(mode="save_image,save_json,save_csv", save_path=str(tmp_path))
    )
    handler = OutputHandler(config)

    handler.process_image("photo", b"encoded", [Rect(1, 1, 2, 2)])
    handler.finalize()

    assert (tmp_path / "photo_blurred.png").read_bytes() == b"encoded"
    assert json.loads((tmp_path / "rects.json").read_text())["total_faces"] == 1
    assert (tmp_path / "rects.csv").exists()


def test_output_handler_image_only(tmp_path):
    config = AppConfig(output=OutputConfig(mode="save_image", save_path=str(tmp_path)))
    handler = OutputHandler(config)

    handler.process_image("photo", b"encoded", [])
    handler.finalize()

    assert sorted(p.name for p in tmp_path.iterdir()) == ["photo_blurred.png"]
