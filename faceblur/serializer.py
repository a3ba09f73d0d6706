"""
Serialization for the batch redaction CLI.

Responsibility:
    Export the rectangles blurred in each image to structured file
    formats (JSON, CSV) for auditing or for re-running the blur step
    with hand-edited boxes.

Non-goals:
    - No rendering or detection logic.
    - No streaming output — writes complete files on finalize.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Dict, List

from faceblur.detection import Rect

logger = logging.getLogger(__name__)


def save_json(
    rects_by_image: Dict[str, List[Rect]],
    output_path: str,
) -> None:
    """Export all rectangles to a JSON file.

    Output schema:
        {
            "images": [
                {"image_id": "photo1", "faces": [{"x": ..., "y": ..., "w": ..., "h": ...}]}
            ],
            "total_images": N,
            "total_faces": M
        }

    Raises:
        OSError: If the output path is not writable.
    """
    _ensure_parent_dir(output_path)

    images = []
    total_faces = 0

    for image_id in sorted(rects_by_image):
        rects = rects_by_image[image_id]
        total_faces += len(rects)
        images.append({
            "image_id": image_id,
            "faces": [r.to_dict() for r in rects],
        })

    payload = {
        "images": images,
        "total_images": len(images),
        "total_faces": total_faces,
    }

    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)

    logger.info(
        "JSON output saved: %s (%d images, %d faces)",
        output_path, len(images), total_faces,
    )


def save_csv(
    rects_by_image: Dict[str, List[Rect]],
    output_path: str,
) -> None:
    """Export all rectangles to a CSV file.

    Columns: image_id, x, y, w, h

    Raises:
        OSError: If the output path is not writable.
    """
    _ensure_parent_dir(output_path)

    fieldnames = ["image_id", "x", "y", "w", "h"]

    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()

        total = 0
        for image_id in sorted(rects_by_image):
            for rect in rects_by_image[image_id]:
                writer.writerow({"image_id": image_id, **rect.to_dict()})
                total += 1

    logger.info("CSV output saved: %s (%d rows)", output_path, total)


def _ensure_parent_dir(path: str) -> None:
    """Create parent directories if they don't exist."""
    Path(path).parent.mkdir(parents=True, exist_ok=True)
