"""
Output handling for the batch redaction CLI.

Responsibility:
    Route each processed image to the configured sinks: blurred image
    files, and a JSON and/or CSV record of the blurred rectangles.
    Multiple sinks can be active at once.

Non-goals:
    - No detection or blurring.
    - No input acquisition.
"""

import logging
from pathlib import Path
from typing import Dict, List, Set

from faceblur.config import AppConfig, get_project_root
from faceblur.detection import Rect
from faceblur.serializer import save_csv, save_json

logger = logging.getLogger(__name__)


class OutputHandler:
    """Routes redaction results to configured output sinks.

    Modes (comma-separated, combinable):
        - 'save_image': Write the blurred image as <image_id>_blurred<ext>.
        - 'save_json': Accumulate rects, write rects.json on finalize.
        - 'save_csv': Accumulate rects, write rects.csv on finalize.

    Usage:
        handler = OutputHandler(config)
        handler.process_image(image_id, blurred_bytes, rects)
        ...
        handler.finalize()  # Flush any buffered output
    """

    def __init__(self, config: AppConfig) -> None:
        self._config = config
        self._modes: Set[str] = set(m.strip() for m in config.output.mode.split(","))
        self._rects_buffer: Dict[str, List[Rect]] = {}

        save_path = Path(config.output.save_path)
        if not save_path.is_absolute():
            save_path = get_project_root() / save_path
        self._save_path = save_path
        self._save_path.mkdir(parents=True, exist_ok=True)

        logger.info("OutputHandler initialized: modes=%s, save_path=%s",
                    self._modes, self._save_path)

    @property
    def save_path(self) -> Path:
        return self._save_path

    def process_image(self, image_id: str, encoded: bytes, rects: List[Rect]) -> None:
        """Handle one redacted image.

        Args:
            image_id: Name used for output files and records.
            encoded: Blurred image, already encoded.
            rects: Rectangles that were blurred.
        """
        if "save_image" in self._modes:
            output_file = self._save_path / f"{image_id}_blurred{self._config.blur.output_format}"
            output_file.write_bytes(encoded)
            logger.debug("Saved %s (%d faces) to %s", image_id, len(rects), output_file)

        if "save_json" in self._modes or "save_csv" in self._modes:
            self._rects_buffer[image_id] = list(rects)

    def finalize(self) -> None:
        """Flush buffered output. Must be called after the last image."""
        if "save_json" in self._modes and self._rects_buffer:
            save_json(self._rects_buffer, str(self._save_path / "rects.json"))

        if "save_csv" in self._modes and self._rects_buffer:
            save_csv(self._rects_buffer, str(self._save_path / "rects.csv"))

        self._rects_buffer.clear()
        logger.info("OutputHandler finalized.")
