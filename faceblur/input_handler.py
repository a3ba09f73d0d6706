"""
Input handling for the batch redaction CLI.

Responsibility:
    Resolve an input source (single image or directory of images) and
    yield the raw encoded bytes of each image, so decoding stays in the
    same code path as the byte-level API.

Non-goals:
    - No decoding, detection or output writing.
    - No video or webcam sources.

Robustness:
    - Validates the source at initialization time.
    - Logs and skips unreadable files (never crashes the batch).
"""

import logging
import os
from collections import Counter
from pathlib import Path
from typing import Iterator, List, Tuple

logger = logging.getLogger(__name__)

# Image extensions recognized by this handler
_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".bmp", ".tiff", ".tif", ".webp"}


class InputHandler:
    """Iterator over encoded images from a file or directory.

    The source type is auto-detected at initialization:
        - File with image extension → single image
        - Directory path → all images in directory (sorted by name)

    Usage:
        handler = InputHandler(source="path/to/photos/")
        for image_id, data in handler:
            # process bytes

    image_id is the file stem, used to name outputs. When several files
    share a stem (photo.png, photo.bmp) each of them uses its full file
    name instead, so no two images map to the same outputs.
    """

    def __init__(self, source: str) -> None:
        """Initialize the input handler and validate the source.

        Raises:
            FileNotFoundError: If the source does not exist.
            ValueError: If the file type is unsupported or the directory
                        holds no images.
        """
        source_str = str(source).strip()

        if os.path.isfile(source_str):
            ext = Path(source_str).suffix.lower()
            if ext not in _IMAGE_EXTENSIONS:
                raise ValueError(
                    f"Unrecognized file extension: '{ext}' for source '{source_str}'. "
                    f"Supported images: {_IMAGE_EXTENSIONS}."
                )
            self._mode = "image"
            self._paths: List[Path] = [Path(source_str)]
        elif os.path.isdir(source_str):
            self._mode = "directory"
            self._paths = sorted(
                p for p in Path(source_str).iterdir()
                if p.is_file() and p.suffix.lower() in _IMAGE_EXTENSIONS
            )
            if not self._paths:
                raise ValueError(
                    f"No image files found in directory: '{source_str}'. "
                    f"Supported extensions: {_IMAGE_EXTENSIONS}."
                )
            logger.info("Found %d images in directory: %s", len(self._paths), source_str)
        else:
            raise FileNotFoundError(
                f"Input source not found: '{source_str}'. "
                f"Provide a valid image file or directory."
            )

        self._ids = _image_ids(self._paths)
        logger.info("InputHandler initialized: mode=%s, source=%s", self._mode, source_str)

    def __len__(self) -> int:
        return len(self._paths)

    def __iter__(self) -> Iterator[Tuple[str, bytes]]:
        """Yield (image_id, encoded bytes) for every readable image."""
        for image_id, path in zip(self._ids, self._paths):
            try:
                data = path.read_bytes()
            except OSError as e:
                logger.warning("Skipping unreadable image %s: %s", path, e)
                continue
            yield image_id, data


def _image_ids(paths: List[Path]) -> List[str]:
    stems = Counter(p.stem for p in paths)
    ids = []
    for path in paths:
        if stems[path.stem] > 1:
            logger.warning("Several images share the name '%s'; using %s", path.stem, path.name)
            ids.append(path.name)
        else:
            ids.append(path.stem)
    return ids
