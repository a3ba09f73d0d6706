"""
Face Blur CLI Entrypoint.

Responsibility:
    Parse command-line arguments, configure the application, wire together
    the detector and I/O handlers, and redact every input image.

Usage:
    python main.py --source photo.jpg                    # Single image
    python main.py --source photos/ --shape ellipse      # Directory of images
    python main.py --source photos/ --output-mode save_image,save_json
    python main.py --config my_config.yaml

This module is the executable entry point. It should not be imported
by other modules.
"""

import argparse
import logging
import sys
import time
from dataclasses import replace

# Configure logging before importing local modules
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("main")

from faceblur.api import redact_faces
from faceblur.compositor import Compositor
from faceblur.config import AppConfig, load_config, validate
from faceblur.detector import Detector
from faceblur.errors import ImageDecodeError
from faceblur.input_handler import InputHandler
from faceblur.output_handler import OutputHandler


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Face Blur — on-device face redaction CLI",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--source",
        type=str,
        help="Input source: path to an image file or a directory of images.",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to YAML configuration file.",
    )
    parser.add_argument(
        "--model",
        type=str,
        help="Path to the ONNX face detection model. Overrides config.",
    )
    parser.add_argument(
        "--shape",
        type=str,
        choices=["rectangle", "ellipse"],
        help="Blur shape. Overrides config.",
    )
    parser.add_argument(
        "--method",
        type=str,
        choices=["gaussian", "pixelate"],
        help="Blur method. Overrides config.",
    )
    parser.add_argument(
        "--score-threshold",
        type=float,
        help="Face score threshold (0.0 - 1.0). Overrides config.",
    )
    parser.add_argument(
        "--iou-threshold",
        type=float,
        help="NMS IoU threshold (0.0 - 1.0). Overrides config.",
    )
    parser.add_argument(
        "--backend",
        type=str,
        choices=["cpu", "cuda"],
        help="Compute backend preference. Overrides config.",
    )
    parser.add_argument(
        "--output-mode",
        type=str,
        help="Output mode(s), comma-separated: save_image, save_json, save_csv. "
             "Example: 'save_image,save_json'. Overrides config.",
    )
    parser.add_argument(
        "--output-path",
        type=str,
        help="Directory for output artifacts. Overrides config.",
    )

    return parser.parse_args(argv)


def apply_cli_overrides(config: AppConfig, args: argparse.Namespace) -> AppConfig:
    """Return a copy of config with every given CLI flag applied."""
    if args.source is not None:
        config = replace(config, input=replace(config.input, source=args.source))
    if args.model is not None:
        config = replace(config, model=replace(config.model, model_path=args.model))
    if args.backend is not None:
        config = replace(config, model=replace(config.model, backend=args.backend))
    if args.shape is not None:
        config = replace(config, blur=replace(config.blur, shape=args.shape))
    if args.method is not None:
        config = replace(config, blur=replace(config.blur, method=args.method))
    if args.score_threshold is not None:
        config = replace(
            config, detection=replace(config.detection, score_threshold=args.score_threshold)
        )
    if args.iou_threshold is not None:
        config = replace(
            config, detection=replace(config.detection, iou_threshold=args.iou_threshold)
        )
    if args.output_mode is not None:
        config = replace(config, output=replace(config.output, mode=args.output_mode))
    if args.output_path is not None:
        config = replace(config, output=replace(config.output, save_path=args.output_path))

    validate(config)
    return config


def main(argv=None) -> int:
    """Main execution loop."""
    args = parse_args(argv)

    # 1. Load Configuration (CLI args > ENV > YAML > Defaults)
    try:
        config = apply_cli_overrides(load_config(args.config), args)
        logger.info("Configuration active for this run.")
    except Exception as e:
        logger.error("Configuration error: %s", e)
        return 1

    # 2. Initialize Components
    try:
        detector = Detector(config)
        compositor = Compositor(config.blur)
        input_handler = InputHandler(source=config.input.source)
        output_handler = OutputHandler(config)
    except (FileNotFoundError, ValueError, RuntimeError) as e:
        logger.error("Initialization failed: %s", e)
        return 1
    except Exception as e:
        logger.exception("Unexpected initialization error: %s", e)
        return 1

    # 3. Processing Loop
    image_count = 0
    face_count = 0
    start_time = time.perf_counter()

    try:
        for image_id, data in input_handler:
            try:
                encoded, rects = redact_faces(data, detector, compositor=compositor)
            except ImageDecodeError as e:
                logger.warning("Skipping %s: %s", image_id, e)
                continue

            image_count += 1
            face_count += len(rects)
            logger.info("%s: %d face(s) blurred", image_id, len(rects))
            output_handler.process_image(image_id, encoded, rects)

    except KeyboardInterrupt:
        logger.info("Interrupted by user.")
    except Exception as e:
        logger.exception("Runtime error during processing: %s", e)
        return 1
    finally:
        # 4. Cleanup
        elapsed = time.perf_counter() - start_time
        output_handler.finalize()

        logger.info(
            "Processing finished. Images: %d. Faces: %d. Elapsed: %.2fs.",
            image_count, face_count, elapsed,
        )

    return 0


if __name__ == "__main__":
    sys.exit(main())
