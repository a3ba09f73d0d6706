"""
Exception types raised by the face blur library.

Each error also derives from the builtin exception a caller would
naturally expect, so ``except ValueError`` keeps working for code that
does not know about this module.
"""


class FaceBlurError(Exception):
    """Base class for all library errors."""


class ImageDecodeError(FaceBlurError, ValueError):
    """Raised when input bytes cannot be decoded into a pixel buffer."""


class ImageEncodeError(FaceBlurError, RuntimeError):
    """Raised when a pixel buffer cannot be encoded back to bytes."""


class ModelConfigurationError(FaceBlurError, RuntimeError):
    """Raised when model outputs do not line up with the prior table.

    This is a fatal configuration error: the model, the input size and
    the prior schedule disagree, so every decoded box would be wrong.
    """
