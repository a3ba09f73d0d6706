"""
Detection data transfer objects.

This module defines the value types exchanged across the pipeline:

    - Detection: a decoded face box in floating-point pixel space.
    - Rect: the integer rectangle handed to callers and to the compositor.
    - ShapeMode: how blurred pixels are written back (rectangle or ellipse).

They are frozen, serializable containers with no behavior beyond data
access and the float-to-int conversion of a Detection.

Non-goals:
    - No rendering logic.
    - No file I/O.
    - No clamping or suppression (that belongs in postprocessor).
"""

from dataclasses import dataclass
from enum import Enum


class ShapeMode(str, Enum):
    """Blur application policy, applied uniformly to every rect in a call."""

    RECTANGLE = "rectangle"
    ELLIPSE = "ellipse"

    @classmethod
    def from_flag(cls, is_circle: bool) -> "ShapeMode":
        """Map the boolean shape selector used at the byte boundary."""
        return cls.ELLIPSE if is_circle else cls.RECTANGLE


@dataclass(frozen=True, slots=True)
class Rect:
    """Integer pixel rectangle (top-left corner plus size).

    A rect with w <= 0 or h <= 0 means "nothing to do" and is a no-op
    wherever it is consumed.
    """

    x: int
    y: int
    w: int
    h: int

    def to_dict(self) -> dict:
        """Return a plain dict suitable for JSON serialization."""
        return {"x": self.x, "y": self.y, "w": self.w, "h": self.h}

    @property
    def is_empty(self) -> bool:
        return self.w <= 0 or self.h <= 0


@dataclass(frozen=True, slots=True)
class Detection:
    """A single detected face with bounding box and confidence score.

    Attributes:
        x1: Left edge (absolute pixels, not necessarily integer).
        y1: Top edge (absolute pixels).
        x2: Right edge (absolute pixels).
        y2: Bottom edge (absolute pixels).
        score: Face-class confidence in [0.0, 1.0].

    Coordinates are relative to the original image, not the model input.
    """

    x1: float
    y1: float
    x2: float
    y2: float
    score: float

    @property
    def width(self) -> float:
        return self.x2 - self.x1

    @property
    def height(self) -> float:
        return self.y2 - self.y1

    @property
    def area(self) -> float:
        """Box area, zero for inverted boxes."""
        return max(0.0, self.width) * max(0.0, self.height)

    def to_rect(self) -> Rect:
        """Convert to an integer Rect, truncating toward zero."""
        return Rect(
            x=int(self.x1),
            y=int(self.y1),
            w=int(self.width),
            h=int(self.height),
        )
