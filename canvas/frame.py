"""
canvas/frame.py

Reference frame and conversions between scene pixels and normalized coordinates.

The reference frame is the background image's rectangle on the canvas when a
background is shown, otherwise the whole canvas.  It is looked up again on
every conversion because the background can appear or change at any time.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from models import Direction, EDGE_PADDING, POSITION_PRECISION, Position, clamp


@dataclass(frozen=True)
class ReferenceFrame:
    """Rectangle in scene pixels that normalized coordinates are relative to."""
    x: float
    y: float
    width: float
    height: float

    @property
    def is_degenerate(self) -> bool:
        return self.width <= 0 or self.height <= 0


def fit_background(image_w: float, image_h: float, canvas_w: float, canvas_h: float) -> ReferenceFrame:
    """
    Fit an image into the canvas keeping its aspect ratio, centered.

    Args:
        image_w: Intrinsic image width.
        image_h: Intrinsic image height.
        canvas_w: Canvas width.
        canvas_h: Canvas height.

    Returns:
        The on-canvas rectangle of the letterboxed image.
    """
    if image_w <= 0 or image_h <= 0:
        return ReferenceFrame(0.0, 0.0, float(canvas_w), float(canvas_h))
    image_ratio = image_w / image_h
    canvas_ratio = canvas_w / canvas_h if canvas_h > 0 else image_ratio
    if image_ratio > canvas_ratio:
        width = float(canvas_w)
        height = canvas_w / image_ratio
    else:
        height = float(canvas_h)
        width = canvas_h * image_ratio
    return ReferenceFrame((canvas_w - width) / 2, (canvas_h - height) / 2, width, height)


FrameProvider = Callable[[], Optional[ReferenceFrame]]


class CoordinateSpace:
    """
    Converts between scene pixels and normalized [0, 1] coordinates.

    Args:
        canvas_frame: Returns the full-canvas frame; always available.
        background_frame: Returns the background rectangle or ``None``.
        padding: Default edge padding used by ``constrain``.
        precision: Decimals kept by ``normalize``.
    """

    def __init__(self, canvas_frame: FrameProvider, background_frame: Optional[FrameProvider] = None,
                 padding: float = EDGE_PADDING, precision: int = POSITION_PRECISION):
        self._canvas_frame = canvas_frame
        self._background_frame = background_frame
        self.padding = padding
        self.precision = precision

    def frame(self) -> ReferenceFrame:
        """Current reference frame: the background if present and non-empty, else the canvas."""
        if self._background_frame is not None:
            bg = self._background_frame()
            if bg is not None and not bg.is_degenerate:
                return bg
        canvas = self._canvas_frame()
        if canvas is None or canvas.is_degenerate:
            return ReferenceFrame(0.0, 0.0, 1.0, 1.0)
        return canvas

    def normalize(self, px: float, py: float) -> Position:
        f = self.frame()
        return Position(
            round((px - f.x) / f.width, self.precision),
            round((py - f.y) / f.height, self.precision),
        )

    def denormalize(self, pos: Position) -> Tuple[float, float]:
        f = self.frame()
        return f.x + pos.x * f.width, f.y + pos.y * f.height

    def constrain(self, nx: float, ny: float, padding: Optional[float] = None) -> Position:
        """Clamp both axes into ``[padding, 1 - padding]``."""
        pad = self.padding if padding is None else padding
        return Position(clamp(nx, pad, 1 - pad), clamp(ny, pad, 1 - pad))

    def clamp_pixel(self, px: float, py: float) -> Tuple[float, float]:
        """Pixel position pulled back inside the padded frame."""
        n = self.normalize(px, py)
        return self.denormalize(self.constrain(n.x, n.y))

    def offset_to_pixels(self, offset: float, direction: str) -> float:
        f = self.frame()
        return offset * (f.width if Direction.is_horizontal(direction) else f.height)

    def pixels_to_offset(self, distance: float, direction: str) -> float:
        f = self.frame()
        return distance / (f.width if Direction.is_horizontal(direction) else f.height)
