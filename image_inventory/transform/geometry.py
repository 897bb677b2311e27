"""Crop geometry: fractional rectangles to bounds-safe pixel rectangles.

Pure functions, no pyvips dependency.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from image_inventory.errors import InvalidDimensions, InvalidRegion


@dataclass(frozen=True)
class FractionalRect:
    """Crop region as proportions (0.0-1.0) of the source dimensions."""

    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_pixels(cls, img_width: int, img_height: int, crop: tuple[int, int, int, int]) -> FractionalRect:
        left, top, width, height = crop
        return cls(left / img_width, top / img_height, width / img_width, height / img_height)


@dataclass(frozen=True)
class PixelRect:
    x: int
    y: int
    width: int
    height: int

    def as_tuple(self) -> tuple[int, int, int, int]:
        return self.x, self.y, self.width, self.height

    def fits(self, img_width: int, img_height: int) -> bool:
        return validate_crop_bounds(img_width, img_height, self.as_tuple())


def _round_half_up(value: float) -> int:
    # add 0.5 then truncate; inputs are non-negative here
    return int(value + 0.5)


def _check_fraction(name: str, value: float) -> float:
    v = float(value)
    if not math.isfinite(v) or v < 0.0 or v > 1.0:
        raise InvalidRegion(f"Crop {name}={value!r} is outside [0.0, 1.0]")
    return v


def validate_crop_bounds(img_width: int, img_height: int, crop: tuple[int, int, int, int]) -> bool:
    """Validate that crop rectangle is within image bounds.

    Args:
        img_width: Original image width
        img_height: Original image height
        crop: (left, top, width, height) crop rectangle

    Returns:
        True if crop is valid, False otherwise
    """
    left, top, width, height = crop
    if left < 0 or top < 0:
        return False
    if width <= 0 or height <= 0:
        return False
    if left + width > img_width:
        return False
    return not top + height > img_height


def normalize_crop(img_width: int, img_height: int, rect: FractionalRect) -> PixelRect:
    """Convert a fractional crop into a pixel rectangle inside the image.

    Each coordinate is scaled and rounded half-up. A rectangle that runs past
    the right or bottom edge keeps its origin and loses width/height.

    Raises:
        InvalidDimensions: the source image is empty.
        InvalidRegion: a fraction is outside [0.0, 1.0] or the result is empty.
    """
    if img_width < 1 or img_height < 1:
        raise InvalidDimensions(f"Source image {img_width}x{img_height} has no pixels", stage="crop")

    fx = _check_fraction("x", rect.x)
    fy = _check_fraction("y", rect.y)
    fw = _check_fraction("width", rect.width)
    fh = _check_fraction("height", rect.height)

    crop_x = _round_half_up(fx * img_width)
    crop_y = _round_half_up(fy * img_height)
    crop_w = _round_half_up(fw * img_width)
    crop_h = _round_half_up(fh * img_height)

    if crop_x + crop_w > img_width:
        crop_w = img_width - crop_x
    if crop_y + crop_h > img_height:
        crop_h = img_height - crop_y

    if crop_w <= 0 or crop_h <= 0:
        raise InvalidRegion(
            f"Crop {rect} is empty on a {img_width}x{img_height} image "
            f"(normalized to {crop_x},{crop_y} {crop_w}x{crop_h})"
        )
    return PixelRect(crop_x, crop_y, crop_w, crop_h)


def keep_ratio_size(
    src_width: int, src_height: int, width: int | None = None, height: int | None = None
) -> tuple[int, int]:
    """Target size that keeps the ``src_width`` x ``src_height`` aspect ratio.

    With only ``width`` (or only ``height``) the other side is derived from it.
    With both, the result is the largest size fitting inside that box. Sides
    round half-up and never drop below 1 pixel.
    """
    if src_width < 1 or src_height < 1:
        raise InvalidDimensions(f"Source image {src_width}x{src_height} has no pixels")
    for name, value in (("width", width), ("height", height)):
        if value is not None and value < 1:
            raise InvalidDimensions(f"Target {name} must be at least 1, got {value}")

    if width is not None and height is None:
        return width, max(1, _round_half_up(width * src_height / src_width))
    if width is None and height is not None:
        return max(1, _round_half_up(height * src_width / src_height)), height
    if width is None or height is None:
        raise InvalidDimensions("Keeping the aspect ratio needs a target width or height")
    # both given: fit inside the box, the tighter side stays exact
    if width * src_height <= height * src_width:
        return width, max(1, _round_half_up(width * src_height / src_width))
    return max(1, _round_half_up(height * src_width / src_height)), height
