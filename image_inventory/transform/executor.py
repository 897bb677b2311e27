"""Resize and crop on decoded pyvips images.

Both operations return a new image and never touch the filesystem.
"""

from __future__ import annotations

from typing import Any

from image_inventory.errors import InvalidDimensions, InvalidRegion
from image_inventory.image_engine.metrics import metrics
from image_inventory.logger import get_logger
from image_inventory.transform.geometry import PixelRect

_logger = get_logger("executor")

# Triangle filter; output bytes depend on this choice
RESAMPLE_KERNEL = "linear"


def resize(image: Any, width: int, height: int) -> Any:
    """Scale ``image`` to exactly ``width`` x ``height`` with a triangle kernel.

    Raises:
        InvalidDimensions: a target or source dimension is below 1.
    """
    width = int(width)
    height = int(height)
    if width < 1 or height < 1:
        raise InvalidDimensions(f"Invalid resize target {width}x{height}")
    if image.width < 1 or image.height < 1:
        raise InvalidDimensions(f"Cannot resize empty image {image.width}x{image.height}")

    if (image.width, image.height) == (width, height):
        return image.copy()

    with metrics.timed("transform.resize"):
        hscale = width / image.width
        vscale = height / image.height
        resized = image.resize(hscale, vscale=vscale, kernel=RESAMPLE_KERNEL)
        if (resized.width, resized.height) != (width, height):
            # libvips rounds the output size; pin it to the requested box
            _logger.debug(
                "resize produced %dx%d for %dx%d target; adjusting",
                resized.width,
                resized.height,
                width,
                height,
            )
            resized = resized.embed(0, 0, width, height, extend="copy")
    _logger.debug("resized %dx%d -> %dx%d", image.width, image.height, width, height)
    return resized


def crop(image: Any, rect: PixelRect) -> Any:
    """Extract ``rect`` from ``image`` without resampling.

    Raises:
        InvalidRegion: ``rect`` is not inside the image.
    """
    if not rect.fits(image.width, image.height):
        raise InvalidRegion(f"Crop bounds {rect.as_tuple()} invalid for image size {image.width}x{image.height}")

    with metrics.timed("transform.crop"):
        cropped = image.crop(rect.x, rect.y, rect.width, rect.height)
    _logger.debug("cropped %dx%d -> %s", image.width, image.height, rect.as_tuple())
    return cropped
