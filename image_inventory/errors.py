"""Error taxonomy for inventory and transform operations.

Every error carries the ``stage`` that failed (open, decode, resize, crop,
save, list) so callers can report where a single-target operation stopped.
"""

from __future__ import annotations


class ImageInventoryError(Exception):
    """Base class for all image_inventory failures."""

    stage: str = "unknown"

    def __init__(self, message: str, stage: str | None = None) -> None:
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class ImageIOError(ImageInventoryError, OSError):
    """Directory, file or metadata could not be read."""

    stage = "open"


class DecodeError(ImageInventoryError):
    """Corrupt or unrecognized image data."""

    stage = "decode"


class EncodeError(ImageInventoryError):
    """Target format unsupported or the write failed."""

    stage = "save"


class InvalidDimensions(ImageInventoryError, ValueError):
    """Zero or degenerate target/source dimensions."""

    stage = "resize"


class InvalidRegion(ImageInventoryError, ValueError):
    """Crop region outside the unit square or empty after normalization."""

    stage = "crop"
