"""Transform package public API.

Important: keep this module lightweight.
Do NOT import the decoder/encoder-backed operations here; they load libvips.
If you need the file/buffer operations, import them directly:
    - `from image_inventory.transform.operations import crop_image, save_as`
"""

from .constraints import FORMAT_CONSTRAINTS, FormatConstraint, constrained_size, enforce_constraints
from .executor import crop, resize
from .geometry import FractionalRect, PixelRect, keep_ratio_size, normalize_crop, validate_crop_bounds

__all__ = [
    "FORMAT_CONSTRAINTS",
    "FormatConstraint",
    "FractionalRect",
    "PixelRect",
    "constrained_size",
    "crop",
    "enforce_constraints",
    "keep_ratio_size",
    "normalize_crop",
    "resize",
    "validate_crop_bounds",
]
