"""File- and buffer-level transform operations.

Each call decodes one image, transforms it and encodes the result. Calls
share no state, so different images can be processed concurrently. Nothing
serializes two calls writing the same path; the last writer wins.
"""

from __future__ import annotations

from image_inventory.errors import EncodeError
from image_inventory.image_engine.decoder import decode_bytes, decode_file
from image_inventory.image_engine.encoder import encode_to_buffer, encode_to_file, format_for_path
from image_inventory.image_engine.info_cache import InfoCache
from image_inventory.logger import get_logger
from image_inventory.transform import constraints, executor
from image_inventory.transform.geometry import FractionalRect, keep_ratio_size, normalize_crop

_logger = get_logger("operations")

IN_MEMORY_FORMAT = "png"


def resize_image(path: str, width: int, height: int, cache: InfoCache | None = None) -> bool:
    """Resize the image at ``path`` to ``width`` x ``height`` and overwrite it."""
    image = decode_file(path)
    resized = executor.resize(image, width, height)
    encode_to_file(resized, path)
    if cache is not None:
        cache.invalidate(path)
    _logger.info("Resized %s to %dx%d", path, width, height)
    return True


def resize_image_keep_ratio(
    path: str,
    width: int | None = None,
    height: int | None = None,
    cache: InfoCache | None = None,
) -> tuple[int, int]:
    """Resize the image at ``path`` keeping its aspect ratio and overwrite it.

    Give one side to derive the other, or both to fit inside that box.
    Returns the size written.
    """
    image = decode_file(path)
    new_width, new_height = keep_ratio_size(image.width, image.height, width, height)
    resized = executor.resize(image, new_width, new_height)
    encode_to_file(resized, path)
    if cache is not None:
        cache.invalidate(path)
    _logger.info("Resized %s to %dx%d keeping aspect ratio", path, new_width, new_height)
    return new_width, new_height


def resize_image_from_data(data: bytes, width: int, height: int, output_format: str = IN_MEMORY_FORMAT) -> bytes:
    """Decode ``data``, resize it and return the encoded bytes (PNG by default)."""
    image = decode_bytes(data)
    resized = executor.resize(image, width, height)
    return encode_to_buffer(resized, output_format)


def crop_image(
    path: str,
    x: float,
    y: float,
    width: float,
    height: float,
    cache: InfoCache | None = None,
) -> bool:
    """Crop the image at ``path`` to a fractional region and overwrite it.

    ``x``, ``y``, ``width`` and ``height`` are proportions of the source
    dimensions in [0.0, 1.0].
    """
    image = decode_file(path)
    rect = normalize_crop(image.width, image.height, FractionalRect(x, y, width, height))
    cropped = executor.crop(image, rect)
    encode_to_file(cropped, path)
    if cache is not None:
        cache.invalidate(path)
    _logger.info("Cropped %s to %s", path, rect.as_tuple())
    return True


def save_as(path: str, output: str, cache: InfoCache | None = None) -> bool:
    """Re-encode ``path`` into ``output``; the output extension picks the format.

    Formats with a size limit (ICO) are scaled down first, keeping the aspect
    ratio. Images already within the limit are written without resampling.
    """
    fmt = format_for_path(output)
    if not fmt:
        raise EncodeError(f"Failed to save image: {output}: missing file extension")

    image = decode_file(path)
    image = constraints.enforce_constraints(image, fmt)
    encode_to_file(image, output)
    if cache is not None:
        cache.invalidate(output)
    _logger.info("Saved %s as %s (%s)", path, output, fmt)
    return True
