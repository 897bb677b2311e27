"""Image decoder using pyvips.

Decodes files or raw byte buffers into a ``pyvips.Image`` (the in-memory
raster every transform consumes). libvips handles the common formats; BMP and
anything else libvips has no native loader for is read through Pillow and
handed back to libvips as a memory image.
"""

import contextlib
import io
import os
from typing import Any

import numpy as np
import pyvips  # type: ignore
from PIL import Image, UnidentifiedImageError

from image_inventory.errors import DecodeError, ImageIOError
from image_inventory.image_engine.metrics import metrics
from image_inventory.logger import get_logger

_logger = get_logger("decoder")

_PIL_BAND_COUNTS = (1, 2, 3, 4)
_VIPS_INTERPRETATIONS = {1: "b-w", 2: "b-w", 3: "srgb", 4: "srgb"}

# Configure pyvips caches to avoid memory growth
with contextlib.suppress(pyvips.Error):
    pyvips.cache_set_max(0)
    pyvips.cache_set_max_mem(0)
    pyvips.cache_set_max_files(0)


def array_to_image(array: "np.ndarray") -> Any:
    """Wrap an (h, w[, bands]) uint8 array as a pyvips image."""
    if array.ndim == 2:
        array = array[:, :, np.newaxis]
    height, width, bands = array.shape
    array = np.ascontiguousarray(array, dtype=np.uint8)
    image = pyvips.Image.new_from_memory(array.tobytes(), width, height, bands, "uchar")
    return image.copy(interpretation=_VIPS_INTERPRETATIONS.get(bands, "multiband"))


def image_to_array(image: Any) -> "np.ndarray":
    """Return an (h, w, bands) uint8 copy of the image pixels.

    16-bit, float and CMYK images are converted to 8-bit sRGB / grey first.
    """
    if image.interpretation == "cmyk":
        image = image.colourspace("srgb")
    if image.format != "uchar":
        try:
            image = image.colourspace("b-w" if image.bands < 3 else "srgb")
        except pyvips.Error:
            _logger.debug("colourspace conversion failed; casting to uchar")
        if image.format != "uchar":
            image = image.cast("uchar")
    mem = image.write_to_memory()
    array = np.frombuffer(mem, dtype=np.uint8).reshape(image.height, image.width, image.bands)
    return array.copy()


def image_to_pil(image: Any) -> Image.Image:
    array = image_to_array(image)
    bands = array.shape[2]
    if bands not in _PIL_BAND_COUNTS:
        array = array[:, :, :4] if bands > 4 else array[:, :, :1]
        bands = array.shape[2]
    if bands == 1:
        return Image.fromarray(array[:, :, 0])
    return Image.fromarray(array)


def _decode_with_pillow(source: Any, label: str) -> Any:
    try:
        with Image.open(source) as pil_image:
            pil_image.load()
            if pil_image.mode not in ("L", "LA", "RGB", "RGBA"):
                has_alpha = "A" in pil_image.getbands() or "transparency" in pil_image.info
                pil_image = pil_image.convert("RGBA" if has_alpha else "RGB")
            array = np.asarray(pil_image, dtype=np.uint8)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise DecodeError(f"Failed to decode image: {label}: {e}") from e
    metrics.inc("decode.pillow")
    return array_to_image(array)


def _materialize(image: Any, label: str) -> Any:
    # libvips is lazy; force the pixels now so corrupt data fails in the decode stage
    try:
        return image.copy_memory()
    except pyvips.Error as e:
        raise DecodeError(f"Failed to decode image: {label}: {e}") from e


def _vips_loader_for_file(file_path: str) -> str | None:
    """Name of the libvips loader that would open ``file_path``, or None."""
    name = pyvips.vips_lib.vips_foreign_find_load(os.fsencode(file_path))
    if name == pyvips.ffi.NULL:
        # the failed sniff leaves a message in the libvips error buffer
        pyvips.vips_lib.vips_error_clear()
        return None
    return pyvips.ffi.string(name).decode("utf-8", "replace")


def _vips_loader_for_buffer(data: bytes) -> str | None:
    name = pyvips.vips_lib.vips_foreign_find_load_buffer(data, len(data))
    if name == pyvips.ffi.NULL:
        pyvips.vips_lib.vips_error_clear()
        return None
    return pyvips.ffi.string(name).decode("utf-8", "replace")


def decode_file(file_path: str) -> Any:
    """Decode an image file into a pyvips image.

    Raises:
        ImageIOError: the file does not exist or cannot be read.
        DecodeError: the contents are not a decodable image.
    """
    if not os.path.isfile(file_path):
        raise ImageIOError(f"Failed to open image: {file_path}: not a file")
    if not os.access(file_path, os.R_OK):
        raise ImageIOError(f"Failed to open image: {file_path}: permission denied")

    loader = _vips_loader_for_file(file_path)
    if loader is None:
        _logger.debug("no libvips loader for %s; trying Pillow", file_path)
        return _decode_with_pillow(file_path, file_path)

    try:
        image = pyvips.Image.new_from_file(file_path)
    except pyvips.Error as e:
        raise DecodeError(f"Failed to decode image: {file_path}: {e}") from e
    return _materialize(image, file_path)


def decode_bytes(data: bytes) -> Any:
    """Decode an in-memory image, guessing the format from its contents.

    Raises:
        DecodeError: empty buffer, unguessable format or corrupt data.
    """
    if not data:
        raise DecodeError("Failed to decode image: empty buffer")

    data = bytes(data)
    loader = _vips_loader_for_buffer(data)
    if loader is None:
        _logger.debug("no libvips loader for %d-byte buffer; trying Pillow", len(data))
        return _decode_with_pillow(io.BytesIO(data), "<buffer>")

    try:
        image = pyvips.Image.new_from_buffer(data, "")
    except pyvips.Error as e:
        raise DecodeError(f"Failed to decode image: <buffer>: {e}") from e
    return _materialize(image, "<buffer>")
