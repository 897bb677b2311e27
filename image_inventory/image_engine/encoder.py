"""Image encoder: pyvips images to files or byte buffers.

libvips picks its saver from the file suffix. BMP and ICO have no native
libvips saver, so those go through Pillow.
"""

from __future__ import annotations

import io
import os
from typing import Any

import pyvips  # type: ignore

from image_inventory.errors import EncodeError
from image_inventory.image_engine.decoder import image_to_pil
from image_inventory.image_engine.metrics import metrics
from image_inventory.logger import get_logger

_logger = get_logger("encoder")

_FORMAT_ALIASES = {"jpeg": "jpg", "tif": "tiff"}

# format id -> Pillow format name
_PILLOW_SAVERS = {"bmp": "BMP", "ico": "ICO"}


def format_for_path(path: str) -> str:
    """Return the lower-case format id derived from a path's extension ("" if none)."""
    ext = os.path.splitext(path)[1].lower().lstrip(".")
    return _FORMAT_ALIASES.get(ext, ext)


def _save_with_pillow(image: Any, target: Any, fmt: str, label: str) -> None:
    pil_image = image_to_pil(image)
    if pil_image.mode == "LA":
        pil_image = pil_image.convert("RGBA")
    params: dict[str, Any] = {}
    if fmt == "ico":
        # Keep the single frame at the exact image size instead of Pillow's size ladder
        params["sizes"] = [pil_image.size]
    try:
        pil_image.save(target, format=_PILLOW_SAVERS[fmt], **params)
    except (OSError, ValueError) as e:
        raise EncodeError(f"Failed to save image: {label}: {e}") from e
    metrics.inc("encode.pillow")


def encode_to_file(image: Any, output_path: str) -> str:
    """Write ``image`` to ``output_path`` in the format its extension names.

    Returns:
        The output path.

    Raises:
        EncodeError: unsupported extension or write failure.
    """
    fmt = format_for_path(output_path)
    if not fmt:
        raise EncodeError(f"Failed to save image: {output_path}: missing file extension")

    _logger.debug("encoding %dx%d image -> %s (%s)", image.width, image.height, output_path, fmt)
    if fmt in _PILLOW_SAVERS:
        _save_with_pillow(image, output_path, fmt, output_path)
        return output_path

    try:
        image.write_to_file(output_path)
    except pyvips.Error as e:
        raise EncodeError(f"Failed to save image: {output_path}: {e}") from e
    return output_path


def encode_to_buffer(image: Any, fmt: str = "png") -> bytes:
    """Encode ``image`` into an in-memory buffer of the given format id."""
    fmt = _FORMAT_ALIASES.get(fmt.lower(), fmt.lower())
    if fmt in _PILLOW_SAVERS:
        out = io.BytesIO()
        _save_with_pillow(image, out, fmt, f"<{fmt} buffer>")
        return out.getvalue()

    try:
        return bytes(image.write_to_buffer(f".{fmt}"))
    except pyvips.Error as e:
        raise EncodeError(f"Failed to encode image: <{fmt} buffer>: {e}") from e
