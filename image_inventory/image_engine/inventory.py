"""Directory enumeration and per-file image info.

Enumeration is best effort: a file that cannot be stat'ed or decoded is left
out of the result instead of failing the whole listing.
"""

from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from image_inventory.errors import DecodeError, ImageIOError
from image_inventory.image_engine.decoder import decode_file
from image_inventory.image_engine.info_cache import InfoCache
from image_inventory.image_engine.metrics import metrics
from image_inventory.logger import get_logger
from image_inventory.path_utils import abs_path, abs_path_str

_logger = get_logger("inventory")

IMAGE_EXTENSIONS = frozenset({".jpg", ".jpeg", ".png", ".gif", ".bmp"})


@dataclass(frozen=True)
class ImageInfo:
    path: str
    name: str
    width: int
    height: int
    size: int

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)


def is_supported_image(path: str | Path) -> bool:
    return Path(path).suffix.lower() in IMAGE_EXTENSIONS


def _read_info(path: str, stat_result: os.stat_result, cache: InfoCache | None) -> ImageInfo:
    if cache is not None:
        cached = cache.get(path, stat_result)
        if cached is not None:
            return cached if cached.path == path else dataclasses.replace(cached, path=path)

    image = decode_file(path)
    info = ImageInfo(
        path=path,
        name=os.path.basename(path),
        width=int(image.width),
        height=int(image.height),
        size=int(stat_result.st_size),
    )
    if cache is not None:
        cache.put(path, stat_result, info)
    return info


def get_image_info(path: str, cache: InfoCache | None = None) -> ImageInfo:
    """Decode ``path`` and report its geometry and size on disk.

    Raises:
        ImageIOError: the file is missing or its metadata is unavailable.
        DecodeError: the file is not a decodable image.
    """
    try:
        stat_result = os.stat(path)
    except OSError as e:
        raise ImageIOError(f"Failed to get metadata: {path}: {e}") from e
    if not os.path.isfile(path):
        raise ImageIOError(f"Failed to open image: {path}: not a file")
    return _read_info(path, stat_result, cache)


def list_images(directory: str | Path, cache: InfoCache | None = None) -> list[ImageInfo]:
    """Return info for every decodable supported image directly inside ``directory``.

    Results are sorted by path. Files with an unsupported extension, files
    that fail to stat and files that fail to decode are skipped.

    Raises:
        ImageIOError: the directory cannot be read.
    """
    folder = abs_path(directory)
    try:
        children = sorted(folder.iterdir())
    except OSError as e:
        raise ImageIOError(f"Failed to read directory: {directory}: {e}", stage="list") from e

    images: list[ImageInfo] = []
    for child in children:
        if not is_supported_image(child):
            continue
        path = abs_path_str(child)
        try:
            if not child.is_file():
                continue
            stat_result = child.stat()
            images.append(_read_info(path, stat_result, cache))
        except (OSError, DecodeError) as e:
            # ImageIOError is an OSError
            _logger.debug("skipping %s: %s", path, e)
            metrics.inc("inventory.skipped")
            continue

    metrics.inc("inventory.listed", len(images))
    _logger.debug("listed %d images in %s", len(images), folder)
    return images
