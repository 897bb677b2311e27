"""Output-format dimension limits applied before saving."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from image_inventory.errors import InvalidDimensions
from image_inventory.logger import get_logger
from image_inventory.transform.executor import resize

_logger = get_logger("constraints")

ICO_MAX_SIDE = 256


@dataclass(frozen=True)
class FormatConstraint:
    format: str
    max_side: int | None = None


FORMAT_CONSTRAINTS = MappingProxyType(
    {
        "ico": FormatConstraint("ico", max_side=ICO_MAX_SIDE),
    }
)


def constraint_for(fmt: str) -> FormatConstraint | None:
    return FORMAT_CONSTRAINTS.get(fmt.lower().lstrip("."))


def constrained_size(width: int, height: int, max_side: int) -> tuple[int, int]:
    """Scale ``(width, height)`` so the longer side is at most ``max_side``.

    Sizes already within the limit are returned unchanged. Both sides use the
    same factor and round half-up, never below 1 pixel.
    """
    if width < 1 or height < 1:
        raise InvalidDimensions(f"Invalid image size {width}x{height}", stage="save")
    longest = max(width, height)
    if longest <= max_side:
        return width, height
    scale = max_side / longest
    return max(1, int(width * scale + 0.5)), max(1, int(height * scale + 0.5))


def enforce_constraints(image: Any, fmt: str) -> Any:
    """Return ``image`` resized to satisfy ``fmt``'s limits, or unchanged."""
    constraint = constraint_for(fmt)
    if constraint is None or constraint.max_side is None:
        return image

    new_size = constrained_size(image.width, image.height, constraint.max_side)
    if new_size == (image.width, image.height):
        return image

    _logger.info(
        "%s limits sides to %d px; scaling %dx%d -> %dx%d",
        constraint.format,
        constraint.max_side,
        image.width,
        image.height,
        *new_size,
    )
    return resize(image, *new_size)
