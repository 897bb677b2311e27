"""Command-line shell over the inventory and transform operations."""

from __future__ import annotations

import argparse
import json
import os
import sys
from typing import Any

from image_inventory.errors import ImageInventoryError
from image_inventory.logger import get_logger, setup_logger
from image_inventory.settings_manager import SettingsManager, default_settings_path

logger = get_logger("main")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="image-inventory", description="Image inventory and transforms")
    parser.add_argument("--log-level", help="Set log level (debug, info, warning, error)")
    parser.add_argument("--log-cats", help="Comma-separated log categories to show")
    parser.add_argument("--settings", help="Settings JSON path")
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list", help="List supported images in a folder")
    p.add_argument("directory", nargs="?", help="Folder to scan (default: last scanned folder)")

    p = sub.add_parser("info", help="Show image geometry and file size")
    p.add_argument("path")

    p = sub.add_parser("resize", help="Resize an image in place")
    p.add_argument("path")
    p.add_argument("width", type=int)
    p.add_argument("height", type=int, nargs="?", help="Required unless --keep-ratio is given")
    p.add_argument(
        "--keep-ratio",
        action="store_true",
        help="Keep the aspect ratio: derive HEIGHT from WIDTH, or fit inside WIDTH x HEIGHT",
    )

    p = sub.add_parser("resize-data", help="Resize image bytes and write the encoded result")
    p.add_argument("source", help="Input file, or - for stdin")
    p.add_argument("output", help="Output file, or - for stdout")
    p.add_argument("width", type=int)
    p.add_argument("height", type=int)

    p = sub.add_parser("crop", help="Crop an image in place")
    p.add_argument("path")
    p.add_argument("x", type=float)
    p.add_argument("y", type=float)
    p.add_argument("width", type=float)
    p.add_argument("height", type=float)
    p.add_argument("--pixels", action="store_true", help="Coordinates are pixels instead of fractions")

    p = sub.add_parser("save-as", help="Save an image in the format named by the output extension")
    p.add_argument("source")
    p.add_argument("output")
    return parser


def _apply_logging_options(args: argparse.Namespace) -> None:
    if args.log_level:
        os.environ["IMAGE_INVENTORY_LOG_LEVEL"] = args.log_level
    if args.log_cats:
        os.environ["IMAGE_INVENTORY_LOG_CATS"] = args.log_cats
    # Re-read env so late CLI parsing takes effect
    setup_logger()


def _emit(args: argparse.Namespace, payload: Any, text: str) -> None:
    if args.json:
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        print(text)


def _dispatch(args: argparse.Namespace, settings: SettingsManager) -> int:
    # Deferred so --help works without libvips installed
    from image_inventory.image_engine.info_cache import InfoCache
    from image_inventory.image_engine.inventory import get_image_info, list_images
    from image_inventory.transform.geometry import FractionalRect
    from image_inventory.transform.operations import (
        crop_image,
        resize_image,
        resize_image_from_data,
        resize_image_keep_ratio,
        save_as,
    )

    cache = InfoCache(settings.info_cache_max_entries)

    if args.command == "list":
        directory = args.directory or settings.last_directory
        if not directory:
            print("error: no directory given and no previous directory saved", file=sys.stderr)
            return 2
        images = list_images(directory, cache=cache)
        settings.set("last_directory", os.path.abspath(directory))
        lines = [f"{i.name}\t{i.width}x{i.height}\t{i.size}" for i in images]
        _emit(args, [i.to_dict() for i in images], "\n".join(lines))
        return 0

    if args.command == "info":
        info = get_image_info(args.path, cache=cache)
        _emit(args, info.to_dict(), f"{info.path}\t{info.width}x{info.height}\t{info.size}")
        return 0

    if args.command == "resize":
        if args.keep_ratio:
            width, height = resize_image_keep_ratio(args.path, args.width, args.height, cache=cache)
            _emit(args, {"ok": True, "width": width, "height": height}, f"resized {args.path} to {width}x{height}")
            return 0
        ok = resize_image(args.path, args.width, args.height, cache=cache)
        _emit(args, {"ok": ok}, f"resized {args.path} to {args.width}x{args.height}")
        return 0

    if args.command == "resize-data":
        if args.source == "-":
            data = sys.stdin.buffer.read()
        else:
            try:
                with open(args.source, "rb") as f:
                    data = f.read()
            except OSError as e:
                print(f"error: Failed to read {args.source}: {e}", file=sys.stderr)
                return 1
        out = resize_image_from_data(data, args.width, args.height, settings.output_format)
        if args.output == "-":
            sys.stdout.buffer.write(out)
            sys.stdout.buffer.flush()
        else:
            try:
                with open(args.output, "wb") as f:
                    f.write(out)
            except OSError as e:
                print(f"error: Failed to write {args.output}: {e}", file=sys.stderr)
                return 1
            logger.info("wrote %d bytes to %s", len(out), args.output)
        return 0

    if args.command == "crop":
        if args.pixels:
            info = get_image_info(args.path, cache=cache)
            rect = FractionalRect.from_pixels(
                info.width, info.height, (int(args.x), int(args.y), int(args.width), int(args.height))
            )
        else:
            rect = FractionalRect(args.x, args.y, args.width, args.height)
        ok = crop_image(args.path, rect.x, rect.y, rect.width, rect.height, cache=cache)
        _emit(args, {"ok": ok}, f"cropped {args.path}")
        return 0

    if args.command == "save-as":
        ok = save_as(args.source, args.output, cache=cache)
        _emit(args, {"ok": ok}, f"saved {args.source} as {args.output}")
        return 0

    raise AssertionError(f"unhandled command {args.command}")


def run(argv: list[str] | None = None) -> int:
    """Application entrypoint (packaging-friendly)."""
    parser = _build_parser()
    try:
        args = parser.parse_args(argv)
        if args.command == "resize" and args.height is None and not args.keep_ratio:
            parser.error("resize needs HEIGHT unless --keep-ratio is given")
    except SystemExit as e:
        return int(e.code or 0)

    _apply_logging_options(args)
    settings = SettingsManager(args.settings or default_settings_path())

    try:
        return _dispatch(args, settings)
    except ImageInventoryError as e:
        logger.debug("%s failed at stage %s", args.command, e.stage, exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(run())
