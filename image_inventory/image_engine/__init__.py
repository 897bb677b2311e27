"""Image Engine - decoding, encoding and directory inventory.

This package provides the I/O side of the service:
- Image decoding (decoder) and encoding (encoder) via pyvips, Pillow fallback
- Directory enumeration and image info (inventory)
- Info caching keyed by path + mtime (info_cache)

Usage:
    from image_inventory.image_engine.inventory import list_images
    from image_inventory.image_engine.info_cache import InfoCache

    cache = InfoCache()
    for info in list_images("/path/to/images", cache=cache):
        print(info.name, info.width, info.height)
"""
