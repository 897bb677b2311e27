import io
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

pytest.importorskip("pyvips")

from image_inventory.errors import DecodeError, EncodeError, ImageIOError, InvalidDimensions, InvalidRegion
from image_inventory.image_engine.info_cache import InfoCache
from image_inventory.image_engine.inventory import get_image_info
from image_inventory.transform.operations import (
    crop_image,
    resize_image,
    resize_image_from_data,
    resize_image_keep_ratio,
    save_as,
)

from tests.helpers.images import write_image

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


def _size(path: Path) -> tuple[int, int]:
    with Image.open(path) as im:
        return im.size


def test_resize_image_overwrites_in_place(make_image):
    path = make_image("photo.png", 200, 100)
    assert resize_image(str(path), 50, 70) is True
    assert _size(path) == (50, 70)


def test_resize_image_keeps_jpeg_format(make_image):
    path = make_image("photo.jpg", 64, 48, "JPEG")
    resize_image(str(path), 32, 24)
    with Image.open(path) as im:
        assert im.format == "JPEG"
        assert im.size == (32, 24)


def test_resize_image_invalidates_cache(make_image):
    path = make_image("photo.png", 40, 40)
    cache = InfoCache()
    get_image_info(str(path), cache=cache)
    assert len(cache) == 1
    resize_image(str(path), 10, 10, cache=cache)
    assert len(cache) == 0


def test_resize_image_missing_file(tmp_path):
    with pytest.raises(ImageIOError) as excinfo:
        resize_image(str(tmp_path / "nope.png"), 10, 10)
    assert excinfo.value.stage == "open"
    assert "Failed to open image" in str(excinfo.value)


def test_resize_image_corrupt_file(tmp_path):
    path = tmp_path / "broken.png"
    path.write_bytes(b"this is not an image")
    with pytest.raises(DecodeError) as excinfo:
        resize_image(str(path), 10, 10)
    assert excinfo.value.stage == "decode"


def test_resize_image_zero_target(make_image):
    path = make_image("photo.png", 20, 20)
    with pytest.raises(InvalidDimensions):
        resize_image(str(path), 0, 10)
    # untouched on failure
    assert _size(path) == (20, 20)


def test_resize_image_keep_ratio_derives_height(make_image):
    path = make_image("photo.png", 640, 480)
    cache = InfoCache()
    get_image_info(str(path), cache=cache)
    assert resize_image_keep_ratio(str(path), 100, cache=cache) == (100, 75)
    assert _size(path) == (100, 75)
    assert len(cache) == 0


def test_resize_image_keep_ratio_fits_box(make_image):
    path = make_image("tall.png", 50, 100)
    assert resize_image_keep_ratio(str(path), 40, 40) == (20, 40)
    assert _size(path) == (20, 40)


def test_resize_from_data_returns_png(make_image):
    path = make_image("photo.jpg", 90, 60, "JPEG")
    out = resize_image_from_data(path.read_bytes(), 30, 45)
    assert out.startswith(PNG_MAGIC)
    with Image.open(io.BytesIO(out)) as im:
        assert im.size == (30, 45)


def test_resize_from_data_accepts_bmp(make_image):
    path = make_image("photo.bmp", 16, 12, "BMP")
    out = resize_image_from_data(path.read_bytes(), 8, 6)
    assert out.startswith(PNG_MAGIC)


@pytest.mark.parametrize("data", [b"", b"garbage bytes that are no image", PNG_MAGIC + b"\x00" * 16])
def test_resize_from_data_rejects_undecodable(data):
    with pytest.raises(DecodeError):
        resize_image_from_data(data, 10, 10)


def test_crop_image_clamps_overflow(tmp_path):
    path = tmp_path / "wide.png"
    arr = write_image(path, 1000, 500)
    assert crop_image(str(path), 0.5, 0.0, 0.6, 1.0) is True
    with Image.open(path) as im:
        assert im.size == (500, 500)
        np.testing.assert_array_equal(np.asarray(im.convert("RGB")), arr[:, 500:])


def test_crop_image_full_frame_is_identity(tmp_path):
    path = tmp_path / "same.png"
    arr = write_image(path, 37, 23)
    crop_image(str(path), 0.0, 0.0, 1.0, 1.0)
    with Image.open(path) as im:
        np.testing.assert_array_equal(np.asarray(im.convert("RGB")), arr)


def test_crop_image_out_of_range(make_image):
    path = make_image("photo.png", 20, 20)
    with pytest.raises(InvalidRegion):
        crop_image(str(path), -0.1, 0.0, 0.5, 0.5)
    assert _size(path) == (20, 20)


def test_save_as_ico_scales_large_image(make_image, tmp_path):
    src = make_image("big.png", 1024, 512)
    out = tmp_path / "icon.ico"
    assert save_as(str(src), str(out)) is True
    with Image.open(out) as im:
        assert im.format == "ICO"
        assert im.size == (256, 128)


def test_save_as_ico_keeps_small_image(make_image, tmp_path):
    src = make_image("small.png", 100, 50)
    out = tmp_path / "ICON.ICO"
    save_as(str(src), str(out))
    with Image.open(out) as im:
        assert im.size == (100, 50)


def test_save_as_other_format_keeps_size(make_image, tmp_path):
    src = make_image("big.png", 1024, 512)
    out = tmp_path / "big.jpg"
    save_as(str(src), str(out))
    with Image.open(out) as im:
        assert im.format == "JPEG"
        assert im.size == (1024, 512)


def test_save_as_bmp(make_image, tmp_path):
    src = make_image("p.png", 30, 20)
    out = tmp_path / "p.bmp"
    save_as(str(src), str(out))
    with Image.open(out) as im:
        assert im.format == "BMP"
        assert im.size == (30, 20)


def test_save_as_unknown_extension(make_image, tmp_path):
    src = make_image("p.png", 30, 20)
    with pytest.raises(EncodeError):
        save_as(str(src), str(tmp_path / "p.notaformat"))
    with pytest.raises(EncodeError):
        save_as(str(src), str(tmp_path / "no_extension"))


def test_save_as_missing_source(tmp_path):
    with pytest.raises(ImageIOError):
        save_as(str(tmp_path / "missing.png"), str(tmp_path / "out.png"))
