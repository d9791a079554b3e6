from __future__ import annotations

import io
from pathlib import Path

import pytest
from PIL import ExifTags, Image

from media_api.services.errors import ThumbnailError
from media_api.services.thumbnails import generate_thumbnail, render_thumbnail
from tests.helpers.images import image_format, image_size, make_image_bytes


@pytest.mark.asyncio
async def test_landscape_is_scaled_to_fit_width(tmp_path: Path, png_800x600: bytes) -> None:
    target = tmp_path / "thumb.png"

    await generate_thumbnail(png_800x600, target)

    assert image_size(target.read_bytes()) == (400, 300)


@pytest.mark.asyncio
async def test_small_image_is_not_enlarged(tmp_path: Path) -> None:
    target = tmp_path / "tiny.png"

    await generate_thumbnail(make_image_bytes(100, 80), target)

    assert image_size(target.read_bytes()) == (100, 80)


@pytest.mark.asyncio
async def test_custom_box_is_respected(tmp_path: Path) -> None:
    target = tmp_path / "portrait.jpg"

    await generate_thumbnail(make_image_bytes(300, 1200, fmt="JPEG"), target, max_width=200, max_height=200)

    assert image_size(target.read_bytes()) == (50, 200)


@pytest.mark.parametrize(
    ("source", "box"),
    [
        ((1024, 768), (400, 400)),
        ((333, 1000), (400, 400)),
        ((1920, 1080), (160, 90)),
        ((401, 399), (400, 400)),
        ((640, 480), (1000, 50)),
    ],
)
def test_output_fits_box_and_keeps_aspect_ratio(tmp_path: Path, source, box) -> None:
    width, height = source
    max_width, max_height = box

    data = render_thumbnail(make_image_bytes(width, height), tmp_path / "t.png", max_width, max_height)
    out_width, out_height = image_size(data)

    assert out_width <= max_width and out_height <= max_height
    assert out_width <= width and out_height <= height
    assert out_width / out_height == pytest.approx(width / height, rel=0.02)


def test_encoding_follows_output_suffix(tmp_path: Path) -> None:
    data = render_thumbnail(make_image_bytes(600, 600, mode="RGBA"), tmp_path / "t.jpg")

    assert image_format(data) == "JPEG"
    assert image_size(data) == (400, 400)


def test_unknown_suffix_falls_back_to_source_format(tmp_path: Path, png_800x600: bytes) -> None:
    data = render_thumbnail(png_800x600, tmp_path / "image_without_suffix")

    assert image_format(data) == "PNG"


@pytest.mark.asyncio
async def test_undecodable_buffer_raises_thumbnail_error(tmp_path: Path) -> None:
    target = tmp_path / "broken.png"

    with pytest.raises(ThumbnailError):
        await generate_thumbnail(b"\x89PNG not really", target)

    assert not target.exists()


def test_invalid_box_raises_thumbnail_error(tmp_path: Path, png_800x600: bytes) -> None:
    with pytest.raises(ThumbnailError):
        render_thumbnail(png_800x600, tmp_path / "t.png", 0, 400)


def test_exif_orientation_is_applied_before_scaling(tmp_path: Path) -> None:
    exif = Image.Exif()
    exif[ExifTags.Base.Orientation] = 6

    data = render_thumbnail(make_image_bytes(800, 600, fmt="JPEG", exif=exif), tmp_path / "t.jpg")

    assert image_size(data) == (300, 400)
    with Image.open(io.BytesIO(data)) as thumbnail:
        assert thumbnail.getexif().get(ExifTags.Base.Orientation) in (None, 1)
