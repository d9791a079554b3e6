from __future__ import annotations

from datetime import datetime

import pytest
from PIL import ExifTags, Image

from media_api.services.exif import gps_to_decimal, read_capture_metadata
from tests.helpers.images import make_image_bytes


@pytest.mark.parametrize(
    ("dms", "ref", "expected"),
    [
        ((45, 30, 0), "N", 45.5),
        ((45, 30, 0), "S", -45.5),
        ((9, 11, 24), b"E", 9.19),
        ((73, 59, 8.4), "W", -73.9856667),
    ],
)
def test_gps_to_decimal(dms, ref, expected) -> None:
    assert gps_to_decimal(dms, ref) == pytest.approx(expected)


@pytest.mark.parametrize("dms", [None, (), (1, 2), ("a", "b", "c")])
def test_gps_to_decimal_rejects_malformed_values(dms) -> None:
    assert gps_to_decimal(dms, "N") is None


def test_reads_base_datetime() -> None:
    exif = Image.Exif()
    exif[ExifTags.Base.DateTime] = "2024:02:14 20:15:30"

    capture = read_capture_metadata(make_image_bytes(64, 64, fmt="JPEG", exif=exif))

    assert capture.taken_at == datetime(2024, 2, 14, 20, 15, 30)


def test_unparseable_datetime_is_ignored() -> None:
    exif = Image.Exif()
    exif[ExifTags.Base.DateTime] = "sometime last summer"

    capture = read_capture_metadata(make_image_bytes(64, 64, fmt="JPEG", exif=exif))

    assert capture.taken_at is None


def test_image_without_exif_yields_empty_metadata() -> None:
    capture = read_capture_metadata(make_image_bytes(64, 64))

    assert capture.taken_at is None
    assert capture.latitude is None
    assert capture.longitude is None


def test_undecodable_buffer_yields_empty_metadata() -> None:
    capture = read_capture_metadata(b"garbage")

    assert capture.model_dump() == {"taken_at": None, "latitude": None, "longitude": None}
