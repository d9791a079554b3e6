import io
from datetime import datetime

from loguru import logger
from PIL import ExifTags, Image

from media_api.models.image import CaptureMetadata

EXIF_DATETIME_FORMAT = "%Y:%m:%d %H:%M:%S"


def _parse_exif_datetime(value) -> datetime | None:
    if not value:
        return None
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="ignore")
    try:
        return datetime.strptime(str(value).strip("\x00 "), EXIF_DATETIME_FORMAT)
    except ValueError:
        logger.debug("Unparseable EXIF datetime value={!r}", value)
        return None


def gps_to_decimal(dms, ref) -> float | None:
    """Convert an EXIF (degrees, minutes, seconds) triple to signed degrees."""
    if not dms or len(dms) != 3:
        return None
    try:
        degrees, minutes, seconds = (float(part) for part in dms)
    except (TypeError, ValueError, ZeroDivisionError):
        return None
    decimal = degrees + minutes / 60 + seconds / 3600
    if isinstance(ref, bytes):
        ref = ref.decode("ascii", errors="ignore")
    if str(ref or "").strip().upper() in {"S", "W"}:
        decimal = -decimal
    return round(decimal, 7)


def read_capture_metadata(buffer: bytes) -> CaptureMetadata:
    try:
        with Image.open(io.BytesIO(buffer)) as image:
            exif = image.getexif()
            exif_ifd = exif.get_ifd(ExifTags.IFD.Exif)
            gps_ifd = exif.get_ifd(ExifTags.IFD.GPSInfo)
    except Exception as exc:
        logger.debug("EXIF unavailable error={}", str(exc))
        return CaptureMetadata()

    taken_at = _parse_exif_datetime(exif_ifd.get(ExifTags.Base.DateTimeOriginal)) or _parse_exif_datetime(
        exif.get(ExifTags.Base.DateTime)
    )
    latitude = gps_to_decimal(gps_ifd.get(ExifTags.GPS.GPSLatitude), gps_ifd.get(ExifTags.GPS.GPSLatitudeRef))
    longitude = gps_to_decimal(gps_ifd.get(ExifTags.GPS.GPSLongitude), gps_ifd.get(ExifTags.GPS.GPSLongitudeRef))
    return CaptureMetadata(taken_at=taken_at, latitude=latitude, longitude=longitude)
