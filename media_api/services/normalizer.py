import io
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Callable

import pillow_heif
from loguru import logger
from PIL import Image

from media_api.config import settings
from media_api.models.image import NormalizedImage
from media_api.services.errors import ConversionError

Converter = Callable[[bytes], bytes]


@dataclass(frozen=True)
class FormatConversion:
    target_extension: str
    convert: Converter


class FormatRegistry:
    """Maps input extensions to the conversion that makes them displayable.

    Extensions are matched case-insensitively and must include the leading dot.
    Anything not registered passes through the normalizer untouched.
    """

    def __init__(self) -> None:
        self._conversions: dict[str, FormatConversion] = {}

    def register(self, extension: str, conversion: FormatConversion) -> None:
        if not extension.startswith("."):
            raise ValueError(f"Extension must start with a dot: {extension!r}")
        self._conversions[extension.lower()] = conversion

    def lookup(self, filename: str) -> FormatConversion | None:
        return self._conversions.get(Path(filename).suffix.lower())

    def extensions(self) -> frozenset[str]:
        return frozenset(self._conversions)


def convert_heic_to_jpeg(buffer: bytes, quality: int = 90) -> bytes:
    logger.debug("Converting HEIC image to JPEG size_bytes={} quality={}", len(buffer), quality)
    try:
        heif_file = pillow_heif.open_heif(io.BytesIO(buffer), convert_hdr_to_8bit=True)
        image = heif_file.to_pillow()
        exif = image.info.get("exif") or b""
        if image.mode != "RGB":
            image = image.convert("RGB")
        output = io.BytesIO()
        image.save(output, format="JPEG", quality=quality, exif=exif)
    except Exception as exc:
        logger.error("HEIC conversion failed size_bytes={} error={}", len(buffer), str(exc))
        raise ConversionError("Failed to convert HEIC image") from exc
    return output.getvalue()


def build_default_registry(quality: int | None = None) -> FormatRegistry:
    heic = FormatConversion(
        target_extension=".jpg",
        convert=partial(convert_heic_to_jpeg, quality=quality or settings.heic_jpeg_quality),
    )
    registry = FormatRegistry()
    registry.register(".heic", heic)
    registry.register(".heif", heic)
    return registry


default_registry = build_default_registry()


def supported_extensions(registry: FormatRegistry = default_registry) -> frozenset[str]:
    return frozenset(Image.registered_extensions()) | registry.extensions()


def normalize_image(
    buffer: bytes,
    original_filename: str,
    registry: FormatRegistry = default_registry,
) -> NormalizedImage:
    conversion = registry.lookup(original_filename)
    if conversion is None:
        return NormalizedImage(buffer=buffer, extension=Path(original_filename).suffix)

    try:
        converted = conversion.convert(buffer)
    except ConversionError as exc:
        exc.filename = original_filename
        raise
    logger.info(
        "Image normalized filename={} target_extension={} size_in={} size_out={}",
        original_filename,
        conversion.target_extension,
        len(buffer),
        len(converted),
    )
    return NormalizedImage(buffer=converted, extension=conversion.target_extension, converted=True)
