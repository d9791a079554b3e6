import asyncio
import io
from pathlib import Path

from loguru import logger
from PIL import Image, ImageOps

from media_api.services.errors import ThumbnailError
from media_api.services.storage import save_image_to_file

JPEG_COMPATIBLE_MODES = {"RGB", "L", "CMYK"}


def _output_format(output_path: Path, source_format: str | None) -> str:
    fmt = Image.registered_extensions().get(output_path.suffix.lower())
    if fmt and fmt in Image.SAVE:
        return fmt
    if source_format:
        return source_format
    raise ThumbnailError(f"Cannot determine thumbnail format for {output_path.name}")


def render_thumbnail(
    buffer: bytes,
    output_path: Path,
    max_width: int = 400,
    max_height: int = 400,
) -> bytes:
    """Downscale ``buffer`` to fit inside ``max_width`` x ``max_height``.

    EXIF orientation is applied first. Aspect ratio is preserved and images
    already inside the box keep their size. The encoding follows the suffix
    of ``output_path``.
    """
    if max_width < 1 or max_height < 1:
        raise ThumbnailError(f"Invalid thumbnail box {max_width}x{max_height}")
    try:
        with Image.open(io.BytesIO(buffer)) as image:
            fmt = _output_format(output_path, image.format)
            image = ImageOps.exif_transpose(image)
            image.thumbnail((max_width, max_height))
            if fmt == "JPEG" and image.mode not in JPEG_COMPATIBLE_MODES:
                image = image.convert("RGB")
            output = io.BytesIO()
            image.save(output, format=fmt)
            logger.debug(
                "Thumbnail rendered path={} format={} size={}x{}",
                str(output_path),
                fmt,
                image.width,
                image.height,
            )
    except ThumbnailError:
        raise
    except Exception as exc:
        logger.error("Thumbnail rendering failed path={} error={}", str(output_path), str(exc))
        raise ThumbnailError("Failed to generate thumbnail") from exc
    return output.getvalue()


async def generate_thumbnail(
    buffer: bytes,
    output_path: Path,
    max_width: int = 400,
    max_height: int = 400,
) -> None:
    output_path = Path(output_path)
    data = await asyncio.to_thread(render_thumbnail, buffer, output_path, max_width, max_height)
    await save_image_to_file(data, output_path)
