import asyncio
import time
from pathlib import Path
from typing import Iterable
from uuid import uuid4

from loguru import logger

from media_api.config import settings
from media_api.services.errors import UnsupportedImageError
from media_api.services.normalizer import supported_extensions


def validate_image_file(filename: str, size_bytes: int) -> None:
    suffix = Path(filename).suffix.lower()
    if suffix not in supported_extensions():
        raise UnsupportedImageError(f"Unsupported image type: {suffix or 'no extension'}", filename)
    if size_bytes == 0:
        raise UnsupportedImageError("Empty file", filename)
    if size_bytes > settings.max_upload_size_bytes:
        raise UnsupportedImageError(
            f"File exceeds {settings.max_upload_size_bytes} bytes",
            filename,
        )


def build_artifact_paths(extension: str, media_root: Path | None = None) -> tuple[Path, Path]:
    """Return ``(original_path, thumbnail_path)`` for a freshly minted file name."""
    root = Path(media_root) if media_root is not None else settings.media_path
    filename = f"image_{uuid4()}_{int(time.time() * 1000)}{extension}"
    return root / filename, root / settings.thumbnails_subdir / filename


def ensure_media_dirs(media_root: Path | None = None) -> None:
    root = Path(media_root) if media_root is not None else Path(settings.media_dir)
    (root / settings.thumbnails_subdir).mkdir(parents=True, exist_ok=True)


async def save_image_to_file(buffer: bytes, output_path: Path) -> None:
    path = Path(output_path)
    await asyncio.to_thread(path.write_bytes, buffer)
    logger.debug("File saved destination={} size_bytes={}", str(path), len(buffer))


def read_image_bytes(path: Path) -> bytes:
    path = Path(path)
    if not path.is_file():
        logger.error("Stored image not found path={}", str(path))
        raise FileNotFoundError(f"Image not found: {path.name}")
    logger.debug("Reading image bytes path={}", str(path))
    return path.read_bytes()


def resolve_media_path(relative: str, media_root: Path | None = None) -> Path:
    root = (Path(media_root) if media_root is not None else settings.media_path).resolve()
    candidate = (root / relative).resolve()
    if not candidate.is_relative_to(root) or candidate == root:
        raise ValueError(f"Path outside media root: {relative}")
    return candidate


def media_key(relative: str, media_root: Path | None = None) -> str:
    """Canonical cache key: the resolved path relative to the media root."""
    root = (Path(media_root) if media_root is not None else settings.media_path).resolve()
    return resolve_media_path(relative, root).relative_to(root).as_posix()


def read_media_file(relative: str) -> bytes:
    return read_image_bytes(resolve_media_path(relative))


def public_url(path: Path, media_root: Path | None = None) -> str:
    root = Path(media_root) if media_root is not None else settings.media_path
    relative = Path(path).resolve().relative_to(root.resolve())
    return f"{settings.media_url_prefix.rstrip('/')}/{relative.as_posix()}"


async def delete_image_files(paths: Iterable[Path | None]) -> None:
    for path in paths:
        if path is None:
            continue
        try:
            await asyncio.to_thread(Path(path).unlink, missing_ok=True)
        except OSError as exc:
            logger.warning("Could not delete file path={} error={}", str(path), str(exc))
            continue
        logger.debug("File deleted path={}", str(path))
