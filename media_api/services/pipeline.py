import asyncio
from pathlib import Path
from typing import Sequence

from loguru import logger

from media_api.config import settings
from media_api.models.image import ImageAsset, StoredArtifactPair
from media_api.models.upload import UploadFailure
from media_api.services.errors import ImagePipelineError, StorageError, ThumbnailError
from media_api.services.exif import read_capture_metadata
from media_api.services.normalizer import FormatRegistry, default_registry, normalize_image
from media_api.services.storage import (
    build_artifact_paths,
    delete_image_files,
    ensure_media_dirs,
    save_image_to_file,
)
from media_api.services.thumbnails import generate_thumbnail


async def _store_thumbnail(
    buffer: bytes,
    filename: str,
    original_path: Path,
    thumbnail_path: Path,
    fatal: bool,
) -> Path | None:
    try:
        await generate_thumbnail(
            buffer,
            thumbnail_path,
            settings.thumbnail_max_width,
            settings.thumbnail_max_height,
        )
    except (ThumbnailError, OSError) as exc:
        if fatal:
            await delete_image_files([original_path, thumbnail_path])
            if isinstance(exc, ThumbnailError):
                exc.filename = filename
                raise
            raise StorageError(f"Failed to store thumbnail: {exc.strerror or exc}", filename) from exc
        logger.warning(
            "Thumbnail skipped filename={} original_path={} error={}",
            filename,
            str(original_path),
            str(exc),
        )
        await delete_image_files([thumbnail_path])
        return None
    return thumbnail_path


async def process_image(
    asset: ImageAsset,
    media_root: Path | None = None,
    registry: FormatRegistry = default_registry,
    thumbnail_failure_fatal: bool | None = None,
) -> StoredArtifactPair:
    """Normalize, store the original, then derive and store its thumbnail."""
    filename = asset.original_filename
    fatal = settings.thumbnail_failure_fatal if thumbnail_failure_fatal is None else thumbnail_failure_fatal

    normalized = await asyncio.to_thread(normalize_image, asset.buffer, filename, registry)

    try:
        await asyncio.to_thread(ensure_media_dirs, media_root)
        original_path, thumbnail_path = build_artifact_paths(normalized.extension, media_root)
        await save_image_to_file(normalized.buffer, original_path)
    except OSError as exc:
        logger.error("Original write failed filename={} error={}", filename, str(exc))
        raise StorageError(f"Failed to store image: {exc.strerror or exc}", filename) from exc

    try:
        capture = await asyncio.to_thread(read_capture_metadata, normalized.buffer)
        thumbnail_path = await _store_thumbnail(normalized.buffer, filename, original_path, thumbnail_path, fatal)
    except ImagePipelineError:
        raise
    except Exception:
        await delete_image_files([original_path, thumbnail_path])
        raise

    logger.info(
        "Image stored filename={} original_path={} thumbnail_path={} converted={}",
        filename,
        str(original_path),
        str(thumbnail_path) if thumbnail_path else None,
        normalized.converted,
    )
    return StoredArtifactPair(
        original_filename=filename,
        original_path=original_path,
        thumbnail_path=thumbnail_path,
        capture=capture,
    )


async def _process_with_limit(
    asset: ImageAsset,
    sem: asyncio.Semaphore,
    media_root: Path | None,
    registry: FormatRegistry,
) -> StoredArtifactPair | UploadFailure:
    async with sem:
        try:
            return await process_image(asset, media_root, registry)
        except ImagePipelineError as exc:
            logger.warning(
                "Image rejected filename={} error_type={} error={}",
                asset.original_filename,
                type(exc).__name__,
                str(exc),
            )
            return UploadFailure(file=asset.original_filename, reason=str(exc))
        except Exception as exc:
            logger.exception(
                "Image processing error filename={} error={}",
                asset.original_filename,
                str(exc),
            )
            return UploadFailure(file=asset.original_filename, reason=f"Processing error: {exc}")


async def process_images(
    assets: Sequence[ImageAsset],
    media_root: Path | None = None,
    registry: FormatRegistry = default_registry,
    concurrency: int | None = None,
) -> list[StoredArtifactPair | UploadFailure]:
    """Process files independently; results keep the input order."""
    sem = asyncio.Semaphore(concurrency or settings.upload_concurrency)
    tasks = [_process_with_limit(asset, sem, media_root, registry) for asset in assets]
    results = await asyncio.gather(*tasks)
    stored = sum(1 for r in results if isinstance(r, StoredArtifactPair))
    logger.info("Image batch finished total={} stored={} failed={}", len(results), stored, len(results) - stored)
    return list(results)
