import asyncio
import mimetypes

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import Response
from loguru import logger

from media_api.config import settings
from media_api.services.cache import ImageCache
from media_api.services.storage import media_key

router = APIRouter(prefix=settings.media_url_prefix, tags=["media"])


def get_image_cache(request: Request) -> ImageCache:
    return request.app.state.image_cache


def load_media(cache: ImageCache, media_path: str) -> tuple[str, bytes]:
    key = media_key(media_path)
    return key, cache.get(key)


@router.get("/{media_path:path}")
async def get_media(media_path: str, cache: ImageCache = Depends(get_image_cache)) -> Response:
    try:
        key, data = await asyncio.to_thread(load_media, cache, media_path)
    except (FileNotFoundError, ValueError) as exc:
        logger.warning("Media lookup failed media_path={} error={}", media_path, str(exc))
        raise HTTPException(status_code=404, detail="Image not found") from exc

    media_type, _ = mimetypes.guess_type(key)
    return Response(content=data, media_type=media_type or "application/octet-stream")
