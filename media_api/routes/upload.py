from datetime import datetime
from uuid import uuid4

from fastapi import APIRouter, File, Form, HTTPException, Response, UploadFile, status
from loguru import logger

from media_api.config import settings
from media_api.models.image import ImageAsset, StoredArtifactPair
from media_api.models.upload import StoredImage, UploadBatchResult, UploadFailure, UploadMetadata
from media_api.services.errors import UnsupportedImageError
from media_api.services.pipeline import process_images
from media_api.services.storage import public_url, validate_image_file

router = APIRouter(prefix="/images", tags=["images"])


def _to_stored_image(pair: StoredArtifactPair) -> StoredImage:
    url = public_url(pair.original_path)
    thumbnail_url = public_url(pair.thumbnail_path) if pair.thumbnail_path else url
    return StoredImage(
        file=pair.original_filename,
        original_path=str(pair.original_path),
        thumbnail_path=str(pair.thumbnail_path) if pair.thumbnail_path else None,
        url=url,
        thumbnail_url=thumbnail_url,
        capture=pair.capture,
    )


@router.post("/upload", response_model=UploadBatchResult, status_code=status.HTTP_201_CREATED)
async def upload_images(
    response: Response,
    images: list[UploadFile] = File(...),
    name: str | None = Form(None),
    category: str | None = Form(None, alias="type"),
    date: datetime | None = Form(None),
    memory_id: str | None = Form(None),
    location_name: str | None = Form(None),
    latitude: float | None = Form(None, ge=-90, le=90),
    longitude: float | None = Form(None, ge=-180, le=180),
) -> UploadBatchResult:
    if not images:
        raise HTTPException(status_code=400, detail="No image files uploaded")
    if len(images) > settings.max_upload_files:
        raise HTTPException(status_code=400, detail=f"Upload limit is {settings.max_upload_files} files")

    upload_id = str(uuid4())
    metadata = UploadMetadata(
        name=name,
        category=category,
        date=date,
        memory_id=memory_id,
        location_name=location_name,
        latitude=latitude,
        longitude=longitude,
    )
    logger.info("Upload request upload_id={} file_count={}", upload_id, len(images))

    assets: list[ImageAsset] = []
    failures: list[UploadFailure] = []
    for upload in images:
        filename = upload.filename or "upload"
        data = await upload.read(settings.max_upload_size_bytes + 1)
        try:
            validate_image_file(filename, len(data))
        except UnsupportedImageError as exc:
            logger.warning(
                "Upload rejected upload_id={} filename={} content_type={} error={}",
                upload_id,
                filename,
                upload.content_type,
                str(exc),
            )
            failures.append(UploadFailure(file=filename, reason=str(exc)))
            continue
        assets.append(ImageAsset(buffer=data, original_filename=filename))

    stored: list[StoredImage] = []
    for outcome in await process_images(assets):
        if isinstance(outcome, UploadFailure):
            failures.append(outcome)
        else:
            stored.append(_to_stored_image(outcome))

    if not stored:
        response.status_code = 422
    logger.info(
        "Upload finished upload_id={} stored={} failed={}",
        upload_id,
        len(stored),
        len(failures),
    )
    return UploadBatchResult(upload_id=upload_id, metadata=metadata, images=stored, failures=failures)
