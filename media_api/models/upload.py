from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from media_api.models.image import CaptureMetadata


class UploadMetadata(BaseModel):
    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    name: str | None = None
    category: str | None = None
    date: datetime | None = None
    memory_id: str | None = None
    location_name: str | None = None
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)


class StoredImage(BaseModel):
    file: str
    original_path: str
    thumbnail_path: str | None = None
    url: str
    thumbnail_url: str
    capture: CaptureMetadata


class UploadFailure(BaseModel):
    file: str
    reason: str


class UploadBatchResult(BaseModel):
    upload_id: str
    metadata: UploadMetadata
    images: list[StoredImage]
    failures: list[UploadFailure]
