from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class ImageAsset(BaseModel):
    model_config = ConfigDict(frozen=True)

    buffer: bytes
    original_filename: str = Field(min_length=1)


class NormalizedImage(BaseModel):
    model_config = ConfigDict(frozen=True)

    buffer: bytes
    extension: str
    converted: bool = False


class CaptureMetadata(BaseModel):
    taken_at: datetime | None = None
    latitude: float | None = None
    longitude: float | None = None


class StoredArtifactPair(BaseModel):
    original_filename: str
    original_path: Path
    thumbnail_path: Path | None = None
    capture: CaptureMetadata = Field(default_factory=CaptureMetadata)
