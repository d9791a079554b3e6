from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_name: str = "Together Media"
    debug: bool = False
    log_level: str = "INFO"
    media_dir: str = "media"
    thumbnails_subdir: str = "thumbs"
    media_url_prefix: str = "/media"
    thumbnail_max_width: int = Field(default=400, ge=1)
    thumbnail_max_height: int = Field(default=400, ge=1)
    heic_jpeg_quality: int = Field(default=90, ge=1, le=100)
    max_upload_files: int = Field(default=20, ge=1, le=100)
    max_upload_size_bytes: int = Field(default=15 * 1024 * 1024, ge=1)
    upload_concurrency: int = Field(default=4, ge=1)
    thumbnail_failure_fatal: bool = False
    image_cache_capacity: int = Field(default=50, ge=1)

    @property
    def media_path(self) -> Path:
        path = Path(self.media_dir)
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def thumbnails_path(self) -> Path:
        path = self.media_path / self.thumbnails_subdir
        path.mkdir(parents=True, exist_ok=True)
        return path


settings = Settings()
