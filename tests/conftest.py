from __future__ import annotations

import io
from pathlib import Path

import pytest
from PIL import Image

from media_api.config import settings
from tests.helpers.images import make_image_bytes


@pytest.fixture
def png_800x600() -> bytes:
    return make_image_bytes(800, 600)


@pytest.fixture
def heic_bytes() -> bytes:
    pillow_heif = pytest.importorskip("pillow_heif")
    image = Image.new("RGB", (640, 480), color=(200, 80, 40))
    buffer = io.BytesIO()
    pillow_heif.from_pillow(image).save(buffer, quality=80)
    return buffer.getvalue()


@pytest.fixture
def media_root(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    root = tmp_path / "media"
    monkeypatch.setattr(settings, "media_dir", str(root))
    return root
