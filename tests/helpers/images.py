from __future__ import annotations

import io
from pathlib import Path

from PIL import Image


def make_image_bytes(width: int, height: int, fmt: str = "PNG", mode: str = "RGB", exif=None) -> bytes:
    color = (30, 120, 200) if mode == "RGB" else 128
    image = Image.new(mode, (width, height), color=color)
    buffer = io.BytesIO()
    if exif is not None:
        image.save(buffer, format=fmt, exif=exif)
    else:
        image.save(buffer, format=fmt)
    return buffer.getvalue()


def image_size(data: bytes) -> tuple[int, int]:
    with Image.open(io.BytesIO(data)) as image:
        return image.size


def image_format(data: bytes) -> str | None:
    with Image.open(io.BytesIO(data)) as image:
        return image.format


def stored_files(root: Path) -> list[Path]:
    if not root.exists():
        return []
    return [path for path in root.rglob("*") if path.is_file()]
