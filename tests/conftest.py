from __future__ import annotations

import io
import sys
from pathlib import Path

import pytest
from PIL import Image


def pytest_configure() -> None:
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))


def make_image(mode: str = "RGB", size: tuple[int, int] = (64, 48)) -> Image.Image:
    color = (200, 120, 40, 128) if mode == "RGBA" else (200, 120, 40)
    return Image.new(mode, size, color)


def encode(image: Image.Image, fmt: str) -> bytes:
    out = io.BytesIO()
    image.save(out, format=fmt)
    return out.getvalue()


@pytest.fixture
def rgb_image() -> Image.Image:
    return make_image()


@pytest.fixture
def png_bytes() -> bytes:
    return encode(make_image("RGBA"), "PNG")


@pytest.fixture
def jpeg_bytes() -> bytes:
    return encode(make_image(), "JPEG")


@pytest.fixture
def db_initializer(tmp_path: Path):
    from utils.database_init import AsyncDatabaseInitializer

    return AsyncDatabaseInitializer(tmp_path / "db")


@pytest.fixture
def record_dal(db_initializer):
    from dal.lore_record_dal import LoreRecordDAL

    return LoreRecordDAL(db_initializer)
