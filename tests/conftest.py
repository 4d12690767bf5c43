from __future__ import annotations

import io
from typing import Tuple

import numpy as np
import pytest
from PIL import Image

from fabric_studio.models.image_model import ImageAsset


def gradient_image(size: Tuple[int, int], mode: str = "RGB") -> Image.Image:
    """Изображение, в котором каждый пиксель уникален по (x, y)."""
    w, h = size
    xs = np.tile(np.arange(w, dtype=np.uint32), (h, 1))
    ys = np.tile(np.arange(h, dtype=np.uint32).reshape(h, 1), (1, w))
    arr = np.stack([xs % 256, ys % 256, (xs // 256 + ys // 256 * 8) % 256], axis=-1).astype(np.uint8)
    return Image.fromarray(arr).convert(mode)


def encode(image: Image.Image, fmt: str = "PNG") -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def decode(data: bytes) -> Image.Image:
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


def make_asset(image: Image.Image, fmt: str = "PNG", mime_type: str = "image/png", name: str = "swatch.png") -> ImageAsset:
    return ImageAsset(data=encode(image, fmt), mime_type=mime_type, name=name, dimensions=image.size)


@pytest.fixture
def pattern_asset() -> ImageAsset:
    return make_asset(gradient_image((1200, 1600)))


@pytest.fixture
def result_asset() -> ImageAsset:
    return make_asset(Image.new("RGB", (1000, 800), (20, 40, 200)), name="result.png")


@pytest.fixture
def swatch_asset() -> ImageAsset:
    return make_asset(Image.new("RGB", (64, 64), (255, 0, 0)), name="swatch.png")
