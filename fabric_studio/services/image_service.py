"""Загрузка изображений, определение формата и кодирование растров.

Принципы:
- SRP: класс отвечает только за преобразование байты <-> PIL.Image и метаданные.
- OCP: новые источники (буфер обмена, URL) можно добавить отдельными методами.
"""
from __future__ import annotations

import io
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

from fabric_studio.models.errors import EncodingError, InputError
from fabric_studio.models.image_model import DEFAULT_MIME_TYPE, ImageAsset

# formats that cannot store an alpha channel
_NO_ALPHA_FORMATS = {"JPEG", "BMP"}
_LOSSY_QUALITY = 95


def mime_to_format(mime_type: Optional[str]) -> str:
    """Возвращает имя формата PIL для MIME-типа; неизвестный тип -> PNG."""
    if mime_type:
        Image.init()
        for fmt, mime in Image.MIME.items():
            if mime == mime_type and fmt in Image.SAVE:
                return fmt
    return "PNG"


def encoded_mime_type(mime_type: Optional[str]) -> str:
    """MIME-тип байтов, которые `ImageService.encode` реально запишет для `mime_type`."""
    Image.init()
    return Image.MIME.get(mime_to_format(mime_type), DEFAULT_MIME_TYPE)


def mime_extension(mime_type: Optional[str]) -> str:
    """Расширение файла по MIME-типу: "image/jpeg" -> "jpeg"."""
    subtype = (mime_type or DEFAULT_MIME_TYPE).split("/")[-1]
    return subtype or "png"


class ImageService:
    def load_asset(self, file_path: str | Path) -> ImageAsset:
        """Читает файл с диска и возвращает его как `ImageAsset`.

        Args:
            file_path: Путь до файла изображения.

        Returns:
            `ImageAsset` с исходными байтами, MIME-типом и размерами.

        Raises:
            InputError: если файл не существует, пуст или не распознан как изображение.
        """
        path = Path(file_path)
        if not path.exists() or not path.is_file():
            raise InputError(f"File not found: {path}")
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise InputError(f"File reading failed: {exc}") from exc
        return self.asset_from_bytes(data, name=path.name)

    def asset_from_bytes(self, data: bytes, name: str, mime_type: Optional[str] = None) -> ImageAsset:
        """Проверяет байты и упаковывает их в `ImageAsset`.

        Если `mime_type` не задан, он определяется по содержимому.
        """
        if not data:
            raise InputError("File is empty")
        try:
            with Image.open(io.BytesIO(data)) as probe:
                width, height = probe.size
                detected = Image.MIME.get(probe.format or "", "")
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as exc:
            raise InputError(f"Failed to read file data: {name}") from exc
        return ImageAsset(
            data=data,
            mime_type=mime_type or detected,
            name=name,
            dimensions=(width, height),
        )

    def decode(self, data: bytes) -> Image.Image:
        """Полностью декодирует изображение.

        Raises:
            EncodingError: если байты не являются корректным изображением.
        """
        try:
            image = Image.open(io.BytesIO(data))
            image.load()
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
            raise EncodingError(f"Image decode failed: {exc}") from exc
        return image

    def probe_dimensions(self, asset: ImageAsset) -> ImageAsset:
        """Возвращает копию ассета с заполненными размерами."""
        if asset.dimensions is not None:
            return asset
        with self.decode(asset.data) as image:
            return asset.with_dimensions(*image.size)

    def encode(self, image: Image.Image, mime_type: Optional[str]) -> bytes:
        """Кодирует растр в формат, соответствующий MIME-типу.

        Raises:
            EncodingError: если PIL не смог записать изображение.
        """
        fmt = mime_to_format(mime_type)
        params = {}
        if fmt in _NO_ALPHA_FORMATS and image.mode not in ("RGB", "L"):
            image = image.convert("RGB")
        if fmt in ("JPEG", "WEBP"):
            params["quality"] = _LOSSY_QUALITY
        buffer = io.BytesIO()
        try:
            image.save(buffer, format=fmt, **params)
        except (OSError, ValueError, KeyError) as exc:
            raise EncodingError(f"Image encode failed ({fmt}): {exc}") from exc
        return buffer.getvalue()
