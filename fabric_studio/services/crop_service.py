"""Обрезка образца ткани: состояние жеста выделения и вырезание растра.

Принципы:
- SRP: `CropSession` хранит только состояние жеста (якорь + прямоугольник),
  `CropService` только превращает выделение в новый `ImageAsset`.
- Преобразование координат экрана в исходные пиксели вынесено в чистую функцию
  `map_selection_to_native`, не зависящую от UI.
- Любая ошибка кодирования возвращает исходное изображение: пользователь может
  повторить обрезку.
"""
from __future__ import annotations

import logging
import math
from enum import Enum
from typing import Optional, Tuple

import numpy as np
from PIL import Image

from fabric_studio.logging_config import measure
from fabric_studio.models.errors import EncodingError, SelectionError
from fabric_studio.models.image_model import DisplayGeometry, ImageAsset, PixelRect, Point, SelectionRect
from fabric_studio.services.image_service import ImageService, encoded_mime_type, mime_extension

logger = logging.getLogger(__name__)

MIN_DISPLAY_SELECTION = 10  # below this a gesture is a click, not a drag
MIN_NATIVE_SIZE = 50
CROPPED_NAME_STEM = "cropped-fabric"
SELECTION_TOO_SMALL_MESSAGE = "Selection too small. Please select a larger area."

_ARRAY_MODES = ("RGB", "RGBA", "L")


class CropState(str, Enum):
    IDLE = "idle"
    DRAGGING = "dragging"


def clamp_point(point: Point, width: float, height: float) -> Point:
    """Прижимает точку к границам отображаемого изображения."""
    return Point(
        x=max(0.0, min(float(point.x), float(width))),
        y=max(0.0, min(float(point.y), float(height))),
    )


def map_selection_to_native(
    rect: SelectionRect,
    scale_x: float,
    scale_y: float,
    native_size: Tuple[int, int],
) -> PixelRect:
    """Переводит выделение из координат экрана в исходные пиксели.

    Размеры округляются вниз, поэтому область никогда не выходит за пределы
    исходного изображения; начало сдвигается внутрь, если это необходимо.
    """
    native_w, native_h = native_size
    width = min(math.floor(rect.w * scale_x), native_w)
    height = min(math.floor(rect.h * scale_y), native_h)
    left = max(0, min(math.floor(rect.x * scale_x), native_w - width))
    top = max(0, min(math.floor(rect.y * scale_y), native_h - height))
    return PixelRect(left=left, top=top, width=max(0, width), height=max(0, height))


class CropSession:
    """Конечный автомат жеста выделения: IDLE <-> DRAGGING.

    Прямоугольник сохраняется после окончания жеста, чтобы его можно было
    подтвердить даже после ухода курсора с холста.
    """

    def __init__(self, display_width: float = 0, display_height: float = 0) -> None:
        self._display_width = float(display_width)
        self._display_height = float(display_height)
        self._state = CropState.IDLE
        self._anchor: Optional[Point] = None
        self._selection: Optional[SelectionRect] = None

    @property
    def state(self) -> CropState:
        return self._state

    @property
    def anchor(self) -> Optional[Point]:
        return self._anchor

    @property
    def selection(self) -> Optional[SelectionRect]:
        return self._selection

    @property
    def display_size(self) -> Tuple[float, float]:
        return self._display_width, self._display_height

    def set_display_size(self, width: float, height: float) -> None:
        """Обновляет размер отображения; текущее выделение масштабируется вместе с ним."""
        old_w, old_h = self._display_width, self._display_height
        self._display_width = float(width)
        self._display_height = float(height)
        if self._selection is None or old_w <= 0 or old_h <= 0:
            return
        fx = self._display_width / old_w
        fy = self._display_height / old_h
        s = self._selection
        self._selection = SelectionRect(x=s.x * fx, y=s.y * fy, w=s.w * fx, h=s.h * fy)
        if self._anchor is not None:
            self._anchor = Point(self._anchor.x * fx, self._anchor.y * fy)

    def begin_selection(self, point: Point) -> SelectionRect:
        # a second pointer-down simply restarts from the new anchor
        anchor = self._clamp(point)
        self._anchor = anchor
        self._selection = SelectionRect(x=anchor.x, y=anchor.y, w=0.0, h=0.0)
        self._state = CropState.DRAGGING
        return self._selection

    def update_selection(self, point: Point) -> Optional[SelectionRect]:
        if self._state is not CropState.DRAGGING or self._anchor is None:
            return self._selection
        self._selection = SelectionRect.from_corners(self._anchor, self._clamp(point))
        return self._selection

    def end_selection(self) -> Optional[SelectionRect]:
        self._state = CropState.IDLE
        self._anchor = None
        return self._selection

    def cancel(self) -> None:
        self.reset()

    def reset(self) -> None:
        self._state = CropState.IDLE
        self._anchor = None
        self._selection = None

    def _clamp(self, point: Point) -> Point:
        return clamp_point(point, self._display_width, self._display_height)


def copy_region(image: Image.Image, region: PixelRect) -> Image.Image:
    """Копирует прямоугольник исходных пикселей в новый буфер того же размера."""
    if image.mode not in _ARRAY_MODES:
        has_alpha = "A" in image.getbands() or "transparency" in image.info
        image = image.convert("RGBA" if has_alpha else "RGB")
    pixels = np.asarray(image)
    window = pixels[region.top:region.bottom, region.left:region.right]
    return Image.fromarray(np.ascontiguousarray(window))


class CropService:
    def __init__(self, image_service: Optional[ImageService] = None) -> None:
        self._image_service = image_service or ImageService()

    def confirm_crop(
        self,
        source: ImageAsset,
        geometry: Optional[DisplayGeometry],
        selection: Optional[SelectionRect],
    ) -> ImageAsset:
        """Вырезает выделенную область из `source`.

        Returns:
            Новый `ImageAsset` с областью в исходном разрешении, либо сам `source`,
            если выделения нет, оно меньше 10x10 точек экрана, изображение ещё не
            отрисовано или кодирование не удалось.

        Raises:
            SelectionError: если область в исходных пикселях меньше 50 по любой оси.
        """
        if selection is None:
            return source
        if selection.w < MIN_DISPLAY_SELECTION or selection.h < MIN_DISPLAY_SELECTION:
            logger.debug("Selection %.0fx%.0f treated as a click", selection.w, selection.h)
            return source
        if geometry is None or geometry.is_degenerate:
            logger.error("Displayed image dimensions are zero; keeping original")
            return source

        region = map_selection_to_native(
            selection,
            geometry.scale_x,
            geometry.scale_y,
            (geometry.native_width, geometry.native_height),
        )
        if region.width < MIN_NATIVE_SIZE or region.height < MIN_NATIVE_SIZE:
            raise SelectionError(SELECTION_TOO_SMALL_MESSAGE)

        # formats Pillow can only read are written as PNG and labelled as such
        mime_type = encoded_mime_type(source.effective_mime_type)
        try:
            with measure("crop"):
                with self._image_service.decode(source.data) as image:
                    cropped = copy_region(image, region)
                data = self._image_service.encode(cropped, mime_type)
        except EncodingError as exc:
            logger.warning("Crop encoding failed, keeping original: %s", exc)
            return source

        return ImageAsset(
            data=data,
            mime_type=mime_type,
            name=f"{CROPPED_NAME_STEM}.{mime_extension(mime_type)}",
            dimensions=(region.width, region.height),
        )
