"""Модели данных для изображений и геометрии отображения.

Принципы:
- SRP: только структура данных и элементарная арифметика, без логики обработки.
- Чистый код: неизменяемость (`frozen=True`) для предсказуемости.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional, Tuple


DEFAULT_MIME_TYPE = "image/png"


@dataclass(frozen=True)
class ImageAsset:
    """Неизменяемый бинарный образ изображения.

    Fields:
        data: Закодированные байты файла.
        mime_type: MIME-тип, например "image/jpeg". Может быть пустым.
        name: Отображаемое имя файла.
        dimensions: Размер (ширина, высота) в пикселях, если уже известен.
    """
    data: bytes
    mime_type: str
    name: str
    dimensions: Optional[Tuple[int, int]] = None

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    @property
    def effective_mime_type(self) -> str:
        """MIME-тип с подстановкой значения по умолчанию."""
        return self.mime_type or DEFAULT_MIME_TYPE

    def with_dimensions(self, width: int, height: int) -> "ImageAsset":
        return replace(self, dimensions=(width, height))


@dataclass(frozen=True)
class DisplayGeometry:
    """Связь между отрисованным изображением и его исходной сеткой пикселей.

    Fields:
        native_width, native_height: Размер декодированного изображения, px.
        display_width, display_height: Размер на экране, px.
    """
    native_width: int
    native_height: int
    display_width: float
    display_height: float

    @property
    def is_degenerate(self) -> bool:
        return self.display_width <= 0 or self.display_height <= 0

    @property
    def scale_x(self) -> float:
        if self.is_degenerate:
            return 1.0
        return self.native_width / self.display_width

    @property
    def scale_y(self) -> float:
        if self.is_degenerate:
            return 1.0
        return self.native_height / self.display_height


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class SelectionRect:
    """Прямоугольник выделения в координатах отображения."""
    x: float
    y: float
    w: float
    h: float

    @classmethod
    def from_corners(cls, a: Point, b: Point) -> "SelectionRect":
        """Ограничивающий прямоугольник двух точек."""
        left = min(a.x, b.x)
        top = min(a.y, b.y)
        return cls(x=left, y=top, w=abs(b.x - a.x), h=abs(b.y - a.y))

    @property
    def is_empty(self) -> bool:
        return self.w <= 0 or self.h <= 0


@dataclass(frozen=True)
class PixelRect:
    """Прямоугольник в исходных (нативных) пикселях, целочисленный."""
    left: int
    top: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.left + self.width

    @property
    def bottom(self) -> int:
        return self.top + self.height

    def as_box(self) -> Tuple[int, int, int, int]:
        """Кортеж (left, top, right, bottom) в формате PIL."""
        return self.left, self.top, self.right, self.bottom
