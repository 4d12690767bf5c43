"""Параметры генерации и состояние результата.

Принципы:
- SRP: только перечисления и структуры данных.
- Значения перечислений совпадают с текстом, который уходит в промпт.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from fabric_studio.models.image_model import ImageAsset


class PatternScale(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    ORIGINAL = "original"


class FabricType(str, Enum):
    ORIGINAL = "original"
    COTTON = "cotton"
    SILK = "silk"
    DENIM = "denim"
    WOOL = "wool"
    LEATHER = "leather"
    LINEN = "linen"
    VELVET = "velvet"
    CHIFFON = "chiffon"


class TargetArea(str, Enum):
    WHOLE_OUTFIT = "whole outfit"
    TOP = "top"
    BOTTOM = "bottom"
    DRESS = "dress"
    OUTERWEAR = "outerwear"


# labels shown by the scale selector
PATTERN_SCALE_LABELS = {
    PatternScale.SMALL: "Small Repeat",
    PatternScale.MEDIUM: "Medium",
    PatternScale.LARGE: "Large Print",
    PatternScale.ORIGINAL: "As Is",
}


def fabric_label(fabric: FabricType) -> str:
    if fabric is FabricType.ORIGINAL:
        return "Keep Original Texture"
    return fabric.value.capitalize()


def target_label(area: TargetArea) -> str:
    return area.value.capitalize()


@dataclass(frozen=True)
class GenerationSettings:
    """Текстовые параметры генерации.

    Fields:
        scale: Масштаб раппорта.
        fabric_type: Имитируемый материал.
        target_area: Какая часть одежды меняется.
        custom_prompt: Свободные указания пользователя (может быть пустой строкой).
    """
    scale: PatternScale = PatternScale.ORIGINAL
    fabric_type: FabricType = FabricType.ORIGINAL
    target_area: TargetArea = TargetArea.WHOLE_OUTFIT
    custom_prompt: str = ""

    def updated(self, **changes) -> "GenerationSettings":
        return replace(self, **changes)


@dataclass(frozen=True)
class GenerationResult:
    """Ответ модели: изображение (или None) и диагностический текст."""
    image: Optional[ImageAsset]
    text: Optional[str] = None


class AppStatus(str, Enum):
    IDLE = "IDLE"
    GENERATING = "GENERATING"
    SUCCESS = "SUCCESS"
    ERROR = "ERROR"
