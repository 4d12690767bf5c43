"""Состояние сессии: слоты изображений, параметры, статус генерации.

Принципы:
- SRP: только переходы состояния, без UI и без сетевых вызовов.
- Каждый слот владеет ровно одним текущим `ImageAsset`; предыдущий возвращается
  вызывающему коду для освобождения связанных ресурсов.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from fabric_studio.models.errors import InputError
from fabric_studio.models.image_model import ImageAsset
from fabric_studio.models.settings_model import AppStatus, GenerationResult, GenerationSettings

NO_IMAGE_MESSAGE = "The model generated text but no image. Please try again with different inputs."


@dataclass
class AssetSlot:
    """Слот с текущим изображением и исходной загрузкой (для повторной обрезки)."""
    label: str
    current: Optional[ImageAsset] = None
    original: Optional[ImageAsset] = None

    @property
    def is_filled(self) -> bool:
        return self.current is not None

    def load(self, asset: ImageAsset) -> List[ImageAsset]:
        """Новая загрузка: заменяет и текущее, и исходное изображение."""
        released = self._collect_released(keep=asset)
        self.current = asset
        self.original = asset
        return released

    def replace_current(self, asset: ImageAsset) -> Optional[ImageAsset]:
        """Заменяет только текущее изображение (результат обрезки)."""
        previous = self.current
        self.current = asset
        if previous is None or previous is asset or previous is self.original:
            return None
        return previous

    def clear(self) -> List[ImageAsset]:
        released = self._collect_released(keep=None)
        self.current = None
        self.original = None
        return released

    def crop_source(self) -> Optional[ImageAsset]:
        # fall back to the current asset if the original upload is gone
        return self.original or self.current

    def _collect_released(self, keep: Optional[ImageAsset]) -> List[ImageAsset]:
        released: List[ImageAsset] = []
        for asset in (self.current, self.original):
            if asset is not None and asset is not keep and all(asset is not r for r in released):
                released.append(asset)
        return released


@dataclass
class SessionState:
    model_slot: AssetSlot = field(default_factory=lambda: AssetSlot("Model Photo"))
    pattern_slot: AssetSlot = field(default_factory=lambda: AssetSlot("Fabric Pattern"))
    settings: GenerationSettings = field(default_factory=GenerationSettings)
    status: AppStatus = AppStatus.IDLE
    result: Optional[ImageAsset] = None
    result_text: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def is_ready(self) -> bool:
        return self.model_slot.is_filled and self.pattern_slot.is_filled

    @property
    def is_generating(self) -> bool:
        return self.status is AppStatus.GENERATING

    def set_model(self, asset: ImageAsset) -> List[ImageAsset]:
        released = self.model_slot.load(asset)
        self._leave_success()
        return released

    def set_pattern(self, asset: ImageAsset) -> List[ImageAsset]:
        released = self.pattern_slot.load(asset)
        self._leave_success()
        return released

    def apply_crop(self, asset: ImageAsset) -> Optional[ImageAsset]:
        return self.pattern_slot.replace_current(asset)

    def clear_model(self) -> List[ImageAsset]:
        released = self.model_slot.clear()
        self._reset_result()
        return released

    def clear_pattern(self) -> List[ImageAsset]:
        released = self.pattern_slot.clear()
        self._reset_result()
        return released

    def begin_generation(self) -> Tuple[ImageAsset, ImageAsset, GenerationSettings]:
        """Переводит сессию в GENERATING и возвращает входные данные вызова.

        Raises:
            InputError: если не заполнен один из слотов.
        """
        for slot in (self.model_slot, self.pattern_slot):
            if slot.current is None:
                raise InputError(f"{slot.label} is required.")
        self.status = AppStatus.GENERATING
        self.error_message = None
        self.result = None
        self.result_text = None
        return self.model_slot.current, self.pattern_slot.current, self.settings

    def finish_generation(self, result: GenerationResult) -> None:
        self.result_text = result.text
        if result.image is None:
            self.fail_generation(NO_IMAGE_MESSAGE)
            return
        self.result = result.image
        self.status = AppStatus.SUCCESS

    def fail_generation(self, message: str) -> None:
        self.result = None
        self.error_message = message or "Something went wrong. Please check your API key and try again."
        self.status = AppStatus.ERROR

    def _leave_success(self) -> None:
        if self.status is AppStatus.SUCCESS:
            self.status = AppStatus.IDLE

    def _reset_result(self) -> None:
        self.status = AppStatus.IDLE
        self.result = None
        self.result_text = None
        self.error_message = None
