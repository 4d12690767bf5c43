"""Сборка итогового изображения с карточкой «FABRIC USED» и экспорт в PNG.

Принципы:
- SRP: модуль только рисует и кодирует; выбор пути сохранения делает контроллер.
- Геометрия карточки вычисляется чистой функцией `compute_overlay_geometry`.
- Деградация вместо ошибок: сбой при отрисовке образца даёт изображение без
  карточки, сбой декодирования результата даёт исходные байты результата.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image, ImageDraw, ImageFilter, ImageFont

from fabric_studio.logging_config import measure
from fabric_studio.models.errors import EncodingError
from fabric_studio.models.image_model import ImageAsset
from fabric_studio.services.image_service import ImageService

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "fabric-fusion-result.png"
EXPORT_MIME_TYPE = "image/png"
CAPTION_TEXT = "FABRIC USED"

# cosmetic only
PANEL_FILL = (15, 23, 42, 230)
SHADOW_FILL = (0, 0, 0, 128)
SHADOW_BLUR = 20
CAPTION_FILL = (255, 255, 255, 204)
BORDER_FILL = (255, 255, 255, 51)
BORDER_WIDTH = 2
PANEL_RADIUS = 6
_FONT_CANDIDATES = ("DejaVuSans-Bold.ttf", "Arial Bold.ttf", "arialbd.ttf")


@dataclass(frozen=True)
class OverlayGeometry:
    """Положение и размеры карточки образца на итоговом изображении, px.

    Fields:
        side: Сторона квадрата с образцом.
        padding: Отступ квадрата от правого и нижнего краёв.
        x, y: Левый верхний угол квадрата.
        card_padding: Внутренний отступ панели вокруг квадрата.
        caption_height: Дополнительная высота панели над квадратом под подпись.
        font_size: Размер шрифта подписи.
        caption_center: Центр подписи.
    """
    side: float
    padding: float
    x: float
    y: float
    card_padding: float
    caption_height: float
    font_size: float
    caption_center: Tuple[float, float]

    @property
    def square_box(self) -> Tuple[int, int, int, int]:
        x0, y0 = round(self.x), round(self.y)
        return x0, y0, x0 + round(self.side), y0 + round(self.side)

    @property
    def panel_box(self) -> Tuple[int, int, int, int]:
        return (
            round(self.x - self.card_padding),
            round(self.y - self.card_padding - self.caption_height),
            round(self.x + self.side + self.card_padding),
            round(self.y + self.side + self.card_padding),
        )


@dataclass(frozen=True)
class ExportArtifact:
    """Готовый к сохранению файл."""
    data: bytes
    filename: str
    mime_type: str
    size: Optional[Tuple[int, int]] = None
    has_overlay: bool = False

    def save(self, directory_or_path: str | Path) -> Path:
        """Записывает файл; если передан каталог, используется `filename`."""
        target = Path(directory_or_path)
        if target.is_dir():
            target = target / self.filename
        target.write_bytes(self.data)
        return target


def compute_overlay_geometry(width: int, height: int) -> OverlayGeometry:
    """Геометрия карточки для изображения `width` x `height`, в правом нижнем углу."""
    side = max(80, width * 0.18)
    padding = max(20, width * 0.04)
    x = width - side - padding
    y = height - side - padding
    return OverlayGeometry(
        side=side,
        padding=padding,
        x=x,
        y=y,
        card_padding=side * 0.1,
        caption_height=side * 0.25,
        font_size=max(10, side * 0.15),
        caption_center=(x + side / 2, y - side * 0.12),
    )


def _load_caption_font(size: float) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    for name in _FONT_CANDIDATES:
        try:
            return ImageFont.truetype(name, int(round(size)))
        except OSError:
            continue
    return ImageFont.load_default(size=int(round(size)))


def draw_overlay(base: Image.Image, swatch: Image.Image, geometry: OverlayGeometry) -> Image.Image:
    """Рисует карточку образца поверх `base` (RGBA) и возвращает новое изображение."""
    layer = Image.new("RGBA", base.size, (0, 0, 0, 0))

    # shadow is rendered on a small patch around the panel
    px0, py0, px1, py1 = geometry.panel_box
    margin = SHADOW_BLUR * 2
    shadow = Image.new("RGBA", (px1 - px0 + 2 * margin, py1 - py0 + 2 * margin), (0, 0, 0, 0))
    ImageDraw.Draw(shadow).rectangle(
        (margin, margin, margin + px1 - px0, margin + py1 - py0), fill=SHADOW_FILL
    )
    shadow = shadow.filter(ImageFilter.GaussianBlur(SHADOW_BLUR / 2))
    layer.paste(shadow, (px0 - margin, py0 - margin))

    draw = ImageDraw.Draw(layer)
    draw.rounded_rectangle(geometry.panel_box, radius=PANEL_RADIUS, fill=PANEL_FILL)

    font = _load_caption_font(geometry.font_size)
    left, top, right, bottom = draw.textbbox((0, 0), CAPTION_TEXT, font=font)
    cx, cy = geometry.caption_center
    draw.text(
        (cx - (right - left) / 2 - left, cy - (bottom - top) / 2 - top),
        CAPTION_TEXT,
        font=font,
        fill=CAPTION_FILL,
    )

    x0, y0, x1, y1 = geometry.square_box
    draw.rectangle((x0 - 1, y0 - 1, x1, y1), outline=BORDER_FILL, width=BORDER_WIDTH)
    thumb = swatch.convert("RGBA").resize((x1 - x0, y1 - y0), Image.Resampling.LANCZOS)
    layer.paste(thumb, (x0, y0))

    return Image.alpha_composite(base, layer)


class ExportService:
    def __init__(self, image_service: Optional[ImageService] = None) -> None:
        self._image_service = image_service or ImageService()

    def export_composite(self, result: ImageAsset, swatch: Optional[ImageAsset] = None) -> ExportArtifact:
        """Собирает итоговый PNG из результата генерации и (опционально) образца.

        Размер выхода всегда совпадает с размером результата. Метод не бросает
        исключений кодирования: при сбое возвращается лучший доступный вариант.
        """
        with measure("export"):
            try:
                with self._image_service.decode(result.data) as decoded:
                    base = decoded.convert("RGBA")
            except EncodingError as exc:
                logger.warning("Result decode failed, exporting raw bytes: %s", exc)
                return self._raw_artifact(result)

            composed, has_overlay = base, False
            if swatch is not None:
                composed, has_overlay = self._compose_overlay(base, swatch)

            try:
                data = self._image_service.encode(composed, EXPORT_MIME_TYPE)
            except EncodingError as exc:
                logger.warning("Composite encode failed, exporting raw bytes: %s", exc)
                return self._raw_artifact(result)

        return ExportArtifact(
            data=data,
            filename=EXPORT_FILENAME,
            mime_type=EXPORT_MIME_TYPE,
            size=composed.size,
            has_overlay=has_overlay,
        )

    def _compose_overlay(self, base: Image.Image, swatch: ImageAsset) -> Tuple[Image.Image, bool]:
        geometry = compute_overlay_geometry(*base.size)
        try:
            with self._image_service.decode(swatch.data) as swatch_image:
                return draw_overlay(base, swatch_image, geometry), True
        except (EncodingError, OSError, ValueError) as exc:
            # overlay is cosmetic; keep the base layer only
            logger.warning("Swatch overlay skipped: %s", exc)
            return base, False

    def _raw_artifact(self, result: ImageAsset) -> ExportArtifact:
        return ExportArtifact(
            data=result.data,
            filename=EXPORT_FILENAME,
            mime_type=result.effective_mime_type,
            size=result.dimensions,
        )

