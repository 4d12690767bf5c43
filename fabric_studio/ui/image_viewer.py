"""Виджет просмотра результата: масштабирование, панорамирование, заглушки состояний.

Принципы:
- SRP: отвечает только за представление результата и интеракции с ним.
- Исходное изображение не меняется; на канве рисуется уменьшенная копия,
  пересчитываемая только при смене масштаба.
"""
from __future__ import annotations

from typing import Callable, Optional, Tuple

import customtkinter as ctk
import tkinter as tk
from PIL import Image, ImageTk

ZOOM_MIN = 0.1
ZOOM_MAX = 4.0
WHEEL_STEP = 1.1

SWATCH_PREVIEW_SIZE = 80
SWATCH_PREVIEW_MARGIN = 24

_TONE_COLORS = {
    "neutral": ("#64748b", "#94a3b8"),
    "busy": ("#6366f1", "#a5b4fc"),
    "error": ("#dc2626", "#f87171"),
}


def _clamp_zoom(scale: float) -> float:
    return max(ZOOM_MIN, min(ZOOM_MAX, scale))


def _clamp_offset(offset: Optional[int], scaled: int, available: int) -> int:
    """Позиция по одной оси: по центру, если влезает, иначе без пустых полей."""
    if scaled <= available:
        return (available - scaled) // 2
    if offset is None:
        return 0
    return max(available - scaled, min(0, offset))


class ImageViewer(ctk.CTkFrame):
    """Канва с результатом генерации и карточкой использованного образца."""
    def __init__(self, master: ctk.CTk | tk.Misc, **kwargs) -> None:
        super().__init__(master, **kwargs)
        self.grid_rowconfigure(0, weight=1)
        self.grid_columnconfigure(0, weight=1)

        bg = "#111827" if ctk.get_appearance_mode().lower() == "dark" else "#f8fafc"
        self._canvas = tk.Canvas(self, highlightthickness=0, bg=bg)
        self._canvas.grid(row=0, column=0, sticky="nsew")

        self._image: Optional[Image.Image] = None
        self._scaled: Optional[Image.Image] = None
        self._swatch: Optional[Image.Image] = None
        self._photo: Optional[ImageTk.PhotoImage] = None
        self._swatch_photo: Optional[ImageTk.PhotoImage] = None
        self._placeholder: Tuple[str, str, str] = ("Ready to Create", "", "neutral")

        self._zoom: float = 1.0
        self._offset: Optional[Tuple[int, int]] = None
        # (pointer x, pointer y, offset x, offset y) at drag start
        self._drag_anchor: Optional[Tuple[int, int, int, int]] = None

        self.on_zoom_change: Optional[Callable[[int], None]] = None

        self._canvas.bind("<Configure>", lambda _e: self._render())
        for sequence in ("<MouseWheel>", "<Button-4>", "<Button-5>"):
            self._canvas.bind(sequence, self._on_wheel)
        self._canvas.bind("<ButtonPress-1>", self._on_drag_start)
        self._canvas.bind("<B1-Motion>", self._on_drag_move)
        self._canvas.bind("<ButtonRelease-1>", self._on_drag_end)

    # ---- Public API ----
    def set_image(self, image: Optional[Image.Image]) -> None:
        """Показывает результат (None убирает его) в масштабе «по размеру окна»."""
        self._image = image
        self._scaled = None
        self._zoom = self._fit_zoom()
        self._offset = None
        self._render()

    def set_swatch(self, swatch: Optional[Image.Image]) -> None:
        """Превью образца в правом нижнем углу."""
        if swatch is None:
            self._swatch = None
        else:
            self._swatch = swatch.convert("RGBA").resize(
                (SWATCH_PREVIEW_SIZE, SWATCH_PREVIEW_SIZE), Image.Resampling.LANCZOS
            )
        self._render()

    def set_placeholder(self, title: str, message: str, tone: str = "neutral") -> None:
        self._placeholder = (title, message, tone)
        if self._image is None:
            self._render()

    def set_zoom_to_fit(self) -> None:
        self._set_zoom(self._fit_zoom())
        self._offset = None
        self._render()

    def set_zoom_percent(self, zoom_percent: int) -> None:
        """Масштаб в процентах, ограниченный диапазоном 10–400%."""
        self._set_zoom(zoom_percent / 100.0)
        self._render()

    def get_zoom_percent(self) -> int:
        return int(round(self._zoom * 100))

    # ---- Rendering ----
    def _canvas_size(self) -> Tuple[int, int]:
        return max(1, self._canvas.winfo_width()), max(1, self._canvas.winfo_height())

    def _fit_zoom(self) -> float:
        if self._image is None:
            return 1.0
        canvas_w, canvas_h = self._canvas_size()
        img_w, img_h = self._image.size
        return _clamp_zoom(min(canvas_w / img_w, canvas_h / img_h))

    def _set_zoom(self, zoom: float) -> None:
        zoom = _clamp_zoom(zoom)
        if zoom != self._zoom:
            self._zoom = zoom
            self._scaled = None

    def _render(self) -> None:
        self._canvas.delete("all")
        canvas_w, canvas_h = self._canvas_size()
        if self._image is None:
            self._render_placeholder(canvas_w, canvas_h)
            return

        if self._scaled is None:
            img_w, img_h = self._image.size
            size = (max(1, int(img_w * self._zoom)), max(1, int(img_h * self._zoom)))
            self._scaled = self._image.resize(size, Image.Resampling.LANCZOS)

        ox, oy = self._offset if self._offset is not None else (None, None)
        x = _clamp_offset(ox, self._scaled.width, canvas_w)
        y = _clamp_offset(oy, self._scaled.height, canvas_h)
        self._offset = (x, y)

        self._photo = ImageTk.PhotoImage(self._scaled)
        self._canvas.create_image(x, y, image=self._photo, anchor="nw")
        self._render_swatch(canvas_w, canvas_h)

    def _render_swatch(self, canvas_w: int, canvas_h: int) -> None:
        if self._swatch is None:
            return
        size = SWATCH_PREVIEW_SIZE
        x = canvas_w - size - SWATCH_PREVIEW_MARGIN
        y = canvas_h - size - SWATCH_PREVIEW_MARGIN
        pad = 8
        self._canvas.create_rectangle(
            x - pad, y - pad - 18, x + size + pad, y + size + pad,
            fill="#0f172a", outline="#475569",
        )
        self._canvas.create_text(
            x + size // 2, y - 10, text="FABRIC USED", fill="#cbd5e1", font=("TkDefaultFont", 8, "bold")
        )
        self._swatch_photo = ImageTk.PhotoImage(self._swatch)
        self._canvas.create_image(x, y, image=self._swatch_photo, anchor="nw")

    def _render_placeholder(self, canvas_w: int, canvas_h: int) -> None:
        title, message, tone = self._placeholder
        title_color, text_color = _TONE_COLORS.get(tone, _TONE_COLORS["neutral"])
        cx, cy = canvas_w // 2, canvas_h // 2
        self._canvas.create_text(cx, cy - 14, text=title, fill=title_color, font=("TkDefaultFont", 18, "bold"))
        self._canvas.create_text(
            cx, cy + 16, text=message, fill=text_color, width=max(200, canvas_w - 80), justify="center"
        )

    # ---- Mouse ----
    def _on_wheel(self, event: tk.Event) -> None:
        if self._image is None or self._offset is None:
            return
        # X11 reports the wheel as buttons 4/5, other platforms use delta
        num = getattr(event, "num", None)
        if num in (4, 5):
            zoom_in = num == 4
        elif event.delta:
            zoom_in = event.delta > 0
        else:
            return
        self._zoom_around(event.x, event.y, WHEEL_STEP if zoom_in else 1.0 / WHEEL_STEP)

    def _zoom_around(self, px: int, py: int, factor: float) -> None:
        old_zoom = self._zoom
        self._set_zoom(old_zoom * factor)
        if self._zoom == old_zoom:
            return
        # the image point under the pointer stays under the pointer
        ox, oy = self._offset
        ratio = self._zoom / old_zoom
        self._offset = (int(round(px - (px - ox) * ratio)), int(round(py - (py - oy) * ratio)))
        self._render()
        if self.on_zoom_change:
            self.on_zoom_change(self.get_zoom_percent())

    def _on_drag_start(self, event: tk.Event) -> None:
        if self._image is None or self._offset is None:
            return
        self._drag_anchor = (event.x, event.y, *self._offset)

    def _on_drag_move(self, event: tk.Event) -> None:
        if self._drag_anchor is None:
            return
        sx, sy, ox, oy = self._drag_anchor
        self._offset = (ox + event.x - sx, oy + event.y - sy)
        self._render()

    def _on_drag_end(self, _event: tk.Event) -> None:
        self._drag_anchor = None
