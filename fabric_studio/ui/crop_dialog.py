"""Модальное окно выбора участка образца ткани.

Принципы:
- SRP: окно только переводит события мыши в вызовы `CropSession` и рисует
  выделение; вырезание растра выполняет контроллер через `CropService`.
- Каждое открытие окна создаёт новый `CropSession` без выделения.
"""
from __future__ import annotations

from tkinter import TclError
from typing import Callable, Optional

import customtkinter as ctk
import tkinter as tk
from PIL import Image, ImageTk

from fabric_studio.models.image_model import DisplayGeometry, Point, SelectionRect
from fabric_studio.services.crop_service import CropSession

ACCENT = "#818cf8"
SHADE_STIPPLE = "gray50"
MAX_SCREEN_HEIGHT_RATIO = 0.75
MAX_SCREEN_WIDTH_RATIO = 0.9
CORNER_TICK = 8


class CropDialog(ctk.CTkToplevel):
    """Окно с холстом, на котором пользователь протягивает прямоугольник."""
    def __init__(
        self,
        master: tk.Misc,
        image: Image.Image,
        on_confirm: Callable[[Optional[DisplayGeometry], Optional[SelectionRect]], None],
        on_cancel: Callable[[], None],
        **kwargs,
    ) -> None:
        super().__init__(master, **kwargs)
        self.title("Select Fabric Swatch")
        self.resizable(False, False)

        self._on_confirm_cb = on_confirm
        self._on_cancel_cb = on_cancel
        self._native_size = image.size

        display_w, display_h = self._fit_size(*image.size)
        self._display_image = image.convert("RGBA").resize((display_w, display_h), Image.Resampling.LANCZOS)
        self._tk_image: Optional[ImageTk.PhotoImage] = None

        self._session = CropSession(display_w, display_h)

        self.grid_columnconfigure(0, weight=1)

        header = ctk.CTkFrame(self, fg_color="transparent")
        header.grid(row=0, column=0, padx=16, pady=(16, 8), sticky="ew")
        header.grid_columnconfigure(0, weight=1)

        title = ctk.CTkLabel(header, text="Select Fabric Swatch", font=ctk.CTkFont(size=18, weight="bold"))
        title.grid(row=0, column=0, sticky="w")
        hint = ctk.CTkLabel(header, text="Click and drag to choose the specific pattern area", text_color="gray60")
        hint.grid(row=1, column=0, sticky="w")

        self._cancel_btn = ctk.CTkButton(header, text="Cancel", width=90, fg_color="gray30", command=self._cancel)
        self._cancel_btn.grid(row=0, column=1, rowspan=2, padx=(8, 4))
        self._confirm_btn = ctk.CTkButton(header, text="Confirm Selection", command=self._confirm)
        self._confirm_btn.grid(row=0, column=2, rowspan=2, padx=(4, 0))

        self._message = ctk.StringVar(value="")
        self._message_label = ctk.CTkLabel(self, textvariable=self._message, text_color="#f87171")
        self._message_label.grid(row=1, column=0, padx=16, sticky="w")

        self._canvas = tk.Canvas(
            self,
            width=display_w,
            height=display_h,
            highlightthickness=0,
            bg="#0f172a",
            cursor="crosshair",
        )
        self._canvas.grid(row=2, column=0, padx=16, pady=(4, 16))
        self._render_image()

        self._canvas.bind("<ButtonPress-1>", self._on_pointer_down)
        self._canvas.bind("<B1-Motion>", self._on_pointer_move)
        self._canvas.bind("<ButtonRelease-1>", self._on_pointer_up)
        self._canvas.bind("<Leave>", self._on_pointer_up)
        self.bind("<Escape>", lambda _e: self._cancel())
        self.bind("<Return>", lambda _e: self._confirm())
        self.protocol("WM_DELETE_WINDOW", self._cancel)

        self.after(10, self._make_modal)

    # ---- Public API ----
    @property
    def session(self) -> CropSession:
        return self._session

    @property
    def geometry_info(self) -> DisplayGeometry:
        display_w, display_h = self._session.display_size
        native_w, native_h = self._native_size
        return DisplayGeometry(native_w, native_h, display_w, display_h)

    def show_error(self, message: str) -> None:
        """Показывает сообщение проверки; окно остаётся открытым."""
        self._message.set(message)

    def set_busy(self, busy: bool) -> None:
        state = "disabled" if busy else "normal"
        self._confirm_btn.configure(state=state, text="Cropping…" if busy else "Confirm Selection")
        self._cancel_btn.configure(state=state)

    def close(self) -> None:
        self._session.reset()
        try:
            self.grab_release()
        except TclError:
            pass
        self.destroy()

    # ---- Internals ----
    def _fit_size(self, img_w: int, img_h: int) -> tuple[int, int]:
        max_w = max(1, int(self.winfo_screenwidth() * MAX_SCREEN_WIDTH_RATIO))
        max_h = max(1, int(self.winfo_screenheight() * MAX_SCREEN_HEIGHT_RATIO))
        scale = min(1.0, max_w / img_w, max_h / img_h)
        return max(1, int(img_w * scale)), max(1, int(img_h * scale))

    def _make_modal(self) -> None:
        try:
            self.transient(self.master)
            self.grab_set()
            self.focus_force()
        except TclError:
            # window may already be gone
            return

    def _render_image(self) -> None:
        self._canvas.delete("all")
        self._tk_image = ImageTk.PhotoImage(self._display_image)
        self._canvas.create_image(0, 0, image=self._tk_image, anchor="nw")

    def _render_selection(self) -> None:
        self._canvas.delete("selection")
        sel = self._session.selection
        if sel is None or sel.w <= 0:
            return
        w, h = self._session.display_size
        x0, y0, x1, y1 = sel.x, sel.y, sel.x + sel.w, sel.y + sel.h

        # darken everything outside the rectangle
        for box in ((0, 0, w, y0), (0, y1, w, h), (0, y0, x0, y1), (x1, y0, w, y1)):
            if box[2] > box[0] and box[3] > box[1]:
                self._canvas.create_rectangle(
                    *box, fill="black", stipple=SHADE_STIPPLE, width=0, tags="selection"
                )
        self._canvas.create_rectangle(x0, y0, x1, y1, outline=ACCENT, width=2, tags="selection")

        t = CORNER_TICK
        for cx, cy, dx, dy in ((x0, y0, 1, 1), (x1, y0, -1, 1), (x0, y1, 1, -1), (x1, y1, -1, -1)):
            self._canvas.create_line(cx, cy, cx + dx * t, cy, fill="white", width=2, tags="selection")
            self._canvas.create_line(cx, cy, cx, cy + dy * t, fill="white", width=2, tags="selection")

    def _on_pointer_down(self, event: tk.Event) -> None:
        self._message.set("")
        self._session.begin_selection(Point(event.x, event.y))
        self._render_selection()

    def _on_pointer_move(self, event: tk.Event) -> None:
        self._session.update_selection(Point(event.x, event.y))
        self._render_selection()

    def _on_pointer_up(self, _event: tk.Event) -> None:
        self._session.end_selection()

    def _confirm(self) -> None:
        if str(self._confirm_btn.cget("state")) == "disabled":
            return
        self._on_confirm_cb(self.geometry_info, self._session.selection)

    def _cancel(self) -> None:
        if str(self._cancel_btn.cget("state")) == "disabled":
            return
        self._session.cancel()
        self._on_cancel_cb()
        self.close()
