from __future__ import annotations

from typing import Callable, Optional

import customtkinter as ctk

_STATUS_COLORS = {
    "IDLE": "gray60",
    "GENERATING": "#a5b4fc",
    "SUCCESS": "#4ade80",
    "ERROR": "#f87171",
}

# None means "fit to window"
ZOOM_PRESETS = {"Fit": None, "50%": 50, "100%": 100, "200%": 200}


class BottomBar(ctk.CTkFrame):
    """Строка состояния, масштаб просмотра и выгрузка результата."""
    def __init__(self, master: ctk.CTk, **kwargs) -> None:
        super().__init__(master, height=64, **kwargs)

        self.on_zoom_change: Optional[Callable[[int], None]] = None
        self.on_zoom_preset: Optional[Callable[[int], None]] = None
        self.on_zoom_fit: Optional[Callable[[], None]] = None
        self.on_download: Optional[Callable[[], None]] = None

        self.grid_rowconfigure(0, weight=1)
        self.grid_columnconfigure(2, weight=1)

        self._status_dot = ctk.CTkLabel(self, text="●", width=16, text_color=_STATUS_COLORS["IDLE"])
        self._status_dot.grid(row=0, column=0, padx=(12, 2), pady=8)
        self._status_text = ctk.CTkLabel(self, text="Ready", width=200, anchor="w")
        self._status_text.grid(row=0, column=1, padx=(2, 12), pady=8, sticky="w")

        self._slider = ctk.CTkSlider(self, from_=10, to=400, number_of_steps=390, command=self._on_slide)
        self._slider.set(100)
        self._slider.grid(row=0, column=2, padx=6, pady=8, sticky="ew")
        self._percent_label = ctk.CTkLabel(self, text="100%", width=48, anchor="e")
        self._percent_label.grid(row=0, column=3, padx=(4, 10), pady=8)

        self._presets = ctk.CTkSegmentedButton(self, values=list(ZOOM_PRESETS), command=self._on_preset)
        self._presets.set("Fit")
        self._presets.grid(row=0, column=4, padx=6, pady=8)

        self._download_btn = ctk.CTkButton(self, text="Download Image", command=lambda: self._emit(self.on_download))
        self._download_btn.grid(row=0, column=5, padx=(6, 12), pady=8, sticky="e")
        self.set_download_state(available=False, busy=False)

    def set_status(self, status: str, text: str) -> None:
        """status: IDLE | GENERATING | SUCCESS | ERROR."""
        self._status_text.configure(text=text)
        self._status_dot.configure(text_color=_STATUS_COLORS.get(status, "gray60"))

    def set_zoom_percent(self, percent: int) -> None:
        self._slider.set(percent)
        self._percent_label.configure(text=f"{percent}%")
        label = f"{percent}%"
        if label in ZOOM_PRESETS:
            self._presets.set(label)

    def set_download_state(self, available: bool, busy: bool) -> None:
        self._download_btn.configure(
            state="normal" if available and not busy else "disabled",
            text="Exporting…" if busy else "Download Image",
        )

    def _on_slide(self, value: float) -> None:
        percent = int(round(value))
        self._percent_label.configure(text=f"{percent}%")
        self._emit(self.on_zoom_change, percent)

    def _on_preset(self, label: str) -> None:
        percent = ZOOM_PRESETS.get(label)
        if percent is None:
            self._emit(self.on_zoom_fit)
        else:
            self._emit(self.on_zoom_preset, percent)

    @staticmethod
    def _emit(callback: Optional[Callable[..., None]], *args) -> None:
        if callback:
            callback(*args)
