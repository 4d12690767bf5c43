"""Боковая панель: слоты изображений, параметры генерации, запуск.

Принципы:
- SRP: управляет только UI параметров, не содержит логики обработки.
- ISP: выдаёт параметры через `get_settings`, события через `on_*`.
"""
from __future__ import annotations

from typing import Callable, Dict, Optional

import customtkinter as ctk
from PIL import Image
from tkinterdnd2 import DND_FILES

from fabric_studio.models.settings_model import (
    PATTERN_SCALE_LABELS,
    FabricType,
    GenerationSettings,
    PatternScale,
    TargetArea,
    fabric_label,
    target_label,
)

MODEL_SLOT = "model"
PATTERN_SLOT = "pattern"
THUMBNAIL_SIZE = 96


class SlotCard(ctk.CTkFrame):
    """Карточка одного слота: превью, имя файла, кнопки, приём перетаскиваемых файлов."""
    def __init__(self, master: ctk.CTkBaseClass, key: str, label: str, sub_label: str, with_crop: bool, **kwargs) -> None:
        super().__init__(master, **kwargs)
        self.key = key
        self.on_open: Optional[Callable[[str], None]] = None
        self.on_drop: Optional[Callable[[str, str], None]] = None
        self.on_clear: Optional[Callable[[str], None]] = None
        self.on_crop: Optional[Callable[[], None]] = None

        self.grid_columnconfigure(1, weight=1)
        self._thumb_image: Optional[ctk.CTkImage] = None

        self._thumb = ctk.CTkLabel(self, text="Drop\nimage", width=THUMBNAIL_SIZE, height=THUMBNAIL_SIZE, fg_color="gray20", corner_radius=8)
        self._thumb.grid(row=0, column=0, rowspan=3, padx=8, pady=8)

        self._title = ctk.CTkLabel(self, text=label, font=ctk.CTkFont(size=14, weight="bold"), anchor="w")
        self._title.grid(row=0, column=1, padx=(0, 8), pady=(8, 0), sticky="ew")
        self._caption = ctk.StringVar(value=sub_label)
        self._caption_label = ctk.CTkLabel(self, textvariable=self._caption, anchor="w", text_color="gray60", wraplength=170, justify="left")
        self._caption_label.grid(row=1, column=1, padx=(0, 8), sticky="ew")
        self._sub_label = sub_label

        buttons = ctk.CTkFrame(self, fg_color="transparent")
        buttons.grid(row=2, column=1, padx=(0, 8), pady=(4, 8), sticky="w")
        self._open_btn = ctk.CTkButton(buttons, text="Open…", width=64, command=self._emit_open)
        self._open_btn.grid(row=0, column=0, padx=(0, 4))
        self._crop_btn: Optional[ctk.CTkButton] = None
        if with_crop:
            self._crop_btn = ctk.CTkButton(buttons, text="Crop", width=56, command=self._emit_crop)
            self._crop_btn.grid(row=0, column=1, padx=4)
        self._clear_btn = ctk.CTkButton(buttons, text="Clear", width=56, fg_color="gray30", command=self._emit_clear)
        self._clear_btn.grid(row=0, column=2, padx=4)

        self._enabled = True
        self._filled = False
        self._refresh_buttons()

        self.drop_target_register(DND_FILES)
        self.dnd_bind("<<Drop>>", self._on_drop)

    def set_preview(self, image: Optional[Image.Image], caption: Optional[str] = None) -> None:
        if image is None:
            self._thumb_image = None
            self._thumb.configure(image=None, text="Drop\nimage")
            self._caption.set(self._sub_label)
            self._filled = False
            self._refresh_buttons()
            return
        thumb = image.copy()
        thumb.thumbnail((THUMBNAIL_SIZE, THUMBNAIL_SIZE), Image.Resampling.LANCZOS)
        self._thumb_image = ctk.CTkImage(light_image=thumb, dark_image=thumb, size=thumb.size)
        self._thumb.configure(image=self._thumb_image, text="")
        self._caption.set(caption or self._sub_label)
        self._filled = True
        self._refresh_buttons()

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled
        self._refresh_buttons()

    # events
    def _emit_open(self) -> None:
        if self.on_open:
            self.on_open(self.key)

    def _emit_clear(self) -> None:
        if self.on_clear:
            self.on_clear(self.key)

    def _emit_crop(self) -> None:
        if self.on_crop:
            self.on_crop()

    def _on_drop(self, event) -> str:
        paths = self.tk.splitlist(event.data)
        if paths and self.on_drop and self._enabled:
            self.on_drop(self.key, paths[0])
        return event.action

    def _refresh_buttons(self) -> None:
        self._open_btn.configure(state="normal" if self._enabled else "disabled")
        slot_state = "normal" if self._enabled and self._filled else "disabled"
        self._clear_btn.configure(state=slot_state)
        if self._crop_btn is not None:
            self._crop_btn.configure(state=slot_state)


class Sidebar(ctk.CTkFrame):
    """Панель с блоками: исходные материалы, параметры ткани, генерация."""
    def __init__(self, master: ctk.CTk, **kwargs) -> None:
        super().__init__(master, width=320, **kwargs)
        self.grid_columnconfigure(0, weight=1)

        # Callbacks
        self.on_open_file: Optional[Callable[[str], None]] = None
        self.on_file_dropped: Optional[Callable[[str, str], None]] = None
        self.on_clear_slot: Optional[Callable[[str], None]] = None
        self.on_crop: Optional[Callable[[], None]] = None
        self.on_settings_change: Optional[Callable[[GenerationSettings], None]] = None
        self.on_generate: Optional[Callable[[], None]] = None

        self._fabric_by_label: Dict[str, FabricType] = {fabric_label(f): f for f in FabricType}
        self._area_by_label: Dict[str, TargetArea] = {target_label(a): a for a in TargetArea}
        self._scale_by_label: Dict[str, PatternScale] = {v: k for k, v in PATTERN_SCALE_LABELS.items()}

        # Reference material
        self._inputs_title = ctk.CTkLabel(self, text="1  Reference Material", font=ctk.CTkFont(size=16, weight="bold"))
        self._inputs_title.grid(row=0, column=0, padx=8, pady=(8, 4), sticky="w")

        self._slots: Dict[str, SlotCard] = {
            MODEL_SLOT: SlotCard(self, MODEL_SLOT, "Model Photo", "Base Stencil", with_crop=False),
            PATTERN_SLOT: SlotCard(self, PATTERN_SLOT, "Fabric Pattern", "Material Design (Upload swatches)", with_crop=True),
        }
        for row, slot in enumerate(self._slots.values(), start=1):
            slot.grid(row=row, column=0, padx=8, pady=4, sticky="ew")
            slot.on_open = self._emit_open
            slot.on_drop = self._emit_drop
            slot.on_clear = self._emit_clear
            slot.on_crop = self._emit_crop

        # Controls
        self._controls_title = ctk.CTkLabel(self, text="2  Fabric Studio Controls", font=ctk.CTkFont(size=16, weight="bold"))
        self._controls_title.grid(row=3, column=0, padx=8, pady=(16, 4), sticky="w")

        self._fabric_label = ctk.CTkLabel(self, text="Material Simulation", anchor="w")
        self._fabric_label.grid(row=4, column=0, padx=8, pady=(0, 2), sticky="ew")
        self._fabric_menu = ctk.CTkOptionMenu(self, values=list(self._fabric_by_label), command=self._emit_settings_change)
        self._fabric_menu.grid(row=5, column=0, padx=8, pady=(0, 8), sticky="ew")

        self._area_label = ctk.CTkLabel(self, text="Target Garment", anchor="w")
        self._area_label.grid(row=6, column=0, padx=8, pady=(0, 2), sticky="ew")
        self._area_menu = ctk.CTkOptionMenu(self, values=list(self._area_by_label), command=self._emit_settings_change)
        self._area_menu.grid(row=7, column=0, padx=8, pady=(0, 8), sticky="ew")

        self._scale_label = ctk.CTkLabel(self, text="Pattern Scale", anchor="w")
        self._scale_label.grid(row=8, column=0, padx=8, pady=(0, 2), sticky="ew")
        self._scale_buttons = ctk.CTkSegmentedButton(self, values=list(self._scale_by_label), command=self._emit_settings_change)
        self._scale_buttons.grid(row=9, column=0, padx=8, pady=(0, 8), sticky="ew")

        self._notes_label = ctk.CTkLabel(self, text="Custom Manufacturing Notes", anchor="w")
        self._notes_label.grid(row=10, column=0, padx=8, pady=(0, 2), sticky="ew")
        self._notes = ctk.CTkTextbox(self, height=80, wrap="word")
        self._notes.grid(row=11, column=0, padx=8, pady=(0, 8), sticky="ew")
        self._notes.bind("<KeyRelease>", lambda _e: self._emit_settings_change())

        # filler
        self.grid_rowconfigure(99, weight=1)

        self._generate_btn = ctk.CTkButton(
            self, text="Render Fabric Simulation", height=44, font=ctk.CTkFont(size=15, weight="bold"), command=self._emit_generate
        )
        self._generate_btn.grid(row=100, column=0, padx=8, pady=(8, 8), sticky="ew")

        self.set_settings(GenerationSettings())
        self.set_generate_state(ready=False, generating=False)

    # public API (sync from controller)
    def set_slot_preview(self, key: str, image: Optional[Image.Image], caption: Optional[str] = None) -> None:
        self._slots[key].set_preview(image, caption)

    def set_settings(self, settings: GenerationSettings) -> None:
        self._fabric_menu.set(fabric_label(settings.fabric_type))
        self._area_menu.set(target_label(settings.target_area))
        self._scale_buttons.set(PATTERN_SCALE_LABELS[settings.scale])
        self._notes.delete("1.0", "end")
        if settings.custom_prompt:
            self._notes.insert("1.0", settings.custom_prompt)

    def get_settings(self) -> GenerationSettings:
        return GenerationSettings(
            scale=self._scale_by_label.get(self._scale_buttons.get(), PatternScale.ORIGINAL),
            fabric_type=self._fabric_by_label.get(self._fabric_menu.get(), FabricType.ORIGINAL),
            target_area=self._area_by_label.get(self._area_menu.get(), TargetArea.WHOLE_OUTFIT),
            custom_prompt=self._notes.get("1.0", "end-1c"),
        )

    def set_generate_state(self, ready: bool, generating: bool) -> None:
        """Кнопка активна только при заполненных слотах; во время генерации всё заблокировано."""
        self._generate_btn.configure(
            state="normal" if ready and not generating else "disabled",
            text="Generating Preview..." if generating else "Render Fabric Simulation",
        )
        state = "disabled" if generating else "normal"
        for slot in self._slots.values():
            slot.set_enabled(not generating)
        for widget in (self._fabric_menu, self._area_menu, self._scale_buttons, self._notes):
            widget.configure(state=state)

    # events
    def _emit_open(self, key: str) -> None:
        if self.on_open_file:
            self.on_open_file(key)

    def _emit_drop(self, key: str, path: str) -> None:
        if self.on_file_dropped:
            self.on_file_dropped(key, path)

    def _emit_clear(self, key: str) -> None:
        if self.on_clear_slot:
            self.on_clear_slot(key)

    def _emit_crop(self) -> None:
        if self.on_crop:
            self.on_crop()

    def _emit_settings_change(self, _value: Optional[str] = None) -> None:
        if self.on_settings_change:
            self.on_settings_change(self.get_settings())

    def _emit_generate(self) -> None:
        if self.on_generate:
            self.on_generate()
