"""Контроллер приложения: оркестрация UI и сервисов.

SOLID:
- SRP: класс управляет связями между UI и сервисами (без логики обработки изображений).
- DIP: зависит от сервисов как от ролей; конкретные реализации можно подменить.
Clean Code:
- Обработчики компактны; тяжёлая логика вынесена в сервисы, долгие операции
  выполняются через `TaskRunner`, который не даёт запустить одну операцию дважды.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from tkinter import TclError, filedialog, messagebox
from typing import Any, Callable, Iterable, Optional

import customtkinter as ctk

from fabric_studio.config import AppConfig
from fabric_studio.models.errors import EncodingError, FabricStudioError, InputError, SelectionError
from fabric_studio.models.image_model import DisplayGeometry, ImageAsset, SelectionRect
from fabric_studio.models.session_model import SessionState
from fabric_studio.models.settings_model import AppStatus, GenerationResult, GenerationSettings
from fabric_studio.services.crop_service import CropService
from fabric_studio.services.export_service import ExportArtifact, ExportService
from fabric_studio.services.generation_service import GenerationService
from fabric_studio.services.image_service import ImageService
from fabric_studio.services.task_runner import TaskRunner
from fabric_studio.ui.bottom_bar import BottomBar
from fabric_studio.ui.crop_dialog import CropDialog
from fabric_studio.ui.image_viewer import ImageViewer
from fabric_studio.ui.sidebar import MODEL_SLOT, PATTERN_SLOT, Sidebar

logger = logging.getLogger(__name__)

CROP_TASK = "crop"
EXPORT_TASK = "export"
GENERATE_TASK = "generate"

IMAGE_FILETYPES = (
    ("Images", "*.png *.jpg *.jpeg *.webp *.bmp *.gif *.tiff"),
    ("All files", "*.*"),
)

_STATUS_TEXT = {
    AppStatus.IDLE: "Ready",
    AppStatus.GENERATING: "Generating preview…",
    AppStatus.SUCCESS: "Render complete",
    AppStatus.ERROR: "Generation failed",
}


@dataclass
class AppController:
    """Связывает элементы UI с прикладной логикой.

    Ответственности:
    - Инициализация и бинд событий (UI -> контроллер).
    - Загрузка изображений в слоты через `ImageService`.
    - Открытие окна обрезки и применение результата `CropService`.
    - Запуск генерации и экспорт итогового изображения.
    """
    viewer: ImageViewer
    sidebar: Sidebar
    bottom: BottomBar
    window: ctk.CTk
    config: AppConfig = field(default_factory=AppConfig)

    session: SessionState = field(default_factory=SessionState)
    runner: TaskRunner = field(default_factory=TaskRunner)
    crop_dialog_factory: Callable[..., Any] = CropDialog
    image_service: ImageService = field(default_factory=ImageService)
    crop_service: CropService = field(default_factory=CropService)
    export_service: ExportService = field(default_factory=ExportService)
    generation_service: Optional[GenerationService] = None

    _crop_dialog: Optional[Any] = None

    def __post_init__(self) -> None:
        if self.generation_service is None:
            self.generation_service = GenerationService(self.config.api_key, self.config.model_name)

    def bind_events(self) -> None:
        """Регистрирует обработчики событий между UI-компонентами.

        Компоненты UI ничего не знают друг о друге, общаются через контроллер.
        """
        self.sidebar.on_open_file = self._handle_open_file
        self.sidebar.on_file_dropped = self.load_file
        self.sidebar.on_clear_slot = self._handle_clear_slot
        self.sidebar.on_crop = self.open_cropper
        self.sidebar.on_settings_change = self._handle_settings_change
        self.sidebar.on_generate = self.generate

        self.viewer.on_zoom_change = self._handle_viewer_zoom_changed

        self.bottom.on_zoom_change = self._handle_zoom_change
        self.bottom.on_zoom_preset = self._handle_zoom_change
        self.bottom.on_zoom_fit = self._handle_zoom_fit
        self.bottom.on_download = self.download

        self.runner.attach(self.window)
        self._refresh()

    # ---- Slots ----
    def load_file(self, key: str, file_path: str) -> None:
        """Загружает файл в слот; выбор образца сразу открывает окно обрезки."""
        try:
            asset = self.image_service.load_asset(file_path)
        except InputError as exc:
            self._show_error(str(exc))
            return

        logger.info("Loaded %s into %s slot (%s, %d bytes)", asset.name, key, asset.mime_type, asset.size_bytes)
        if key == MODEL_SLOT:
            self._release(self.session.set_model(asset))
        else:
            self._close_cropper()
            self._release(self.session.set_pattern(asset))
        self._update_slot_preview(key, asset)
        self._refresh()

        if key == PATTERN_SLOT:
            self.open_cropper()

    def _handle_open_file(self, key: str) -> None:
        try:
            file_path = filedialog.askopenfilename(title="Select an image", filetypes=IMAGE_FILETYPES)
        except TclError:
            # Silent fail if dialog cannot open
            return
        if file_path:
            self.load_file(key, file_path)

    def _handle_clear_slot(self, key: str) -> None:
        if key == MODEL_SLOT:
            released = self.session.clear_model()
        else:
            self._close_cropper()
            released = self.session.clear_pattern()
        self._release(released)
        self.sidebar.set_slot_preview(key, None)
        self.viewer.set_image(None)
        self.viewer.set_swatch(None)
        self._refresh()

    def _handle_settings_change(self, settings: GenerationSettings) -> None:
        self.session.settings = settings

    # ---- Crop ----
    def open_cropper(self) -> None:
        source = self.session.pattern_slot.crop_source()
        if source is None or self._crop_dialog is not None:
            return
        try:
            image = self.image_service.decode(source.data)
        except EncodingError as exc:
            self._show_error(str(exc))
            return
        self._crop_dialog = self.crop_dialog_factory(
            self.window,
            image,
            on_confirm=lambda geometry, selection: self.confirm_crop(source, geometry, selection),
            on_cancel=self._handle_crop_cancel,
        )

    def confirm_crop(
        self,
        source: ImageAsset,
        geometry: Optional[DisplayGeometry],
        selection: Optional[SelectionRect],
    ) -> None:
        submitted = self.runner.submit(
            CROP_TASK,
            lambda: self.crop_service.confirm_crop(source, geometry, selection),
            on_success=lambda asset: self._on_crop_done(source, asset),
            on_error=lambda exc: self._on_crop_failed(source, exc),
        )
        if self._crop_dialog is None:
            return
        if submitted:
            self._crop_dialog.set_busy(True)
        else:
            self._crop_dialog.show_error("Previous crop is still finishing. Please confirm again.")

    def _on_crop_done(self, source: ImageAsset, asset: ImageAsset) -> None:
        if self.session.pattern_slot.crop_source() is not source:
            logger.info("Discarding crop of a pattern that was replaced meanwhile")
            return
        released = self.session.apply_crop(asset)
        if released is not None:
            self._release([released])
        self._update_slot_preview(PATTERN_SLOT, asset)
        self._close_cropper()
        self._refresh()

    def _on_crop_failed(self, source: ImageAsset, exc: Exception) -> None:
        dialog = self._crop_dialog
        if dialog is None or self.session.pattern_slot.crop_source() is not source:
            return
        dialog.set_busy(False)
        if isinstance(exc, SelectionError):
            dialog.show_error(str(exc))
        else:
            logger.error("Crop failed: %s", exc)
            dialog.show_error(f"Crop failed: {exc}")

    def _handle_crop_cancel(self) -> None:
        # the dialog closes itself; the current pattern stays as it was
        self._crop_dialog = None

    def _close_cropper(self) -> None:
        dialog, self._crop_dialog = self._crop_dialog, None
        if dialog is not None:
            dialog.close()

    # ---- Generation ----
    def generate(self) -> None:
        if self.runner.is_busy(GENERATE_TASK):
            return
        try:
            model_image, pattern_image, settings = self.session.begin_generation()
        except InputError as exc:
            self._show_error(str(exc))
            return

        self.viewer.set_image(None)
        self.viewer.set_swatch(None)
        self.runner.submit(
            GENERATE_TASK,
            lambda: self.generation_service.generate(model_image, pattern_image, settings),
            on_success=self._on_generation_done,
            on_error=self._on_generation_failed,
        )
        self._refresh()

    def _on_generation_done(self, result: GenerationResult) -> None:
        self.session.finish_generation(result)
        if self.session.result is not None:
            self._show_result()
        self._refresh()

    def _on_generation_failed(self, exc: Exception) -> None:
        if isinstance(exc, FabricStudioError):
            message = str(exc)
        else:
            logger.exception("Unexpected generation failure", exc_info=exc)
            message = f"Generation failed: {exc}"
        self.session.fail_generation(message)
        self._refresh()

    def _show_result(self) -> None:
        try:
            result_image = self.image_service.decode(self.session.result.data)
        except EncodingError as exc:
            logger.warning("Result preview unavailable: %s", exc)
            return
        self.viewer.set_image(result_image)
        pattern = self.session.pattern_slot.current
        if pattern is not None:
            try:
                with self.image_service.decode(pattern.data) as swatch:
                    self.viewer.set_swatch(swatch)
            except EncodingError:
                self.viewer.set_swatch(None)
        current_zoom = self.viewer.get_zoom_percent()
        self.bottom.set_zoom_percent(current_zoom)

    # ---- Export ----
    def download(self) -> None:
        result = self.session.result
        if result is None:
            return
        swatch = self.session.pattern_slot.current
        submitted = self.runner.submit(
            EXPORT_TASK,
            lambda: self.export_service.export_composite(result, swatch),
            on_success=self._on_export_done,
            on_error=self._on_export_failed,
        )
        if submitted:
            self.bottom.set_download_state(available=True, busy=True)

    def _on_export_done(self, artifact: ExportArtifact) -> None:
        self._refresh()
        try:
            target = filedialog.asksaveasfilename(
                title="Save composite",
                initialfile=artifact.filename,
                defaultextension=".png",
                filetypes=(("PNG", "*.png"), ("All files", "*.*")),
            )
        except TclError:
            return
        if not target:
            return
        try:
            saved = artifact.save(target)
        except OSError as exc:
            self._show_error(f"Could not save image: {exc}")
            return
        logger.info("Exported %s (%d bytes, overlay=%s)", saved, len(artifact.data), artifact.has_overlay)
        self.bottom.set_status(self.session.status.value, f"Saved {saved.name}")

    def _on_export_failed(self, exc: Exception) -> None:
        logger.error("Export failed: %s", exc)
        self._refresh()
        self._show_error(f"Export failed: {exc}")

    # ---- Zoom ----
    def _handle_zoom_change(self, zoom_percent: int) -> None:
        self.viewer.set_zoom_percent(zoom_percent)

    def _handle_viewer_zoom_changed(self, zoom_percent: int) -> None:
        # Sync slider/value when user zooms with mouse wheel
        self.bottom.set_zoom_percent(zoom_percent)

    def _handle_zoom_fit(self) -> None:
        self.viewer.set_zoom_to_fit()
        self.bottom.set_zoom_percent(self.viewer.get_zoom_percent())

    # ---- Helpers ----
    def _refresh(self) -> None:
        """Синхронизирует состояние кнопок, статуса и заглушки просмотра с сессией."""
        status = self.session.status
        self.sidebar.set_generate_state(ready=self.session.is_ready, generating=self.session.is_generating)
        self.bottom.set_download_state(
            available=self.session.result is not None,
            busy=self.runner.is_busy(EXPORT_TASK),
        )
        self.bottom.set_status(status.value, _STATUS_TEXT[status])

        if status is AppStatus.GENERATING:
            self.viewer.set_placeholder(
                "Weaving Magic...",
                "Analyzing garment structure and applying fabric physics. This usually takes about 10-15 seconds.",
                "busy",
            )
        elif status is AppStatus.ERROR:
            self.viewer.set_placeholder("Generation Failed", self.session.error_message or "", "error")
        else:
            self.viewer.set_placeholder(
                "Ready to Create",
                "Upload your model and pattern images, then hit generate to see the magic happen.",
            )

    def _update_slot_preview(self, key: str, asset: ImageAsset) -> None:
        try:
            with self.image_service.decode(asset.data) as preview:
                size = f"{preview.width}×{preview.height}"
                self.sidebar.set_slot_preview(key, preview, f"{asset.name} · {size}")
        except EncodingError as exc:
            logger.warning("Preview unavailable for %s: %s", asset.name, exc)

    def _release(self, assets: Iterable[ImageAsset]) -> None:
        for asset in assets:
            logger.debug("Released %s (%d bytes)", asset.name, asset.size_bytes)

    def _show_error(self, message: str) -> None:
        try:
            messagebox.showerror("Fabric Studio", message, parent=self.window)
        except TclError:
            logger.error(message)
