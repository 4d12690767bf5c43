from __future__ import annotations

import pytest
from PIL import Image

pytest.importorskip("tkinter")
pytest.importorskip("customtkinter")
pytest.importorskip("tkinterdnd2")

from conftest import decode, gradient_image, make_asset  # noqa: E402
from fabric_studio.controllers import app_controller  # noqa: E402
from fabric_studio.controllers.app_controller import AppController  # noqa: E402
from fabric_studio.models.errors import RemoteError  # noqa: E402
from fabric_studio.models.image_model import DisplayGeometry, SelectionRect  # noqa: E402
from fabric_studio.models.settings_model import AppStatus, GenerationResult  # noqa: E402
from fabric_studio.services.task_runner import TaskRunner  # noqa: E402
from fabric_studio.ui.sidebar import MODEL_SLOT, PATTERN_SLOT  # noqa: E402


class Recorder:
    """Заглушка виджета: запоминает все вызовы методов."""
    def __init__(self):
        self.calls = []

    def __getattr__(self, name):
        if name.startswith("__"):
            raise AttributeError(name)

        def _record(*args, **kwargs):
            self.calls.append((name, args, kwargs))

        return _record

    def called(self, name):
        return [c for c in self.calls if c[0] == name]


class FakeViewer(Recorder):
    def get_zoom_percent(self):
        return 100


class FakeCropDialog:
    instances = []

    def __init__(self, master, image, on_confirm, on_cancel):
        self.image_size = image.size
        self.on_confirm = on_confirm
        self.on_cancel = on_cancel
        self.busy = []
        self.errors = []
        self.closed = False
        FakeCropDialog.instances.append(self)

    def set_busy(self, busy):
        self.busy.append(busy)

    def show_error(self, message):
        self.errors.append(message)

    def close(self):
        self.closed = True


class FakeGeneration:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error

    def generate(self, model, pattern, settings):
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def errors(monkeypatch):
    shown = []
    monkeypatch.setattr(app_controller.messagebox, "showerror", lambda title, msg, **kw: shown.append(msg))
    return shown


@pytest.fixture
def controller(errors):
    FakeCropDialog.instances.clear()
    ctl = AppController(
        viewer=FakeViewer(),
        sidebar=Recorder(),
        bottom=Recorder(),
        window=Recorder(),
        runner=TaskRunner(spawn=lambda fn: fn()),
        crop_dialog_factory=FakeCropDialog,
        generation_service=FakeGeneration(),
    )
    ctl.bind_events()
    return ctl


def _write(tmp_path, name, image):
    path = tmp_path / name
    image.save(path)
    return str(path)


def _load_both(controller, tmp_path):
    controller.load_file(MODEL_SLOT, _write(tmp_path, "model.png", Image.new("RGB", (300, 400), (90, 90, 90))))
    controller.load_file(PATTERN_SLOT, _write(tmp_path, "pattern.png", gradient_image((1200, 1600))))


def test_pattern_upload_opens_cropper(controller, tmp_path):
    controller.load_file(PATTERN_SLOT, _write(tmp_path, "pattern.png", gradient_image((1200, 1600))))
    assert len(FakeCropDialog.instances) == 1
    assert FakeCropDialog.instances[0].image_size == (1200, 1600)


def test_model_upload_does_not_open_cropper(controller, tmp_path):
    controller.load_file(MODEL_SLOT, _write(tmp_path, "model.png", Image.new("RGB", (50, 50))))
    assert FakeCropDialog.instances == []
    assert controller.session.model_slot.current is not None


def test_confirmed_crop_replaces_pattern(controller, tmp_path):
    controller.load_file(PATTERN_SLOT, _write(tmp_path, "pattern.png", gradient_image((1200, 1600))))
    dialog = FakeCropDialog.instances[0]
    original = controller.session.pattern_slot.original

    dialog.on_confirm(DisplayGeometry(1200, 1600, 300, 400), SelectionRect(50, 50, 100, 100))
    controller.runner.drain()

    current = controller.session.pattern_slot.current
    assert current.dimensions == (400, 400)
    assert decode(current.data).size == (400, 400)
    assert controller.session.pattern_slot.original is original
    assert dialog.closed
    assert dialog.busy == [True]


def test_too_small_crop_keeps_dialog_open(controller, tmp_path):
    controller.load_file(PATTERN_SLOT, _write(tmp_path, "pattern.png", gradient_image((1200, 1600))))
    dialog = FakeCropDialog.instances[0]
    before = controller.session.pattern_slot.current

    dialog.on_confirm(DisplayGeometry(1200, 1600, 1200, 1600), SelectionRect(0, 0, 30, 30))
    controller.runner.drain()

    assert dialog.errors == ["Selection too small. Please select a larger area."]
    assert not dialog.closed
    assert dialog.busy == [True, False]
    assert controller.session.pattern_slot.current is before


def test_generate_without_inputs_shows_error(controller, errors):
    controller.generate()
    assert errors == ["Model Photo is required."]
    assert controller.session.status is AppStatus.IDLE


def test_generation_success_shows_result(controller, tmp_path):
    result = make_asset(Image.new("RGB", (1000, 800), (20, 40, 200)), name="result.png")
    controller.generation_service = FakeGeneration(GenerationResult(image=result))
    _load_both(controller, tmp_path)

    controller.generate()
    controller.runner.drain()

    assert controller.session.status is AppStatus.SUCCESS
    image_calls = controller.viewer.called("set_image")
    assert image_calls[-1][1][0].size == (1000, 800)


def test_generation_failure_sets_error(controller, tmp_path):
    controller.generation_service = FakeGeneration(error=RemoteError("Generation failed: quota"))
    _load_both(controller, tmp_path)

    controller.generate()
    controller.runner.drain()

    assert controller.session.status is AppStatus.ERROR
    assert controller.session.error_message == "Generation failed: quota"


def test_download_saves_composite(controller, tmp_path, monkeypatch):
    result = make_asset(Image.new("RGB", (1000, 800), (20, 40, 200)), name="result.png")
    controller.generation_service = FakeGeneration(GenerationResult(image=result))
    _load_both(controller, tmp_path)
    controller.generate()
    controller.runner.drain()

    target = tmp_path / "out.png"
    monkeypatch.setattr(app_controller.filedialog, "asksaveasfilename", lambda **kw: str(target))
    controller.download()
    controller.runner.drain()

    saved = decode(target.read_bytes())
    assert saved.format == "PNG"
    assert saved.size == (1000, 800)


def test_download_is_not_started_twice(controller, tmp_path):
    result = make_asset(Image.new("RGB", (400, 400)), name="result.png")
    controller.generation_service = FakeGeneration(GenerationResult(image=result))
    _load_both(controller, tmp_path)
    controller.generate()
    controller.runner.drain()

    # work has finished but the completion is still queued
    controller.download()
    controller.download()
    assert controller.runner.drain() == 1


def test_crop_of_replaced_pattern_is_discarded(controller, tmp_path):
    controller.load_file(PATTERN_SLOT, _write(tmp_path, "first.png", gradient_image((1200, 1600))))
    first_dialog = FakeCropDialog.instances[0]
    first_dialog.on_confirm(DisplayGeometry(1200, 1600, 300, 400), SelectionRect(50, 50, 100, 100))

    # a new pattern arrives before the crop completion is delivered
    controller.load_file(PATTERN_SLOT, _write(tmp_path, "second.png", gradient_image((600, 600))))
    second_dialog = FakeCropDialog.instances[1]
    new_pattern = controller.session.pattern_slot.current
    controller.runner.drain()

    assert first_dialog.closed
    assert controller.session.pattern_slot.current is new_pattern
    assert not second_dialog.closed
    assert controller._crop_dialog is second_dialog


def test_confirm_while_previous_crop_finishes_is_reported(controller, tmp_path):
    controller.load_file(PATTERN_SLOT, _write(tmp_path, "first.png", gradient_image((1200, 1600))))
    FakeCropDialog.instances[0].on_confirm(DisplayGeometry(1200, 1600, 300, 400), SelectionRect(50, 50, 100, 100))
    controller.load_file(PATTERN_SLOT, _write(tmp_path, "second.png", gradient_image((600, 600))))
    second_dialog = FakeCropDialog.instances[1]

    second_dialog.on_confirm(DisplayGeometry(600, 600, 600, 600), SelectionRect(0, 0, 200, 200))
    assert second_dialog.errors == ["Previous crop is still finishing. Please confirm again."]
    assert second_dialog.busy == []

    controller.runner.drain()
    second_dialog.on_confirm(DisplayGeometry(600, 600, 600, 600), SelectionRect(0, 0, 200, 200))
    controller.runner.drain()
    assert controller.session.pattern_slot.current.dimensions == (200, 200)
    assert second_dialog.closed
