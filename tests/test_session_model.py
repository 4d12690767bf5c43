import pytest

from fabric_studio.models.errors import InputError
from fabric_studio.models.image_model import ImageAsset
from fabric_studio.models.session_model import NO_IMAGE_MESSAGE, SessionState
from fabric_studio.models.settings_model import AppStatus, GenerationResult


def asset(name: str) -> ImageAsset:
    return ImageAsset(data=name.encode(), mime_type="image/png", name=name)


def ready_session() -> SessionState:
    session = SessionState()
    session.set_model(asset("model"))
    session.set_pattern(asset("pattern"))
    return session


def test_generation_requires_both_slots():
    session = SessionState()
    session.set_model(asset("model"))
    with pytest.raises(InputError, match="Fabric Pattern"):
        session.begin_generation()
    assert session.status is AppStatus.IDLE


def test_successful_generation_flow():
    session = ready_session()
    model, pattern, settings = session.begin_generation()
    assert (model.name, pattern.name) == ("model", "pattern")
    assert session.is_generating

    session.finish_generation(GenerationResult(image=asset("result"), text="done"))
    assert session.status is AppStatus.SUCCESS
    assert session.result.name == "result"
    assert session.result_text == "done"


def test_text_only_result_is_an_error():
    session = ready_session()
    session.begin_generation()
    session.finish_generation(GenerationResult(image=None, text="sorry"))
    assert session.status is AppStatus.ERROR
    assert session.error_message == NO_IMAGE_MESSAGE
    assert session.result is None


def test_remote_failure_message_is_kept_verbatim():
    session = ready_session()
    session.begin_generation()
    session.fail_generation("Generation failed: quota exceeded")
    assert session.error_message == "Generation failed: quota exceeded"


def test_new_upload_after_success_returns_to_idle():
    session = ready_session()
    session.begin_generation()
    session.finish_generation(GenerationResult(image=asset("result")))
    session.set_model(asset("model-2"))
    assert session.status is AppStatus.IDLE
    # result stays visible until a slot is cleared
    assert session.result is not None


def test_crop_replaces_current_but_keeps_original():
    session = ready_session()
    original = session.pattern_slot.current
    first_crop = asset("crop-1")
    assert session.apply_crop(first_crop) is None
    assert session.pattern_slot.original is original
    assert session.pattern_slot.crop_source() is original

    released = session.apply_crop(asset("crop-2"))
    assert released is first_crop


def test_new_pattern_releases_crop_and_original():
    session = ready_session()
    original = session.pattern_slot.current
    crop = asset("crop")
    session.apply_crop(crop)
    released = session.set_pattern(asset("pattern-2"))
    assert crop in released and original in released
    assert len(released) == 2


def test_clear_slot_resets_result():
    session = ready_session()
    session.begin_generation()
    session.finish_generation(GenerationResult(image=asset("result")))
    released = session.clear_pattern()
    assert [a.name for a in released] == ["pattern"]
    assert session.result is None
    assert session.status is AppStatus.IDLE
    assert not session.is_ready
