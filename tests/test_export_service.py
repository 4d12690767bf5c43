from __future__ import annotations

import numpy as np
import pytest
from PIL import Image

from conftest import decode, gradient_image, make_asset
from fabric_studio.models.errors import EncodingError
from fabric_studio.models.image_model import ImageAsset
from fabric_studio.services.export_service import (
    EXPORT_FILENAME,
    EXPORT_MIME_TYPE,
    ExportService,
    compute_overlay_geometry,
)
from fabric_studio.services.image_service import ImageService


def test_overlay_geometry_scenario():
    geometry = compute_overlay_geometry(1000, 800)
    assert geometry.side == pytest.approx(180)
    assert geometry.padding == pytest.approx(40)
    assert geometry.x == pytest.approx(780)
    assert geometry.y == pytest.approx(580)
    assert geometry.square_box == (780, 580, 960, 760)


def test_overlay_geometry_minimums_for_small_results():
    geometry = compute_overlay_geometry(300, 300)
    assert geometry.side == 80
    assert geometry.padding == 20
    assert (geometry.x, geometry.y) == (200, 200)
    assert geometry.font_size == pytest.approx(12)


def test_overlay_panel_hosts_caption_above_square():
    geometry = compute_overlay_geometry(1000, 800)
    left, top, right, bottom = geometry.panel_box
    assert (left, right) == (762, 978)
    assert top == round(580 - 18 - 45)
    assert bottom == 778
    cx, cy = geometry.caption_center
    assert cx == pytest.approx(870)
    assert top < cy < geometry.y


def test_export_without_swatch_is_pure_reencoding():
    source = gradient_image((320, 240))
    result = make_asset(source, name="result.png")

    artifact = ExportService().export_composite(result)

    assert artifact.filename == EXPORT_FILENAME
    assert artifact.mime_type == EXPORT_MIME_TYPE
    assert artifact.has_overlay is False
    out = decode(artifact.data)
    assert out.format == "PNG"
    assert out.size == (320, 240)
    assert np.array_equal(np.asarray(out.convert("RGBA")), np.asarray(source.convert("RGBA")))


def test_export_with_swatch_draws_card(result_asset, swatch_asset):
    artifact = ExportService().export_composite(result_asset, swatch_asset)

    assert artifact.has_overlay is True
    out = decode(artifact.data).convert("RGB")
    assert out.size == (1000, 800)
    # swatch fills the square
    r, g, b = out.getpixel((870, 670))
    assert r > 250 and g < 5 and b < 5
    # the top-left corner is untouched base layer
    assert out.getpixel((10, 10)) == (20, 40, 200)
    # panel darkens the base just outside the square
    r, g, b = out.getpixel((770, 670))
    assert b < 200


@pytest.mark.parametrize("swatch_size", [(10, 500), (2000, 30), (1, 1)])
def test_export_size_ignores_swatch_dimensions(result_asset, swatch_size):
    swatch = make_asset(Image.new("RGB", swatch_size, (0, 255, 0)))
    artifact = ExportService().export_composite(result_asset, swatch)
    assert decode(artifact.data).size == (1000, 800)
    assert artifact.size == (1000, 800)


def test_export_small_result_keeps_size(swatch_asset):
    result = make_asset(Image.new("RGB", (60, 40), (0, 0, 0)))
    artifact = ExportService().export_composite(result, swatch_asset)
    assert decode(artifact.data).size == (60, 40)


def test_export_is_deterministic(result_asset, swatch_asset):
    service = ExportService()
    first = service.export_composite(result_asset, swatch_asset)
    second = service.export_composite(result_asset, swatch_asset)
    assert first.data == second.data


def test_broken_swatch_degrades_to_base_only(result_asset):
    broken = ImageAsset(data=b"\x89PNG garbage", mime_type="image/png", name="swatch.png")
    artifact = ExportService().export_composite(result_asset, broken)

    assert artifact.has_overlay is False
    out = decode(artifact.data)
    assert out.size == (1000, 800)
    base = decode(result_asset.data).convert("RGBA")
    assert np.array_equal(np.asarray(out.convert("RGBA")), np.asarray(base))


def test_broken_result_exports_raw_bytes(swatch_asset):
    raw = b"definitely not pixels"
    result = ImageAsset(data=raw, mime_type="image/webp", name="result.webp")
    artifact = ExportService().export_composite(result, swatch_asset)

    assert artifact.data == raw
    assert artifact.filename == EXPORT_FILENAME
    assert artifact.mime_type == "image/webp"
    assert artifact.has_overlay is False


class _FailingEncoder(ImageService):
    def encode(self, image, mime_type):
        raise EncodingError("no encoder")


def test_encode_failure_exports_raw_bytes(result_asset, swatch_asset):
    artifact = ExportService(image_service=_FailingEncoder()).export_composite(result_asset, swatch_asset)
    assert artifact.data == result_asset.data


def test_artifact_save_into_directory(tmp_path, result_asset):
    artifact = ExportService().export_composite(result_asset)
    saved = artifact.save(tmp_path)
    assert saved == tmp_path / EXPORT_FILENAME
    assert saved.read_bytes() == artifact.data


def test_artifact_save_to_explicit_path(tmp_path, result_asset):
    artifact = ExportService().export_composite(result_asset)
    saved = artifact.save(tmp_path / "mine.png")
    assert saved.name == "mine.png"


def test_oversized_result_exports_raw_bytes(monkeypatch, result_asset, swatch_asset):
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
    artifact = ExportService().export_composite(result_asset, swatch_asset)
    assert artifact.data == result_asset.data
    assert artifact.filename == EXPORT_FILENAME
    assert artifact.has_overlay is False
