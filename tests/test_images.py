"""Tests for epub_audit.images."""

from __future__ import annotations

import io

import pytest
from PIL import Image

from epub_audit.errors import ImageProbeError
from epub_audit.images import image_dimensions
from tests.conftest import png_bytes


@pytest.mark.parametrize("fmt", ["PNG", "JPEG", "GIF"])
def test_dimensions_of_supported_formats(fmt: str) -> None:
    buf = io.BytesIO()
    Image.new("RGB", (30, 20)).save(buf, format=fmt)
    assert image_dimensions(buf.getvalue()) == (30, 20)


def test_large_image_header_is_read() -> None:
    assert image_dimensions(png_bytes(3000, 2000)) == (3000, 2000)


@pytest.mark.parametrize("data", [b"", b"not an image", png_bytes()[:20]])
def test_corrupt_data_raises_probe_error(data: bytes) -> None:
    with pytest.raises(ImageProbeError):
        image_dimensions(data)


def test_pixel_limit_left_untouched_by_import() -> None:
    assert Image.MAX_IMAGE_PIXELS is not None


def test_images_past_pillow_limit_are_measured(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 100)
    assert image_dimensions(png_bytes(100, 100)) == (100, 100)
    assert Image.MAX_IMAGE_PIXELS == 100
