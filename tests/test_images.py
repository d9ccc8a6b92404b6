"""Tests for images module."""

import base64
from pathlib import Path

import pytest

from cascade.images import (
    extension_for,
    detect_media_type,
    file_to_data_url,
    get_image_media_type,
    load_image_ref,
    parse_data_url,
    save_image_ref,
    to_data_url,
)

from conftest import make_png


class TestDataUrls:

    def test_to_data_url(self):
        assert to_data_url(b"abc", "image/jpeg") == "data:image/jpeg;base64,YWJj"

    def test_parse_data_url(self):
        png = make_png("red")
        media_type, data = parse_data_url(to_data_url(png))

        assert media_type == "image/png"
        assert data == png

    @pytest.mark.parametrize("ref", [
        None,
        "",
        "https://example.com/a.png",
        "data:image/png,rawdata",
        "data:image/png;base64",
        "data:image/png;base64,***",
    ])
    def test_parse_rejects_malformed(self, ref):
        with pytest.raises(ValueError):
            parse_data_url(ref)


class TestMediaTypes:

    @pytest.mark.parametrize("name,expected", [
        ("a.jpg", "image/jpeg"),
        ("a.JPEG", "image/jpeg"),
        ("a.png", "image/png"),
        ("a.gif", "image/gif"),
        ("a.webp", "image/webp"),
        ("a.tiff", "image/jpeg"),
    ])
    def test_get_image_media_type(self, name, expected):
        assert get_image_media_type(Path(name)) == expected

    def test_extension_for(self):
        assert extension_for("image/jpeg") == ".jpg"
        assert extension_for("IMAGE/PNG") == ".png"
        assert extension_for("image/unknown") == ".png"

    def test_detect_media_type(self):
        assert detect_media_type(make_png()) == "image/png"
        assert detect_media_type(b"not an image") is None


class TestLoadImageRef:

    def test_declared_image_type_kept(self):
        png = make_png()

        assert load_image_ref(png, "image/png") == to_data_url(png, "image/png")

    def test_non_image_declared_type_replaced(self):
        png = make_png()

        ref = load_image_ref(png, "application/octet-stream")

        assert ref.startswith("data:image/png;base64,")

    def test_rejects_non_image(self):
        with pytest.raises(ValueError, match="not a readable image"):
            load_image_ref(b"%PDF-1.4", "image/png")


class TestFiles:

    def test_file_round_trip(self, tmp_path):
        png = make_png("blue")
        source = tmp_path / "photo.png"
        source.write_bytes(png)

        ref = file_to_data_url(source)
        saved = save_image_ref(ref, tmp_path / "copy")

        assert saved == tmp_path / "copy.png"
        assert saved.read_bytes() == png

    def test_file_to_data_url_rejects_non_image(self, tmp_path):
        source = tmp_path / "notes.png"
        source.write_text("hello")

        with pytest.raises(ValueError, match="Not a readable image"):
            file_to_data_url(source)

    def test_save_uses_media_type_extension(self, tmp_path):
        ref = "data:image/jpeg;base64," + base64.b64encode(b"jpegbytes").decode()

        saved = save_image_ref(ref, tmp_path / "step-1")

        assert saved.name == "step-1.jpg"
