"""
Tests for the REST service.
"""

import io

import pytest
from fastapi import UploadFile
from fastapi.testclient import TestClient
from PIL import Image
from starlette.datastructures import Headers

from pngtosvg.api import UploadRejected, _read_png, create_app, parse_form_options
from pngtosvg.config import Settings
from pngtosvg.options import TurnPolicy

from conftest import to_png_bytes
from svg_utils import find_paths, local_name, parse_svg


@pytest.fixture
def client():
    return TestClient(create_app(Settings()))


def png_upload(data, name="mark.png", field="image"):
    return (field, (name, data, "image/png"))


class TestInfoEndpoints:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "OK", "message": "PNG to SVG API is running"}

    def test_presets(self, client):
        presets = client.get("/api/presets").json()
        assert set(presets) == {"logo", "photo", "drawing", "text"}
        assert presets["text"]["turnPolicy"] == "black"
        assert presets["photo"]["threshold"] == 120

    def test_upload_page(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert "PNG to SVG" in response.text
        assert 'name="image"' in response.text


class TestConvert:

    def test_png_returns_svg(self, client, mark_bytes):
        response = client.post("/api/convert", files=[png_upload(mark_bytes)])
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("image/svg+xml")
        root = parse_svg(response.text)
        assert local_name(root.tag) == "svg"
        assert len(find_paths(root)) == 1

    def test_options_from_form(self, client, mark_bytes):
        response = client.post(
            "/api/convert",
            files=[png_upload(mark_bytes)],
            data={"preset": "text", "threshold": "100", "optCurve": "true", "turnPolicy": "majority"},
        )
        assert response.status_code == 200

    def test_non_png_rejected(self, client):
        response = client.post("/api/convert", files=[("image", ("photo.jpg", b"\xff\xd8\xff", "image/jpeg"))])
        assert response.status_code == 400
        assert response.json() == {"error": "Only PNG files are allowed"}

    def test_missing_image(self, client):
        response = client.post("/api/convert", data={"preset": "logo"})
        assert response.status_code == 400
        assert response.json() == {"error": "No image file provided"}

    def test_corrupt_png_is_server_error(self, client, corrupt_bytes):
        response = client.post("/api/convert", files=[png_upload(corrupt_bytes)])
        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "Failed to convert image"
        assert body["details"]

    def test_file_too_large(self, mark_bytes):
        client = TestClient(create_app(Settings(MAX_FILE_SIZE=10)))
        response = client.post("/api/convert", files=[png_upload(mark_bytes)])
        assert response.status_code == 400
        assert response.json()["error"].startswith("File too large")

    def test_invalid_turn_policy(self, client, mark_bytes):
        response = client.post("/api/convert", files=[png_upload(mark_bytes)], data={"turnPolicy": "sideways"})
        assert response.status_code == 400


class TestPosterize:

    def test_returns_svg(self, client, mark_bytes):
        response = client.post("/api/posterize", files=[png_upload(mark_bytes)], data={"steps": "3"})
        assert response.status_code == 200
        assert local_name(parse_svg(response.text).tag) == "svg"

    def test_non_png_rejected(self, client):
        response = client.post("/api/posterize", files=[("image", ("a.gif", b"GIF89a", "image/gif"))])
        assert response.status_code == 400
        assert response.json() == {"error": "Only PNG files are allowed"}


class TestBulkConvert:

    def test_three_valid_one_corrupt(self, client, mark_bytes, corrupt_bytes):
        files = [
            png_upload(mark_bytes, "one.png", "images"),
            png_upload(mark_bytes, "two.PNG", "images"),
            png_upload(corrupt_bytes, "broken.png", "images"),
            png_upload(mark_bytes, "three.png", "images"),
        ]
        response = client.post("/api/bulk-convert", files=files, data={"preset": "logo"})
        assert response.status_code == 200
        body = response.json()

        summary = body["summary"]
        assert summary["total"] == 4
        assert summary["successful"] == 3
        assert summary["failed"] == 1
        assert summary["processing_time"]

        by_name = {result["filename"]: result for result in body["results"]}
        assert by_name["two.PNG"]["svgFilename"] == "two.svg"
        assert by_name["one.png"]["success"] is True
        assert by_name["one.png"]["size"] == len(by_name["one.png"]["svg"])
        assert by_name["broken.png"]["success"] is False
        assert by_name["broken.png"]["error"]

    def test_no_files(self, client):
        response = client.post("/api/bulk-convert", data={"preset": "logo"})
        assert response.status_code == 400
        assert response.json() == {"error": "No image files provided"}

    def test_too_many_files(self, mark_bytes):
        client = TestClient(create_app(Settings(MAX_BULK_FILES=2)))
        files = [png_upload(mark_bytes, f"{i}.png", "images") for i in range(3)]
        response = client.post("/api/bulk-convert", files=files)
        assert response.status_code == 400

    def test_one_non_png_rejects_request(self, client, mark_bytes):
        files = [
            png_upload(mark_bytes, "one.png", "images"),
            ("images", ("two.bmp", b"BM", "image/bmp")),
        ]
        response = client.post("/api/bulk-convert", files=files)
        assert response.status_code == 400
        assert response.json() == {"error": "Only PNG files are allowed"}


class TestFormOptions:

    def test_preset_then_overrides(self):
        options = parse_form_options("photo", threshold="90", opt_curve="false")
        assert options.threshold == 90
        assert options.turd_size == 4
        assert options.opt_curve is False

    def test_unknown_preset_is_empty(self):
        assert parse_form_options("poster").is_empty()

    def test_turn_policy(self):
        assert parse_form_options(turn_policy="right").turn_policy is TurnPolicy.right


class TestThresholdValidation:

    @pytest.mark.parametrize("value", ["999", "-5", "256"])
    def test_out_of_range_threshold_rejected(self, client, mark_bytes, value):
        response = client.post("/api/convert", files=[png_upload(mark_bytes)], data={"threshold": value})
        assert response.status_code == 400
        assert "threshold" in response.json()["error"]

    def test_negative_turd_size_rejected(self, client, mark_bytes):
        response = client.post("/api/convert", files=[png_upload(mark_bytes)], data={"turdSize": "-1"})
        assert response.status_code == 400

    def test_white_image_has_no_paths(self, client):
        white = to_png_bytes(Image.new("RGB", (10, 10), (255, 255, 255)))
        response = client.post("/api/convert", files=[png_upload(white)], data={"threshold": "255"})
        assert response.status_code == 200
        assert find_paths(parse_svg(response.text)) == []


class RefusesToRead(io.BytesIO):

    def read(self, *args):
        raise AssertionError("upload body should not be read")


class TestUploadSize:

    def test_declared_size_checked_before_reading(self):
        upload = UploadFile(
            file=RefusesToRead(),
            size=11 * 1024 * 1024,
            filename="big.png",
            headers=Headers({"content-type": "image/png"}),
        )
        with pytest.raises(UploadRejected, match="File too large"):
            _read_png(upload, 10 * 1024 * 1024)


class TestSettings:

    def test_defaults(self):
        settings = Settings()
        assert settings.MAX_FILE_SIZE == 10 * 1024 * 1024
        assert settings.MAX_BULK_FILES == 20
        assert "http://localhost:3000" in settings.CORS_ORIGINS

    def test_prefixed_environment(self, monkeypatch):
        monkeypatch.setenv("PNGTOSVG_MAX_BULK_FILES", "5")
        monkeypatch.setenv("PNGTOSVG_CORS_ORIGINS", '["https://example.com"]')
        settings = Settings()
        assert settings.MAX_BULK_FILES == 5
        assert settings.CORS_ORIGINS == ["https://example.com"]

    def test_plain_port_fallback(self, monkeypatch):
        monkeypatch.delenv("PNGTOSVG_PORT", raising=False)
        monkeypatch.setenv("PORT", "8080")
        assert Settings().PORT == 8080

    def test_prefixed_port_wins(self, monkeypatch):
        monkeypatch.setenv("PNGTOSVG_PORT", "9000")
        monkeypatch.setenv("PORT", "8080")
        assert Settings().PORT == 9000
