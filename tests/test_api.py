import os

import pytest
from fastapi.testclient import TestClient
from PIL import Image

import imgcompress.api
from imgcompress import app
from imgcompress.utils.file_handling import MAX_UPLOAD_SIZE


def post_image(client, data, filename="photo.png", content_type="image/png", **form):
    return client.post(
        "/api/compress",
        files={"image": (filename, data, content_type)},
        data=form
    )


def test_compress_png_auto(client, upload_dir, png_bytes):
    response = post_image(client, png_bytes)

    assert response.status_code == 200
    body = response.json()
    assert body["original"]["name"] == "photo.png"
    assert body["original"]["size"] == len(png_bytes)
    assert body["compressed"]["format"] == "png"
    assert body["compressed"]["name"] == "compressed-" + body["original"]["path"].rsplit("/", 1)[-1]
    assert body["compressed"]["dimensions"] == {"width": 64, "height": 48}
    assert body["quality"]["requested"] == 80

    compressed = upload_dir / body["compressed"]["name"]
    assert compressed.is_file()
    assert compressed.stat().st_size == body["compressed"]["size"]


def test_compress_jpeg_with_quality(client, upload_dir, jpeg_bytes):
    response = post_image(client, jpeg_bytes, "photo.jpg", "image/jpeg", quality="50")

    assert response.status_code == 200
    body = response.json()
    assert body["compressed"]["format"] == "jpeg"
    assert body["quality"]["requested"] == 50
    original, compressed = body["original"]["size"], body["compressed"]["size"]
    assert body["savings"]["bytes"] == original - compressed
    with Image.open(upload_dir / body["compressed"]["name"]) as img:
        assert img.format == "JPEG"


def test_non_numeric_quality_defaults_to_80(client, jpeg_bytes):
    response = post_image(client, jpeg_bytes, "photo.jpg", "image/jpeg", quality="high")

    assert response.status_code == 200
    assert response.json()["quality"]["requested"] == 80


def test_explicit_format_conversion(client, png_bytes):
    response = post_image(client, png_bytes, format="webp", quality="60")

    assert response.status_code == 200
    assert response.json()["compressed"]["format"] == "webp"


def test_missing_file_is_rejected(client, upload_dir):
    response = client.post("/api/compress", data={"quality": "50"})

    assert response.status_code == 400
    assert response.json()["error"] == "No image file provided"
    assert not upload_dir.exists() or not os.listdir(upload_dir)


def test_non_image_upload_is_rejected(client, upload_dir):
    response = post_image(client, b"just some text", "notes.txt", "text/plain")

    assert response.status_code == 400
    assert "error" in response.json()
    assert not upload_dir.exists() or not os.listdir(upload_dir)


def test_unknown_format_is_rejected(client, upload_dir, png_bytes):
    response = post_image(client, png_bytes, format="bmp")

    assert response.status_code == 400
    assert not upload_dir.exists() or not os.listdir(upload_dir)


def test_corrupt_image_reports_processing_failure(client, upload_dir):
    response = post_image(client, b"not really a png", "broken.png", "image/png")

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Image processing failed"
    assert body["details"]
    # Staged original stays for the sweeper; no output is written
    names = os.listdir(upload_dir)
    assert len(names) == 1
    assert not names[0].startswith("compressed-")


def test_out_of_range_quality_reports_processing_failure(client, upload_dir, jpeg_bytes):
    response = post_image(client, jpeg_bytes, "photo.jpg", "image/jpeg", quality="150")

    assert response.status_code == 500
    assert not any(name.startswith("compressed-") for name in os.listdir(upload_dir))


def test_download_roundtrip(client, png_bytes):
    body = post_image(client, png_bytes).json()

    response = client.get(body["compressed"]["path"])

    assert response.status_code == 200
    assert "attachment" in response.headers["content-disposition"]
    assert response.content[:8] == b"\x89PNG\r\n\x1a\n"


def test_download_missing_file(client, upload_dir):
    response = client.get("/uploads/nothing-here.jpg")

    assert response.status_code == 404
    assert response.text == "File not found"


def test_download_name_with_inner_dots(client, png_bytes):
    body = post_image(client, png_bytes, "holiday..final.png").json()

    assert client.get(body["original"]["path"]).status_code == 200
    assert client.get(body["compressed"]["path"]).status_code == 200


@pytest.mark.parametrize("path", [
    "/uploads/..%2fsecret.txt",
    "/uploads/%2e%2e%2fsecret.txt",
    "/uploads/..%5csecret.txt",
    "/uploads/%2e%2e",
])
def test_download_rejects_traversal(client, upload_dir, tmp_path, path):
    upload_dir.mkdir()
    (tmp_path / "secret.txt").write_text("secret")

    response = client.get(path)

    assert response.status_code == 404
    assert "secret" not in response.text


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_detailed_health(client, upload_dir):
    upload_dir.mkdir()

    body = client.get("/health/detailed").json()

    assert body["storage"]["exists"] is True
    assert body["storage"]["writable"] is True
    assert "jpeg" in body["codecs"]
    assert body["sweeper_running"] is False


def test_oversized_upload_is_rejected(client, upload_dir):
    payload = b"\xff\xd8\xff" + b"\x00" * (MAX_UPLOAD_SIZE - 2)

    response = post_image(client, payload, "huge.jpg", "image/jpeg")

    assert response.status_code == 413
    assert "error" in response.json()
    assert not upload_dir.exists() or not os.listdir(upload_dir)


def test_sweeper_follows_app_lifecycle(upload_dir):
    with TestClient(app) as client:
        assert client.get("/health/detailed").json()["sweeper_running"] is True
        assert upload_dir.is_dir()

    assert imgcompress.api.sweeper.running is False
