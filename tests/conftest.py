import pytest
from fastapi.testclient import TestClient

import imgcompress
from imgcompress import app
from tests.helpers import make_image_bytes


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    directory = tmp_path / "uploads"
    monkeypatch.setattr(imgcompress, "UPLOAD_DIR", str(directory))
    return directory


@pytest.fixture
def client(upload_dir):
    return TestClient(app)


@pytest.fixture
def png_bytes():
    return make_image_bytes("PNG")


@pytest.fixture
def jpeg_bytes():
    return make_image_bytes("JPEG", quality=95)


@pytest.fixture
def webp_bytes():
    return make_image_bytes("WEBP", quality=90)
