import os

import pytest
from PIL import Image

from imgcompress.core import codec
from tests.helpers import write_image


def test_inspect_reports_format_and_dimensions(tmp_path):
    path = write_image(tmp_path / "photo.jpg", "JPEG", size=(40, 30))

    info = codec.inspect(path)

    assert info == codec.ImageInfo(format="jpeg", width=40, height=30)


def test_inspect_rejects_non_images(tmp_path):
    path = tmp_path / "notes.png"
    path.write_bytes(b"definitely not an image")

    with pytest.raises(codec.CodecError):
        codec.inspect(str(path))


def test_passthrough_keeps_png(tmp_path):
    source = write_image(tmp_path / "in.png", "PNG")
    output = str(tmp_path / "out.png")

    result = codec.encode(source, output, None, quality=10)

    assert result.format == "png"
    with Image.open(output) as img:
        assert img.format == "PNG"
        assert img.size == (64, 48)


def test_lower_quality_gives_smaller_jpeg(tmp_path):
    source = write_image(tmp_path / "in.png", "PNG", size=(128, 96))
    low = codec.encode(source, str(tmp_path / "low.jpg"), "jpeg", quality=10)
    high = codec.encode(source, str(tmp_path / "high.jpg"), "jpeg", quality=95)

    assert os.path.getsize(low.path) < os.path.getsize(high.path)


def test_jpeg_output_flattens_alpha(tmp_path):
    source = write_image(tmp_path / "in.png", "PNG", mode="RGBA")

    result = codec.encode(source, str(tmp_path / "out.jpg"), "jpg", quality=80)

    assert result.format == "jpeg"
    with Image.open(result.path) as img:
        assert img.format == "JPEG"
        assert img.mode == "RGB"


def test_webp_output(tmp_path):
    source = write_image(tmp_path / "in.jpg", "JPEG")

    result = codec.encode(source, str(tmp_path / "out.webp"), "webp", quality=60)

    with Image.open(result.path) as img:
        assert img.format == "WEBP"
    assert (result.width, result.height) == (64, 48)


@pytest.mark.parametrize("quality", [-1, 101, 250])
def test_out_of_range_quality_is_rejected_without_output(tmp_path, quality):
    source = write_image(tmp_path / "in.jpg", "JPEG")
    output = tmp_path / "out.jpg"

    with pytest.raises(codec.CodecError, match="quality"):
        codec.encode(source, str(output), "jpeg", quality=quality)

    assert not output.exists()


def test_unsupported_target_format(tmp_path):
    source = write_image(tmp_path / "in.jpg", "JPEG")

    with pytest.raises(codec.CodecError, match="Unsupported"):
        codec.encode(source, str(tmp_path / "out.gif"), "gif", quality=80)


def test_corrupt_input_leaves_no_output(tmp_path):
    source = tmp_path / "broken.jpg"
    source.write_bytes(b"garbage, not a jpeg")
    output = tmp_path / "out.jpg"

    with pytest.raises(codec.CodecError):
        codec.encode(str(source), str(output), "jpeg", quality=80)

    assert not output.exists()
