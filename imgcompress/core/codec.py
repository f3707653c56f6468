"""
Pillow-backed codec adapter.

This module is the only place that touches pixel data. It inspects images and
re-encodes them into JPEG, PNG or WebP at a requested quality. Everything
above it treats the adapter as a black box that either produces a complete
output file or raises CodecError.
"""
import os
import logging
from typing import NamedTuple, Optional

from PIL import Image, UnidentifiedImageError

# Set up logging
logger = logging.getLogger(__name__)

# Formats the adapter can be asked to produce
SUPPORTED_FORMATS = ("jpeg", "png", "webp")

# Lowercase name -> Pillow format identifier
PILLOW_FORMATS = {
    "jpeg": "JPEG",
    "png": "PNG",
    "webp": "WEBP",
}

MIN_QUALITY = 0
MAX_QUALITY = 100


class CodecError(Exception):
    """Raised when an image cannot be decoded or encoded."""


class ImageInfo(NamedTuple):
    """Detected format and pixel dimensions of an image file"""
    format: str
    width: int
    height: int


class EncodeResult(NamedTuple):
    """Outcome of a successful encode"""
    path: str
    format: str
    width: int
    height: int


def inspect(path: str) -> ImageInfo:
    """
    Read the format and dimensions of an image without decoding its pixels.

    Args:
        path: Path to the image file

    Returns:
        ImageInfo with a lowercase format name (e.g. "jpeg", "png")

    Raises:
        CodecError: If the file is missing or not a recognizable image
    """
    try:
        with Image.open(path) as img:
            fmt = (img.format or "").lower()
            width, height = img.size
    except (UnidentifiedImageError, OSError) as e:
        raise CodecError(f"Cannot read image {os.path.basename(path)}: {e}") from e

    return ImageInfo(format=fmt, width=width, height=height)


def _validate_quality(quality: int) -> int:
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise CodecError(
            f"Expected quality to be an integer between {MIN_QUALITY} and {MAX_QUALITY} but received {quality}"
        )
    return quality


def _prepare_for_jpeg(img: Image.Image) -> Image.Image:
    """JPEG has no alpha channel; flatten transparency onto white."""
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        rgba = img.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    if img.mode not in ("RGB", "L", "CMYK"):
        return img.convert("RGB")
    return img


def _save_options(target_format: str, quality: int) -> dict:
    if target_format == "jpeg":
        return {"quality": _validate_quality(quality), "optimize": True}
    if target_format == "webp":
        return {"quality": _validate_quality(quality), "method": 4}
    # PNG is lossless; quality does not apply
    return {"optimize": True}


def encode(
    input_path: str,
    output_path: str,
    target_format: Optional[str] = None,
    quality: int = 80
) -> EncodeResult:
    """
    Re-encode an image file.

    Args:
        input_path: Path of the source image
        output_path: Path the encoded image is written to
        target_format: One of SUPPORTED_FORMATS, or None to pass the image
            through in its own format with the codec's default settings
        quality: Lossy quality (0-100) for JPEG/WebP output

    Returns:
        EncodeResult describing the written file

    Raises:
        CodecError: On decode failure, unsupported format, invalid quality or write failure
    """
    if target_format is not None:
        target_format = target_format.lower()
        if target_format == "jpg":
            target_format = "jpeg"
        if target_format not in SUPPORTED_FORMATS:
            raise CodecError(f"Unsupported output format: {target_format}")

    try:
        with Image.open(input_path) as img:
            img.load()
            source_format = (img.format or "").lower()

            if target_format is None:
                # Passthrough: same format, no quality-based re-encoding
                if not source_format:
                    raise CodecError("Cannot determine source image format")
                pillow_format = img.format
                options = {}
                out = img
                resolved = source_format
            else:
                pillow_format = PILLOW_FORMATS[target_format]
                options = _save_options(target_format, quality)
                if target_format == "jpeg":
                    out = _prepare_for_jpeg(img)
                elif img.mode == "CMYK":
                    out = img.convert("RGB")
                else:
                    out = img
                resolved = target_format

            logger.debug(
                f"Encoding {os.path.basename(input_path)} ({source_format}) -> "
                f"{os.path.basename(output_path)} ({resolved}) with {options}"
            )
            out.save(output_path, format=pillow_format, **options)
            width, height = out.size
    except CodecError:
        _discard(output_path)
        raise
    except (UnidentifiedImageError, OSError, ValueError, KeyError) as e:
        _discard(output_path)
        raise CodecError(str(e)) from e

    if not os.path.isfile(output_path):
        raise CodecError(f"Codec did not produce {os.path.basename(output_path)}")

    return EncodeResult(path=output_path, format=resolved, width=width, height=height)


def _discard(path: str) -> None:
    """Remove a partially written output so no half-encoded file survives."""
    try:
        if os.path.exists(path):
            os.remove(path)
    except OSError as e:
        logger.warning(f"Could not remove partial output {path}: {e}")
