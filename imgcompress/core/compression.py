"""
Compression orchestration.

Resolves request parameters, drives the codec adapter and assembles the
before/after statistics returned to the client.
"""
import os
import re
import asyncio
import logging
import weakref
from typing import Dict, Any, Optional

from imgcompress.core import codec
from imgcompress.utils.file_handling import StagedUpload, compressed_filename
from imgcompress.utils.metrics import (
    PerformanceTimer,
    calculate_savings,
    compare_image_files,
    get_cpu_mem,
)

# Set up logging
logger = logging.getLogger(__name__)

# Constants
DEFAULT_QUALITY = 80
AUTO_FORMAT = "auto"
REQUEST_FORMATS = (AUTO_FORMAT, "jpeg", "png", "webp")
MAX_CONCURRENT_JOBS = int(os.environ.get("MAX_CONCURRENT_JOBS", 4))

# Re-encode WebP sources as WebP (rather than JPEG) when format is "auto"
AUTO_KEEP_WEBP = os.environ.get("AUTO_KEEP_WEBP", "").lower() in ("true", "1", "yes")

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

# One semaphore per event loop bounds simultaneous codec invocations
_codec_slots = weakref.WeakKeyDictionary()


def _slots_for_running_loop() -> asyncio.Semaphore:
    loop = asyncio.get_running_loop()
    slots = _codec_slots.get(loop)
    if slots is None:
        slots = _codec_slots[loop] = asyncio.Semaphore(MAX_CONCURRENT_JOBS)
    return slots


def resolve_quality(raw: Optional[Any]) -> int:
    """
    Parse the requested quality.

    Leading digits are used ("50abc" -> 50); anything unparsable or absent
    falls back to DEFAULT_QUALITY. Out-of-range values are returned as is and
    left to the codec to reject.
    """
    if raw is None:
        return DEFAULT_QUALITY
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    match = _LEADING_INT.match(str(raw))
    if not match:
        return DEFAULT_QUALITY
    return int(match.group(1))


def normalize_format(raw: Optional[str]) -> Optional[str]:
    """
    Normalize the requested output format.

    Returns one of REQUEST_FORMATS, or None when the value is not recognized.
    Absent or blank values mean "auto".
    """
    if raw is None or not str(raw).strip():
        return AUTO_FORMAT
    value = str(raw).strip().lower()
    if value == "jpg":
        value = "jpeg"
    return value if value in REQUEST_FORMATS else None


def resolve_target_format(
    requested: str,
    source_format: str,
    keep_webp: bool = AUTO_KEEP_WEBP
) -> Optional[str]:
    """
    Decide what the codec should produce.

    Args:
        requested: A normalized request format (see normalize_format)
        source_format: Lowercase format detected in the source image
        keep_webp: Re-encode WebP sources as WebP under "auto"

    Returns:
        The codec target format, or None for a passthrough without
        quality-based re-encoding
    """
    if requested != AUTO_FORMAT:
        return requested
    # MPO is how Pillow reports multi-picture JPEGs from many cameras
    if source_format in ("jpeg", "mpo"):
        return "jpeg"
    if source_format == "webp":
        return "webp" if keep_webp else "jpeg"
    return None


def compress_staged_file(
    upload: StagedUpload,
    quality: int = DEFAULT_QUALITY,
    requested_format: str = AUTO_FORMAT,
    keep_webp: bool = AUTO_KEEP_WEBP
) -> Dict[str, Any]:
    """
    Compress a staged upload into compressed-<staged filename>.

    Args:
        upload: The staged original
        quality: Resolved quality value
        requested_format: A normalized request format
        keep_webp: See resolve_target_format

    Returns:
        Dictionary shaped like CompressionResponse

    Raises:
        codec.CodecError: If the image cannot be processed
    """
    source = codec.inspect(upload.path)
    target_format = resolve_target_format(requested_format, source.format, keep_webp)

    output_name = compressed_filename(upload.filename)
    output_path = os.path.join(os.path.dirname(upload.path), output_name)

    logger.info(
        f"Compressing {upload.filename} ({source.format}, {upload.size} bytes) "
        f"to {target_format or 'passthrough'} at quality {quality}"
    )

    with PerformanceTimer() as timer:
        result = codec.encode(upload.path, output_path, target_format, quality)

    try:
        original_size = os.path.getsize(upload.path)
        compressed_size = os.path.getsize(result.path)
    except OSError as e:
        raise codec.CodecError(f"Cannot stat processed files: {e}") from e

    savings = calculate_savings(original_size, compressed_size)
    psnr, ssim = compare_image_files(upload.path, result.path)
    cpu_mem = get_cpu_mem()

    logger.info(
        f"Compressed {upload.filename}: {original_size} -> {compressed_size} bytes "
        f"({savings['percentage']}%)"
    )

    return {
        "original": {
            "name": upload.original_filename,
            "size": original_size,
            "path": f"/uploads/{upload.filename}",
            "format": source.format,
            "dimensions": {"width": source.width, "height": source.height},
        },
        "compressed": {
            "name": output_name,
            "size": compressed_size,
            "path": f"/uploads/{output_name}",
            "format": result.format,
            "dimensions": {"width": result.width, "height": result.height},
        },
        "savings": savings,
        "quality": {"requested": quality, "psnr": psnr, "ssim": ssim},
        "performance": {
            "compression_time": round(timer.execution_time, 4),
            "cpu_usage": cpu_mem["cpu_usage"],
            "memory_usage": cpu_mem["memory_usage"],
        },
    }


async def compress_staged_file_async(
    upload: StagedUpload,
    quality: int = DEFAULT_QUALITY,
    requested_format: str = AUTO_FORMAT,
    keep_webp: bool = AUTO_KEEP_WEBP
) -> Dict[str, Any]:
    """Run compress_staged_file in a worker thread, bounded by MAX_CONCURRENT_JOBS."""
    async with _slots_for_running_loop():
        return await asyncio.to_thread(
            compress_staged_file, upload, quality, requested_format, keep_webp
        )
