"""
Image compression endpoint.
"""
import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, File, Form, UploadFile
from fastapi.responses import JSONResponse

from imgcompress.core.codec import CodecError
from imgcompress.core.compression import (
    REQUEST_FORMATS,
    compress_staged_file_async,
    normalize_format,
    resolve_quality
)
from imgcompress.models import CompressionResponse, ErrorResponse
from imgcompress.utils.file_handling import UploadRejected, stage_upload

# Set up logging
logger = logging.getLogger(__name__)

# Create router
router = APIRouter(prefix="/api", tags=["Compression"])


def _error(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    content = {"error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


@router.post(
    "/compress",
    response_model=CompressionResponse,
    responses={
        400: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        500: {"model": ErrorResponse}
    }
)
async def compress_image(
    image: Optional[UploadFile] = File(None, description="The image file to compress"),
    quality: Optional[str] = Form(None, description="Quality 0-100 (default 80)"),
    format: Optional[str] = Form(None, description="auto | jpeg | png | webp (default auto)")
):
    """
    Compress an uploaded image.

    - **image**: The image file to compress (max 10 MiB)
    - **quality**: Lossy quality for JPEG/WebP output; non-numeric or missing values mean 80
    - **format**: Output format; `auto` keeps PNG and other lossless inputs as they are
      and re-encodes JPEG/WebP inputs as JPEG

    Returns:
        Sizes, dimensions and paths of the original and compressed files, plus savings
    """
    if image is None or not image.filename:
        return _error(400, "No image file provided")

    requested_format = normalize_format(format)
    if requested_format is None:
        return _error(400, f"Unsupported format '{format}'. Expected one of: {', '.join(REQUEST_FORMATS)}")

    try:
        upload = await asyncio.to_thread(
            stage_upload, image.file, image.filename, image.content_type
        )
    except UploadRejected as e:
        logger.info(f"Rejected upload {image.filename!r}: {e.message}")
        return _error(e.status_code, e.message)

    effective_quality = resolve_quality(quality)

    try:
        result = await compress_staged_file_async(upload, effective_quality, requested_format)
    except CodecError as e:
        logger.error(f"Compression of {upload.filename} failed: {e}")
        return _error(500, "Image processing failed", str(e))

    return CompressionResponse(**result)
