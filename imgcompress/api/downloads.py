"""
Download endpoint for stored originals and compressed outputs.
"""
import logging

from fastapi import APIRouter
from fastapi.responses import FileResponse, PlainTextResponse

from imgcompress.utils.file_handling import resolve_stored_file

# Set up logging
logger = logging.getLogger(__name__)

# Create router
router = APIRouter(tags=["Downloads"])


@router.get("/uploads/{filename}", response_class=FileResponse)
async def download_file(filename: str):
    """
    Download a stored file as an attachment.

    - **filename**: Name of the file in the storage directory

    Names that would leave the storage directory are treated as missing.
    """
    path = resolve_stored_file(filename)
    if path is None:
        logger.info(f"Download request for missing file: {filename!r}")
        return PlainTextResponse("File not found", status_code=404)

    logger.debug(f"Serving {path}")
    return FileResponse(path, filename=filename)
