"""
Utilities for staging uploads and resolving stored files.
"""
import os
import re
import time
import uuid
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, BinaryIO

import imgcompress

# Set up logging
logger = logging.getLogger(__name__)

# 10 MiB upload ceiling
MAX_UPLOAD_SIZE = 10 * 1024 * 1024

# Read uploads in 1 MiB chunks
CHUNK_SIZE = 1024 * 1024

# Prefix of every output file written next to its original
COMPRESSED_PREFIX = "compressed-"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


class UploadRejected(Exception):
    """An upload failed validation and nothing was kept on disk."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message


@dataclass
class StagedUpload:
    """An accepted upload written to the storage directory"""
    filename: str
    original_filename: str
    size: int
    path: str
    received_at: datetime


def get_upload_dir(create: bool = False) -> str:
    """
    Return the storage directory, optionally creating it.

    Args:
        create: Create the directory (and parents) when missing
    """
    directory = imgcompress.UPLOAD_DIR
    if create:
        os.makedirs(directory, exist_ok=True)
    return directory


def is_image_content_type(content_type: Optional[str]) -> bool:
    """True for any declared image/* MIME type."""
    return bool(content_type) and content_type.lower().startswith("image/")


def sanitize_filename(filename: Optional[str]) -> str:
    """
    Reduce a client supplied filename to a safe basename.

    Directory components are dropped and characters outside [A-Za-z0-9._-]
    are replaced with underscores. The extension survives even when nothing
    of the stem does ("фото.jpg" -> "image.jpg").
    """
    name = (filename or "").replace("\\", "/").split("/")[-1]
    stem, ext = os.path.splitext(name)
    stem = _UNSAFE_CHARS.sub("_", stem).strip("._") or "image"
    ext = _UNSAFE_CHARS.sub("", ext)
    return stem + ext if len(ext) > 1 else stem


def generate_filename(original_filename: Optional[str]) -> str:
    """
    Generate a storage name that is unique across concurrent uploads.

    Format: <epoch-millis>-<8 hex chars>-<sanitized original name>
    """
    millis = int(time.time() * 1000)
    return f"{millis}-{uuid.uuid4().hex[:8]}-{sanitize_filename(original_filename)}"


def compressed_filename(staged_filename: str) -> str:
    """Name of the output file derived from a staged upload."""
    return f"{COMPRESSED_PREFIX}{staged_filename}"


def stage_upload(
    stream: BinaryIO,
    original_filename: Optional[str],
    content_type: Optional[str],
    directory: Optional[str] = None,
    max_size: int = MAX_UPLOAD_SIZE
) -> StagedUpload:
    """
    Validate an uploaded image stream and write it to the storage directory.

    Args:
        stream: Readable binary stream of the upload body
        original_filename: Filename declared by the client
        content_type: MIME type declared by the client
        directory: Target directory (defaults to the storage directory)
        max_size: Maximum accepted size in bytes

    Returns:
        StagedUpload describing the written file

    Raises:
        UploadRejected: 400 for a non-image type, 413 when max_size is exceeded
    """
    if not is_image_content_type(content_type):
        raise UploadRejected(400, "Only image files are allowed!")

    if directory is None:
        directory = get_upload_dir(create=True)
    else:
        os.makedirs(directory, exist_ok=True)

    filename = generate_filename(original_filename)
    path = os.path.join(directory, filename)

    size = 0
    try:
        with open(path, "xb") as out:
            while True:
                chunk = stream.read(CHUNK_SIZE)
                if not chunk:
                    break
                size += len(chunk)
                if size > max_size:
                    raise UploadRejected(413, f"File too large (limit is {max_size} bytes)")
                out.write(chunk)
    except BaseException:
        if os.path.exists(path):
            os.remove(path)
        raise

    logger.info(f"Staged upload {original_filename!r} as {filename} ({size} bytes)")
    return StagedUpload(
        filename=filename,
        original_filename=original_filename or filename,
        size=size,
        path=path,
        received_at=datetime.now(timezone.utc)
    )


def resolve_stored_file(filename: str, directory: Optional[str] = None) -> Optional[str]:
    """
    Resolve a filename to a regular file inside the storage directory.

    Returns None when the name contains path separators or traversal
    sequences, resolves outside the directory, or does not exist.
    """
    if not filename or filename in (".", "..") or "\x00" in filename:
        return None
    if "/" in filename or "\\" in filename:
        return None

    directory = os.path.realpath(directory or get_upload_dir())
    candidate = os.path.realpath(os.path.join(directory, filename))
    if os.path.dirname(candidate) != directory:
        return None
    if not os.path.isfile(candidate):
        return None
    return candidate
