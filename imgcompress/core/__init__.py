"""
Core image processing for the compression service.

This package contains:
- codec: Pillow adapter that inspects and re-encodes images
- compression: parameter resolution and the compression workflow
"""
from imgcompress.core.codec import (
    SUPPORTED_FORMATS,
    CodecError,
    ImageInfo,
    EncodeResult,
    inspect,
    encode
)

from imgcompress.core.compression import (
    DEFAULT_QUALITY,
    AUTO_FORMAT,
    REQUEST_FORMATS,
    resolve_quality,
    normalize_format,
    resolve_target_format,
    compress_staged_file,
    compress_staged_file_async
)

__all__ = [
    # Codec adapter
    'SUPPORTED_FORMATS',
    'CodecError',
    'ImageInfo',
    'EncodeResult',
    'inspect',
    'encode',

    # Compression workflow
    'DEFAULT_QUALITY',
    'AUTO_FORMAT',
    'REQUEST_FORMATS',
    'resolve_quality',
    'normalize_format',
    'resolve_target_format',
    'compress_staged_file',
    'compress_staged_file_async'
]
