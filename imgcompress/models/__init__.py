"""
Data models for the image compression API.

This module provides Pydantic models for response validation and
documentation.
"""
from imgcompress.models.base import (
    Dimensions,
    BaseFileInfo,
    ErrorResponse
)

from imgcompress.models.compression import (
    OriginalFileInfo,
    CompressedFileInfo,
    Savings,
    QualityMetrics,
    PerformanceMetrics,
    CompressionResponse
)

__all__ = [
    # Base models
    'Dimensions',
    'BaseFileInfo',
    'ErrorResponse',

    # Compression models
    'OriginalFileInfo',
    'CompressedFileInfo',
    'Savings',
    'QualityMetrics',
    'PerformanceMetrics',
    'CompressionResponse'
]
