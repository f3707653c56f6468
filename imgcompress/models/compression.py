"""
Data models for compression API responses.
"""
from typing import Optional
from pydantic import BaseModel, Field

from imgcompress.models.base import BaseFileInfo


class OriginalFileInfo(BaseFileInfo):
    """The uploaded image as stored; name is the client supplied filename"""


class CompressedFileInfo(BaseFileInfo):
    """The re-encoded image written next to the original"""
    format: str = Field(..., description="Format the output was encoded in")


class Savings(BaseModel):
    """Size reduction achieved by the compression"""
    percentage: int = Field(
        ..., description="round(100 * (original - compressed) / original); negative if the output grew"
    )
    bytes: int = Field(..., description="original size minus compressed size in bytes")


class QualityMetrics(BaseModel):
    """Requested quality and measured fidelity of the output"""
    requested: int = Field(..., description="Quality value passed to the codec")
    psnr: Optional[float] = Field(None, description="Peak Signal-to-Noise Ratio against the original")
    ssim: Optional[float] = Field(None, description="Structural Similarity Index against the original")


class PerformanceMetrics(BaseModel):
    """Timing and resource usage of the compression"""
    compression_time: float = Field(..., description="Time spent encoding in seconds")
    cpu_usage: float = Field(..., description="CPU usage after compression (%)")
    memory_usage: float = Field(..., description="Memory usage after compression (%)")


class CompressionResponse(BaseModel):
    """Response model for a compressed image"""
    original: OriginalFileInfo
    compressed: CompressedFileInfo
    savings: Savings
    quality: QualityMetrics
    performance: PerformanceMetrics
