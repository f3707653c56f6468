"""
Base models for the image compression API.
These models define common fields shared by the original and compressed
file descriptions.
"""
from pydantic import BaseModel, Field
from typing import Optional


class Dimensions(BaseModel):
    """Pixel dimensions of an image"""
    width: int = Field(..., description="Width in pixels")
    height: int = Field(..., description="Height in pixels")


class BaseFileInfo(BaseModel):
    """Base class for a stored file referenced by a response"""
    name: str = Field(..., description="Display name of the file")
    size: int = Field(..., description="Size of the file in bytes")
    path: str = Field(..., description="Download path of the stored file")
    format: Optional[str] = Field(None, description="Image format (jpeg, png, webp, ...)")
    dimensions: Dimensions = Field(..., description="Pixel dimensions")


class ErrorResponse(BaseModel):
    """Body returned for failed requests"""
    error: str = Field(..., description="Short description of the failure")
    details: Optional[str] = Field(None, description="Diagnostic message, if available")
