"""
Image Compression API Application

This package implements a FastAPI application that re-encodes uploaded
images with Pillow and reports before/after statistics:
- Quality/format controlled re-encoding (JPEG, PNG, WebP)
- Size savings and dimension reporting
- Quality metrics (PSNR, SSIM)
- Download of stored originals and compressed outputs
- Periodic retention sweep of the storage directory
"""
import os

# Flat directory holding both originals and compressed outputs
UPLOAD_DIR = os.path.abspath(os.environ.get("UPLOAD_DIR", "uploads"))

# Optional directory with the browser demo page
PUBLIC_DIR = os.path.abspath(os.environ.get("PUBLIC_DIR", "public"))

# Export the app instance
from imgcompress.api import app

__all__ = ['app', 'UPLOAD_DIR', 'PUBLIC_DIR']
