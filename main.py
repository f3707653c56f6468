"""
Image Compression API Entry Point

This file serves as the main entry point for the application,
importing and running the FastAPI application defined in the imgcompress package.

Run with uvicorn:
    uvicorn main:app --reload
"""
import os
import logging
import sys
from imgcompress import app

# Configure logging based on environment variables
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Configure root logger
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format=LOG_FORMAT,
    stream=sys.stdout
)

# Set up logger
logger = logging.getLogger(__name__)

# Check that the codec supports every output format
try:
    from PIL import features
    missing = [name for name in ("jpg", "zlib", "webp") if not features.check(name)]
    if missing:
        logger.warning(f"Pillow was built without support for: {', '.join(missing)}")
    else:
        logger.info("Pillow supports JPEG, PNG and WebP")
except ImportError as e:
    logger.critical(f"Missing required dependency: {str(e)}")
    logger.critical("Please install all dependencies: pip install -e .")
    sys.exit(1)

# Entry point for running with uvicorn
if __name__ == "__main__":
    import uvicorn

    # Get configuration from environment variables
    host = os.environ.get("HOST", "0.0.0.0")
    port = int(os.environ.get("PORT", 3000))
    workers = int(os.environ.get("WORKERS", 1))
    debug = os.environ.get("DEBUG", "").lower() in ("true", "1", "yes")

    logger.info(f"Starting Image Compression API on port {port} with {workers} workers")

    uvicorn.run(
        "imgcompress:app",
        host=host,
        port=port,
        workers=workers,
        reload=debug
    )
