"""
API module for the image compression application.
"""
import os
import time
import shutil
import logging
import platform
from fastapi import FastAPI, Request
from fastapi.responses import FileResponse, JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from imgcompress import PUBLIC_DIR
from imgcompress.api.compress import router as compress_router
from imgcompress.api.downloads import router as downloads_router
from imgcompress.utils.file_handling import get_upload_dir
from imgcompress.utils.sweeper import RetentionSweeper

# Set up logging
logger = logging.getLogger(__name__)

CORS_ORIGINS = [
    origin.strip()
    for origin in os.environ.get("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]

# Create FastAPI app
app = FastAPI(
    title="Image Compression API",
    description="""
    API for reducing image file size with Pillow:
    - Re-encode JPEG, PNG and WebP images at a chosen quality
    - Convert between formats
    - Before/after size, dimension and quality (PSNR, SSIM) statistics

    Uploaded and compressed files are kept for 24 hours.
    """,
    version="1.0"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials="*" not in CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)

# Include routers
app.include_router(compress_router)
app.include_router(downloads_router)

sweeper = RetentionSweeper()


# Global exception handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unexpected errors."""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "An unexpected error occurred", "details": str(exc)}
    )


@app.on_event("startup")
async def startup():
    """Create the storage directory and start the retention sweeper."""
    upload_dir = get_upload_dir(create=True)
    logger.info(f"Storing uploads in {upload_dir}")
    sweeper.start()


@app.on_event("shutdown")
async def shutdown():
    """Stop the retention sweeper. Stored files are left for the next run."""
    await sweeper.stop()


@app.get("/", include_in_schema=False)
async def root():
    """Serve the demo page when one is installed."""
    index = os.path.join(PUBLIC_DIR, "index.html")
    if os.path.isfile(index):
        return FileResponse(index)
    return {"message": "Image Compression API", "docs": "/docs"}


# Health check endpoints
@app.get("/health")
async def health_check():
    """Check if the API is running."""
    return {"status": "healthy", "version": "1.0.0"}


@app.get("/health/detailed")
async def detailed_health_check():
    """
    Provides detailed health information including system metrics and component status.
    """
    import psutil
    from PIL import features, __version__ as pillow_version

    # System info
    system_info = {
        "cpu_usage": psutil.cpu_percent(interval=0.1),
        "memory_usage": psutil.virtual_memory().percent,
        "disk_usage": psutil.disk_usage('/').percent,
        "python_version": platform.python_version(),
        "platform": platform.platform()
    }

    # Check codec support
    codec_status = {"pillow": pillow_version}
    for name, feature in (("jpeg", "jpg"), ("png", "zlib"), ("webp", "webp")):
        try:
            codec_status[name] = "ok" if features.check(feature) else "unavailable"
        except Exception as e:
            codec_status[name] = f"error: {e}"

    # Check storage directory
    upload_dir = get_upload_dir()
    storage_status = {"path": upload_dir, "exists": os.path.isdir(upload_dir)}
    if storage_status["exists"]:
        storage_status["writable"] = os.access(upload_dir, os.W_OK)
        try:
            storage_status["file_count"] = sum(1 for entry in os.scandir(upload_dir) if entry.is_file())
            storage_status["free_space_mb"] = shutil.disk_usage(upload_dir).free / (1024 * 1024)
        except OSError as e:
            storage_status["error"] = str(e)

    return {
        "status": "healthy",
        "version": "1.0.0",
        "system": system_info,
        "codecs": codec_status,
        "storage": storage_status,
        "sweeper_running": sweeper.running,
        "timestamp": time.time()
    }


# Static assets of the demo page; routes above take precedence
if os.path.isdir(PUBLIC_DIR):
    app.mount("/", StaticFiles(directory=PUBLIC_DIR), name="public")
