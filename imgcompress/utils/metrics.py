"""
Utilities for measuring compression performance and image quality.
"""
import os
import math
import time
import logging
import numpy as np
import psutil
from PIL import Image
from typing import Tuple, Optional, Dict, Union
from skimage.metrics import peak_signal_noise_ratio, structural_similarity

# Set up logging
logger = logging.getLogger(__name__)

# Images larger than this are downsampled before PSNR/SSIM
METRICS_MAX_PIXELS = 4_000_000


def get_cpu_mem() -> Dict[str, float]:
    """
    Get current CPU and memory usage.

    Returns:
        Dictionary with CPU and memory usage percentages
    """
    return {
        "cpu_usage": psutil.cpu_percent(interval=None),
        "memory_usage": psutil.virtual_memory().percent
    }


def sanitize_float(value: Optional[float]) -> Optional[float]:
    """Map NaN and infinity to None so the value is JSON compliant."""
    if value is None:
        return None
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return None
    return value


def calculate_image_metrics(
    original_img: Union[np.ndarray, Image.Image],
    compressed_img: Union[np.ndarray, Image.Image]
) -> Tuple[Optional[float], Optional[float]]:
    """
    Calculate PSNR and SSIM for image quality comparison.

    Args:
        original_img: Original image (PIL Image or numpy array)
        compressed_img: Re-encoded image (PIL Image or numpy array)

    Returns:
        Tuple of (PSNR, SSIM) values, rounded to 2 and 4 decimal places respectively.
        PSNR is 100.0 for identical images.
        Returns (None, None) if calculation fails
    """
    if not isinstance(original_img, np.ndarray):
        try:
            original_img = np.array(original_img.convert("RGB"))
        except Exception as e:
            logger.error(f"Failed to convert original image to array: {e}")
            return None, None

    if not isinstance(compressed_img, np.ndarray):
        try:
            compressed_img = np.array(compressed_img.convert("RGB"))
        except Exception as e:
            logger.error(f"Failed to convert compressed image to array: {e}")
            return None, None

    try:
        if original_img.shape != compressed_img.shape:
            logger.info(f"Image shapes don't match: original {original_img.shape} vs compressed {compressed_img.shape}")
            compressed_pil = Image.fromarray(compressed_img)
            compressed_pil = compressed_pil.resize((original_img.shape[1], original_img.shape[0]))
            compressed_img = np.array(compressed_pil)

        mse = np.mean(np.square(original_img.astype(np.float32) - compressed_img.astype(np.float32)))
        logger.debug(f"MSE between original and compressed: {mse}")

        if mse < 1e-10:
            psnr = 100.0
        else:
            psnr = peak_signal_noise_ratio(original_img, compressed_img, data_range=255)

        # SSIM needs at least a 7x7 window
        if min(original_img.shape[0], original_img.shape[1]) < 7:
            ssim = None
        else:
            ssim = round(float(structural_similarity(
                original_img, compressed_img, data_range=255, channel_axis=2
            )), 4)

        return round(float(psnr), 2), ssim
    except Exception as e:
        logger.error(f"Error calculating metrics: {e}")
        return None, None


def _load_for_metrics(path: str) -> Image.Image:
    with Image.open(path) as img:
        img.draft("RGB", (2048, 2048))
        rgb = img.convert("RGB")
    pixels = rgb.width * rgb.height
    if pixels > METRICS_MAX_PIXELS:
        scale = math.sqrt(METRICS_MAX_PIXELS / pixels)
        rgb = rgb.resize((max(1, int(rgb.width * scale)), max(1, int(rgb.height * scale))))
    return rgb


def compare_image_files(original_path: str, compressed_path: str) -> Tuple[Optional[float], Optional[float]]:
    """
    Best-effort PSNR/SSIM between two image files on disk.

    Never raises; returns (None, None) when either file cannot be compared.
    """
    try:
        original = _load_for_metrics(original_path)
        compressed = _load_for_metrics(compressed_path)
    except Exception as e:
        logger.warning(
            f"Could not load images for metrics ({os.path.basename(original_path)}, "
            f"{os.path.basename(compressed_path)}): {e}"
        )
        return None, None

    if compressed.size != original.size:
        compressed = compressed.resize(original.size)

    psnr, ssim = calculate_image_metrics(original, compressed)
    return sanitize_float(psnr), sanitize_float(ssim)


def calculate_savings(original_size: int, compressed_size: int) -> Dict[str, int]:
    """
    Size savings of a compression.

    The percentage is round(100 * (original - compressed) / original). It is
    negative when the output is larger than the input and is not clamped.

    Args:
        original_size: Size of the original file in bytes
        compressed_size: Size of the compressed file in bytes

    Returns:
        Dictionary with "percentage" and signed "bytes" delta
    """
    delta = original_size - compressed_size
    percentage = _round_half_up(100 * delta / original_size) if original_size > 0 else 0
    return {"percentage": percentage, "bytes": delta}


def _round_half_up(value: float) -> int:
    # Rounds .5 toward +infinity rather than to the nearest even integer
    return int(math.floor(value + 0.5))


class PerformanceTimer:
    """
    Context manager for measuring execution time.

    Example:
        with PerformanceTimer() as timer:
            # Code to measure
        execution_time = timer.execution_time
    """

    def __init__(self):
        self.start_time = None
        self.execution_time = 0

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.execution_time = time.perf_counter() - self.start_time
