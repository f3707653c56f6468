"""
Utility functions for the image compression application.
"""
from imgcompress.utils.metrics import (
    get_cpu_mem,
    calculate_image_metrics,
    calculate_savings,
    compare_image_files,
    PerformanceTimer
)

from imgcompress.utils.file_handling import (
    MAX_UPLOAD_SIZE,
    UploadRejected,
    StagedUpload,
    get_upload_dir,
    stage_upload,
    resolve_stored_file
)

from imgcompress.utils.sweeper import (
    RETENTION_SECONDS,
    SWEEP_INTERVAL_SECONDS,
    RetentionSweeper,
    sweep_once
)

__all__ = [
    # Metrics utilities
    'get_cpu_mem',
    'calculate_image_metrics',
    'calculate_savings',
    'compare_image_files',
    'PerformanceTimer',

    # File handling utilities
    'MAX_UPLOAD_SIZE',
    'UploadRejected',
    'StagedUpload',
    'get_upload_dir',
    'stage_upload',
    'resolve_stored_file',

    # Retention sweeper
    'RETENTION_SECONDS',
    'SWEEP_INTERVAL_SECONDS',
    'RetentionSweeper',
    'sweep_once'
]
