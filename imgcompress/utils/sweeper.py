"""
Retention sweeper for the storage directory.

Files older than the retention window are deleted on a fixed period. The
sweeper is owned by the application: it is started on startup and stopped
on shutdown, and nothing it hits is allowed to escape the background loop.
"""
import os
import time
import asyncio
import logging
from typing import List, Optional

from imgcompress.utils.file_handling import get_upload_dir

# Set up logging
logger = logging.getLogger(__name__)

# Files older than this are deleted (24 hours)
RETENTION_SECONDS = 24 * 60 * 60

# Time between sweeps (1 hour)
SWEEP_INTERVAL_SECONDS = 60 * 60


def sweep_once(
    directory: Optional[str] = None,
    now: Optional[float] = None,
    retention: float = RETENTION_SECONDS
) -> List[str]:
    """
    Delete every regular file older than the retention window.

    Args:
        directory: Directory to scan (defaults to the storage directory)
        now: Reference time as a UNIX timestamp (defaults to time.time())
        retention: Maximum file age in seconds

    Returns:
        Paths of the deleted files. A missing or unreadable directory yields
        an empty list.
    """
    directory = directory or get_upload_dir()
    cutoff = (now if now is not None else time.time()) - retention

    try:
        entries = list(os.scandir(directory))
    except OSError as e:
        logger.debug(f"Skipping sweep of {directory}: {e}")
        return []

    deleted = []
    for entry in entries:
        try:
            if not entry.is_file(follow_symlinks=False):
                continue
            if entry.stat(follow_symlinks=False).st_mtime < cutoff:
                os.remove(entry.path)
                deleted.append(entry.path)
        except OSError as e:
            logger.warning(f"Failed to sweep {entry.path}: {e}")

    if deleted:
        logger.info(f"Retention sweep removed {len(deleted)} file(s) from {directory}")
    return deleted


class RetentionSweeper:
    """
    Background task that runs sweep_once on a fixed interval.

    Example:
        sweeper = RetentionSweeper()
        sweeper.start()      # on application startup
        await sweeper.stop() # on application shutdown
    """

    def __init__(
        self,
        directory: Optional[str] = None,
        interval: float = SWEEP_INTERVAL_SECONDS,
        retention: float = RETENTION_SECONDS
    ):
        self.directory = directory
        self.interval = interval
        self.retention = retention
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop."""
        if self.running:
            return
        logger.info(
            f"Starting retention sweeper (every {self.interval}s, retention {self.retention}s)"
        )
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Retention sweeper stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await asyncio.to_thread(sweep_once, self.directory, None, self.retention)
            except Exception as e:
                logger.error(f"Retention sweep failed: {e}", exc_info=True)
