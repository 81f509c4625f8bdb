"""Disk usage lookup for the status panel."""

import logging
import shutil

logger = logging.getLogger(__name__)


def get_disk_usage(path: str = "/") -> tuple[int, int, float]:
    """Get disk usage for the given path.

    Args:
        path: Filesystem path to check.

    Returns:
        Tuple of (used_bytes, total_bytes, percent_used)
    """
    usage = shutil.disk_usage(path)
    percent = (usage.used / usage.total) * 100
    return usage.used, usage.total, percent


def get_storage_usage(path: str = "/") -> float:
    """Percent of the filesystem in use, rounded to whole percent.

    Returns 0 when the path cannot be inspected.
    """
    try:
        _, _, percent = get_disk_usage(path)
    except OSError as e:
        logger.warning(f"Could not read disk usage for {path}: {e}")
        return 0.0
    return float(round(percent))
