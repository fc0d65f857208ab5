import logging
import os
import shutil
import time

logger = logging.getLogger(__name__)


def format_duration(seconds: float) -> str:
    """65.0 -> "1:05"."""
    mins = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{mins}:{secs:02d}"


def cleanup_old_temp_files(temp_dir: str, max_age_hours: int) -> int:
    """
    Delete entries in temp_dir not modified for max_age_hours.
    Returns how many were removed.
    """
    if not os.path.isdir(temp_dir):
        return 0

    cutoff = time.time() - max_age_hours * 3600
    deleted = 0
    for entry in os.scandir(temp_dir):
        try:
            if entry.stat(follow_symlinks=False).st_mtime >= cutoff:
                continue
            if entry.is_dir(follow_symlinks=False):
                shutil.rmtree(entry.path)
            else:
                os.remove(entry.path)
            deleted += 1
        except OSError as e:
            logger.warning(f"[cleanup] Couldn't remove {entry.path}: {e}")

    if deleted:
        logger.info(f"[cleanup] Removed {deleted} stale temp entr{'y' if deleted == 1 else 'ies'}")
    return deleted
