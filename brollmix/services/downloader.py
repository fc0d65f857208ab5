import hashlib
import json
import logging
import os
import re
import threading
from typing import Dict, Optional

import yt_dlp

from brollmix.core.enums import FetchErrorKind
from brollmix.core.exceptions import FetchError
from brollmix.core.settings import settings
from brollmix.models.media import SourceClip

logger = logging.getLogger(__name__)

YOUTUBE_URL_PATTERNS = (
    "youtube.com/watch",
    "youtu.be/",
    "youtube.com/shorts/",
    "youtube.com/v/",
    "youtube.com/embed/",
)

# Order matters: "v=" query param first, then the path-style forms
_VIDEO_ID_PATTERNS = (
    re.compile(r"[?&]v=([^&#]+)"),
    re.compile(r"youtu\.be/([^?&#/]+)"),
    re.compile(r"/shorts/([^?&#/]+)"),
    re.compile(r"/embed/([^?&#/]+)"),
    re.compile(r"youtube\.com/v/([^?&#/]+)"),
)

_NOT_FOUND_MARKERS = (
    "video unavailable",
    "private video",
    "has been removed",
    "does not exist",
    "http error 404",
    "not available",
)


# One lock per download target, shared by every Downloader in the process
_download_locks: Dict[str, threading.Lock] = {}
_download_locks_guard = threading.Lock()


def _download_lock(media_path: str) -> threading.Lock:
    with _download_locks_guard:
        return _download_locks.setdefault(media_path, threading.Lock())


def is_valid_youtube_url(url: str) -> bool:
    return any(p in url for p in YOUTUBE_URL_PATTERNS)


def extract_video_id(url: str) -> Optional[str]:
    for pattern in _VIDEO_ID_PATTERNS:
        m = pattern.search(url)
        if m:
            return m.group(1)
    return None


def cache_key(url: str) -> str:
    """Stable file stem for a URL so repeat jobs reuse downloads."""
    video_id = extract_video_id(url)
    if video_id:
        return re.sub(r"[^A-Za-z0-9_-]", "_", video_id)
    return "url_" + hashlib.sha1(url.encode("utf-8")).hexdigest()[:16]


def classify_error(message: str) -> FetchErrorKind:
    lowered = message.lower()
    if "unsupported url" in lowered:
        return FetchErrorKind.UNSUPPORTED
    if any(marker in lowered for marker in _NOT_FOUND_MARKERS):
        return FetchErrorKind.NOT_FOUND
    return FetchErrorKind.NETWORK_FAILURE


class Downloader:
    def __init__(self, download_dir: Optional[str] = None, format: Optional[str] = None):
        self.download_dir = os.path.abspath(download_dir or settings.download_dir)
        self.format = format or settings.ytdlp_format
        os.makedirs(self.download_dir, exist_ok=True)

    def _paths(self, key: str):
        media = os.path.join(self.download_dir, f"{key}.mp4")
        info = os.path.join(self.download_dir, f"{key}.info.json")
        return media, info

    def _cached(self, url: str, key: str) -> Optional[SourceClip]:
        media_path, info_path = self._paths(key)
        if not (os.path.exists(media_path) and os.path.exists(info_path)):
            return None
        try:
            with open(info_path, "r", encoding="utf-8") as f:
                info = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"[downloader] Ignoring unreadable cache entry {info_path}: {e}")
            return None

        logger.info(f"[downloader] Already downloaded: {media_path}")
        return SourceClip(
            path=media_path,
            title=info.get("title") or "unknown",
            duration=float(info.get("duration") or 0.0),
            source_id=url,
        )

    def fetch(self, url: str) -> SourceClip:
        """
        Download a video, or reuse a previous download of the same video.
        Raises FetchError on failure.
        """
        key = cache_key(url)
        media_path, _ = self._paths(key)
        with _download_lock(media_path):
            hit = self._cached(url, key)
            if hit:
                return hit
            return self._download(url, key)

    def _download(self, url: str, key: str) -> SourceClip:
        logger.info(f"[downloader] Downloading: {url}")
        ydl_opts = {
            "format": self.format,
            "outtmpl": os.path.join(self.download_dir, f"{key}.%(ext)s"),
            "merge_output_format": "mp4",
            "writeinfojson": True,
            "noplaylist": True,
            "quiet": True,
            "no_warnings": True,
        }

        try:
            with yt_dlp.YoutubeDL(ydl_opts) as ydl:
                info = ydl.extract_info(url, download=True)
                filename = ydl.prepare_filename(info)
        except yt_dlp.utils.DownloadError as e:
            kind = classify_error(str(e))
            logger.error(f"[downloader] Download failed ({kind.value}): {e}")
            raise FetchError(kind, url, str(e)) from e
        except OSError as e:
            raise FetchError(FetchErrorKind.NETWORK_FAILURE, url, str(e)) from e

        # yt-dlp might merge to a different ext than the template guessed
        if not os.path.exists(filename):
            base = os.path.splitext(filename)[0]
            if os.path.exists(f"{base}.mp4"):
                filename = f"{base}.mp4"
            else:
                raise FetchError(FetchErrorKind.NETWORK_FAILURE, url, "Downloaded file not found")

        logger.info(f"[downloader] Got it: {url} -> {filename}")
        return SourceClip(
            path=filename,
            title=info.get("title") or "unknown",
            duration=float(info.get("duration") or 0.0),
            source_id=url,
        )
