"""
yt-dlp acquisition backend.

Downloads audio from YouTube, SoundCloud, Bandcamp and direct links, and
expands playlists into item URLs. No authentication required.
"""

import shutil

from loguru import logger

from .download import AcquisitionBackend, DownloadProgressCallback, MediaInfo, YtDlpBackend


def check_ffmpeg() -> bool:
    """Warn when ffmpeg is missing (yt-dlp needs it to extract audio)."""
    if shutil.which("ffmpeg"):
        return True
    logger.warning("ffmpeg not found - audio extraction will fail")
    logger.warning(
        "Install ffmpeg: sudo apt install ffmpeg (Linux) or brew install ffmpeg (Mac)"
    )
    return False


__all__ = [
    "AcquisitionBackend",
    "DownloadProgressCallback",
    "MediaInfo",
    "YtDlpBackend",
    "check_ffmpeg",
]
