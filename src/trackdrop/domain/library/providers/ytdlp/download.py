"""Audio acquisition using yt-dlp.

yt-dlp is a blocking library, so every call runs in a worker thread via
``asyncio.to_thread``. Progress hooks fire on that worker thread and are
handed back to the event loop with ``call_soon_threadsafe``.
"""

import asyncio
import time
from pathlib import Path
from typing import Callable, NamedTuple, Optional, Protocol

import yt_dlp
from loguru import logger

from ..exceptions import (
    AgeRestrictedError,
    CopyrightBlockedError,
    DownloadError,
    VideoUnavailableError,
)

# Type alias for download progress callback
DownloadProgressCallback = Callable[[int], None]  # (percent: 0-100)

_QUALITY_TO_PREFERRED = {"best": "0", "192k": "192", "128k": "128"}
_AGE_MARKERS = ("confirm your age", "age-restricted", "age restricted")


class MediaInfo(NamedTuple):
    """Best-effort metadata reported by the backend before download."""

    media_id: Optional[str]
    title: Optional[str]
    artist: Optional[str]
    duration_ms: Optional[int]
    thumbnail_url: Optional[str]


class AcquisitionBackend(Protocol):
    """External tool that fetches audio for a URL."""

    async def fetch_info(self, url: str) -> MediaInfo: ...

    async def download(
        self,
        url: str,
        dest_dir: Path,
        file_id: str,
        on_progress: Optional[DownloadProgressCallback] = None,
    ) -> None: ...

    async def list_playlist(self, url: str) -> list[str]: ...


def _make_progress_hook(
    callback: Optional[DownloadProgressCallback],
    throttle_ms: int = 250,
) -> Callable[[dict], None]:
    """Create yt-dlp progress hook with throttling.

    Reported values never decrease and stop at 99; 100 is reserved for the
    caller once the file is in place.

    Args:
        callback: Optional callback receiving download progress (0-100)
        throttle_ms: Minimum time between updates in milliseconds

    Returns:
        Progress hook function for yt-dlp
    """
    if callback is None:
        return lambda d: None

    state = {"last_update": 0.0, "last_percent": 0}

    def hook(d: dict) -> None:
        if d.get("status") != "downloading":
            return

        now = time.time()
        if now - state["last_update"] < throttle_ms / 1000:
            return

        total = d.get("total_bytes") or d.get("total_bytes_estimate")
        downloaded = d.get("downloaded_bytes", 0)

        if total and total > 0:
            percent = int((downloaded / total) * 100)
        else:
            # Fallback: estimate from elapsed time (~50s to reach 95%)
            elapsed = d.get("elapsed", 0)
            percent = min(95, int(elapsed * 2))

        percent = min(99, max(0, percent))

        if percent > state["last_percent"]:
            state["last_update"] = now
            state["last_percent"] = percent
            try:
                callback(percent)
            except Exception:
                logger.opt(exception=True).debug("Progress callback failed")

    return hook


def _translate_download_error(e: Exception) -> DownloadError:
    """Map a yt-dlp DownloadError message onto our exception classes."""
    error_msg = str(e).lower()
    if any(marker in error_msg for marker in _AGE_MARKERS):
        return AgeRestrictedError("Media requires age verification (login not supported)")
    if "unavailable" in error_msg or "deleted" in error_msg or "private" in error_msg:
        return VideoUnavailableError("Media is unavailable, deleted, or private")
    if "copyright" in error_msg:
        return CopyrightBlockedError("Media blocked due to copyright")
    return DownloadError(f"Download failed: {e}")


def _entry_url(entry: dict) -> Optional[str]:
    url = entry.get("webpage_url") or entry.get("url")
    if url:
        return url
    if entry.get("id"):
        return f"https://www.youtube.com/watch?v={entry['id']}"
    return None


class YtDlpBackend:
    """AcquisitionBackend implemented with the yt_dlp library."""

    def __init__(
        self,
        audio_format: str = "m4a",
        audio_quality: str = "best",
        format_selector: str = "bestaudio/best",
        progress_throttle_ms: int = 250,
    ) -> None:
        self.audio_format = audio_format
        self.audio_quality = audio_quality
        self.format_selector = format_selector
        self.progress_throttle_ms = progress_throttle_ms

    def _base_opts(self) -> dict:
        return {"quiet": True, "no_warnings": True}

    def _extract_info(self, url: str) -> dict:
        opts = {**self._base_opts(), "noplaylist": True}
        try:
            with yt_dlp.YoutubeDL(opts) as ydl:
                info = ydl.extract_info(url, download=False)
        except yt_dlp.utils.DownloadError as e:
            raise _translate_download_error(e) from e
        if not info:
            raise VideoUnavailableError("Failed to extract media information")
        return info

    async def fetch_info(self, url: str) -> MediaInfo:
        info = await asyncio.to_thread(self._extract_info, url)
        duration = info.get("duration")
        return MediaInfo(
            media_id=info.get("id"),
            title=info.get("title"),
            artist=info.get("artist") or info.get("creator") or info.get("uploader"),
            duration_ms=round(duration * 1000) if duration else None,
            thumbnail_url=info.get("thumbnail"),
        )

    def _download(self, url: str, dest_dir: Path, file_id: str, hook) -> None:
        opts = {
            **self._base_opts(),
            "noplaylist": True,
            "format": self.format_selector,
            "outtmpl": str(dest_dir / f"{file_id}.%(ext)s"),
            "progress_hooks": [hook],
            "postprocessors": [
                {
                    "key": "FFmpegExtractAudio",
                    "preferredcodec": self.audio_format,
                    "preferredquality": _QUALITY_TO_PREFERRED.get(self.audio_quality, "0"),
                }
            ],
        }
        try:
            with yt_dlp.YoutubeDL(opts) as ydl:
                ydl.download([url])
        except yt_dlp.utils.DownloadError as e:
            raise _translate_download_error(e) from e

    async def download(
        self,
        url: str,
        dest_dir: Path,
        file_id: str,
        on_progress: Optional[DownloadProgressCallback] = None,
    ) -> None:
        loop = asyncio.get_running_loop()

        def threadsafe_progress(percent: int) -> None:
            loop.call_soon_threadsafe(on_progress, percent)

        hook = _make_progress_hook(
            threadsafe_progress if on_progress else None,
            throttle_ms=self.progress_throttle_ms,
        )
        dest_dir.mkdir(parents=True, exist_ok=True)
        await asyncio.to_thread(self._download, url, dest_dir, file_id, hook)
        logger.info(f"Downloaded audio for {url} into {dest_dir}")

    def _list_playlist(self, url: str) -> list[str]:
        opts = {**self._base_opts(), "extract_flat": "in_playlist"}
        try:
            with yt_dlp.YoutubeDL(opts) as ydl:
                info = ydl.extract_info(url, download=False)
        except yt_dlp.utils.DownloadError as e:
            raise DownloadError(f"Failed to access playlist: {e}") from e

        if not info:
            raise DownloadError("Failed to extract playlist information")
        if "entries" not in info:
            # Not a playlist: the URL is its own single item
            return [info.get("webpage_url") or url]

        urls = []
        for entry in info.get("entries") or []:
            if not entry:  # Skip unavailable items
                continue
            entry_url = _entry_url(entry)
            if entry_url:
                urls.append(entry_url)
        return urls

    async def list_playlist(self, url: str) -> list[str]:
        return await asyncio.to_thread(self._list_playlist, url)
