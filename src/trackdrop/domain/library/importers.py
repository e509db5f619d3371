"""
Acquisition step of the import pipeline.

Two importers turn a URL into an acquisition result:

- import_audio: downloads the audio through the acquisition backend, then
  re-reads the file for embedded tags and fetches the thumbnail.
- import_metadata_only: resolves title/artist/thumbnail through a platform
  lookup for services whose audio cannot be downloaded.

Nothing here touches the track store; the orchestrator persists the result.
"""

import asyncio
import re
from pathlib import Path
from typing import Callable, Optional

import httpx
from loguru import logger

from .metadata import FileTags, read_file_tags
from .models import AudioTrack, MetadataOnlyTrack, now_ms
from .platform import AUDIO_EXTENSIONS, detect_platform, parse_http_url
from .providers.exceptions import DownloadError, InvalidURLError, MetadataLookupError
from .providers.lookups import lookup_metadata
from .providers.thumbnails import download_thumbnail
from .providers.ytdlp import AcquisitionBackend, DownloadProgressCallback

PLACEHOLDER_TITLE = "Unknown Title"
PLACEHOLDER_ARTIST = "Unknown Artist"

_PARTIAL_SUFFIXES = {".part", ".ytdl", ".tmp"}

TagReader = Callable[[Path], FileTags]


def _safe_file_id(media_id: Optional[str]) -> str:
    file_id = re.sub(r"[^\w-]", "_", media_id or "").strip("_")
    return file_id or str(now_ms())


def _monotonic_progress(
    callback: Optional[DownloadProgressCallback],
) -> DownloadProgressCallback:
    """Wrap ``callback`` so it only sees non-decreasing values in 0-100."""
    state = {"last": -1}

    def report(percent: int) -> None:
        percent = min(100, max(0, int(percent)))
        if percent <= state["last"]:
            return
        state["last"] = percent
        if callback is not None:
            callback(percent)

    return report


def locate_download(dest_dir: Path, file_id: str) -> Path:
    """Find the file the backend wrote for ``file_id``.

    Raises:
        DownloadError: If no finished file exists or it cannot be statted
    """
    candidates = [
        p
        for p in dest_dir.glob(f"{file_id}.*")
        if p.is_file() and p.suffix.lower() not in _PARTIAL_SUFFIXES
    ]
    if not candidates:
        raise DownloadError("Download completed but file not found")

    # Prefer real audio containers over leftovers such as .webm sources
    candidates.sort(key=lambda p: (p.suffix.lower() not in AUDIO_EXTENSIONS, p.name))
    file_path = candidates[0]
    try:
        file_path.stat()
    except OSError as e:
        raise DownloadError(f"Downloaded file is not accessible: {e}") from e
    return file_path


async def import_audio(
    url: str,
    dest_dir: Path,
    on_progress: Optional[DownloadProgressCallback],
    *,
    backend: AcquisitionBackend,
    http: httpx.AsyncClient,
    read_tags: TagReader = read_file_tags,
) -> AudioTrack:
    """Download audio for ``url`` into ``dest_dir``.

    Args:
        url: Audio-capable URL
        dest_dir: Track directory to write audio and thumbnail into
        on_progress: Receives non-decreasing percentages 0-100
        backend: Acquisition backend doing the transfer
        http: Client used for the thumbnail
        read_tags: Embedded tag reader for the downloaded file

    Returns:
        AudioTrack with file-embedded tags preferred over backend tags

    Raises:
        DownloadError: Backend failure, or no file could be located afterwards
    """
    platform = detect_platform(url).platform
    progress = _monotonic_progress(on_progress)
    dest_dir.mkdir(parents=True, exist_ok=True)

    progress(0)
    info = await backend.fetch_info(url)
    file_id = _safe_file_id(info.media_id)

    await backend.download(url, dest_dir, file_id, on_progress=progress)
    file_path = locate_download(dest_dir, file_id)
    try:
        file_size = file_path.stat().st_size
    except OSError as e:
        raise DownloadError(f"Downloaded file is not accessible: {e}") from e
    progress(100)

    tags = await asyncio.to_thread(read_tags, file_path)
    cover_path = await download_thumbnail(http, info.thumbnail_url, dest_dir)

    logger.info(f"Acquired audio {file_path.name} ({file_size} bytes) from {url}")

    return AudioTrack(
        source_url=url,
        source_platform=platform,
        file_path=file_path,
        file_size=file_size,
        title=tags.title or info.title,
        artist=tags.artist or info.artist,
        duration_ms=tags.duration_ms or info.duration_ms,
        thumbnail_url=info.thumbnail_url,
        cover_art_path=cover_path,
    )


async def import_metadata_only(
    url: str,
    dest_dir: Path,
    *,
    http: httpx.AsyncClient,
) -> MetadataOnlyTrack:
    """Resolve metadata for a platform without downloadable audio.

    Lookup failures fall back to placeholder title/artist; enrichment is
    the final authority on the song's identity.

    Raises:
        InvalidURLError: If ``url`` is not a well-formed http(s) URL
    """
    if parse_http_url(url) is None:
        raise InvalidURLError(f"Not a valid URL: {url!r}")

    platform = detect_platform(url).platform
    try:
        result = await lookup_metadata(http, platform, url)
        title, artist, thumbnail_url = result
    except MetadataLookupError as e:
        logger.warning(f"Metadata lookup failed for {url}, using placeholders: {e}")
        title, artist, thumbnail_url = None, None, None

    cover_path = await download_thumbnail(http, thumbnail_url, dest_dir)

    return MetadataOnlyTrack(
        source_url=url,
        source_platform=platform,
        title=title or PLACEHOLDER_TITLE,
        artist=artist or PLACEHOLDER_ARTIST,
        thumbnail_url=thumbnail_url,
        cover_art_path=cover_path,
    )
