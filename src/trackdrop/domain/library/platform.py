"""Classify an import URL by origin service."""

from pathlib import PurePosixPath
from typing import NamedTuple
from urllib.parse import urlparse

from .models import SourcePlatform

AUDIO_EXTENSIONS = {".mp3", ".flac", ".m4a", ".wav", ".ogg", ".opus", ".aac"}

_HOSTS = {
    "youtube.com": SourcePlatform.YOUTUBE,
    "youtu.be": SourcePlatform.YOUTUBE,
    "music.youtube.com": SourcePlatform.YOUTUBE,
    "soundcloud.com": SourcePlatform.SOUNDCLOUD,
    "open.spotify.com": SourcePlatform.SPOTIFY,
    "music.apple.com": SourcePlatform.APPLE_MUSIC,
    "deezer.com": SourcePlatform.DEEZER,
}

AUDIO_PLATFORMS = {
    SourcePlatform.YOUTUBE,
    SourcePlatform.SOUNDCLOUD,
    SourcePlatform.BANDCAMP,
    SourcePlatform.DIRECT,
}


class PlatformInfo(NamedTuple):
    platform: SourcePlatform
    has_audio_capability: bool


UNKNOWN = PlatformInfo(SourcePlatform.UNKNOWN, False)


def parse_http_url(url: str):
    """Return urlparse() of ``url`` if it is an http(s) URL with a host, else None."""
    try:
        parsed = urlparse(url.strip())
    except (AttributeError, ValueError):
        return None
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return None
    return parsed


def _normalize_host(host: str) -> str:
    for prefix in ("www.", "m."):
        if host.startswith(prefix):
            return host[len(prefix):]
    return host


def detect_platform(url: str) -> PlatformInfo:
    """Map a URL to its platform and whether audio can be downloaded.

    Never raises: malformed or unrecognized URLs classify as unknown.
    """
    parsed = parse_http_url(url)
    if parsed is None:
        return UNKNOWN

    host = _normalize_host(parsed.hostname.lower())
    platform = _HOSTS.get(host)
    if platform is None and host.endswith(".bandcamp.com"):
        platform = SourcePlatform.BANDCAMP

    if platform is None:
        ext = PurePosixPath(parsed.path).suffix.lower()
        if ext in AUDIO_EXTENSIONS:
            platform = SourcePlatform.DIRECT

    if platform is None:
        return UNKNOWN
    return PlatformInfo(platform, platform in AUDIO_PLATFORMS)
