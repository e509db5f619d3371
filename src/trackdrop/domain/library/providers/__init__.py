"""
Acquisition providers.

- ytdlp: downloadable audio (YouTube, SoundCloud, Bandcamp, direct links)
- lookups: metadata-only platforms (Spotify, Apple Music, Deezer)
- thumbnails: cover art download
"""

from .exceptions import (
    AcquisitionError,
    AgeRestrictedError,
    CopyrightBlockedError,
    DownloadError,
    InvalidURLError,
    MetadataLookupError,
    VideoUnavailableError,
)

__all__ = [
    "AcquisitionError",
    "AgeRestrictedError",
    "CopyrightBlockedError",
    "DownloadError",
    "InvalidURLError",
    "MetadataLookupError",
    "VideoUnavailableError",
]
