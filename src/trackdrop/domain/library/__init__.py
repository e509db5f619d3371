"""Library domain - track records, platform detection and acquisition.

This domain handles:
- Track data models and acquisition stage types
- Platform classification of import URLs
- Audio download and metadata-only lookups
- Metadata extraction from audio files
"""

from .importers import import_audio, import_metadata_only, locate_download
from .metadata import FileTags, read_file_tags
from .models import (
    AudioTrack,
    ImportResult,
    ImportStatus,
    MetadataOnlyTrack,
    PlaylistImportResult,
    SourcePlatform,
    Track,
    new_track_record,
)
from .platform import PlatformInfo, detect_platform

__all__ = [
    "AudioTrack",
    "FileTags",
    "ImportResult",
    "ImportStatus",
    "MetadataOnlyTrack",
    "PlatformInfo",
    "PlaylistImportResult",
    "SourcePlatform",
    "Track",
    "detect_platform",
    "import_audio",
    "import_metadata_only",
    "locate_download",
    "new_track_record",
    "read_file_tags",
]
