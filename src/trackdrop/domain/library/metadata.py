"""
Audio file metadata extraction.

Reads embedded tags from downloaded audio files using Mutagen. Tags found
here take priority over what the download backend reported.
"""

from pathlib import Path
from typing import NamedTuple, Optional

from loguru import logger
from mutagen import File as MutagenFile
from mutagen import MutagenError


class FileTags(NamedTuple):
    """Embedded tags of a local audio file. Fields are None when absent."""

    title: Optional[str] = None
    artist: Optional[str] = None
    duration_ms: Optional[int] = None


def get_tag_value(audio_file: MutagenFile, tag_names: list[str]) -> Optional[str]:
    """Get tag value, trying multiple possible tag names."""
    for tag_name in tag_names:
        try:
            value = audio_file.get(tag_name)
            if value:
                # Handle different formats
                if isinstance(value, list) and value:
                    return str(value[0])
                return str(value)
        except (KeyError, ValueError):
            # Some formats (like Vorbis) raise ValueError for non-existent keys
            continue
    return None


def read_file_tags(local_path: Path) -> FileTags:
    """Read title, artist and duration from an audio file.

    Unreadable or unrecognized files yield empty tags instead of raising,
    so callers can fall back to backend-reported metadata.
    """
    try:
        audio_file = MutagenFile(local_path)
    except (MutagenError, OSError) as e:
        logger.warning(f"Metadata parse failed for {local_path}, using backend tags: {e}")
        return FileTags()

    if audio_file is None:
        logger.debug(f"Mutagen could not identify {local_path}")
        return FileTags()

    # ID3 (MP3), MP4, and Vorbis/Opus tags (lowercase)
    title = get_tag_value(audio_file, ["TIT2", "\xa9nam", "TITLE", "title"])
    artist = get_tag_value(audio_file, ["TPE1", "\xa9ART", "ARTIST", "artist"])

    duration_ms = None
    length = getattr(getattr(audio_file, "info", None), "length", None)
    if length:
        duration_ms = round(length * 1000)

    return FileTags(title=title or None, artist=artist or None, duration_ms=duration_ms)
