"""
Track library domain models.

Contains the persisted Track record, the enumerations it uses, and the
per-stage acquisition results the import pipeline builds before a record
exists.
"""

import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, NamedTuple, Optional, Union


class SourcePlatform(str, Enum):
    """Origin service of an imported URL."""

    YOUTUBE = "youtube"
    SOUNDCLOUD = "soundcloud"
    BANDCAMP = "bandcamp"
    DIRECT = "direct"
    SPOTIFY = "spotify"
    APPLE_MUSIC = "apple_music"
    DEEZER = "deezer"
    UNKNOWN = "unknown"


class ImportStatus(str, Enum):
    """Outcome of the most recent import/enrichment attempt."""

    ENRICHING = "enriching"
    READY = "ready"
    ERROR = "error"


class Track(NamedTuple):
    """A track in the library.

    Mirrors the on-disk metadata.json record. ``has_audio`` is authoritative
    for playability; ``file_path`` is an empty string for audio-less tracks.
    Descriptive fields are filled in progressively as import steps complete.
    """

    id: str
    source_url: Optional[str] = None
    source_platform: Optional[str] = None
    is_imported: bool = False
    file_path: str = ""
    has_audio: bool = False
    duration_ms: Optional[int] = None
    file_size: Optional[int] = None
    title: Optional[str] = None
    artist_name: Optional[str] = None
    album_title: Optional[str] = None
    cover_art_path: Optional[str] = None

    # AI-derived (genre and mood are set together or not at all)
    genre: Optional[str] = None
    mood: Optional[str] = None
    summary: Optional[str] = None
    original_artist: Optional[str] = None
    is_cover: Optional[bool] = None
    platform_links: tuple = ()

    import_status: Optional[str] = None
    import_error: Optional[str] = None

    play_count: int = 0
    is_deleted: bool = False
    date_added: int = 0  # epoch ms
    modified_at: int = 0  # epoch ms

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase record shape stored on disk."""
        data = {}
        for name, value in self._asdict().items():
            if name == "platform_links":
                value = [dict(link) for link in value]
            data[_FIELD_TO_KEY[name]] = value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Track":
        """Build a Track from a stored record, ignoring unknown keys."""
        kwargs = {}
        for key, value in data.items():
            name = _KEY_TO_FIELD.get(key)
            if name is None:
                continue
            if name == "platform_links":
                value = tuple(dict(link) for link in value or [])
            kwargs[name] = value
        # Older records written before hasAudio existed
        if "has_audio" not in kwargs:
            kwargs["has_audio"] = bool(kwargs.get("file_path"))
        return cls(**kwargs)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


_FIELD_TO_KEY = {name: _camel(name) for name in Track._fields}
_KEY_TO_FIELD = {key: name for name, key in _FIELD_TO_KEY.items()}


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


# ---------------------------------------------------------------------------
# Acquisition stages
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MetadataOnlyTrack:
    """Acquisition result for a platform without downloadable audio."""

    source_url: str
    source_platform: SourcePlatform
    title: Optional[str] = None
    artist: Optional[str] = None
    thumbnail_url: Optional[str] = None
    cover_art_path: Optional[Path] = None

    @property
    def has_audio(self) -> bool:
        return False


@dataclass(frozen=True)
class AudioTrack:
    """Acquisition result for a downloaded audio file.

    Always carries a resolvable file path: constructing one without a path
    raises ValueError.
    """

    source_url: str
    source_platform: SourcePlatform
    file_path: Path
    file_size: int
    title: Optional[str] = None
    artist: Optional[str] = None
    duration_ms: Optional[int] = None
    thumbnail_url: Optional[str] = None
    cover_art_path: Optional[Path] = None

    def __post_init__(self) -> None:
        if not str(self.file_path) or str(self.file_path) == ".":
            raise ValueError("AudioTrack requires a non-empty file path")

    @property
    def has_audio(self) -> bool:
        return True


AcquiredTrack = Union[MetadataOnlyTrack, AudioTrack]


def new_track_record(track_id: str, acquired: AcquiredTrack) -> Track:
    """Flatten an acquisition result into a Track ready for enrichment."""
    timestamp = now_ms()
    cover = str(acquired.cover_art_path) if acquired.cover_art_path else None

    if isinstance(acquired, AudioTrack):
        return Track(
            id=track_id,
            source_url=acquired.source_url,
            source_platform=acquired.source_platform.value,
            is_imported=True,
            file_path=str(acquired.file_path),
            has_audio=True,
            duration_ms=acquired.duration_ms,
            file_size=acquired.file_size,
            title=acquired.title,
            artist_name=acquired.artist,
            cover_art_path=cover,
            import_status=ImportStatus.ENRICHING.value,
            date_added=timestamp,
            modified_at=timestamp,
        )

    return Track(
        id=track_id,
        source_url=acquired.source_url,
        source_platform=acquired.source_platform.value,
        is_imported=True,
        file_path="",
        has_audio=False,
        title=acquired.title,
        artist_name=acquired.artist,
        cover_art_path=cover,
        import_status=ImportStatus.ENRICHING.value,
        date_added=timestamp,
        modified_at=timestamp,
    )


@dataclass(frozen=True)
class ImportResult:
    """Terminal result of a single-URL import, read back from the store."""

    track_id: str
    title: Optional[str]
    artist: Optional[str]
    duration_ms: Optional[int]
    source_platform: Optional[str]
    has_audio: bool
    import_status: Optional[str]
    import_error: Optional[str]

    @classmethod
    def from_track(cls, track: Track) -> "ImportResult":
        return cls(
            track_id=track.id,
            title=track.title,
            artist=track.artist_name,
            duration_ms=track.duration_ms,
            source_platform=track.source_platform,
            has_audio=track.has_audio,
            import_status=track.import_status,
            import_error=track.import_error,
        )


@dataclass(frozen=True)
class PlaylistImportResult:
    """Result of a playlist import: ids of items that reached persistence."""

    track_ids: list[str]
    count: int
