from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from trackdrop.domain.library.models import ImportResult, Track


class JobStatus(str, Enum):
    """Status of an import job."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class ImportUrlRequest(BaseModel):
    url: str = Field(min_length=1)


class ImportPlaylistRequest(BaseModel):
    url: str = Field(min_length=1)


class ImportJobResponse(BaseModel):
    job_id: str
    status: JobStatus


class FailureInfo(BaseModel):
    """A playlist item whose import or enrichment ended in an error."""

    track_id: str
    error: str


class ImportJobStatusResponse(BaseModel):
    job_id: str
    status: JobStatus
    progress: Optional[int] = None  # Percentage 0-100
    current_step: Optional[str] = None  # Last import step seen
    current_item: Optional[int] = None  # 1-based item index (playlist only)
    total_items: Optional[int] = None  # Playlist only
    failures: list[FailureInfo] = []
    result: Optional[dict] = None
    error: Optional[str] = None


class ImportResultResponse(BaseModel):
    track_id: str
    title: Optional[str] = None
    artist: Optional[str] = None
    duration_ms: Optional[int] = None
    source_platform: Optional[str] = None
    has_audio: bool
    import_status: Optional[str] = None
    import_error: Optional[str] = None

    @classmethod
    def from_result(cls, result: ImportResult) -> "ImportResultResponse":
        return cls(
            track_id=result.track_id,
            title=result.title,
            artist=result.artist,
            duration_ms=result.duration_ms,
            source_platform=result.source_platform,
            has_audio=result.has_audio,
            import_status=result.import_status,
            import_error=result.import_error,
        )


class PlatformLinkInfo(BaseModel):
    platform: str
    url: str


class TrackResponse(BaseModel):
    id: str
    source_url: Optional[str] = None
    source_platform: Optional[str] = None
    file_path: str = ""
    has_audio: bool = False
    duration_ms: Optional[int] = None
    title: Optional[str] = None
    artist_name: Optional[str] = None
    cover_art_path: Optional[str] = None
    genre: Optional[str] = None
    mood: Optional[str] = None
    summary: Optional[str] = None
    original_artist: Optional[str] = None
    is_cover: Optional[bool] = None
    platform_links: list[PlatformLinkInfo] = []
    import_status: Optional[str] = None
    import_error: Optional[str] = None
    date_added: int = 0

    @classmethod
    def from_track(cls, track: Track) -> "TrackResponse":
        fields = {name: getattr(track, name) for name in cls.model_fields if name != "platform_links"}
        return cls(
            **fields,
            platform_links=[PlatformLinkInfo(**link) for link in track.platform_links],
        )


class EnrichResponse(BaseModel):
    outcome: str
    track: TrackResponse


class CreditsResponse(BaseModel):
    credits: int


class SetCreditsRequest(BaseModel):
    credits: int = Field(ge=0)
