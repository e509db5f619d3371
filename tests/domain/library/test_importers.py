"""Tests for the audio and metadata-only importers."""

import httpx
import pytest

from trackdrop.domain.library.importers import (
    PLACEHOLDER_ARTIST,
    PLACEHOLDER_TITLE,
    import_audio,
    import_metadata_only,
    locate_download,
)
from trackdrop.domain.library.metadata import FileTags
from trackdrop.domain.library.models import SourcePlatform
from trackdrop.domain.library.providers import DownloadError, InvalidURLError
from trackdrop.domain.library.providers.ytdlp import MediaInfo

YOUTUBE_URL = "https://youtu.be/abc123"


class TestLocateDownload:
    """Finding the file the backend produced."""

    def test_prefers_audio_over_leftovers(self, tmp_path) -> None:
        """Partial files are ignored and audio containers win."""
        (tmp_path / "abc.m4a.part").write_bytes(b"x")
        (tmp_path / "abc.webm").write_bytes(b"x")
        (tmp_path / "abc.m4a").write_bytes(b"x")

        assert locate_download(tmp_path, "abc").name == "abc.m4a"

    def test_missing_file(self, tmp_path) -> None:
        """No finished file raises DownloadError."""
        (tmp_path / "abc.part").write_bytes(b"x")

        with pytest.raises(DownloadError, match="file not found"):
            locate_download(tmp_path, "abc")


class TestImportAudio:
    """Downloading audio through the backend."""

    @pytest.mark.anyio
    async def test_result(self, tmp_path, backend, http) -> None:
        """Backend tags fill in when the file has none."""
        track = await import_audio(
            YOUTUBE_URL, tmp_path, None, backend=backend, http=http, read_tags=lambda p: FileTags()
        )

        assert track.file_path == tmp_path / "abc123.m4a"
        assert track.file_size == 128
        assert track.title == "Backend Title"
        assert track.artist == "Backend Artist"
        assert track.duration_ms == 215000
        assert track.source_platform == SourcePlatform.YOUTUBE
        assert track.cover_art_path is None

    @pytest.mark.anyio
    async def test_file_tags_preferred(self, tmp_path, backend, http) -> None:
        """Embedded tags override backend tags only where present."""
        tags = FileTags(title="Tag Title", artist=None, duration_ms=None)

        track = await import_audio(
            YOUTUBE_URL, tmp_path, None, backend=backend, http=http, read_tags=lambda p: tags
        )

        assert track.title == "Tag Title"
        assert track.artist == "Backend Artist"
        assert track.duration_ms == 215000

    @pytest.mark.anyio
    async def test_progress(self, tmp_path, backend, http) -> None:
        """Progress starts at 0, never decreases and ends at 100."""
        backend.progress_steps = [30, 20, 60, 60, 150]
        seen = []

        await import_audio(
            YOUTUBE_URL, tmp_path, seen.append, backend=backend, http=http, read_tags=lambda p: FileTags()
        )

        assert seen == [0, 30, 60, 100]

    @pytest.mark.anyio
    async def test_thumbnail_saved(self, tmp_path, backend, http, http_routes) -> None:
        """The thumbnail lands next to the audio as thumb.jpg."""
        backend.info = backend.info._replace(thumbnail_url="https://i.ytimg.com/vi/abc123/hq.jpg")
        http_routes["https://i.ytimg.com/"] = httpx.Response(200, content=b"jpeg-bytes")

        track = await import_audio(
            YOUTUBE_URL, tmp_path, None, backend=backend, http=http, read_tags=lambda p: FileTags()
        )

        assert track.cover_art_path == tmp_path / "thumb.jpg"
        assert track.cover_art_path.read_bytes() == b"jpeg-bytes"

    @pytest.mark.anyio
    async def test_missing_file_after_download(self, tmp_path, backend, http) -> None:
        """A reported download without a file raises DownloadError."""
        backend.write_file = False

        with pytest.raises(DownloadError):
            await import_audio(YOUTUBE_URL, tmp_path, None, backend=backend, http=http)

    @pytest.mark.anyio
    async def test_unsafe_media_id(self, tmp_path, backend, http) -> None:
        """Media ids are sanitized into file names."""
        backend.info = MediaInfo("a/b c", None, None, None, None)

        track = await import_audio(
            YOUTUBE_URL, tmp_path, None, backend=backend, http=http, read_tags=lambda p: FileTags()
        )

        assert track.file_path.name == "a_b_c.m4a"
        assert track.title is None


class TestImportMetadataOnly:
    """Lookups for streaming links."""

    @pytest.mark.anyio
    async def test_deezer_lookup(self, tmp_path, http, http_routes) -> None:
        """Deezer track API provides title, artist and cover."""
        http_routes["https://api.deezer.com/track/3135556"] = httpx.Response(
            200,
            json={
                "title": "Harder, Better, Faster, Stronger",
                "artist": {"name": "Daft Punk"},
                "album": {"cover_big": "https://e-cdns-images.dzcdn.net/cover.jpg"},
            },
        )
        http_routes["https://e-cdns-images.dzcdn.net/"] = httpx.Response(200, content=b"img")

        track = await import_metadata_only("https://www.deezer.com/track/3135556", tmp_path, http=http)

        assert track.title == "Harder, Better, Faster, Stronger"
        assert track.artist == "Daft Punk"
        assert track.source_platform == SourcePlatform.DEEZER
        assert track.cover_art_path == tmp_path / "thumb.jpg"
        assert track.has_audio is False

    @pytest.mark.anyio
    async def test_lookup_failure_placeholders(self, tmp_path, http) -> None:
        """Failed lookups fall back to placeholders."""
        track = await import_metadata_only("https://open.spotify.com/track/1", tmp_path, http=http)

        assert track.title == PLACEHOLDER_TITLE
        assert track.artist == PLACEHOLDER_ARTIST
        assert track.cover_art_path is None

    @pytest.mark.anyio
    async def test_invalid_url(self, tmp_path, http) -> None:
        """Malformed URLs are rejected."""
        with pytest.raises(InvalidURLError):
            await import_metadata_only("javascript:alert(1)", tmp_path, http=http)

    @pytest.mark.anyio
    async def test_malformed_lookup_placeholders(self, tmp_path, http, http_routes) -> None:
        """A lookup payload of the wrong shape still yields placeholders."""
        http_routes["https://api.deezer.com/track/3135556"] = httpx.Response(
            200, json={"title": "Harder", "artist": "Daft Punk", "album": None}
        )

        track = await import_metadata_only("https://www.deezer.com/en/track/3135556", tmp_path, http=http)

        assert track.title == PLACEHOLDER_TITLE
        assert track.artist == PLACEHOLDER_ARTIST


class TestThumbnail:
    @pytest.mark.anyio
    async def test_invalid_thumbnail_url(self, tmp_path, backend, http) -> None:
        """An unusable thumbnail URL leaves the cover empty instead of failing."""
        backend.info = backend.info._replace(thumbnail_url="https://i.ytimg.com/\x00.jpg")

        track = await import_audio(
            YOUTUBE_URL, tmp_path, None, backend=backend, http=http, read_tags=lambda p: FileTags()
        )

        assert track.cover_art_path is None
        assert not (tmp_path / "thumb.jpg").exists()
