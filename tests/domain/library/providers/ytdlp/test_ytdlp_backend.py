"""Tests for the yt-dlp acquisition backend."""

from unittest.mock import MagicMock, patch

import pytest
import yt_dlp

from trackdrop.domain.library.providers import (
    AgeRestrictedError,
    CopyrightBlockedError,
    DownloadError,
    VideoUnavailableError,
)
from trackdrop.domain.library.providers.ytdlp.download import (
    YtDlpBackend,
    _entry_url,
    _make_progress_hook,
    _translate_download_error,
)

YOUTUBE_DL = "trackdrop.domain.library.providers.ytdlp.download.yt_dlp.YoutubeDL"


def mock_youtube_dl(mock_cls: MagicMock, info) -> MagicMock:
    ydl = MagicMock()
    ydl.extract_info.return_value = info
    mock_cls.return_value.__enter__.return_value = ydl
    return ydl


class TestProgressHook:
    """yt-dlp progress dicts to percentages."""

    def test_percent_from_bytes(self) -> None:
        seen = []
        hook = _make_progress_hook(seen.append, throttle_ms=0)

        hook({"status": "downloading", "downloaded_bytes": 50, "total_bytes": 200})
        hook({"status": "downloading", "downloaded_bytes": 100, "total_bytes": 200})

        assert seen == [25, 50]

    def test_capped_below_100(self) -> None:
        """100 is left for the caller once the file exists."""
        seen = []
        hook = _make_progress_hook(seen.append, throttle_ms=0)

        hook({"status": "downloading", "downloaded_bytes": 200, "total_bytes": 200})

        assert seen == [99]

    def test_never_decreases(self) -> None:
        seen = []
        hook = _make_progress_hook(seen.append, throttle_ms=0)

        hook({"status": "downloading", "downloaded_bytes": 80, "total_bytes": 100})
        hook({"status": "downloading", "downloaded_bytes": 10, "total_bytes": 100})

        assert seen == [80]

    def test_ignores_other_statuses(self) -> None:
        seen = []
        hook = _make_progress_hook(seen.append, throttle_ms=0)

        hook({"status": "finished", "downloaded_bytes": 100, "total_bytes": 100})

        assert seen == []

    def test_estimate_without_total(self) -> None:
        """Unknown size falls back to an elapsed-time estimate."""
        seen = []
        hook = _make_progress_hook(seen.append, throttle_ms=0)

        hook({"status": "downloading", "downloaded_bytes": 10, "elapsed": 10})

        assert seen == [20]

    def test_callback_error_swallowed(self) -> None:
        def broken(percent: int) -> None:
            raise RuntimeError("ui gone")

        hook = _make_progress_hook(broken, throttle_ms=0)
        hook({"status": "downloading", "downloaded_bytes": 1, "total_bytes": 2})


class TestErrorTranslation:
    """yt-dlp messages map onto DownloadError subclasses."""

    @pytest.mark.parametrize(
        "message,expected",
        [
            ("Sign in to confirm your age", AgeRestrictedError),
            ("Video unavailable", VideoUnavailableError),
            ("This video is private", VideoUnavailableError),
            ("blocked it on copyright grounds", CopyrightBlockedError),
            ("HTTP Error 500", DownloadError),
            ("Unable to download webpage: HTTP Error 404", DownloadError),
            ("This video is age-restricted", AgeRestrictedError),
        ],
    )
    def test_mapping(self, message, expected) -> None:
        error = _translate_download_error(Exception(message))
        assert type(error) is expected
        assert isinstance(error, DownloadError)

    def test_generic_keeps_message(self) -> None:
        error = _translate_download_error(Exception("Unable to download webpage: HTTP Error 404"))
        assert "HTTP Error 404" in str(error)


class TestEntryUrl:
    def test_prefers_webpage_url(self) -> None:
        assert _entry_url({"webpage_url": "https://a", "url": "https://b"}) == "https://a"

    def test_id_fallback(self) -> None:
        assert _entry_url({"id": "abc"}) == "https://www.youtube.com/watch?v=abc"

    def test_nothing(self) -> None:
        assert _entry_url({}) is None


class TestYtDlpBackend:
    """Backend calls with yt_dlp.YoutubeDL mocked out."""

    @pytest.mark.anyio
    async def test_fetch_info(self) -> None:
        """Info maps to MediaInfo, artist falls back to uploader."""
        with patch(YOUTUBE_DL) as mock_cls:
            mock_youtube_dl(
                mock_cls,
                {
                    "id": "abc",
                    "title": "Song",
                    "uploader": "Channel",
                    "duration": 212.5,
                    "thumbnail": "https://i.ytimg.com/x.jpg",
                },
            )
            info = await YtDlpBackend().fetch_info("https://youtu.be/abc")

        assert info.media_id == "abc"
        assert info.artist == "Channel"
        assert info.duration_ms == 212500
        assert info.thumbnail_url == "https://i.ytimg.com/x.jpg"

    @pytest.mark.anyio
    async def test_fetch_info_error(self) -> None:
        with patch(YOUTUBE_DL) as mock_cls:
            ydl = mock_youtube_dl(mock_cls, None)
            ydl.extract_info.side_effect = yt_dlp.utils.DownloadError("Video unavailable")
            with pytest.raises(VideoUnavailableError):
                await YtDlpBackend().fetch_info("https://youtu.be/abc")

    @pytest.mark.anyio
    async def test_list_playlist(self) -> None:
        """Entries become URLs in order; missing entries are skipped."""
        with patch(YOUTUBE_DL) as mock_cls:
            mock_youtube_dl(
                mock_cls,
                {
                    "entries": [
                        {"url": "https://www.youtube.com/watch?v=1"},
                        None,
                        {"id": "2"},
                    ]
                },
            )
            urls = await YtDlpBackend().list_playlist("https://www.youtube.com/playlist?list=x")

        assert urls == [
            "https://www.youtube.com/watch?v=1",
            "https://www.youtube.com/watch?v=2",
        ]

    @pytest.mark.anyio
    async def test_list_single_video(self) -> None:
        """A non-playlist URL lists itself."""
        with patch(YOUTUBE_DL) as mock_cls:
            mock_youtube_dl(mock_cls, {"id": "abc", "webpage_url": "https://www.youtube.com/watch?v=abc"})
            urls = await YtDlpBackend().list_playlist("https://youtu.be/abc")

        assert urls == ["https://www.youtube.com/watch?v=abc"]

    @pytest.mark.anyio
    async def test_download_options(self, tmp_path) -> None:
        """Output template and audio quality reach yt-dlp."""
        with patch(YOUTUBE_DL) as mock_cls:
            ydl = mock_youtube_dl(mock_cls, None)
            await YtDlpBackend(audio_quality="192k").download("https://youtu.be/abc", tmp_path, "abc")

        opts = mock_cls.call_args[0][0]
        assert opts["outtmpl"] == str(tmp_path / "abc.%(ext)s")
        assert opts["postprocessors"][0]["preferredquality"] == "192"
        ydl.download.assert_called_once_with(["https://youtu.be/abc"])
