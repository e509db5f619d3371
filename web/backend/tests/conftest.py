"""Pytest configuration for backend tests.

Every test gets its own AppContext in tmp_path, wired with fake acquisition
and classification services, and installed as the app's context dependency.
"""

from pathlib import Path
from typing import Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from trackdrop.context import AppContext
from trackdrop.core.config import Config
from trackdrop.domain.ai import ClassificationRequest, ClassificationResult
from trackdrop.domain.library.providers.ytdlp import MediaInfo
from web.backend.deps import get_app_context
from web.backend.main import app


@pytest.fixture
def anyio_backend():
    return "asyncio"


class StubBackend:
    """Acquisition backend writing a tiny file per download."""

    def __init__(self) -> None:
        self.fail_urls: dict[str, Exception] = {}
        self.playlist: Optional[list[str]] = None

    async def fetch_info(self, url: str) -> MediaInfo:
        if url in self.fail_urls:
            raise self.fail_urls[url]
        return MediaInfo(url.rsplit("/", 1)[-1], "Stub Title", "Stub Artist", 180000, None)

    async def download(self, url, dest_dir: Path, file_id: str, on_progress=None) -> None:
        for percent in (25, 50, 75):
            if on_progress:
                on_progress(percent)
        dest_dir.mkdir(parents=True, exist_ok=True)
        (dest_dir / f"{file_id}.m4a").write_bytes(b"\x00" * 64)

    async def list_playlist(self, url: str) -> list[str]:
        return list(self.playlist) if self.playlist is not None else [url]


class StubClassifier:
    def __init__(self) -> None:
        self.error: Optional[Exception] = None

    async def classify(self, request: ClassificationRequest) -> ClassificationResult:
        if self.error:
            raise self.error
        return ClassificationResult.model_validate(
            {
                "genre": "rock",
                "mood": "energetic",
                "performingArtist": "Stub Band",
                "platformLinks": [{"platform": "spotify", "url": "https://open.spotify.com/track/9"}],
            }
        )


@pytest.fixture
def stub_backend() -> StubBackend:
    return StubBackend()


@pytest.fixture
def stub_classifier() -> StubClassifier:
    return StubClassifier()


@pytest.fixture
def app_context(tmp_path, stub_backend, stub_classifier) -> AppContext:
    config = Config()
    config.library.path = str(tmp_path / "library")
    return AppContext.create(
        config,
        settings_path=tmp_path / "settings.json",
        backend=stub_backend,
        classifier=stub_classifier,
        http=httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(404))),
    )


@pytest.fixture
def client(app_context):
    app.dependency_overrides[get_app_context] = lambda: app_context
    yield TestClient(app)
    app.dependency_overrides.clear()
