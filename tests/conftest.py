"""Shared fixtures: an on-disk library in tmp_path plus fakes for every
external collaborator of the import pipeline."""

from pathlib import Path
from typing import Callable, Optional

import httpx
import pytest

from trackdrop.core.library_store import LibraryStore
from trackdrop.core.settings_store import CreditLedger, SettingsStore
from trackdrop.domain.ai import ClassificationRequest, ClassificationResult
from trackdrop.domain.importing import (
    EnrichmentStep,
    ImportEventBus,
    ImportOrchestrator,
    PlaylistOrchestrator,
    StatusEvent,
)
from trackdrop.domain.library.metadata import FileTags
from trackdrop.domain.library.providers.ytdlp import MediaInfo


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeBackend:
    """AcquisitionBackend that writes a small file instead of downloading."""

    def __init__(self) -> None:
        self.info = MediaInfo(
            media_id="abc123",
            title="Backend Title",
            artist="Backend Artist",
            duration_ms=215000,
            thumbnail_url=None,
        )
        self.progress_steps = [10, 40, 40, 90]
        self.write_file = True
        self.extension = "m4a"
        self.fail_urls: dict[str, Exception] = {}
        self.playlist: Optional[list[str]] = None
        self.playlist_error: Optional[Exception] = None
        self.downloads: list[tuple[str, Path, str]] = []

    async def fetch_info(self, url: str) -> MediaInfo:
        if url in self.fail_urls:
            raise self.fail_urls[url]
        return self.info

    async def download(self, url, dest_dir, file_id, on_progress=None) -> None:
        self.downloads.append((url, dest_dir, file_id))
        for percent in self.progress_steps:
            if on_progress:
                on_progress(percent)
        if self.write_file:
            dest_dir.mkdir(parents=True, exist_ok=True)
            (dest_dir / f"{file_id}.{self.extension}").write_bytes(b"\x00" * 128)

    async def list_playlist(self, url: str) -> list[str]:
        if self.playlist_error:
            raise self.playlist_error
        return list(self.playlist) if self.playlist is not None else [url]


def make_result(**overrides) -> ClassificationResult:
    data = {
        "genre": "pop",
        "mood": "happy",
        "performingArtist": "Real Artist",
        "originalArtist": None,
        "isCover": False,
        "summary": "A catchy pop song.",
        "platformLinks": [{"platform": "spotify", "url": "https://open.spotify.com/track/1"}],
    }
    data.update(overrides)
    return ClassificationResult.model_validate(data)


class FakeClassifier:
    """ClassificationService returning queued results (or a default one)."""

    def __init__(self) -> None:
        self.results: list[ClassificationResult] = []
        self.error: Optional[Exception] = None
        self.calls: list[ClassificationRequest] = []
        self.on_call: Optional[Callable[[ClassificationRequest], None]] = None

    async def classify(self, request: ClassificationRequest) -> ClassificationResult:
        self.calls.append(request)
        if self.on_call:
            self.on_call(request)
        if self.error:
            raise self.error
        if self.results:
            return self.results.pop(0)
        return make_result()


class EventRecorder:
    """Bus subscriber keeping every event in publish order."""

    def __init__(self) -> None:
        self.events: list = []

    def __call__(self, event) -> None:
        self.events.append(event)

    def of_type(self, cls) -> list:
        return [e for e in self.events if isinstance(e, cls)]

    def steps(self, track_id: Optional[str] = None) -> list:
        return [
            e.step
            for e in self.of_type(StatusEvent)
            if track_id is None or e.track_id == track_id
        ]


class TagReader:
    def __init__(self) -> None:
        self.tags = FileTags()

    def __call__(self, path: Path) -> FileTags:
        return self.tags


@pytest.fixture
def store(tmp_path: Path) -> LibraryStore:
    return LibraryStore(tmp_path / "library").open()


@pytest.fixture
def settings(tmp_path: Path) -> SettingsStore:
    return SettingsStore(tmp_path / "settings.json", default_credits=10).open()


@pytest.fixture
def ledger(settings: SettingsStore) -> CreditLedger:
    return CreditLedger(settings)


@pytest.fixture
def bus() -> ImportEventBus:
    return ImportEventBus()


@pytest.fixture
def recorder(bus: ImportEventBus) -> EventRecorder:
    recorder = EventRecorder()
    bus.subscribe(recorder)
    return recorder


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def classifier() -> FakeClassifier:
    return FakeClassifier()


@pytest.fixture
def tag_reader() -> TagReader:
    return TagReader()


@pytest.fixture
def http_routes() -> dict:
    """URL prefix -> httpx.Response. Anything unmatched is a 404."""
    return {}


@pytest.fixture
def http(http_routes: dict) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        for prefix, response in http_routes.items():
            if url.startswith(prefix):
                # Fresh copy per request so one route can serve many calls
                return httpx.Response(
                    response.status_code,
                    headers=response.headers,
                    content=response.content,
                )
        return httpx.Response(404)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


@pytest.fixture
def enrichment(store, ledger, classifier, bus) -> EnrichmentStep:
    return EnrichmentStep(store, ledger, classifier, bus)


@pytest.fixture
def importer(store, backend, http, bus, enrichment, tag_reader) -> ImportOrchestrator:
    return ImportOrchestrator(
        store=store,
        backend=backend,
        http=http,
        events=bus,
        enrichment=enrichment,
        read_tags=tag_reader,
    )


@pytest.fixture
def playlist_importer(importer, bus) -> PlaylistOrchestrator:
    return PlaylistOrchestrator(importer, bus)


@pytest.fixture
def classification() -> Callable[..., ClassificationResult]:
    """Factory for ClassificationResult with camelCase overrides."""
    return make_result
