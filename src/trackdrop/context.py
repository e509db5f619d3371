"""Application context: every long-lived collaborator of the import pipeline.

Built once per process (CLI invocation or web server) and passed explicitly to
whatever needs it instead of living in module globals.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx

from trackdrop.core.config import Config, get_data_dir
from trackdrop.core.library_store import LibraryStore
from trackdrop.core.settings_store import CreditLedger, SettingsStore
from trackdrop.domain.ai import ClassificationService, OpenAIClassifier
from trackdrop.domain.importing import (
    EnrichmentStep,
    ImportEventBus,
    ImportOrchestrator,
    PlaylistOrchestrator,
)
from trackdrop.domain.library.providers.ytdlp import AcquisitionBackend, YtDlpBackend


@dataclass
class AppContext:
    """Wired application state.

    Attributes:
        config: Application configuration
        store: Track library
        settings: settings.json store (API key, credits, download quality)
        credits: Credit ledger over ``settings``
        events: Import event bus shared by every surface
        http: Client for metadata lookups and thumbnails
        backend: Audio acquisition backend
        classifier: AI classification service
    """

    config: Config
    store: LibraryStore
    settings: SettingsStore
    credits: CreditLedger
    events: ImportEventBus
    http: httpx.AsyncClient
    backend: AcquisitionBackend
    classifier: ClassificationService

    @classmethod
    def create(
        cls,
        config: Config,
        settings_path: Optional[Path] = None,
        backend: Optional[AcquisitionBackend] = None,
        classifier: Optional[ClassificationService] = None,
        http: Optional[httpx.AsyncClient] = None,
    ) -> "AppContext":
        """Open the stores and build the default collaborators.

        Args:
            config: Application configuration
            settings_path: settings.json location (default: data dir)
            backend: Acquisition backend override (default: yt-dlp)
            classifier: Classification service override (default: OpenAI)
            http: HTTP client override

        Returns:
            Ready-to-use AppContext
        """
        store = LibraryStore(Path(config.library.path)).open()
        settings = SettingsStore(
            settings_path or get_data_dir() / "settings.json",
            default_credits=config.credits.initial,
        ).open()
        app_settings = settings.get()

        if backend is None:
            backend = YtDlpBackend(
                audio_format=config.download.audio_format,
                audio_quality=app_settings.download_quality or config.download.audio_quality,
                format_selector=config.download.format_selector,
                progress_throttle_ms=config.download.progress_throttle_ms,
            )

        if classifier is None:
            classifier = OpenAIClassifier(
                api_key=config.ai.openai_api_key or app_settings.openai_api_key,
                model=config.ai.model,
                web_search=config.ai.web_search,
                timeout_seconds=config.ai.timeout_seconds,
            )

        if http is None:
            http = httpx.AsyncClient(
                timeout=config.http.timeout_seconds,
                headers={"User-Agent": config.http.user_agent},
                follow_redirects=True,
            )

        return cls(
            config=config,
            store=store,
            settings=settings,
            credits=CreditLedger(settings),
            events=ImportEventBus(),
            http=http,
            backend=backend,
            classifier=classifier,
        )

    def enrichment(self, events: Optional[ImportEventBus] = None) -> EnrichmentStep:
        return EnrichmentStep(self.store, self.credits, self.classifier, events or self.events)

    def importer(self, events: Optional[ImportEventBus] = None) -> ImportOrchestrator:
        events = events or self.events
        return ImportOrchestrator(
            store=self.store,
            backend=self.backend,
            http=self.http,
            events=events,
            enrichment=self.enrichment(events),
        )

    def playlist_importer(self, events: Optional[ImportEventBus] = None) -> PlaylistOrchestrator:
        events = events or self.events
        return PlaylistOrchestrator(self.importer(events), events)

    async def aclose(self) -> None:
        await self.http.aclose()
