"""
Single-URL import flow: classify -> acquire -> persist -> enrich.

Anything that goes wrong before the record is written is raised to the
caller (after an error event) and leaves nothing behind. Once the record
exists, failures are written onto it and the caller always gets a result.
"""

import shutil
from pathlib import Path
from typing import Optional

import httpx
from loguru import logger

from trackdrop.core.library_store import LibraryStore
from trackdrop.domain.library.importers import TagReader, import_audio, import_metadata_only
from trackdrop.domain.library.metadata import read_file_tags
from trackdrop.domain.library.models import (
    AcquiredTrack,
    ImportResult,
    ImportStatus,
    new_track_record,
)
from trackdrop.domain.library.platform import detect_platform
from trackdrop.domain.library.providers.ytdlp import AcquisitionBackend

from .enrichment import EnrichmentStep
from .events import ImportEventBus, ImportStep


class ImportOrchestrator:
    """Runs the whole import pipeline for one URL."""

    def __init__(
        self,
        store: LibraryStore,
        backend: AcquisitionBackend,
        http: httpx.AsyncClient,
        events: ImportEventBus,
        enrichment: EnrichmentStep,
        read_tags: TagReader = read_file_tags,
    ) -> None:
        self.store = store
        self.backend = backend
        self.http = http
        self.events = events
        self.enrichment = enrichment
        self.read_tags = read_tags

    async def import_url(self, url: str, track_id: Optional[str] = None) -> ImportResult:
        """Import ``url`` as a new track.

        Args:
            url: Source URL of any supported (or unknown) platform
            track_id: Id to use for the new record; generated when omitted

        Returns:
            ImportResult reflecting the record as stored after enrichment

        Raises:
            AcquisitionError: If acquisition fails before the track is persisted
            ValueError: If ``track_id`` already belongs to a stored track
        """
        return await self.run(url, track_id or self.store.new_id(), report_errors=True)

    async def run(self, url: str, track_id: str, *, report_errors: bool) -> ImportResult:
        """Import with an explicit id.

        ``report_errors=False`` leaves publishing pre-persistence failures to
        the caller, which then owns the single error event for ``track_id``.
        """
        if self.store.get(track_id) is not None:
            raise ValueError(f"Track id already in use: {track_id}")
        dest_dir = self.store.track_dir(track_id)
        created_dir = not dest_dir.exists()

        try:
            acquired = await self._acquire(url, track_id, dest_dir)
            self.events.status(track_id, ImportStep.METADATA, has_audio=acquired.has_audio)
            self.store.upsert(new_track_record(track_id, acquired))
        except Exception as e:
            logger.warning(f"Import of {url} failed before persistence: {e}")
            # Only remove what this attempt created
            if created_dir:
                self._discard_partial(dest_dir)
            if report_errors:
                self.events.error(track_id, str(e) or type(e).__name__)
            raise

        logger.info(f"Persisted track {track_id} from {url}")
        await self._enrich_persisted(track_id)

        return ImportResult.from_track(self.store.get(track_id))

    async def _acquire(self, url: str, track_id: str, dest_dir: Path) -> AcquiredTrack:
        info = detect_platform(url)
        logger.debug(f"Classified {url} as {info.platform.value} (audio={info.has_audio_capability})")

        if info.has_audio_capability:

            def on_progress(percent: int) -> None:
                self.events.status(track_id, ImportStep.DOWNLOADING, percent)

            return await import_audio(
                url,
                dest_dir,
                on_progress,
                backend=self.backend,
                http=self.http,
                read_tags=self.read_tags,
            )

        return await import_metadata_only(url, dest_dir, http=self.http)

    async def _enrich_persisted(self, track_id: str) -> None:
        track = self.store.get(track_id)
        try:
            await self.enrichment.enrich(
                track_id,
                track.title,
                track.artist_name,
                track.source_url,
                track.source_platform,
            )
        except Exception as e:
            # The record exists, so the failure goes onto it instead of the caller
            logger.exception(f"Enrichment crashed for {track_id}")
            message = f"Enrichment failed: {e}"
            self.store.update(
                track_id, import_status=ImportStatus.ERROR.value, import_error=message
            )
            self.events.error(track_id, message)

    @staticmethod
    def _discard_partial(dest_dir: Path) -> None:
        if dest_dir.exists():
            shutil.rmtree(dest_dir, ignore_errors=True)
