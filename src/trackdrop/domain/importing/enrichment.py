"""
Credit-gated AI enrichment of persisted tracks.

The step only ever runs against a track that is already in the store, so a
failure here never makes a track disappear: it lands on the record as
``importStatus = error`` instead of being raised.
"""

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from loguru import logger

from trackdrop.core.library_store import LibraryStore
from trackdrop.core.settings_store import CreditLedger
from trackdrop.domain.ai import AIError, ClassificationRequest, ClassificationService
from trackdrop.domain.library.models import ImportStatus

from .events import EnrichedEvent, ImportEventBus, ImportStep

NO_CREDITS_MESSAGE = "skipped: no credits"


class EnrichmentOutcome(str, Enum):
    DONE = "done"
    ERROR = "error"


class TrackNotFoundError(LookupError):
    """Raised when a track id is not in the store."""

    def __init__(self, track_id: str):
        self.track_id = track_id
        super().__init__(f"Track not found: {track_id}")


@dataclass(frozen=True)
class BackfillItem:
    track_id: str
    success: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class BackfillReport:
    total: int
    succeeded: int
    failed: int
    results: list[BackfillItem] = field(default_factory=list)


BackfillProgressCallback = Callable[[int, int, BackfillItem], None]  # (current, total, item)


class EnrichmentStep:
    """Classify a persisted track and write the result back to the store."""

    def __init__(
        self,
        store: LibraryStore,
        credits: CreditLedger,
        classifier: ClassificationService,
        events: ImportEventBus,
    ) -> None:
        self._store = store
        self._credits = credits
        self._classifier = classifier
        self._events = events

    def _has_audio(self, track_id: str) -> Optional[bool]:
        track = self._store.get(track_id)
        return track.has_audio if track else None

    async def enrich(
        self,
        track_id: str,
        title: Optional[str],
        artist: Optional[str],
        source_url: Optional[str],
        source_platform: Optional[str],
    ) -> EnrichmentOutcome:
        """Run one enrichment attempt.

        Every call re-checks the credit balance and overwrites any earlier
        AI-derived fields.

        Returns:
            DONE when the track ended ``ready`` (classified, or skipped for
            lack of credits), ERROR when classification failed
        """
        has_audio = self._has_audio(track_id)

        if self._credits.get() <= 0:
            self._store.update(
                track_id,
                import_status=ImportStatus.READY.value,
                import_error=NO_CREDITS_MESSAGE,
            )
            logger.info(f"Skipped enrichment for {track_id}: no credits")
            self._events.status(track_id, ImportStep.DONE, 100, has_audio=has_audio)
            return EnrichmentOutcome.DONE

        self._events.status(track_id, ImportStep.AI_SEARCHING)
        request = ClassificationRequest(
            title=title or "Unknown",
            artist=artist or "Unknown",
            source_url=source_url or "",
            source_platform=source_platform or "",
        )

        try:
            result = await self._classifier.classify(request)
        except AIError as e:
            return self._fail(track_id, str(e))
        except Exception as e:
            logger.exception(f"Unexpected error classifying {track_id}")
            return self._fail(track_id, f"Unexpected error: {e}")

        self._events.status(track_id, ImportStep.AI_CLASSIFYING)

        existing = self._store.get(track_id)
        updated = self._store.update(
            track_id,
            artist_name=result.performing_artist
            or (existing.artist_name if existing else None),
            genre=result.genre,
            mood=result.mood,
            summary=result.summary,
            original_artist=result.original_artist,
            is_cover=result.is_cover,
            platform_links=tuple(link.model_dump() for link in result.platform_links),
            import_status=ImportStatus.READY.value,
            import_error=None,
        )
        if updated is None:
            # Deleted while the service was working; nothing to charge for
            logger.warning(f"Track {track_id} disappeared during enrichment, result dropped")
            self._events.error(track_id, "Track was deleted during enrichment")
            return EnrichmentOutcome.ERROR

        self._credits.deduct()

        logger.info(f"Enriched {track_id}: genre={result.genre}, mood={result.mood}")
        self._events.publish(EnrichedEvent(track_id, result.model_dump(by_alias=True)))
        self._events.status(track_id, ImportStep.DONE, 100, has_audio=has_audio)
        return EnrichmentOutcome.DONE

    def _fail(self, track_id: str, reason: str) -> EnrichmentOutcome:
        message = f"AI analysis failed: {reason}"
        logger.warning(f"Enrichment failed for {track_id}: {reason}")
        self._store.update(
            track_id,
            import_status=ImportStatus.ERROR.value,
            import_error=message,
        )
        self._events.error(track_id, message)
        return EnrichmentOutcome.ERROR

    async def reenrich(self, track_id: str) -> EnrichmentOutcome:
        """Retry enrichment for a stored track with its stored inputs.

        Starts a fresh ``enriching`` phase on the record first.

        Raises:
            TrackNotFoundError: If the track is not in the store
        """
        track = self._store.get(track_id)
        if track is None:
            raise TrackNotFoundError(track_id)

        self._store.update(
            track_id, import_status=ImportStatus.ENRICHING.value, import_error=None
        )
        return await self.enrich(
            track.id,
            track.title,
            track.artist_name,
            track.source_url,
            track.source_platform,
        )

    async def backfill(
        self,
        delay_ms: int = 250,
        progress_callback: Optional[BackfillProgressCallback] = None,
    ) -> BackfillReport:
        """Enrich every track still missing a genre or mood.

        Stops calling the service once credits run out; the remaining
        tracks are reported as failed with "insufficient credits".
        """
        untagged = [t for t in self._store.get_all() if not t.genre or not t.mood]
        total = len(untagged)
        results: list[BackfillItem] = []

        def record(current: int, item: BackfillItem) -> None:
            results.append(item)
            if progress_callback:
                progress_callback(current, total, item)

        for idx, track in enumerate(untagged, start=1):
            if not track.title and not track.artist_name:
                record(idx, BackfillItem(track.id, False, "no title or artist"))
                continue

            if self._credits.get() <= 0:
                for rest_idx, rest in enumerate(untagged[idx - 1:], start=idx):
                    record(rest_idx, BackfillItem(rest.id, False, "insufficient credits"))
                break

            outcome = await self.reenrich(track.id)
            if outcome == EnrichmentOutcome.DONE:
                record(idx, BackfillItem(track.id, True))
            else:
                stored = self._store.get(track.id)
                record(idx, BackfillItem(track.id, False, stored.import_error if stored else None))

            # Rate limit guard
            if idx < total:
                await asyncio.sleep(delay_ms / 1000)

        succeeded = sum(1 for r in results if r.success)
        logger.info(f"Backfill complete: {succeeded}/{total} tracks enriched")
        return BackfillReport(
            total=total,
            succeeded=succeeded,
            failed=len(results) - succeeded,
            results=results,
        )
