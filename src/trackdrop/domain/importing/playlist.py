"""Sequential playlist import on top of ImportOrchestrator."""

from loguru import logger

from trackdrop.domain.library.models import PlaylistImportResult

from .events import ImportEventBus, PlaylistProgressEvent
from .orchestrator import ImportOrchestrator


class PlaylistOrchestrator:
    """Expand a playlist and import its items one at a time.

    A failing item is reported once on the event bus and skipped; it never
    aborts the rest of the batch.
    """

    def __init__(self, importer: ImportOrchestrator, events: ImportEventBus) -> None:
        self.importer = importer
        self.events = events

    async def expand(self, url: str) -> list[str]:
        """Item URLs of ``url``, or ``[url]`` if it cannot be listed."""
        try:
            urls = await self.importer.backend.list_playlist(url)
        except Exception as e:
            logger.info(f"Could not expand {url} as a playlist, importing as single item: {e}")
            return [url]
        return list(urls) or [url]

    async def import_playlist(self, url: str) -> PlaylistImportResult:
        urls = await self.expand(url)
        total = len(urls)
        logger.info(f"Importing {total} item(s) from {url}")

        track_ids: list[str] = []
        for index, item_url in enumerate(urls):
            track_id = self.importer.store.new_id()
            self.events.publish(
                PlaylistProgressEvent(
                    track_id=track_id,
                    index=index,
                    total=total,
                    percent=int(index / total * 100),
                )
            )
            try:
                await self.importer.run(item_url, track_id, report_errors=False)
            except Exception as e:
                logger.warning(f"Playlist item {index + 1}/{total} ({item_url}) failed: {e}")
                self.events.error(track_id, str(e) or type(e).__name__)
                continue
            track_ids.append(track_id)

        logger.info(f"Playlist import finished: {len(track_ids)}/{total} imported")
        return PlaylistImportResult(track_ids=track_ids, count=len(track_ids))
