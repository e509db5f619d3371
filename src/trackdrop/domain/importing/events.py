"""Import event stream.

The orchestrators publish typed events to an ImportEventBus alongside their
return values. Subscribers (CLI renderer, web socket broadcaster, tests)
receive every event synchronously, in publish order.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Union

from loguru import logger


class ImportStep(str, Enum):
    METADATA = "metadata"
    DOWNLOADING = "downloading"
    AI_SEARCHING = "ai-searching"
    AI_CLASSIFYING = "ai-classifying"
    DONE = "done"
    ERROR = "error"


@dataclass(frozen=True)
class StatusEvent:
    """Transition of one import. ``percent`` only matters while downloading."""

    track_id: str
    step: ImportStep
    percent: int = 0
    has_audio: Optional[bool] = None
    message: Optional[str] = None


@dataclass(frozen=True)
class EnrichedEvent:
    """Published once per successful AI classification."""

    track_id: str
    result: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ErrorEvent:
    """Published for every terminal failure, before or after persistence."""

    track_id: str
    message: str


@dataclass(frozen=True)
class PlaylistProgressEvent:
    """Position of a playlist import, published before each item starts."""

    track_id: str
    index: int
    total: int
    percent: int


ImportEvent = Union[StatusEvent, EnrichedEvent, ErrorEvent, PlaylistProgressEvent]
EventHandler = Callable[[ImportEvent], None]


def event_to_dict(event: ImportEvent) -> dict[str, Any]:
    """Serialize an event to the camelCase payload consumers expect."""
    if isinstance(event, StatusEvent):
        payload: dict[str, Any] = {
            "trackId": event.track_id,
            "step": event.step.value,
            "percent": event.percent,
        }
        if event.has_audio is not None:
            payload["hasAudio"] = event.has_audio
        if event.message is not None:
            payload["message"] = event.message
        return {"type": "import:status", "data": payload}
    if isinstance(event, EnrichedEvent):
        return {"type": "import:enriched", "data": {"trackId": event.track_id, "result": event.result}}
    if isinstance(event, ErrorEvent):
        return {"type": "import:error", "data": {"trackId": event.track_id, "message": event.message}}
    return {
        "type": "import:playlist-progress",
        "data": {
            "trackId": event.track_id,
            "index": event.index,
            "total": event.total,
            "percent": event.percent,
        },
    }


class ImportEventBus:
    """Fan-out of import events to subscribers."""

    def __init__(self) -> None:
        self._handlers: list[EventHandler] = []

    def subscribe(self, handler: EventHandler) -> Callable[[], None]:
        """Register ``handler``. Returns a function that unsubscribes it."""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def publish(self, event: ImportEvent) -> None:
        for handler in list(self._handlers):
            try:
                handler(event)
            except Exception:
                # A broken subscriber must not break the import
                logger.exception(f"Import event handler failed for {type(event).__name__}")

    # Convenience publishers

    def status(
        self,
        track_id: str,
        step: ImportStep,
        percent: int = 0,
        has_audio: Optional[bool] = None,
        message: Optional[str] = None,
    ) -> None:
        self.publish(StatusEvent(track_id, step, percent, has_audio, message))

    def error(self, track_id: str, message: str) -> None:
        """Publish the terminal failure pair: an ``error`` status and an ErrorEvent."""
        self.publish(StatusEvent(track_id, ImportStep.ERROR, message=message))
        self.publish(ErrorEvent(track_id, message))
