"""Importing domain - the import pipeline and its event stream."""

from .enrichment import (
    NO_CREDITS_MESSAGE,
    BackfillItem,
    BackfillReport,
    EnrichmentOutcome,
    EnrichmentStep,
    TrackNotFoundError,
)
from .events import (
    EnrichedEvent,
    ErrorEvent,
    ImportEvent,
    ImportEventBus,
    ImportStep,
    PlaylistProgressEvent,
    StatusEvent,
    event_to_dict,
)
from .orchestrator import ImportOrchestrator
from .playlist import PlaylistOrchestrator

__all__ = [
    "NO_CREDITS_MESSAGE",
    "BackfillItem",
    "BackfillReport",
    "EnrichedEvent",
    "EnrichmentOutcome",
    "EnrichmentStep",
    "ErrorEvent",
    "ImportEvent",
    "ImportEventBus",
    "ImportOrchestrator",
    "ImportStep",
    "PlaylistOrchestrator",
    "PlaylistProgressEvent",
    "StatusEvent",
    "TrackNotFoundError",
    "event_to_dict",
]
