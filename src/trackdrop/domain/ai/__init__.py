"""AI domain - genre/mood classification of imported tracks."""

from .client import (
    AIError,
    ClassificationRequest,
    ClassificationResult,
    ClassificationService,
    OpenAIClassifier,
    PlatformLink,
    parse_classification,
)

__all__ = [
    "AIError",
    "ClassificationRequest",
    "ClassificationResult",
    "ClassificationService",
    "OpenAIClassifier",
    "PlatformLink",
    "parse_classification",
]
