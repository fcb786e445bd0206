"""External service integrations."""

from .base import (
    AudioRequest,
    AudioService,
    ExpansionRequest,
    ExpansionService,
    ImageRequest,
    ImageService,
    SpeechMode,
)

__all__ = [
    "AudioRequest",
    "AudioService",
    "ExpansionRequest",
    "ExpansionService",
    "ImageRequest",
    "ImageService",
    "SpeechMode",
]
