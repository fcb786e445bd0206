"""Storyboard generation pipeline."""

from .cancel import CancelToken
from .expander import BeatExpander
from .orchestrator import AssetOrchestrator
from .progress import CompositeSink, LoggingSink, ProgressSink, StoryboardView
from .requests import VoiceResolver, build_audio_request, build_image_request
from .runner import StoryboardPipeline, StoryboardResult

__all__ = [
    "CancelToken",
    "BeatExpander",
    "AssetOrchestrator",
    "CompositeSink",
    "LoggingSink",
    "ProgressSink",
    "StoryboardView",
    "VoiceResolver",
    "build_audio_request",
    "build_image_request",
    "StoryboardPipeline",
    "StoryboardResult",
]
