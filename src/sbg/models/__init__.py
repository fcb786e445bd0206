"""Data models for the storyboard generator."""

from .project import Character, DialogueLine, Project, ProjectStyle, Scene
from .beat import (
    AudioArtifact,
    Beat,
    BeatDraft,
    BeatStatus,
    ImageArtifact,
    RunState,
)

__all__ = [
    "Character",
    "DialogueLine",
    "Project",
    "ProjectStyle",
    "Scene",
    "AudioArtifact",
    "Beat",
    "BeatDraft",
    "BeatStatus",
    "ImageArtifact",
    "RunState",
]
