"""Remote service boundary: request types and abstract service interfaces.

Every implementation must raise RemoteError (with a RemoteErrorKind) for
provider failures so the retry executor can classify them structurally.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Sequence, Tuple

from ..models import (
    AudioArtifact,
    BeatDraft,
    Character,
    DialogueLine,
    ImageArtifact,
    Project,
    ProjectStyle,
    Scene,
)


@dataclass(frozen=True)
class ExpansionRequest:
    """Context for expanding one scene into beats."""

    project: Project
    scene: Scene
    frame_count: int


@dataclass(frozen=True)
class ImageRequest:
    """Everything needed to render one frame."""

    visual_prompt: str
    mood: str
    style: ProjectStyle
    characters: Dict[str, Character] = field(default_factory=dict)
    negative_prompts: Tuple[str, ...] = ()
    anchor: Optional[ImageArtifact] = None


class SpeechMode(str, Enum):
    """Speech synthesis mode."""
    SINGLE = "single"
    MULTI = "multi"


@dataclass(frozen=True)
class AudioRequest:
    """Everything needed to voice one beat.

    For SINGLE mode, `text` is read by `voice`. For MULTI mode, `dialogue`
    is performed with `speaker_voices` (exactly two entries).
    """

    mode: SpeechMode
    mood: str
    language: str = "English"
    text: str = ""
    voice: str = ""
    dialogue: Tuple[DialogueLine, ...] = ()
    speaker_voices: Tuple[Tuple[str, str], ...] = ()


class ExpansionService(ABC):
    """Expand(sceneContext) -> ordered beat drafts."""

    @abstractmethod
    def expand(self, request: ExpansionRequest) -> Sequence[BeatDraft]:
        """Return the beat drafts for one scene.

        Raises:
            RemoteError: If the response is not parseable or misses fields.
        """
        ...


class ImageService(ABC):
    """SynthesizeImage(prompt, mood, styleContext, anchor?) -> image."""

    @abstractmethod
    def synthesize_image(self, request: ImageRequest) -> ImageArtifact:
        """Render one frame.

        Raises:
            RemoteError: If blocked by content policy or no image is returned.
        """
        ...


class AudioService(ABC):
    """SynthesizeAudio(text | dialogue, mood, voices) -> PCM audio."""

    @abstractmethod
    def synthesize_audio(self, request: AudioRequest) -> AudioArtifact:
        """Voice one beat.

        Raises:
            RemoteError: If the response carries no audio.
        """
        ...
