"""Beat state and generated artifact models."""

import base64
import io
import wave
from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, Field

from .project import DialogueLine

_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
}


class BeatStatus(str, Enum):
    """Generation status of a beat."""
    PENDING = "pending"
    GENERATING = "generating"
    READY = "ready"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (BeatStatus.READY, BeatStatus.FAILED)


class RunState(str, Enum):
    """Run-level state reported to progress sinks."""
    IDLE = "idle"
    PARSING = "parsing"
    GENERATING = "generating"
    COMPLETE = "complete"
    CANCELLED = "cancelled"
    ERROR = "error"


class ImageArtifact(BaseModel):
    """A generated image payload."""

    data: bytes = Field(..., description="Raw image bytes")
    mime_type: str = Field(default="image/png", description="Image MIME type")

    class Config:
        """Pydantic config."""
        frozen = True

    @property
    def extension(self) -> str:
        return _EXTENSIONS.get(self.mime_type, "png")

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


class AudioArtifact(BaseModel):
    """A generated speech track as raw 16-bit PCM."""

    pcm: bytes = Field(..., description="Raw little-endian 16-bit PCM samples")
    sample_rate: int = Field(default=24000, gt=0, description="Samples per second")
    channels: int = Field(default=1, ge=1, description="Channel count")

    class Config:
        """Pydantic config."""
        frozen = True

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        return len(self.pcm) / (2 * self.channels * self.sample_rate)

    def to_wav(self) -> bytes:
        """Wrap the PCM samples in a WAV container."""
        buffer = io.BytesIO()
        with wave.open(buffer, "wb") as wav:
            wav.setnchannels(self.channels)
            wav.setsampwidth(2)
            wav.setframerate(self.sample_rate)
            wav.writeframes(self.pcm)
        return buffer.getvalue()


class BeatDraft(BaseModel):
    """A beat skeleton as returned by the expansion step, before stamping."""

    sequence: int = Field(..., description="Position within the scene, as numbered by the model")
    location: str = Field(..., min_length=1)
    time_of_day: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    visual_prompt: str = Field(..., min_length=1)
    mood: str = Field(..., min_length=1)
    narration: str = Field(..., min_length=1, description="Spoken narration, never empty")

    class Config:
        """Pydantic config."""
        frozen = True


class Beat(BaseModel):
    """One storyboard frame.

    Beats are frozen: every state change produces a new instance, so any
    Beat handed to a progress sink is a stable snapshot.
    """

    scene_id: int = Field(..., description="Owning scene")
    sequence: int = Field(..., ge=1, description="Global position in the run")
    location: str
    time_of_day: str
    description: str
    visual_prompt: str
    narration: str
    mood: str
    dialogue: Tuple[DialogueLine, ...] = Field(default=())
    speaker: Optional[str] = Field(None, description="Narrator of the narration text")
    status: BeatStatus = Field(default=BeatStatus.PENDING)
    image: Optional[ImageArtifact] = None
    audio: Optional[AudioArtifact] = None
    error: Optional[str] = Field(None, description="Failure message, set only when failed")

    class Config:
        """Pydantic config."""
        frozen = True

    @classmethod
    def from_draft(
        cls,
        draft: BeatDraft,
        scene_id: int,
        sequence: int,
        dialogue: Tuple[DialogueLine, ...] = (),
        speaker: Optional[str] = None,
    ) -> "Beat":
        return cls(
            scene_id=scene_id,
            sequence=sequence,
            location=draft.location,
            time_of_day=draft.time_of_day,
            description=draft.description,
            visual_prompt=draft.visual_prompt,
            narration=draft.narration,
            mood=draft.mood,
            dialogue=dialogue,
            speaker=speaker,
        )

    def generating(self) -> "Beat":
        """Start (or restart) generation, clearing earlier results."""
        return self.model_copy(update={
            "status": BeatStatus.GENERATING,
            "image": None,
            "audio": None,
            "error": None,
        })

    def with_image(self, image: ImageArtifact) -> "Beat":
        return self.model_copy(update={"image": image})

    def with_audio(self, audio: AudioArtifact) -> "Beat":
        return self.model_copy(update={"audio": audio})

    def ready(self) -> "Beat":
        return self.model_copy(update={"status": BeatStatus.READY, "error": None})

    def failed(self, message: str) -> "Beat":
        return self.model_copy(update={"status": BeatStatus.FAILED, "error": message})
