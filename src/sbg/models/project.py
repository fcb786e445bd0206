"""Project descriptor models."""

from typing import Dict, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

SUPPORTED_ASPECT_RATIOS = (
    "1:1", "2:3", "3:2", "3:4", "4:3", "4:5", "5:4", "9:16", "16:9", "21:9",
)


class DialogueLine(BaseModel):
    """A single spoken line."""

    speaker: str = Field(..., min_length=1, description="Speaker name")
    text: str = Field(..., min_length=1, description="Spoken text")

    class Config:
        """Pydantic config."""
        frozen = True


class Character(BaseModel):
    """Identity of a recurring character."""

    gender: Optional[str] = Field(None, description="Gender presentation")
    age: Optional[str] = Field(None, description="Apparent age")
    voice: Optional[str] = Field(None, description="Voice identifier for speech synthesis")
    description: Optional[str] = Field(None, description="Visual identity notes")

    class Config:
        """Pydantic config."""
        frozen = True

    def identity(self) -> str:
        """Return a short visual identity string for prompts."""
        parts = [p for p in (self.age, self.gender, self.description) if p]
        return ", ".join(parts)


class ProjectStyle(BaseModel):
    """Global look of the storyboard."""

    genre: str = Field(..., min_length=1, description="Genre")
    visual_style: str = Field(..., min_length=1, description="Visual style")
    lighting: str = Field(default="", description="Lighting direction")
    camera: str = Field(default="", description="Camera language")
    color_grading: str = Field(default="", description="Color grading")
    aspect_ratio: str = Field(default="16:9", description="Frame aspect ratio")

    class Config:
        """Pydantic config."""
        frozen = True

    @field_validator("aspect_ratio")
    @classmethod
    def _check_aspect_ratio(cls, value: str) -> str:
        if value not in SUPPORTED_ASPECT_RATIOS:
            raise ValueError(
                f"unsupported aspect ratio '{value}' "
                f"(expected one of {', '.join(SUPPORTED_ASPECT_RATIOS)})"
            )
        return value


class Scene(BaseModel):
    """A narrative unit that expands into one or more beats."""

    scene_id: int = Field(..., description="Scene identifier")
    duration: float = Field(..., gt=0, description="Scene duration in seconds")
    frames: int = Field(..., ge=1, description="Requested frame count")
    visual_prompt: str = Field(..., min_length=1, description="Base visual prompt")
    narration: Optional[str] = Field(None, description="Narration text")
    speaker: Optional[str] = Field(None, description="Narrator of the narration text")
    dialogue: Tuple[DialogueLine, ...] = Field(default=(), description="Dialogue lines")

    class Config:
        """Pydantic config."""
        frozen = True


class Project(BaseModel):
    """Top-level, immutable project descriptor."""

    title: str = Field(..., min_length=1, description="Project title")
    language: str = Field(default="English", description="Narration language")
    style: ProjectStyle = Field(..., description="Global style block")
    characters: Dict[str, Character] = Field(default_factory=dict, description="Character identities")
    negative_prompts: Tuple[str, ...] = Field(default=(), description="Things to keep out of frames")
    scenes: Tuple[Scene, ...] = Field(..., min_length=1, description="Ordered scenes")

    class Config:
        """Pydantic config."""
        frozen = True

    @property
    def requested_frames(self) -> int:
        return sum(scene.frames for scene in self.scenes)
