"""Configuration management."""

import os
from enum import Enum
from typing import Dict

from pydantic import BaseModel, Field
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


class AssetConcurrency(str, Enum):
    """How a beat's image and audio requests are issued."""
    CONCURRENT = "concurrent"
    SEQUENTIAL = "sequential"


def _parse_voice_map(raw: str) -> Dict[str, str]:
    """Parse 'Name=Voice,Name=Voice' into a speaker -> voice mapping."""
    voices: Dict[str, str] = {}
    for item in raw.split(","):
        if "=" not in item:
            continue
        speaker, voice = item.split("=", 1)
        if speaker.strip() and voice.strip():
            voices[speaker.strip()] = voice.strip()
    return voices


class Config(BaseModel):
    """Application configuration."""

    # API Keys
    anthropic_api_key: str = Field(
        default_factory=lambda: os.getenv("ANTHROPIC_API_KEY", ""),
        description="Anthropic API key (scene expansion)"
    )
    google_cloud_project: str = Field(
        default_factory=lambda: os.getenv("GOOGLE_CLOUD_PROJECT", ""),
        description="Google Cloud project ID (image and speech synthesis)"
    )
    google_cloud_location: str = Field(
        default_factory=lambda: os.getenv("GOOGLE_CLOUD_LOCATION", "us-central1"),
        description="Vertex AI region"
    )

    # Model settings
    expansion_model: str = Field(
        default_factory=lambda: os.getenv("SBG_EXPANSION_MODEL", "claude-sonnet-4-20250514"),
        description="Claude model used to expand scenes into beats"
    )
    image_model: str = Field(
        default_factory=lambda: os.getenv("SBG_IMAGE_MODEL", "gemini-2.5-flash-image"),
        description="Vertex AI image model"
    )
    speech_model: str = Field(
        default_factory=lambda: os.getenv("SBG_SPEECH_MODEL", "gemini-2.5-flash-preview-tts"),
        description="Vertex AI speech model"
    )

    # Voices
    default_voice: str = Field(
        default_factory=lambda: os.getenv("SBG_DEFAULT_VOICE", "Kore"),
        description="Voice used for narration and unknown speakers"
    )
    voice_map: Dict[str, str] = Field(
        default_factory=lambda: _parse_voice_map(os.getenv("SBG_VOICE_MAP", "")),
        description="Speaker name -> voice identifier"
    )

    # Pipeline policy
    max_frames_per_scene: int = Field(
        default_factory=lambda: int(os.getenv("SBG_MAX_FRAMES", "8")),
        description="Cap on beats requested per scene",
        ge=1,
    )
    retry_max_attempts: int = Field(
        default_factory=lambda: int(os.getenv("SBG_RETRY_MAX_ATTEMPTS", "5")),
        description="Total attempts per remote call, including the first",
        ge=1,
    )
    retry_base_delay: float = Field(
        default_factory=lambda: float(os.getenv("SBG_RETRY_BASE_DELAY", "5.0")),
        description="First backoff delay in seconds; doubles each retry",
        ge=0,
    )
    asset_concurrency: AssetConcurrency = Field(
        default_factory=lambda: AssetConcurrency(
            os.getenv("SBG_ASSET_CONCURRENCY", AssetConcurrency.CONCURRENT.value)
        ),
        description="Issue image and audio together or one after the other"
    )
    scene_pause: float = Field(
        default_factory=lambda: float(os.getenv("SBG_SCENE_PAUSE", "0")),
        description="Pause between scene expansions in seconds",
        ge=0,
    )
    beat_delay: float = Field(
        default_factory=lambda: float(os.getenv("SBG_BEAT_DELAY", "0")),
        description="Pause between beats in seconds",
        ge=0,
    )
    request_timeout: float = Field(
        default_factory=lambda: float(os.getenv("SBG_REQUEST_TIMEOUT", "120")),
        description="HTTP timeout for Vertex AI requests in seconds",
        gt=0,
    )

    class Config:
        """Pydantic config."""
        frozen = False

    def validate_required(self) -> None:
        """Validate that the expansion credentials are set."""
        if not self.anthropic_api_key:
            raise ValueError("ANTHROPIC_API_KEY not set")

    def validate_vertex_required(self) -> None:
        """Validate that Vertex AI configuration is set.

        Raises:
            ValueError: If any required Vertex AI configuration is missing.
        """
        missing: list[str] = []

        if not self.google_cloud_project:
            missing.append("GOOGLE_CLOUD_PROJECT")
        if not self.google_cloud_location:
            missing.append("GOOGLE_CLOUD_LOCATION")

        if missing:
            raise ValueError(
                f"Missing required Vertex AI configuration: {', '.join(missing)}. "
                "Set the corresponding environment variables."
            )


# Global config instance
config = Config()
