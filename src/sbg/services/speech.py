"""Narration and dialogue synthesis via Vertex AI speech models."""

import base64
import binascii
import logging
import re
from typing import Any, Dict, Optional

from ..config import config
from ..errors import RemoteError
from ..models import AudioArtifact
from .base import AudioRequest, AudioService, SpeechMode
from .vertex import VertexClient

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_RATE = 24000

_RATE_PATTERN = re.compile(r"rate=(\d+)")


def _voice_config(voice: str) -> Dict[str, Any]:
    return {"prebuiltVoiceConfig": {"voiceName": voice}}


def build_speech_prompt(request: AudioRequest) -> str:
    """Compose the text the speech model performs."""
    if request.mode == SpeechMode.MULTI:
        speakers = " and ".join(speaker for speaker, _ in request.speaker_voices)
        script = "\n".join(f"{line.speaker}: {line.text}" for line in request.dialogue)
        return (
            f"TTS the following conversation between {speakers} "
            f"in {request.language}, with a {request.mood} tone:\n{script}"
        )
    return f"Say in {request.language}, with a {request.mood} tone: {request.text}"


def sample_rate_from_mime(mime_type: str) -> int:
    """Read the sample rate from e.g. 'audio/L16;codec=pcm;rate=24000'."""
    match = _RATE_PATTERN.search(mime_type or "")
    return int(match.group(1)) if match else DEFAULT_SAMPLE_RATE


class SpeechClient(VertexClient, AudioService):
    """Voices beats with a Gemini TTS model on Vertex AI."""

    def __init__(self, model: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(model=model or config.speech_model, **kwargs)

    def build_body(self, request: AudioRequest) -> Dict[str, Any]:
        if request.mode == SpeechMode.MULTI:
            speech_config = {
                "multiSpeakerVoiceConfig": {
                    "speakerVoiceConfigs": [
                        {"speaker": speaker, "voiceConfig": _voice_config(voice)}
                        for speaker, voice in request.speaker_voices
                    ]
                }
            }
        else:
            speech_config = {"voiceConfig": _voice_config(request.voice)}

        return {
            "contents": [{"role": "user", "parts": [{"text": build_speech_prompt(request)}]}],
            "generationConfig": {
                "responseModalities": ["AUDIO"],
                "speechConfig": speech_config,
            },
        }

    def synthesize_audio(self, request: AudioRequest) -> AudioArtifact:
        """Voice one beat.

        Raises:
            RemoteError: If the response carries no audio payload.
        """
        logger.debug(f"Synthesizing {request.mode.value}-speaker audio with {self.model}")
        data = self.generate_content(self.build_body(request))

        for blob in self.inline_parts(data):
            try:
                pcm = base64.b64decode(blob["data"])
            except (binascii.Error, ValueError) as e:
                raise RemoteError(f"{self.model} returned undecodable audio data") from e
            if not pcm:
                continue
            rate = sample_rate_from_mime(blob.get("mimeType") or blob.get("mime_type") or "")
            return AudioArtifact(pcm=pcm, sample_rate=rate)

        raise RemoteError("No audio data returned from speech model")
