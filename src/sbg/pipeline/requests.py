"""Build per-beat image and audio requests."""

from typing import Dict, List, Mapping, Optional

from ..models import Beat, ImageArtifact, Project
from ..services.base import AudioRequest, ImageRequest, SpeechMode


def build_image_request(
    project: Project,
    beat: Beat,
    anchor: Optional[ImageArtifact],
) -> ImageRequest:
    """Image request from the beat, the project style and the continuity anchor."""
    return ImageRequest(
        visual_prompt=beat.visual_prompt,
        mood=beat.mood,
        style=project.style,
        characters=dict(project.characters),
        negative_prompts=project.negative_prompts,
        anchor=anchor,
    )


class VoiceResolver:
    """Maps speaker names to voice identifiers.

    Project character voices override the configured map. Lookup is exact
    first, then case-insensitive; unknown speakers get the default voice.
    """

    def __init__(
        self,
        voice_map: Optional[Mapping[str, str]] = None,
        default_voice: str = "Kore",
        project: Optional[Project] = None,
    ) -> None:
        voices: Dict[str, str] = dict(voice_map or {})
        if project is not None:
            for name, character in project.characters.items():
                if character.voice:
                    voices[name] = character.voice
        self._voices = voices
        self._folded = {name.casefold(): voice for name, voice in voices.items()}
        self.default_voice = default_voice

    def voice_for(self, speaker: Optional[str]) -> str:
        if not speaker:
            return self.default_voice
        if speaker in self._voices:
            return self._voices[speaker]
        return self._folded.get(speaker.casefold(), self.default_voice)


def build_audio_request(project: Project, beat: Beat, voices: VoiceResolver) -> AudioRequest:
    """Audio request for one beat.

    Exactly two distinct dialogue speakers get multi-speaker synthesis.
    A single speaker reads their own lines. Three or more speakers fall back
    to the beat narration in the first speaker's voice. Without dialogue the
    narration is read by the scene's narrator, or the default voice.
    """
    speakers: List[str] = []
    for line in beat.dialogue:
        if line.speaker not in speakers:
            speakers.append(line.speaker)

    common = {"mood": beat.mood, "language": project.language}

    if len(speakers) == 2:
        return AudioRequest(
            mode=SpeechMode.MULTI,
            dialogue=beat.dialogue,
            speaker_voices=tuple((speaker, voices.voice_for(speaker)) for speaker in speakers),
            **common,
        )

    if len(speakers) == 1:
        return AudioRequest(
            mode=SpeechMode.SINGLE,
            text=" ".join(line.text for line in beat.dialogue),
            voice=voices.voice_for(speakers[0]),
            **common,
        )

    if speakers:
        return AudioRequest(
            mode=SpeechMode.SINGLE,
            text=beat.narration,
            voice=voices.voice_for(speakers[0]),
            **common,
        )

    return AudioRequest(
        mode=SpeechMode.SINGLE,
        text=beat.narration,
        voice=voices.voice_for(beat.speaker),
        **common,
    )
