"""Beat expansion agent: one scene in, an ordered list of beat drafts out."""

import logging
from typing import Any, Dict, List, Mapping

from pydantic import ValidationError as PydanticValidationError

from ..errors import RemoteError
from ..models import BeatDraft
from ..services.base import ExpansionRequest, ExpansionService
from .base import BaseAgent

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = """You are a storyboard director breaking scenes down into visual beats.
For each scene you receive, return exactly the requested number of beats, in story order.

Output valid JSON only, with no additional text or markdown formatting.
The JSON must be an object with a "beats" array. Every beat object has:
- "sequence": integer position of the beat within the scene, starting at 1
- "location": where the beat takes place
- "time_of_day": time of day
- "description": what happens in the beat
- "visual_prompt": a detailed prompt for an image generator (camera angle, lighting, characters, environment)
- "mood": the emotional tone
- "narration": the line spoken over this beat

"narration" must never be empty. If the scene has no spoken text for a beat,
write a short narrator utterance that fits the beat."""

# Model output keys -> BeatDraft fields
_DRAFT_KEYS = {
    "sceneNumber": "sequence",
    "beat": "sequence",
    "timeOfDay": "time_of_day",
    "visualPrompt": "visual_prompt",
    "audioScript": "narration",
    "audio_script": "narration",
}


class BeatExpansionAgent(BaseAgent[ExpansionRequest, List[BeatDraft]], ExpansionService):
    """Expands a scene into beat drafts with Claude.

    The agent requests the frame count it is given but does not enforce it;
    truncation is the pipeline's job.
    """

    @property
    def name(self) -> str:
        return "BeatExpansionAgent"

    @property
    def system_prompt(self) -> str:
        return SYSTEM_PROMPT

    def expand(self, request: ExpansionRequest) -> List[BeatDraft]:
        return self.run(request)

    def run(self, input_data: ExpansionRequest) -> List[BeatDraft]:
        """Generate beat drafts for one scene.

        Raises:
            RemoteError: If the call fails or the response is not a list of
                well-formed beats.
        """
        scene = input_data.scene
        self._logger.info(
            f"Expanding scene {scene.scene_id} into {input_data.frame_count} beats"
        )

        response = self._create_message(
            prompt=self._build_prompt(input_data),
            max_tokens=4096,
            temperature=0.8,
        )
        drafts = self._parse_response(response)

        self._logger.info(f"Scene {scene.scene_id}: received {len(drafts)} beats")
        return drafts

    def _build_prompt(self, input_data: ExpansionRequest) -> str:
        project = input_data.project
        scene = input_data.scene
        style = project.style

        prompt_parts = [
            f"PROJECT: {project.title}",
            f"LANGUAGE: {project.language}",
            f"GENRE: {style.genre}",
            f"VISUAL STYLE: {style.visual_style}",
        ]
        if style.lighting:
            prompt_parts.append(f"LIGHTING: {style.lighting}")
        if style.camera:
            prompt_parts.append(f"CAMERA: {style.camera}")

        if project.characters:
            prompt_parts.append("CHARACTERS:")
            for name, character in project.characters.items():
                identity = character.identity()
                prompt_parts.append(f"- {name}: {identity}" if identity else f"- {name}")

        prompt_parts.extend([
            "",
            f"SCENE {scene.scene_id} ({scene.duration:g}s)",
            f"VISUAL: {scene.visual_prompt}",
        ])

        if scene.dialogue:
            prompt_parts.append("DIALOGUE:")
            prompt_parts.extend(f"- {line.speaker}: {line.text}" for line in scene.dialogue)
        elif scene.narration:
            narrator = f" ({scene.speaker})" if scene.speaker else ""
            prompt_parts.append(f"NARRATION{narrator}: {scene.narration}")

        prompt_parts.extend([
            "",
            f"Break this scene into exactly {input_data.frame_count} beats.",
            f"Write every narration line in {project.language}.",
        ])
        return "\n".join(prompt_parts)

    def _parse_response(self, response: str) -> List[BeatDraft]:
        data = self._parse_json(response)

        beats_data = data.get("beats", data) if isinstance(data, dict) else data
        if not isinstance(beats_data, list):
            raise RemoteError("Response does not contain a beats array")

        drafts: List[BeatDraft] = []
        for i, beat_data in enumerate(beats_data):
            if not isinstance(beat_data, Mapping):
                raise RemoteError(f"Beat {i + 1} is not an object")
            try:
                drafts.append(BeatDraft.model_validate(self._canonical_keys(beat_data)))
            except PydanticValidationError as e:
                fields = ", ".join(
                    ".".join(str(p) for p in err["loc"]) for err in e.errors()
                )
                raise RemoteError(f"Beat {i + 1} is missing or has invalid fields: {fields}") from e

        return drafts

    @staticmethod
    def _canonical_keys(beat_data: Mapping[str, Any]) -> Dict[str, Any]:
        canonical: Dict[str, Any] = {}
        for key, value in beat_data.items():
            target = _DRAFT_KEYS.get(key, key)
            if target not in canonical:
                canonical[target] = value
        return canonical
