"""Storyboard frame synthesis via Vertex AI image models."""

import base64
import binascii
import logging
from typing import Any, Dict, List, Optional

from ..config import config
from ..errors import RemoteError
from ..models import ImageArtifact
from .base import ImageRequest, ImageService
from .vertex import VertexClient

logger = logging.getLogger(__name__)

CONTINUITY_INSTRUCTION = (
    "Maintain identical character appearance, clothing, and artistic style "
    "from the attached reference image."
)
ESTABLISH_INSTRUCTION = "Establish a clear character design and cinematic style."


def build_image_prompt(request: ImageRequest) -> str:
    """Compose the text prompt for one frame.

    Args:
        request: Frame request with style context and optional anchor.

    Returns:
        Prompt text. The anchor image itself travels as a separate part.
    """
    style = request.style
    lines = [
        "Cinematic storyboard frame, professional movie concept art.",
        f"Genre: {style.genre}.",
        f"Visual style: {style.visual_style}.",
    ]
    if style.lighting:
        lines.append(f"Lighting: {style.lighting}.")
    if style.camera:
        lines.append(f"Camera: {style.camera}.")
    if style.color_grading:
        lines.append(f"Color grading: {style.color_grading}.")
    lines.append(f"Mood: {request.mood}.")

    identities = [
        f"{name} ({character.identity()})" if character.identity() else name
        for name, character in request.characters.items()
    ]
    if identities:
        lines.append(f"Characters: {'; '.join(identities)}.")

    lines.append(
        f"Instruction: {CONTINUITY_INSTRUCTION if request.anchor else ESTABLISH_INSTRUCTION}"
    )
    lines.append(f"Scene details: {request.visual_prompt}")

    if request.negative_prompts:
        lines.append(f"Avoid: {', '.join(request.negative_prompts)}.")

    return "\n".join(lines)


class ImageClient(VertexClient, ImageService):
    """Renders frames with a Gemini image model on Vertex AI.

    The continuity anchor, when present, is sent as an inline image part
    ahead of the text prompt.
    """

    def __init__(self, model: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(model=model or config.image_model, **kwargs)

    def build_body(self, request: ImageRequest) -> Dict[str, Any]:
        parts: List[Dict[str, Any]] = []
        if request.anchor is not None:
            parts.append({
                "inlineData": {
                    "mimeType": request.anchor.mime_type,
                    "data": request.anchor.to_base64(),
                }
            })
        parts.append({"text": build_image_prompt(request)})

        return {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": {
                "responseModalities": ["TEXT", "IMAGE"],
                "imageConfig": {"aspectRatio": request.style.aspect_ratio},
            },
        }

    def synthesize_image(self, request: ImageRequest) -> ImageArtifact:
        """Render one frame.

        Raises:
            RemoteError: If the frame is blocked or no image data comes back.
        """
        logger.info(f"Generating frame with {self.model}: {request.visual_prompt[:50]}...")
        data = self.generate_content(self.build_body(request))

        for blob in self.inline_parts(data):
            mime_type = blob.get("mimeType") or blob.get("mime_type") or "image/png"
            if not mime_type.startswith("image/"):
                continue
            try:
                payload = base64.b64decode(blob["data"])
            except (binascii.Error, ValueError) as e:
                raise RemoteError(f"{self.model} returned undecodable image data") from e
            logger.debug(f"Received {len(payload)} bytes of {mime_type}")
            return ImageArtifact(data=payload, mime_type=mime_type)

        raise RemoteError("No image data returned from generator")
