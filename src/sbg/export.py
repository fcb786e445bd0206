"""Write a finished storyboard to disk."""

import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .models import Beat
from .pipeline.runner import StoryboardResult

logger = logging.getLogger(__name__)

MANIFEST_NAME = "storyboard.yaml"


def frame_stem(beat: Beat) -> str:
    """File stem for a beat, e.g. 'frame-03-coffee_shop'."""
    slug = re.sub(r"[^a-z0-9]+", "_", beat.location.lower()).strip("_") or "frame"
    return f"frame-{beat.sequence:02d}-{slug}"


def _beat_record(
    beat: Beat,
    image_file: Optional[str] = None,
    audio_file: Optional[str] = None,
) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "sequence": beat.sequence,
        "scene_id": beat.scene_id,
        "status": beat.status.value,
        "location": beat.location,
        "time_of_day": beat.time_of_day,
        "mood": beat.mood,
        "description": beat.description,
        "visual_prompt": beat.visual_prompt,
        "narration": beat.narration,
        "image": image_file,
        "audio": audio_file,
    }
    if beat.dialogue:
        record["dialogue"] = [
            {"speaker": line.speaker, "text": line.text} for line in beat.dialogue
        ]
    if beat.audio is not None:
        record["audio_duration"] = round(beat.audio.duration, 2)
    if beat.error:
        record["error"] = beat.error
    return record


def export_storyboard(result: StoryboardResult, output_dir: Path) -> Path:
    """Save every frame's image and audio plus a YAML manifest.

    Args:
        result: Finished pipeline run.
        output_dir: Directory to write into (created if missing).

    Returns:
        Path of the manifest file.
    """
    output_dir.mkdir(parents=True, exist_ok=True)
    records = []

    for beat in result.beats:
        stem = frame_stem(beat)
        image_file = audio_file = None

        if beat.image is not None:
            image_file = f"{stem}.{beat.image.extension}"
            (output_dir / image_file).write_bytes(beat.image.data)

        if beat.audio is not None:
            audio_file = f"{stem}.wav"
            (output_dir / audio_file).write_bytes(beat.audio.to_wav())

        records.append(_beat_record(beat, image_file, audio_file))

    manifest = {
        "project_title": result.project.title,
        "generated_at": datetime.now().isoformat(),
        "cancelled": result.cancelled,
        "total_beats": len(result.beats),
        "ready": len(result.ready),
        "failed": len(result.failed),
        "beats": records,
    }

    manifest_path = output_dir / MANIFEST_NAME
    with open(manifest_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(manifest, f, default_flow_style=False, sort_keys=False, allow_unicode=True)

    logger.info(f"Saved storyboard manifest to {manifest_path}")
    return manifest_path
