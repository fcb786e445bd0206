"""Validate and canonicalize raw project documents."""

import logging
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Mapping, Union

import yaml
from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .models import Project

logger = logging.getLogger(__name__)

# Document keys -> model field names
_PROJECT_KEYS = {
    "project_title": "title",
    "negative_prompt": "negative_prompts",
}
_SCENE_KEYS = {
    "duration_sec": "duration",
    "audio_text": "narration",
    "audio_speaker": "speaker",
    "audio_dialogue": "dialogue",
}


def _rename(data: Mapping[str, Any], keys: Mapping[str, str]) -> Dict[str, Any]:
    renamed: Dict[str, Any] = {}
    for key, value in data.items():
        target = keys.get(key, key)
        # An explicit canonical key wins over its document alias
        if target in renamed and key != target:
            continue
        renamed[target] = value
    return renamed


def _canonicalize(document: Mapping[str, Any]) -> Dict[str, Any]:
    data = _rename(document, _PROJECT_KEYS)

    negative = data.get("negative_prompts")
    if isinstance(negative, str):
        data["negative_prompts"] = [p.strip() for p in negative.split(",") if p.strip()]

    scenes = data.get("scenes")
    if isinstance(scenes, list):
        data["scenes"] = [
            _rename(scene, _SCENE_KEYS) if isinstance(scene, Mapping) else scene
            for scene in scenes
        ]
    return data


def _parse_text(text: str) -> Any:
    try:
        # YAML is a superset of JSON, so this covers both formats
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValidationError([f"document: not valid JSON or YAML ({e})"]) from e


def _format_error(error: Mapping[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ())) or "document"
    return f"{location}: {error.get('msg', 'invalid value')}"


def _structural_problems(data: Mapping[str, Any], strict: bool) -> List[str]:
    """Checks pydantic cannot express on the canonical document."""
    problems: List[str] = []

    if "scenes" in data and not isinstance(data["scenes"], list):
        problems.append("scenes: must be a list of scenes")
    elif isinstance(data.get("scenes"), list):
        ids = [
            scene.get("scene_id")
            for scene in data["scenes"]
            if isinstance(scene, Mapping) and scene.get("scene_id") is not None
        ]
        for scene_id, count in Counter(map(str, ids)).items():
            if count > 1:
                problems.append(f"scenes: duplicate scene_id {scene_id}")

    if strict:
        characters = data.get("characters")
        if not characters:
            problems.append("characters: character identities are required")

    return problems


def normalize_project(raw: Union[Mapping[str, Any], str, bytes], strict: bool = False) -> Project:
    """Validate a raw project document and return an immutable Project.

    Args:
        raw: A mapping, or JSON/YAML text.
        strict: Also require character identities.

    Returns:
        The canonical Project.

    Raises:
        ValidationError: Listing every missing or malformed field.
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ValidationError([f"document: not valid UTF-8 ({e})"]) from e
    document = _parse_text(raw) if isinstance(raw, str) else raw

    if not isinstance(document, Mapping):
        raise ValidationError(["document: expected a project object"])

    data = _canonicalize(document)
    problems = _structural_problems(data, strict)

    try:
        project = Project.model_validate(data)
    except PydanticValidationError as e:
        problems.extend(_format_error(error) for error in e.errors())
        project = None

    if problems:
        logger.debug(f"Project rejected with {len(problems)} problem(s)")
        raise ValidationError(problems)

    logger.debug(
        f"Normalized project '{project.title}': {len(project.scenes)} scenes, "
        f"{project.requested_frames} frames requested"
    )
    return project


def load_project(path: Path, strict: bool = False) -> Project:
    """Load and normalize a JSON or YAML project file."""
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ValidationError([f"document: {path} is not valid UTF-8 ({e})"]) from e
    except OSError as e:
        raise ValidationError([f"document: cannot read {path} ({e})"]) from e
    return normalize_project(text, strict=strict)
