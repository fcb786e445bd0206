import io
import wave

import yaml

from sbg.export import MANIFEST_NAME, export_storyboard, frame_stem
from sbg.models import Beat
from sbg.normalizer import normalize_project
from sbg.pipeline import StoryboardResult

from fakes import audio, draft, image, project_document


def _result():
    project = normalize_project(project_document())
    ready = (
        Beat.from_draft(draft(1), scene_id=1, sequence=1)
        .generating()
        .with_image(image("one"))
        .with_audio(audio())
        .ready()
    )
    failed = (
        Beat.from_draft(draft(2), scene_id=1, sequence=2)
        .generating()
        .failed("Output blocked: SAFETY")
    )
    return StoryboardResult(project=project, beats=(ready, failed))


def test_frame_stem_slugs_location():
    beat = Beat.from_draft(draft(3), scene_id=1, sequence=3)
    assert frame_stem(beat) == "frame-03-location_3"


def test_export_writes_assets_and_manifest(tmp_path):
    manifest_path = export_storyboard(_result(), tmp_path / "out")

    assert manifest_path.name == MANIFEST_NAME
    assert (tmp_path / "out" / "frame-01-location_1.png").read_bytes() == b"one"

    with wave.open(io.BytesIO((tmp_path / "out" / "frame-01-location_1.wav").read_bytes())) as wav:
        assert wav.getframerate() == 24000
        assert wav.getnchannels() == 1
        assert wav.getsampwidth() == 2

    manifest = yaml.safe_load(manifest_path.read_text())
    assert manifest["project_title"] == "The Lighthouse"
    assert (manifest["total_beats"], manifest["ready"], manifest["failed"]) == (2, 1, 1)

    ready, failed = manifest["beats"]
    assert ready["image"] == "frame-01-location_1.png"
    assert ready["audio"] == "frame-01-location_1.wav"
    assert failed["status"] == "failed"
    assert failed["image"] is None
    assert failed["error"] == "Output blocked: SAFETY"


def test_manifest_is_utf8_with_non_ascii_narration(tmp_path):
    project = normalize_project(project_document(language="Français"))
    beat = Beat.from_draft(draft(1, narration="La tempête arrivait."), scene_id=1, sequence=1)
    result = StoryboardResult(project=project, beats=(beat,))

    manifest_path = export_storyboard(result, tmp_path)

    manifest = yaml.safe_load(manifest_path.read_text(encoding="utf-8"))
    assert manifest["beats"][0]["narration"] == "La tempête arrivait."
