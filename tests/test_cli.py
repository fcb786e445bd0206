import json

import yaml
from typer.testing import CliRunner

from sbg.cli import app

from fakes import project_document

runner = CliRunner()


def _write(tmp_path, document, name="project.yaml"):
    path = tmp_path / name
    path.write_text(yaml.safe_dump(document))
    return path


def test_validate_prints_summary(tmp_path):
    result = runner.invoke(app, ["validate", str(_write(tmp_path, project_document()))])

    assert result.exit_code == 0
    assert "The Lighthouse" in result.output
    assert "Frames requested: 5" in result.output
    assert "Project is valid" in result.output


def test_validate_lists_every_problem(tmp_path):
    document = project_document()
    del document["style"]
    document["scenes"][1]["scene_id"] = 1
    path = tmp_path / "project.json"
    path.write_text(json.dumps(document))

    result = runner.invoke(app, ["validate", str(path)])

    assert result.exit_code == 1
    assert "style" in result.output
    assert "duplicate scene_id 1" in result.output


def test_validate_strict_requires_characters(tmp_path):
    path = _write(tmp_path, project_document(characters={}))

    assert runner.invoke(app, ["validate", str(path)]).exit_code == 0
    assert runner.invoke(app, ["validate", "--strict", str(path)]).exit_code == 1


def test_generate_dry_run_calls_nothing(tmp_path):
    path = _write(tmp_path, project_document())

    result = runner.invoke(app, ["generate", str(path), "--dry-run", "--max-frames", "2"])

    assert result.exit_code == 0
    assert "Scene 1: 2 frames" in result.output
    assert "Scene 2: 2 frames" in result.output
    assert not (tmp_path / "storyboard").exists()


def test_version():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "storyboard-maker version" in result.output


def test_validate_rejects_undecodable_file(tmp_path):
    path = tmp_path / "project.yaml"
    path.write_bytes(b"\xff\xfe")

    result = runner.invoke(app, ["validate", str(path)])

    assert result.exit_code == 1
    assert "not valid UTF-8" in result.output
