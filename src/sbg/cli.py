"""CLI entry point for the storyboard generator."""

import asyncio
import logging
import signal
from pathlib import Path
from typing import Optional

import typer

from . import __version__
from .config import AssetConcurrency, config
from .errors import PipelineError, ValidationError
from .models import Beat, BeatStatus, Project, RunState
from .normalizer import load_project
from .pipeline.progress import ProgressSink

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="storyboard-maker",
    help="AI-powered storyboard generator",
    no_args_is_help=True
)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"storyboard-maker version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit"
    )
) -> None:
    """Storyboard Maker - Turn scripts into illustrated, narrated storyboards."""
    pass


def _load_or_exit(path: Path, strict: bool) -> Project:
    try:
        return load_project(path, strict=strict)
    except ValidationError as e:
        typer.echo(f"❌ Invalid project: {path}")
        for problem in e.problems:
            typer.echo(f"   - {problem}")
        raise typer.Exit(1)


@app.command()
def validate(
    project_file: Path = typer.Argument(
        ...,
        help="Project file (JSON or YAML)",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Require character identities"
    ),
) -> None:
    """Validate a project file and show its summary."""
    project = _load_or_exit(project_file, strict)

    style = project.style
    typer.echo(f"📁 Project: {project.title}")
    typer.echo(f"   Language: {project.language}")
    typer.echo(f"   Style: {style.genre}, {style.visual_style} ({style.aspect_ratio})")
    if project.characters:
        typer.echo(f"   Characters: {', '.join(project.characters)}")
    typer.echo(f"   Scenes: {len(project.scenes)}")
    typer.echo(f"   Frames requested: {project.requested_frames}")

    typer.echo("\n🎞️  Scenes:")
    for scene in project.scenes:
        audio = "dialogue" if scene.dialogue else ("narration" if scene.narration else "no audio")
        typer.echo(f"   • {scene.scene_id}: {scene.frames} frames, {scene.duration:g}s, {audio}")
        prompt_preview = (
            scene.visual_prompt[:60] + "..." if len(scene.visual_prompt) > 60 else scene.visual_prompt
        )
        typer.echo(f"      → {prompt_preview}")

    typer.echo("\n✅ Project is valid")


class EchoSink(ProgressSink):
    """Prints terminal beat transitions as they happen."""

    def beat_updated(self, beat: Beat) -> None:
        if beat.status == BeatStatus.READY:
            audio = " + audio" if beat.audio else ""
            typer.echo(f"   ✅ Beat {beat.sequence} (scene {beat.scene_id}): {beat.location}{audio}")
        elif beat.status == BeatStatus.FAILED:
            typer.echo(f"   ❌ Beat {beat.sequence} (scene {beat.scene_id}): {beat.error}")

    def run_state_changed(self, state: RunState, error: Optional[str] = None) -> None:
        if state == RunState.GENERATING:
            typer.echo("\n⏳ Expanding scenes and generating frames...\n")
        elif state == RunState.CANCELLED:
            typer.echo("\n⚠️  Generation cancelled")


async def _run_pipeline(pipeline, project: Project, retry_failed: bool):
    from .pipeline import CancelToken

    cancel = CancelToken()
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, cancel.cancel)
    except NotImplementedError:
        logger.debug("Signal handlers unsupported here; Ctrl-C will not abort cleanly")

    sink = EchoSink()
    result = await pipeline.run(project, sink=sink, cancel=cancel)

    if retry_failed and not result.cancelled:
        for index, beat in enumerate(result.beats):
            if beat.status == BeatStatus.FAILED:
                typer.echo(f"   🔁 Retrying beat {beat.sequence}")
                result = await pipeline.retry_beat(result, index, sink=sink)

    return result


@app.command()
def generate(
    project_file: Path = typer.Argument(
        ...,
        help="Project file (JSON or YAML)",
        exists=True,
        file_okay=True,
        dir_okay=False
    ),
    output: Path = typer.Option(
        Path("./storyboard"),
        "--output",
        "-o",
        help="Output directory for frames and manifest"
    ),
    strict: bool = typer.Option(
        False,
        "--strict",
        help="Require character identities"
    ),
    sequential: bool = typer.Option(
        False,
        "--sequential",
        help="Request image then audio instead of both at once"
    ),
    max_frames: Optional[int] = typer.Option(
        None,
        "--max-frames",
        "-m",
        help="Cap on frames per scene",
        min=1
    ),
    scene_pause: Optional[float] = typer.Option(
        None,
        "--scene-pause",
        help="Seconds to pause between scene expansions",
        min=0
    ),
    beat_delay: Optional[float] = typer.Option(
        None,
        "--beat-delay",
        help="Seconds to pause between frames",
        min=0
    ),
    retry_failed: bool = typer.Option(
        False,
        "--retry-failed",
        "-r",
        help="Retry each failed frame once after the run"
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        "-n",
        help="Show what would be generated without calling any API"
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose logging"
    ),
) -> None:
    """Generate a storyboard: frames, narration and a manifest."""
    from .export import export_storyboard
    from .pipeline import StoryboardPipeline

    setup_logging(verbose)
    project = _load_or_exit(project_file, strict)

    overrides = {}
    if sequential:
        overrides["asset_concurrency"] = AssetConcurrency.SEQUENTIAL
    if max_frames is not None:
        overrides["max_frames_per_scene"] = max_frames
    if scene_pause is not None:
        overrides["scene_pause"] = scene_pause
    if beat_delay is not None:
        overrides["beat_delay"] = beat_delay
    cfg = config.model_copy(update=overrides)

    typer.echo(f"🎬 Storyboard: {project.title}")
    typer.echo(f"   Scenes: {len(project.scenes)}")
    typer.echo(f"   Asset requests: {cfg.asset_concurrency.value}")

    if dry_run:
        typer.echo(f"\n🔍 Dry run - would request:")
        for scene in project.scenes:
            frames = min(scene.frames, cfg.max_frames_per_scene)
            typer.echo(f"   • Scene {scene.scene_id}: {frames} frames")
        raise typer.Exit(0)

    try:
        pipeline = StoryboardPipeline.from_config(cfg, strict=strict)
    except ValueError as e:
        typer.echo(f"❌ Configuration error: {e}")
        raise typer.Exit(1)

    try:
        result = asyncio.run(_run_pipeline(pipeline, project, retry_failed))
    except PipelineError as e:
        typer.echo(f"\n❌ Director error: {e}")
        raise typer.Exit(1)

    try:
        manifest_path = export_storyboard(result, output)
        typer.echo(f"\n📄 Manifest saved: {manifest_path}")
    except OSError as e:
        typer.echo(f"❌ Error saving storyboard: {e}")
        raise typer.Exit(1)

    # Final summary
    typer.echo(f"\n📊 Summary:")
    typer.echo(f"   Frames: {len(result.beats)}")
    typer.echo(f"   Ready: {len(result.ready)}")
    typer.echo(f"   Failed: {len(result.failed)}")

    if result.failed:
        typer.echo(f"\n⚠️  {len(result.failed)} frame(s) failed to generate")
        raise typer.Exit(1)
    if result.cancelled:
        raise typer.Exit(1)

    typer.echo(f"\n✅ Storyboard generated successfully!")


if __name__ == "__main__":
    app()
