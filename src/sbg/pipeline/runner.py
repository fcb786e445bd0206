"""End-to-end storyboard pipeline: normalize, expand, generate."""

import logging
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional, Tuple, Union

from ..config import Config, config as default_config
from ..errors import PipelineError, RemoteError, ValidationError
from ..models import Beat, BeatStatus, Project, RunState
from ..normalizer import normalize_project
from ..retry import RetryExecutor, Sleep
from .cancel import CancelToken
from .expander import BeatExpander
from .orchestrator import AssetOrchestrator
from .progress import ProgressSink

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoryboardResult:
    """Outcome of one pipeline run."""

    project: Project
    beats: Tuple[Beat, ...]
    cancelled: bool = False

    @property
    def ready(self) -> Tuple[Beat, ...]:
        return tuple(beat for beat in self.beats if beat.status == BeatStatus.READY)

    @property
    def failed(self) -> Tuple[Beat, ...]:
        return tuple(beat for beat in self.beats if beat.status == BeatStatus.FAILED)


class StoryboardPipeline:
    """Runs the whole generation flow for one project.

    Invalid input and failed scene expansion end the run with a single
    PipelineError. Asset failures are recorded on their beats instead.
    """

    def __init__(
        self,
        expander: BeatExpander,
        orchestrator: AssetOrchestrator,
        strict: bool = False,
    ) -> None:
        self._expander = expander
        self._orchestrator = orchestrator
        self._strict = strict

    @classmethod
    def from_config(
        cls,
        cfg: Optional[Config] = None,
        strict: bool = False,
        sleep: Optional[Sleep] = None,
    ) -> "StoryboardPipeline":
        """Build a pipeline wired to the real remote services.

        Raises:
            ValueError: If required credentials are not configured.
        """
        from ..agents import BeatExpansionAgent
        from ..services.anthropic import AnthropicClient
        from ..services.images import ImageClient
        from ..services.speech import SpeechClient

        cfg = cfg or default_config
        cfg.validate_required()
        cfg.validate_vertex_required()

        vertex = {
            "project_id": cfg.google_cloud_project,
            "location": cfg.google_cloud_location,
            "timeout": cfg.request_timeout,
        }
        executor = RetryExecutor.from_config(cfg, sleep=sleep)
        agent = BeatExpansionAgent(
            client=AnthropicClient(api_key=cfg.anthropic_api_key, model=cfg.expansion_model)
        )

        expander = BeatExpander(
            agent,
            executor,
            max_frames=cfg.max_frames_per_scene,
            scene_pause=cfg.scene_pause,
            sleep=sleep,
        )
        orchestrator = AssetOrchestrator(
            ImageClient(model=cfg.image_model, **vertex),
            SpeechClient(model=cfg.speech_model, **vertex),
            executor,
            concurrency=cfg.asset_concurrency,
            beat_delay=cfg.beat_delay,
            voice_map=cfg.voice_map,
            default_voice=cfg.default_voice,
            sleep=sleep,
        )
        return cls(expander, orchestrator, strict=strict)

    async def run(
        self,
        raw: Union[Project, Mapping[str, Any], str, bytes],
        sink: Optional[ProgressSink] = None,
        cancel: Optional[CancelToken] = None,
    ) -> StoryboardResult:
        """Generate a storyboard.

        Args:
            raw: A Project, or a raw project document (mapping or JSON/YAML text).
            sink: Receives beat snapshots and run state changes.
            cancel: Checked between scenes and between beats.

        Raises:
            PipelineError: For invalid input or a failed scene expansion.
        """
        sink = sink or ProgressSink()
        sink.run_state_changed(RunState.PARSING)

        try:
            project = raw if isinstance(raw, Project) else normalize_project(raw, strict=self._strict)
        except ValidationError as e:
            sink.run_state_changed(RunState.ERROR, str(e))
            raise PipelineError(str(e), cause=e) from e

        logger.info(
            f"Project '{project.title}': {len(project.scenes)} scenes, "
            f"{project.requested_frames} frames requested"
        )
        sink.run_state_changed(RunState.GENERATING)

        try:
            skeletons = await self._expander.expand(project, sink=sink, cancel=cancel)
        except RemoteError as e:
            message = f"Could not expand scenes into beats: {e}"
            sink.run_state_changed(RunState.ERROR, message)
            raise PipelineError(message, cause=e) from e

        beats = await self._orchestrator.run(project, skeletons, sink=sink, cancel=cancel)

        cancelled = cancel is not None and cancel.cancelled
        result = StoryboardResult(project=project, beats=tuple(beats), cancelled=cancelled)
        logger.info(
            f"Storyboard {'cancelled' if cancelled else 'complete'}: "
            f"{len(result.ready)} ready, {len(result.failed)} failed"
        )
        sink.run_state_changed(RunState.CANCELLED if cancelled else RunState.COMPLETE)
        return result

    async def retry_beat(
        self,
        result: StoryboardResult,
        index: int,
        sink: Optional[ProgressSink] = None,
    ) -> StoryboardResult:
        """Regenerate one beat of a finished run."""
        beats = await self._orchestrator.retry_beat(result.project, result.beats, index, sink=sink)
        return replace(result, beats=tuple(beats))
