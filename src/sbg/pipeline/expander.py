"""Expand a project's scenes into an ordered list of pending beats."""

import asyncio
import logging
from typing import List, Optional

from ..models import Beat, Project
from ..retry import RetryExecutor, Sleep
from ..services.base import ExpansionRequest, ExpansionService
from .cancel import CancelToken
from .progress import ProgressSink

logger = logging.getLogger(__name__)


class BeatExpander:
    """Turns every scene into beat skeletons, one remote call per scene.

    Over-long responses are truncated to the requested count; short ones
    are accepted as they are. Any expansion failure ends the run: the
    RemoteError propagates and later scenes are not attempted.
    """

    DEFAULT_MAX_FRAMES = 8

    def __init__(
        self,
        service: ExpansionService,
        executor: RetryExecutor,
        max_frames: int = DEFAULT_MAX_FRAMES,
        scene_pause: float = 0.0,
        sleep: Optional[Sleep] = None,
    ) -> None:
        """Initialize the expander.

        Args:
            service: Remote expansion service.
            executor: Retry policy wrapped around each call.
            max_frames: Pipeline cap on beats per scene.
            scene_pause: Seconds to wait between scenes (0 for none).
            sleep: Awaitable sleep function. Defaults to asyncio.sleep.
        """
        if max_frames < 1:
            raise ValueError("max_frames must be at least 1")
        self._service = service
        self._executor = executor
        self._max_frames = max_frames
        self._scene_pause = scene_pause
        self._sleep = sleep or asyncio.sleep

    def frame_count(self, requested: int) -> int:
        return min(requested, self._max_frames)

    async def expand(
        self,
        project: Project,
        sink: Optional[ProgressSink] = None,
        cancel: Optional[CancelToken] = None,
    ) -> List[Beat]:
        """Expand all scenes, in order, into pending beats.

        Returns:
            Beats ordered by scene, then by position in the expansion
            response, numbered globally from 1.

        Raises:
            RemoteError: If any scene's expansion fails.
        """
        sink = sink or ProgressSink()
        beats: List[Beat] = []

        for index, scene in enumerate(project.scenes):
            cancelled = cancel is not None and cancel.cancelled
            if index and self._scene_pause > 0 and not cancelled:
                logger.debug(f"Pausing {self._scene_pause:.1f}s before scene {scene.scene_id}")
                await self._sleep(self._scene_pause)
                cancelled = cancel is not None and cancel.cancelled

            if cancelled:
                logger.info(f"Expansion cancelled before scene {scene.scene_id}")
                break

            target = self.frame_count(scene.frames)
            drafts = await self._executor.call(
                self._service.expand,
                ExpansionRequest(project=project, scene=scene, frame_count=target),
                description=f"Expansion of scene {scene.scene_id}",
            )
            drafts = list(drafts)

            if len(drafts) > target:
                logger.info(
                    f"Scene {scene.scene_id}: truncating {len(drafts)} beats to {target}"
                )
                drafts = drafts[:target]
            elif len(drafts) < target:
                logger.warning(
                    f"Scene {scene.scene_id}: expected {target} beats, got {len(drafts)}"
                )

            for draft in drafts:
                beat = Beat.from_draft(
                    draft,
                    scene_id=scene.scene_id,
                    sequence=len(beats) + 1,
                    dialogue=scene.dialogue,
                    speaker=scene.speaker,
                )
                beats.append(beat)
                sink.beat_updated(beat)

        logger.info(f"Expanded scenes into {len(beats)} beats")
        return beats
