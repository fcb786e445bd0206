"""Progress sinks: observers of beat snapshots and run state."""

import logging
from typing import Dict, Iterable, List, Optional

from ..models import Beat, BeatStatus, RunState

logger = logging.getLogger(__name__)


class ProgressSink:
    """Receives incremental pipeline updates.

    `beat_updated` is called on every beat transition (skeleton creation,
    generating, image attached, audio attached, ready/failed), so expect
    several calls per beat. Beats are frozen snapshots; sinks keep their own
    state and must not reach back into the pipeline.
    """

    def beat_updated(self, beat: Beat) -> None:
        """Handle a new snapshot of one beat."""

    def run_state_changed(self, state: RunState, error: Optional[str] = None) -> None:
        """Handle a run-level state change."""


class LoggingSink(ProgressSink):
    """Logs every update."""

    def beat_updated(self, beat: Beat) -> None:
        if beat.status == BeatStatus.FAILED:
            logger.warning(f"Beat {beat.sequence} (scene {beat.scene_id}) failed: {beat.error}")
        else:
            artifacts = [name for name, value in (("image", beat.image), ("audio", beat.audio)) if value]
            logger.info(
                f"Beat {beat.sequence} (scene {beat.scene_id}): {beat.status.value}"
                + (f" [{', '.join(artifacts)}]" if artifacts else "")
            )

    def run_state_changed(self, state: RunState, error: Optional[str] = None) -> None:
        if error:
            logger.error(f"Run {state.value}: {error}")
        else:
            logger.info(f"Run {state.value}")


class StoryboardView(ProgressSink):
    """Folds snapshots into an ordered view of the storyboard.

    Keyed by the beat's global sequence number, so a later snapshot of the
    same beat replaces the earlier one in place.
    """

    def __init__(self) -> None:
        self._beats: Dict[int, Beat] = {}
        self.state: RunState = RunState.IDLE
        self.error: Optional[str] = None
        self.updates = 0

    def beat_updated(self, beat: Beat) -> None:
        self._beats[beat.sequence] = beat
        self.updates += 1

    def run_state_changed(self, state: RunState, error: Optional[str] = None) -> None:
        self.state = state
        self.error = error

    @property
    def beats(self) -> List[Beat]:
        return [self._beats[sequence] for sequence in sorted(self._beats)]

    def count(self, status: BeatStatus) -> int:
        return sum(1 for beat in self._beats.values() if beat.status == status)

    def reset(self) -> None:
        self._beats.clear()
        self.state = RunState.IDLE
        self.error = None
        self.updates = 0


class CompositeSink(ProgressSink):
    """Fans updates out to several sinks."""

    def __init__(self, sinks: Iterable[ProgressSink]) -> None:
        self._sinks = list(sinks)

    def beat_updated(self, beat: Beat) -> None:
        for sink in self._sinks:
            sink.beat_updated(beat)

    def run_state_changed(self, state: RunState, error: Optional[str] = None) -> None:
        for sink in self._sinks:
            sink.run_state_changed(state, error)
