"""Sequential asset generation with continuity chaining."""

import asyncio
import logging
from typing import Any, Awaitable, List, Mapping, Optional, Sequence, Tuple, Union

from ..config import AssetConcurrency
from ..models import AudioArtifact, Beat, ImageArtifact, Project
from ..retry import RetryExecutor, Sleep
from ..services.base import AudioRequest, AudioService, ImageRequest, ImageService
from .cancel import CancelToken
from .progress import ProgressSink
from .requests import VoiceResolver, build_audio_request, build_image_request

logger = logging.getLogger(__name__)

Outcome = Union[Any, Exception]


async def _capture(awaitable: Awaitable[Any]) -> Outcome:
    """Await and return the result, or the Exception it raised."""
    try:
        return await awaitable
    except Exception as e:
        return e


def _notify(sink: ProgressSink, beat: Beat) -> None:
    """Deliver a snapshot; a failing sink is logged and never stops the run."""
    try:
        sink.beat_updated(beat)
    except Exception:
        logger.exception(f"Progress sink failed on beat {beat.sequence} ({beat.status.value})")


class AssetOrchestrator:
    """Walks the beat list once, front to back, generating image and audio.

    The continuity anchor (the last successfully generated image) is a local
    of the `run` fold: each beat's image request carries it, and only an
    image success replaces it. Failures are isolated to their beat.
    """

    def __init__(
        self,
        image_service: ImageService,
        audio_service: AudioService,
        executor: RetryExecutor,
        concurrency: AssetConcurrency = AssetConcurrency.CONCURRENT,
        beat_delay: float = 0.0,
        voice_map: Optional[Mapping[str, str]] = None,
        default_voice: str = "Kore",
        sleep: Optional[Sleep] = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            image_service: Remote frame renderer.
            audio_service: Remote speech synthesizer.
            executor: Retry policy wrapped around each call.
            concurrency: Issue a beat's image and audio together or in turn.
            beat_delay: Seconds to wait between beats (0 for none).
            voice_map: Speaker name -> voice identifier.
            default_voice: Voice for narration and unknown speakers.
            sleep: Awaitable sleep function. Defaults to asyncio.sleep.
        """
        self._image_service = image_service
        self._audio_service = audio_service
        self._executor = executor
        self._concurrency = AssetConcurrency(concurrency)
        self._beat_delay = beat_delay
        self._voice_map = dict(voice_map or {})
        self._default_voice = default_voice
        self._sleep = sleep or asyncio.sleep

    @property
    def concurrency(self) -> AssetConcurrency:
        return self._concurrency

    async def run(
        self,
        project: Project,
        beats: Sequence[Beat],
        sink: Optional[ProgressSink] = None,
        cancel: Optional[CancelToken] = None,
    ) -> List[Beat]:
        """Generate assets for every beat in order.

        Returns:
            The beat list with each processed beat in a terminal state.
            Beats not reached because of cancellation stay pending.
        """
        sink = sink or ProgressSink()
        voices = VoiceResolver(self._voice_map, self._default_voice, project)
        results = list(beats)
        anchor: Optional[ImageArtifact] = None

        for index, beat in enumerate(beats):
            cancelled = cancel is not None and cancel.cancelled
            if index and self._beat_delay > 0 and not cancelled:
                await self._sleep(self._beat_delay)
                cancelled = cancel is not None and cancel.cancelled

            if cancelled:
                logger.info(f"Generation cancelled before beat {beat.sequence}")
                break

            results[index], anchor = await self._generate(project, beat, anchor, voices, sink)

        ready = sum(1 for beat in results if beat.image is not None and beat.error is None)
        logger.info(f"Generated assets for {ready}/{len(results)} beats")
        return results

    async def retry_beat(
        self,
        project: Project,
        beats: Sequence[Beat],
        index: int,
        sink: Optional[ProgressSink] = None,
    ) -> List[Beat]:
        """Regenerate a single beat on request.

        The anchor is the image of the nearest earlier beat that has one.
        Only the beat at `index` changes.
        """
        if not 0 <= index < len(beats):
            raise IndexError(f"No beat at index {index}")

        sink = sink or ProgressSink()
        voices = VoiceResolver(self._voice_map, self._default_voice, project)
        anchor = next(
            (beat.image for beat in reversed(beats[:index]) if beat.image is not None),
            None,
        )

        logger.info(f"Retrying beat {beats[index].sequence}")
        results = list(beats)
        results[index], _ = await self._generate(project, beats[index], anchor, voices, sink)
        return results

    async def _generate(
        self,
        project: Project,
        beat: Beat,
        anchor: Optional[ImageArtifact],
        voices: VoiceResolver,
        sink: ProgressSink,
    ) -> Tuple[Beat, Optional[ImageArtifact]]:
        """Produce one beat's assets. Returns the final beat and the next anchor."""
        beat = beat.generating()
        _notify(sink, beat)

        try:
            image_request = build_image_request(project, beat, anchor)
            audio_request = build_audio_request(project, beat, voices)
            image, audio = await self._request_assets(beat, image_request, audio_request)
        except Exception as e:
            logger.warning(f"Beat {beat.sequence}: asset generation failed: {e}")
            beat = beat.failed(str(e) or type(e).__name__)
            _notify(sink, beat)
            return beat, anchor

        if isinstance(image, Exception):
            logger.warning(f"Beat {beat.sequence}: image failed: {image}")
            next_anchor = anchor
        else:
            beat = beat.with_image(image)
            _notify(sink, beat)
            next_anchor = image

        if isinstance(audio, Exception):
            logger.warning(f"Beat {beat.sequence}: audio failed, continuing without it: {audio}")
        elif audio is not None:
            beat = beat.with_audio(audio)
            _notify(sink, beat)

        if isinstance(image, Exception):
            beat = beat.failed(str(image) or type(image).__name__)
        else:
            beat = beat.ready()
        _notify(sink, beat)
        return beat, next_anchor

    async def _request_assets(
        self,
        beat: Beat,
        image_request: ImageRequest,
        audio_request: AudioRequest,
    ) -> Tuple[Outcome, Outcome]:
        """Issue both requests per the concurrency policy, capturing failures."""
        image_call = self._executor.call(
            self._image_service.synthesize_image,
            image_request,
            description=f"Image for beat {beat.sequence}",
        )

        if not (audio_request.text or audio_request.dialogue):
            return await _capture(image_call), None

        audio_call = self._executor.call(
            self._audio_service.synthesize_audio,
            audio_request,
            description=f"Audio for beat {beat.sequence}",
        )

        if self._concurrency == AssetConcurrency.CONCURRENT:
            image, audio = await asyncio.gather(_capture(image_call), _capture(audio_call))
            return image, audio

        image = await _capture(image_call)
        audio = await _capture(audio_call)
        return image, audio
