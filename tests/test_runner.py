import asyncio

import pytest

from sbg.errors import PipelineError, RemoteError, ValidationError
from sbg.models import BeatStatus, RunState
from sbg.pipeline import (
    AssetOrchestrator,
    BeatExpander,
    CancelToken,
    StoryboardPipeline,
    StoryboardView,
)
from sbg.retry import RetryExecutor

from fakes import FakeAudio, FakeExpansion, FakeImages, RecordingSleep, image, project_document


def _pipeline(expansion=None, images=None, audio=None, strict=False):
    sleep = RecordingSleep()
    executor = RetryExecutor(sleep=sleep)
    expander = BeatExpander(expansion or FakeExpansion(), executor, sleep=sleep)
    orchestrator = AssetOrchestrator(
        images or FakeImages(), audio or FakeAudio(), executor, sleep=sleep
    )
    return StoryboardPipeline(expander, orchestrator, strict=strict)


def test_full_run_reports_states_and_beats():
    view = StoryboardView()

    result = asyncio.run(_pipeline().run(project_document(), sink=view))

    assert len(result.beats) == 5
    assert len(result.ready) == 5
    assert not result.cancelled
    assert view.state == RunState.COMPLETE
    assert [beat.status for beat in view.beats] == [BeatStatus.READY] * 5


def test_invalid_input_is_a_single_pipeline_error_before_any_remote_call():
    expansion = FakeExpansion()
    view = StoryboardView()
    document = project_document()
    del document["style"]

    with pytest.raises(PipelineError) as exc_info:
        asyncio.run(_pipeline(expansion=expansion).run(document, sink=view))

    assert isinstance(exc_info.value.cause, ValidationError)
    assert expansion.requests == []
    assert view.state == RunState.ERROR


def test_strict_pipeline_requires_characters():
    with pytest.raises(PipelineError):
        asyncio.run(_pipeline(strict=True).run(project_document(characters={})))


def test_expansion_failure_aborts_the_run():
    images = FakeImages()
    view = StoryboardView()
    expansion = FakeExpansion({2: RemoteError("Invalid JSON in response")})

    with pytest.raises(PipelineError) as exc_info:
        asyncio.run(_pipeline(expansion=expansion, images=images).run(project_document(), sink=view))

    assert isinstance(exc_info.value.cause, RemoteError)
    assert images.requests == []
    assert view.state == RunState.ERROR
    assert "Invalid JSON" in view.error


def test_image_failures_do_not_abort_the_run():
    images = FakeImages([image("a"), RemoteError("No image data returned from generator")])

    result = asyncio.run(_pipeline(images=images).run(project_document()))

    assert len(result.beats) == 5
    assert len(result.failed) == 1
    assert result.beats[1].status == BeatStatus.FAILED


def test_cancelled_run_is_reported():
    cancel = CancelToken()
    cancel.cancel()
    view = StoryboardView()

    result = asyncio.run(_pipeline().run(project_document(), sink=view, cancel=cancel))

    assert result.cancelled
    assert result.beats == ()
    assert view.state == RunState.CANCELLED


def test_retry_beat_replaces_only_that_beat():
    images = FakeImages([image("a"), RemoteError("blocked")])
    pipeline = _pipeline(images=images)
    result = asyncio.run(pipeline.run(project_document()))

    retried = asyncio.run(pipeline.retry_beat(result, 1))

    assert retried.beats[1].status == BeatStatus.READY
    assert len(retried.failed) == 0
    assert retried.beats[0] == result.beats[0]
    assert retried.project is result.project


def test_undecodable_bytes_end_the_run_with_pipeline_error():
    view = StoryboardView()

    with pytest.raises(PipelineError) as exc_info:
        asyncio.run(_pipeline().run(b"\xff", sink=view))

    assert isinstance(exc_info.value.cause, ValidationError)
    assert view.state == RunState.ERROR
