import asyncio

import pytest

from sbg.errors import QuotaError, RemoteError
from sbg.models import BeatStatus
from sbg.normalizer import normalize_project
from sbg.pipeline import BeatExpander, CancelToken, StoryboardView
from sbg.retry import RetryExecutor

from fakes import FakeExpansion, RecordingSleep, project_document


def _project(frames=(3, 2)):
    document = project_document()
    for scene, count in zip(document["scenes"], frames):
        scene["frames"] = count
    return normalize_project(document)


def _expander(service, sleep=None, **kwargs):
    sleep = sleep or RecordingSleep()
    return BeatExpander(service, RetryExecutor(sleep=sleep), sleep=sleep, **kwargs)


def test_beat_count_is_sum_of_requested_frames_in_scene_order():
    service = FakeExpansion()
    beats = asyncio.run(_expander(service).expand(_project((3, 2))))

    assert len(beats) == 5
    assert [beat.scene_id for beat in beats] == [1, 1, 1, 2, 2]
    assert [beat.sequence for beat in beats] == [1, 2, 3, 4, 5]
    assert all(beat.status == BeatStatus.PENDING for beat in beats)
    assert [r.frame_count for r in service.requests] == [3, 2]


def test_frame_count_is_capped():
    service = FakeExpansion()
    beats = asyncio.run(_expander(service, max_frames=2).expand(_project((8, 1))))

    assert [r.frame_count for r in service.requests] == [2, 1]
    assert len(beats) == 3


def test_over_long_response_is_truncated():
    service = FakeExpansion({1: 6})
    beats = asyncio.run(_expander(service).expand(_project((3, 2))))

    scene_one = [beat for beat in beats if beat.scene_id == 1]
    assert [beat.location for beat in scene_one] == ["Location 1", "Location 2", "Location 3"]
    assert len(beats) == 5


def test_under_long_response_is_kept_as_is():
    service = FakeExpansion({1: 5})
    beats = asyncio.run(_expander(service).expand(_project((8, 2))))

    assert len([beat for beat in beats if beat.scene_id == 1]) == 5
    assert len(beats) == 7
    assert len(service.requests) == 2


def test_skeletons_carry_scene_dialogue():
    beats = asyncio.run(_expander(FakeExpansion()).expand(_project((1, 1))))

    narration_beat, dialogue_beat = beats
    assert narration_beat.dialogue == ()
    assert narration_beat.narration
    assert [line.speaker for line in dialogue_beat.dialogue] == ["Mother", "Father"]


def test_failure_is_fatal_and_stops_later_scenes():
    document = project_document()
    document["scenes"].append(dict(document["scenes"][0], scene_id=3))
    project = normalize_project(document)
    service = FakeExpansion({2: RemoteError("Response does not contain a beats array")})

    with pytest.raises(RemoteError):
        asyncio.run(_expander(service).expand(project))

    assert [r.scene.scene_id for r in service.requests] == [1, 2]


def test_expansion_goes_through_retry_executor():
    sleep = RecordingSleep()

    class Flaky(FakeExpansion):
        def expand(self, request):
            if not self.requests:
                self.requests.append(request)
                raise QuotaError("slow down")
            return super().expand(request)

    beats = asyncio.run(_expander(Flaky(), sleep=sleep).expand(_project((1, 1))))
    assert len(beats) == 2
    assert sleep.delays == [5.0]


def test_scene_pause_between_scenes_only():
    sleep = RecordingSleep()
    asyncio.run(_expander(FakeExpansion(), sleep=sleep, scene_pause=1.5).expand(_project()))
    assert sleep.delays == [1.5]


def test_cancel_during_scene_pause_stops_next_scene():
    cancel = CancelToken()

    async def cancelling_sleep(delay):
        cancel.cancel()

    service = FakeExpansion()
    expander = BeatExpander(
        service, RetryExecutor(sleep=RecordingSleep()), scene_pause=1.0, sleep=cancelling_sleep
    )

    beats = asyncio.run(expander.expand(_project((3, 2)), cancel=cancel))

    assert len(service.requests) == 1
    assert len(beats) == 3


def test_skeletons_are_emitted_and_cancel_stops_expansion():
    view = StoryboardView()
    cancel = CancelToken()

    class CancelAfterFirst(FakeExpansion):
        def expand(self, request):
            cancel.cancel()
            return super().expand(request)

    service = CancelAfterFirst()
    beats = asyncio.run(_expander(service).expand(_project((3, 2)), sink=view, cancel=cancel))

    assert len(service.requests) == 1
    assert len(beats) == 3
    assert [beat.sequence for beat in view.beats] == [1, 2, 3]
