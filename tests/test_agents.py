import json

import pytest

from sbg.agents import BeatExpansionAgent
from sbg.errors import QuotaError, RemoteError
from sbg.normalizer import normalize_project
from sbg.services.base import ExpansionRequest

from fakes import project_document


class StubClient:
    """Returns a canned response in place of the Anthropic client."""

    model = "stub-model"

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.prompts = []

    def create_message(self, prompt, max_tokens=4096, system=None, temperature=0.7):
        self.prompts.append((prompt, system))
        if self.error:
            raise self.error
        return self.response


def _beat(n, **overrides):
    beat = {
        "sequence": n,
        "location": "Cliff",
        "time_of_day": "dusk",
        "description": "Waves crash",
        "visual_prompt": "Wide shot of a lighthouse",
        "mood": "ominous",
        "narration": "The storm was coming.",
    }
    beat.update(overrides)
    return beat


@pytest.fixture
def request_for_scene_two():
    project = normalize_project(project_document())
    return ExpansionRequest(project=project, scene=project.scenes[1], frame_count=2)


def test_parses_fenced_json(request_for_scene_two):
    response = "Here you go:\n```json\n" + json.dumps({"beats": [_beat(1), _beat(2)]}) + "\n```"
    agent = BeatExpansionAgent(client=StubClient(response))

    drafts = agent.expand(request_for_scene_two)

    assert [d.sequence for d in drafts] == [1, 2]
    assert drafts[0].narration == "The storm was coming."


def test_accepts_bare_array_with_camel_case_keys(request_for_scene_two):
    beats = [
        {
            "sceneNumber": 1,
            "location": "Kitchen",
            "timeOfDay": "night",
            "description": "Rain",
            "visualPrompt": "Close up",
            "mood": "anxious",
            "audioScript": "Is he back yet?",
        }
    ]
    agent = BeatExpansionAgent(client=StubClient(json.dumps(beats)))

    drafts = agent.expand(request_for_scene_two)

    assert drafts[0].time_of_day == "night"
    assert drafts[0].visual_prompt == "Close up"
    assert drafts[0].narration == "Is he back yet?"


def test_prompt_includes_scene_context(request_for_scene_two):
    client = StubClient(json.dumps([_beat(1)]))
    BeatExpansionAgent(client=client).expand(request_for_scene_two)

    prompt, system = client.prompts[0]
    assert "exactly 2 beats" in prompt
    assert "Mother: Is he back yet?" in prompt
    assert "Kitchen interior" in prompt
    assert "must never be empty" in system


@pytest.mark.parametrize(
    "response",
    [
        "no json here",
        json.dumps({"scenes": "nope"}),
        json.dumps([_beat(1, narration="")]),
        json.dumps([_beat(1, location=None)]),
        json.dumps(["just a string"]),
    ],
)
def test_malformed_responses_raise_remote_error(request_for_scene_two, response):
    agent = BeatExpansionAgent(client=StubClient(response))

    with pytest.raises(RemoteError) as exc_info:
        agent.expand(request_for_scene_two)
    assert not exc_info.value.retryable


def test_client_errors_propagate_classified(request_for_scene_two):
    agent = BeatExpansionAgent(client=StubClient(error=QuotaError("rate limited")))

    with pytest.raises(QuotaError):
        agent.expand(request_for_scene_two)


def test_model_defaults_to_client_model():
    assert BeatExpansionAgent(client=StubClient("[]")).model == "stub-model"
