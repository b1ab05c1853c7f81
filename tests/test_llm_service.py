"""Tests for the structured generation wrapper."""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock

import httpx
import pytest
from openai import APIConnectionError

from guidesmith.exceptions import GenerationError
from guidesmith.schemas import ChatMessage, ScopeConfig, SectionWriteRequest
from guidesmith.services.llm import LlmService


def _completion(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _fake_client(*contents):
    create = AsyncMock(side_effect=[_completion(content) for content in contents])
    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))


def _write_request():
    return SectionWriteRequest(
        section_id="bins",
        section_title="Choosing a bin",
        outline_path=["planning", "bins"],
        scope=ScopeConfig(topic="home composting", depth_level="overview", breadth=["bins"]),
    )


@pytest.fixture
def mock_llm(settings):
    return LlmService(settings)


async def test_mock_mode_without_api_key(mock_llm):
    assert mock_llm.is_mock

    questions = await mock_llm.generate_clarifying_questions("home composting")
    plan = await mock_llm.plan_research_queries("home composting with depth overview")
    outline = await mock_llm.create_outline("home composting", ScopeConfig(topic="home composting", depth_level="overview"))

    assert [q.id for q in questions] == ["scope", "depth"]
    assert "home composting" in questions[0].prompt
    assert [entry.priority for entry in plan] == [1, 2]
    assert plan[0].query == "home composting with depth overview best practices"
    assert [node.id for node in outline] == ["introduction", "planning"]
    assert [child.id for child in outline[1].children] == ["requirements", "tooling"]


async def test_mock_section_lists_sources(mock_llm):
    content = await mock_llm.write_section(_write_request())

    assert content.startswith("# Choosing a bin")
    assert "## Supporting Sources" in content


async def test_mock_scope_reads_depth_hints(mock_llm):
    messages = [
        ChatMessage(role="assistant", content="How detailed should it be?"),
        ChatMessage(role="user", content="Give me an expert, step-by-step guide"),
        ChatMessage(role="user", content="Focus on hot composting"),
    ]

    scope = await mock_llm.derive_scope_from_conversation("home composting", messages)

    assert scope.topic == "home composting"
    assert scope.depth_level == "expert"
    assert scope.breadth == ["Give me an expert, step-by-step guide", "Focus on hot composting"]


async def test_clarifying_questions_from_model(settings):
    payload = {
        "questions": [
            {"id": "space", "prompt": "Do you have a yard?", "type": "toggle"},
            {"id": "goal", "prompt": "What is the main goal?", "type": "open", "options": ["Garden soil"]},
        ]
    }
    client = _fake_client(json.dumps(payload))
    llm = LlmService(settings, client=client)

    questions = await llm.generate_clarifying_questions("home composting")

    assert [q.id for q in questions] == ["space", "goal"]
    kwargs = client.chat.completions.create.call_args.kwargs
    assert kwargs["model"] == settings.model_name
    assert kwargs["response_format"] == {"type": "json_object"}
    assert "home composting" in kwargs["messages"][1]["content"]


async def test_bare_array_response_is_accepted(settings):
    payload = [{"query": "compost ratios", "rationale": "Basics", "priority": 1, "expectedArtifacts": ["article"]}]
    llm = LlmService(settings, client=_fake_client(json.dumps(payload)))

    plan = await llm.plan_research_queries("home composting")

    assert plan[0].expected_artifacts == ["article"]


async def test_unparseable_response_yields_empty_list(settings):
    llm = LlmService(settings, client=_fake_client("not json", json.dumps({"outline": [{"title": "no id"}]})))
    scope = ScopeConfig(topic="home composting", depth_level="overview")

    assert await llm.generate_clarifying_questions("home composting") == []
    assert await llm.create_outline("home composting", scope) == []


async def test_unparseable_scope_falls_back_to_intermediate(settings):
    llm = LlmService(settings, client=_fake_client(json.dumps({"depthLevel": "extreme"})))

    scope = await llm.derive_scope_from_conversation(
        "home composting", [ChatMessage(role="user", content="whatever works")]
    )

    assert scope == ScopeConfig(topic="home composting", depth_level="intermediate")


async def test_scope_from_model_keeps_topic(settings):
    llm = LlmService(settings, client=_fake_client(json.dumps({"depthLevel": "overview", "breadth": ["bins"]})))

    scope = await llm.derive_scope_from_conversation(
        "home composting", [ChatMessage(role="user", content="just the basics")]
    )

    assert scope.topic == "home composting"
    assert scope.breadth == ["bins"]


async def test_section_text_is_returned_verbatim(settings):
    client = _fake_client("# Choosing a bin\n\nPick a bin with a lid.")
    llm = LlmService(settings, client=client)

    content = await llm.write_section(_write_request())

    assert content == "# Choosing a bin\n\nPick a bin with a lid."
    kwargs = client.chat.completions.create.call_args.kwargs
    assert "response_format" not in kwargs
    assert "planning > bins" in kwargs["messages"][1]["content"]


async def test_client_errors_become_generation_errors(settings):
    error = APIConnectionError(request=httpx.Request("POST", "https://api.openai.com/v1/chat/completions"))
    client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=AsyncMock(side_effect=error))))
    llm = LlmService(settings, client=client)

    with pytest.raises(GenerationError):
        await llm.generate_clarifying_questions("home composting")


async def test_empty_choices_raise_generation_error(settings):
    client = SimpleNamespace(
        chat=SimpleNamespace(completions=SimpleNamespace(create=AsyncMock(return_value=SimpleNamespace(choices=[]))))
    )
    llm = LlmService(settings, client=client)

    with pytest.raises(GenerationError):
        await llm.write_section(_write_request())
