"""OpenAI chat wrapper returning structured workflow data."""

from __future__ import annotations

import json
import logging
from typing import Any, List, Optional, Type, TypeVar

from openai import AsyncOpenAI, OpenAIError
from pydantic import BaseModel, TypeAdapter, ValidationError

from guidesmith.config import Settings
from guidesmith.exceptions import GenerationError
from guidesmith.prompts import registry
from guidesmith.schemas import (
    ChatMessage,
    ClarifyingQuestion,
    OutlineNode,
    ResearchQueryPlan,
    ScopeConfig,
    SectionWriteRequest,
)

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class LlmService:
    """Structured generation backed by OpenAI chat completions.

    Without an API key every method returns deterministic mock content so the
    workflow can be exercised end to end offline.
    """

    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None):
        self.model = settings.model_name
        self.temperature = settings.model_temperature
        self.client = client
        if self.client is None and settings.openai_api_key:
            self.client = AsyncOpenAI(api_key=settings.openai_api_key)
        if self.client is None:
            logger.warning("OPENAI_API_KEY is not set. Falling back to mock responses.")

    @property
    def is_mock(self) -> bool:
        return self.client is None

    async def generate_clarifying_questions(self, topic: str) -> List[ClarifyingQuestion]:
        if self.is_mock:
            return [
                ClarifyingQuestion(
                    id="scope",
                    prompt=f'What is the desired scope for "{topic}"?',
                    type="breadth",
                    options=[
                        f"Cover the entire {topic} lifecycle",
                        "Limit to planning and setup",
                        "Focus on day-to-day operations",
                    ],
                ),
                ClarifyingQuestion(
                    id="depth",
                    prompt="How technical should the manual be?",
                    type="depth",
                    options=["Overview", "Intermediate", "Expert step-by-step"],
                ),
            ]

        data = await self._complete_json("clarifying_questions", topic=topic)
        return self._parse_list(data, "questions", ClarifyingQuestion, "clarifying question")

    async def plan_research_queries(self, scope_description: str) -> List[ResearchQueryPlan]:
        if self.is_mock:
            return [
                ResearchQueryPlan(
                    query=f"{scope_description} best practices",
                    rationale="Baseline orientation research",
                    priority=1,
                    expected_artifacts=["article", "manual"],
                ),
                ResearchQueryPlan(
                    query=f"{scope_description} troubleshooting",
                    rationale="Collect failure modes and diagnostics",
                    priority=2,
                    expected_artifacts=["article", "statistic"],
                ),
            ]

        data = await self._complete_json("research_plan", scope_description=scope_description)
        return self._parse_list(data, "queries", ResearchQueryPlan, "research plan")

    async def create_outline(self, topic: str, scope: ScopeConfig) -> List[OutlineNode]:
        if self.is_mock:
            return [
                OutlineNode(id="introduction", title=f"Introduction to {topic}"),
                OutlineNode(
                    id="planning",
                    title="Planning the work",
                    children=[
                        OutlineNode(id="requirements", title="Gather requirements"),
                        OutlineNode(id="tooling", title="Tools and environment"),
                    ],
                ),
            ]

        data = await self._complete_json(
            "outline",
            topic=topic,
            depth_level=scope.depth_level,
            breadth=", ".join(scope.breadth) or "unspecified",
            scope_json=json.dumps(scope.to_json_dict(), ensure_ascii=False),
        )
        return self._parse_list(data, "outline", OutlineNode, "outline")

    async def write_section(self, request: SectionWriteRequest) -> str:
        if self.is_mock:
            citation_list = "\n".join(f"- {doc.url}" for doc in request.supporting_research)
            return (
                f"# {request.section_title}\n\n"
                "This section is a placeholder generated without the LLM. "
                "Incorporate research findings once the LLM API key is configured.\n\n"
                "## Supporting Sources\n"
                f"{citation_list}\n"
            )

        system_prompt, user_prompt = registry.render(
            "write_section",
            section_title=request.section_title,
            topic=request.scope.topic,
            outline_path=" > ".join(request.outline_path),
            depth_level=request.scope.depth_level,
            breadth=", ".join(request.scope.breadth),
            sources=", ".join(doc.url for doc in request.supporting_research) or "none",
        )
        return await self._call_model(system_prompt, user_prompt, json_mode=False)

    async def derive_scope_from_conversation(self, topic: str, messages: List[ChatMessage]) -> ScopeConfig:
        if self.is_mock:
            return _scope_from_transcript(topic, messages)

        transcript = "\n".join(f"{message.role}: {message.content}" for message in messages)
        data = await self._complete_json("scope_from_chat", topic=topic, transcript=transcript)
        try:
            if isinstance(data, dict):
                data.setdefault("topic", topic)
            return ScopeConfig.model_validate(data)
        except ValidationError as e:
            logger.error(f"Failed to parse scope response: {e}")
            return ScopeConfig(topic=topic, depth_level="intermediate")

    async def _complete_json(self, task: str, **values: str) -> Any:
        system_prompt, user_prompt = registry.render(task, **values)
        raw = await self._call_model(system_prompt, user_prompt, json_mode=True)
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse JSON for {task}: {e}, content: {raw[:200]}")
            return None

    async def _call_model(self, system_prompt: str, user_prompt: str, json_mode: bool) -> str:
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "temperature": self.temperature,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await self.client.chat.completions.create(**kwargs)
        except OpenAIError as e:
            logger.error(f"Model call failed: {e}")
            raise GenerationError(f"Model call failed: {e}") from e

        if not response.choices:
            raise GenerationError("Model returned no choices")
        return response.choices[0].message.content or ""

    @staticmethod
    def _parse_list(data: Any, key: str, model: Type[T], label: str) -> List[T]:
        items = data.get(key, []) if isinstance(data, dict) else data
        if items is None:
            return []
        try:
            return TypeAdapter(List[model]).validate_python(items)
        except ValidationError as e:
            logger.error(f"Failed to parse {label} response: {e}")
            return []


_DEPTH_HINTS = {
    "expert": ("expert", "advanced", "in-depth", "step-by-step", "technical"),
    "overview": ("overview", "beginner", "basics", "introduction", "simple"),
}


def _scope_from_transcript(topic: str, messages: List[ChatMessage]) -> ScopeConfig:
    """Keyword-based scope used when no model is configured."""
    user_text = [m.content.strip() for m in messages if m.role == "user"]
    lowered = " ".join(user_text).lower()

    depth = "intermediate"
    for level, hints in _DEPTH_HINTS.items():
        if any(hint in lowered for hint in hints):
            depth = level
            break

    return ScopeConfig(
        topic=topic,
        depth_level=depth,
        breadth=[text[:80] for text in user_text[:5]],
        optional_flags={},
    )
