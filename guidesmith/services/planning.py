"""Scoping and outline generation."""

from typing import List

from guidesmith.schemas import ChatMessage, ClarifyingQuestion, OutlineNode, ScopeConfig
from guidesmith.services.llm import LlmService


class PlanningService:
    def __init__(self, llm: LlmService):
        self.llm = llm

    async def create_clarifying_questions(self, topic: str) -> List[ClarifyingQuestion]:
        return await self.llm.generate_clarifying_questions(topic)

    async def create_outline(self, topic: str, scope: ScopeConfig) -> List[OutlineNode]:
        return await self.llm.create_outline(topic, scope)

    async def derive_scope_from_conversation(self, topic: str, messages: List[ChatMessage]) -> ScopeConfig:
        return await self.llm.derive_scope_from_conversation(topic, messages)
