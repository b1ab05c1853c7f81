"""Session orchestration: drives a session from topic to drafted sections."""

import asyncio
import logging
import re
from collections import defaultdict
from typing import Dict, List, Optional

from guidesmith.exceptions import PreconditionFailedError, SessionNotFoundError
from guidesmith.schemas import (
    ChatMessage,
    ResearchDocumentMetadata,
    ResearchQueryPlan,
    ScopeConfig,
    SectionDraftJob,
    SectionDraftRequest,
    SectionWriteRequest,
    SessionState,
)
from guidesmith.services.drafts import SectionDraftQueue
from guidesmith.services.planning import PlanningService
from guidesmith.services.renderer import render_document
from guidesmith.services.research import ResearchService
from guidesmith.services.sessions import SessionStore
from guidesmith.services.storage import StorageService

logger = logging.getLogger(__name__)

FALLBACK_TOPIC = "General topic"


class SessionWorkflow:
    """State transitions of a drafting session.

    Each step runs in order and nothing is rolled back: if a collaborator
    fails midway, the error propagates and whatever was already stored stays.
    ``set_scope`` holds a per-session lock so overlapping calls on one session
    run one after the other and the stored outline always matches the stored
    scope.
    """

    def __init__(
        self,
        sessions: SessionStore,
        planning: PlanningService,
        research: ResearchService,
        storage: StorageService,
        drafts: SectionDraftQueue,
    ):
        self.sessions = sessions
        self.planning = planning
        self.research = research
        self.storage = storage
        self.drafts = drafts
        self._scope_locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def create_session(self, topic: str) -> SessionState:
        session = self.sessions.create(topic)
        # On failure the bare session stays in the store; the caller gets the error.
        questions = await self.planning.create_clarifying_questions(topic)
        session = self.sessions.set_clarifying_questions(session.id, questions)
        logger.info("Session created", extra={"session_id": session.id, "topic": topic})
        return session

    def get_session(self, session_id: str) -> SessionState:
        session = self.sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    async def set_scope(self, session_id: str, scope: ScopeConfig) -> SessionState:
        self.get_session(session_id)
        async with self._scope_locks[session_id]:
            self.sessions.set_scope(session_id, scope)
            outline = await self.planning.create_outline(scope.topic, scope)
            session = self.sessions.set_outline(session_id, outline)
            await self.storage.persist_outline(session_id, outline)
            await self.storage.persist_session(session)

        logger.info(
            "Scope captured",
            extra={
                "session_id": session_id,
                "depth_level": scope.depth_level,
                "breadth_count": len(scope.breadth),
                "outline_nodes": len(outline),
            },
        )
        return self.get_session(session_id)

    async def derive_scope_from_conversation(self, session_id: str, messages: List[ChatMessage]) -> SessionState:
        session = self.get_session(session_id)
        topic = session.topic or (session.scope.topic if session.scope else None) or FALLBACK_TOPIC
        derived = await self.planning.derive_scope_from_conversation(topic, messages)
        scope = derived.model_copy(update={"topic": topic})
        return await self.set_scope(session_id, scope)

    async def build_research_plan(self, session_id: str) -> List[ResearchQueryPlan]:
        session = self.get_session(session_id)
        logger.info("Building research plan", extra={"session_id": session_id})
        return await self.research.get_query_plan(session)

    async def capture_research_artifact(
        self, session_id: str, url: str, plan: ResearchQueryPlan
    ) -> ResearchDocumentMetadata:
        self.get_session(session_id)
        logger.info(
            "Capturing research artifact",
            extra={"session_id": session_id, "url": url, "query": plan.query},
        )
        return await self.research.capture_query_result(plan, url)

    def queue_section_draft(self, session_id: str, request: SectionDraftRequest) -> SectionDraftJob:
        session = self.get_session(session_id)
        if session.scope is None:
            raise PreconditionFailedError(f"Session scope missing for {session_id}")

        logger.info(
            "Queueing section draft",
            extra={
                "session_id": session_id,
                "section_id": request.section_id,
                "research_refs": len(request.supporting_research),
            },
        )
        write_request = SectionWriteRequest(
            section_id=request.section_id,
            section_title=request.section_title,
            outline_path=list(request.outline_path),
            supporting_research=list(request.supporting_research),
            scope=session.scope.model_copy(deep=True),
        )
        return self.drafts.queue_job(session_id, write_request)

    def list_section_drafts(self, session_id: str) -> List[SectionDraftJob]:
        self.get_session(session_id)
        jobs = self.drafts.get_jobs(session_id)
        logger.info("Listing section drafts", extra={"session_id": session_id, "job_count": len(jobs)})
        return jobs

    async def compile_document(self, session_id: str, name: Optional[str] = None) -> str:
        """Join the latest completed draft of every outline section into one document."""
        session = self.get_session(session_id)
        if not session.outline:
            raise PreconditionFailedError(f"Session outline missing for {session_id}")

        latest: Dict[str, SectionDraftJob] = {}
        for job in self.drafts.get_jobs(session_id):
            if job.status == "completed" and job.request.section_id not in latest:
                latest[job.request.section_id] = job

        sections = []
        pending = []
        for root in session.outline:
            for _, node in root.walk():
                job = latest.get(node.id)
                if job is None:
                    pending.append(node.title)
                    continue
                sections.append(await self.storage.read_section(job.output_path))

        title = session.topic or (session.scope.topic if session.scope else session_id)
        content = render_document(title, sections, pending)
        location = await self.storage.write_combined_document(_slugify(name or title, session_id), content)
        logger.info(
            "Document compiled",
            extra={"session_id": session_id, "sections": len(sections), "pending": len(pending)},
        )
        return location


def _slugify(value: str, fallback: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")
    return slug or fallback
