"""Pydantic schemas for sessions, research artifacts and section drafts."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

DepthLevel = Literal["overview", "intermediate", "expert"]
QuestionType = Literal["breadth", "depth", "toggle", "open"]
ArtifactKind = Literal["article", "paper", "statistic", "manual"]
DraftStatus = Literal["queued", "in_progress", "completed", "failed"]

# Forward-only ordering of draft job states.
DRAFT_STATUS_ORDER: Dict[str, int] = {
    "queued": 0,
    "in_progress": 1,
    "completed": 2,
    "failed": 2,
}


def utcnow_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _check_path_segment(value: str) -> str:
    """Section ids and outline path entries become file names under the documents dir."""
    if value in ("", ".", "..") or "/" in value or "\\" in value:
        raise ValueError(f"invalid path segment: {value!r}")
    return value


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys for the web client."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ScopeConfig(CamelModel):
    """Topic, depth, breadth and flags that govern outline and research generation."""

    topic: str = Field(..., min_length=3)
    depth_level: DepthLevel
    breadth: List[str] = Field(default_factory=list, description="Focus areas, order preserved")
    optional_flags: Dict[str, bool] = Field(default_factory=dict)


class ClarifyingQuestion(CamelModel):
    id: str
    prompt: str
    type: QuestionType
    options: Optional[List[str]] = None


class OutlineNode(CamelModel):
    """Node of the document outline. Each node is owned by exactly one parent."""

    id: str
    title: str
    include_if: Optional[str] = Field(default=None, description="Opaque inclusion condition")
    children: Optional[List[OutlineNode]] = None

    def walk(self, path: tuple = ()):
        """Yield ``(outline_path, node)`` pairs depth first, this node included."""
        current = path + (self.id,)
        yield list(current), self
        for child in self.children or []:
            yield from child.walk(current)


class ResearchQueryPlan(CamelModel):
    query: str
    rationale: str
    priority: int = Field(..., ge=1)
    expected_artifacts: List[ArtifactKind] = Field(default_factory=list)


class ResearchDocumentMetadata(CamelModel):
    """Metadata for a captured research page."""

    model_config = ConfigDict(frozen=True)

    id: str
    url: str
    source_query: str
    captured_at: str
    tags: List[str] = Field(default_factory=list)
    storage_path: str = ""

    def with_storage_path(self, storage_path: str) -> ResearchDocumentMetadata:
        """Return a copy with the storage path set. The path can only be set once."""
        if self.storage_path:
            raise ValueError(f"Storage path already set for research document {self.id}")
        if not storage_path:
            raise ValueError("Storage path must not be empty")
        return self.model_copy(update={"storage_path": storage_path})


class SectionDraftRequest(CamelModel):
    """Client request to draft one outline section."""

    section_id: str
    section_title: str
    outline_path: List[str] = Field(..., min_length=1)
    supporting_research: List[ResearchDocumentMetadata] = Field(default_factory=list)

    @field_validator("section_id")
    @classmethod
    def section_id_is_path_segment(cls, v: str) -> str:
        return _check_path_segment(v)

    @field_validator("outline_path")
    @classmethod
    def outline_path_segments(cls, v: List[str]) -> List[str]:
        return [_check_path_segment(segment) for segment in v]


class SectionWriteRequest(SectionDraftRequest):
    """Draft request with the session scope captured at queue time."""

    model_config = ConfigDict(frozen=True)

    scope: ScopeConfig


class SectionDraftJob(CamelModel):
    """Asynchronous section drafting job."""

    model_config = ConfigDict(frozen=True)

    id: str
    session_id: str
    request: SectionWriteRequest
    status: DraftStatus = "queued"
    requested_at: str
    updated_at: str
    output_path: Optional[str] = None
    error: Optional[str] = None


class SessionState(CamelModel):
    """Root workflow record. Replaced wholesale on every update."""

    model_config = ConfigDict(frozen=True)

    id: str
    topic: Optional[str] = None
    scope: Optional[ScopeConfig] = None
    clarifying_questions: Optional[List[ClarifyingQuestion]] = None
    outline: Optional[List[OutlineNode]] = None
    created_at: str
    updated_at: str


class ChatMessage(CamelModel):
    role: Literal["assistant", "user"]
    content: str = Field(..., min_length=1)


# Request bodies accepted by the HTTP surface


class CreateSessionRequest(CamelModel):
    topic: str = Field(..., min_length=3)


class ScopeFromChatRequest(CamelModel):
    messages: List[ChatMessage] = Field(..., min_length=1)


class CaptureRequest(CamelModel):
    url: str = Field(..., pattern=r"^https?://")
    plan: ResearchQueryPlan


class CompileDocumentRequest(CamelModel):
    name: Optional[str] = None


class DocumentLocation(CamelModel):
    session_id: str
    path: str
