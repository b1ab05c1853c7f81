from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from guidesmith.dependencies import get_workflow
from guidesmith.schemas import CompileDocumentRequest, DocumentLocation, SectionDraftRequest
from guidesmith.workflows.session_workflow import SessionWorkflow

router = APIRouter(prefix="/api/sessions", tags=["writing"])


@router.post("/{session_id}/sections")
async def queue_section(session_id: str, req: SectionDraftRequest, workflow: SessionWorkflow = Depends(get_workflow)):
    """Queue a section draft; poll the GET endpoint for progress."""
    job = workflow.queue_section_draft(session_id, req)
    return JSONResponse(job.to_json_dict(), status_code=202)


@router.get("/{session_id}/sections")
async def list_sections(session_id: str, workflow: SessionWorkflow = Depends(get_workflow)):
    jobs = workflow.list_section_drafts(session_id)
    return JSONResponse([job.to_json_dict() for job in jobs])


@router.post("/{session_id}/document")
async def compile_document(
    session_id: str,
    req: Optional[CompileDocumentRequest] = Body(default=None),
    workflow: SessionWorkflow = Depends(get_workflow),
):
    path = await workflow.compile_document(session_id, req.name if req else None)
    location = DocumentLocation(session_id=session_id, path=path)
    return JSONResponse(location.to_json_dict(), status_code=201)
