from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from guidesmith.dependencies import get_workflow
from guidesmith.schemas import CreateSessionRequest, ScopeConfig, ScopeFromChatRequest
from guidesmith.workflows.session_workflow import SessionWorkflow

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


@router.post("")
async def create_session(req: CreateSessionRequest, workflow: SessionWorkflow = Depends(get_workflow)):
    session = await workflow.create_session(req.topic)
    return JSONResponse(session.to_json_dict())


@router.get("/{session_id}")
async def get_session(session_id: str, workflow: SessionWorkflow = Depends(get_workflow)):
    return JSONResponse(workflow.get_session(session_id).to_json_dict())


@router.post("/{session_id}/scope")
async def set_scope(session_id: str, scope: ScopeConfig, workflow: SessionWorkflow = Depends(get_workflow)):
    session = await workflow.set_scope(session_id, scope)
    return JSONResponse(session.to_json_dict())


@router.post("/{session_id}/scope/from-chat")
async def scope_from_chat(
    session_id: str, req: ScopeFromChatRequest, workflow: SessionWorkflow = Depends(get_workflow)
):
    session = await workflow.derive_scope_from_conversation(session_id, req.messages)
    return JSONResponse(session.to_json_dict())


@router.get("/{session_id}/research-plan")
async def research_plan(session_id: str, workflow: SessionWorkflow = Depends(get_workflow)):
    plan = await workflow.build_research_plan(session_id)
    payload: List[dict] = [entry.to_json_dict() for entry in plan]
    return JSONResponse(payload)
