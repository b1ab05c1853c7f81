from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from guidesmith.dependencies import get_workflow
from guidesmith.schemas import CaptureRequest
from guidesmith.workflows.session_workflow import SessionWorkflow

router = APIRouter(prefix="/api/sessions", tags=["research"])


@router.post("/{session_id}/research")
async def capture_research(session_id: str, req: CaptureRequest, workflow: SessionWorkflow = Depends(get_workflow)):
    metadata = await workflow.capture_research_artifact(session_id, req.url, req.plan)
    return JSONResponse(metadata.to_json_dict(), status_code=201)
