"""FastAPI dependencies."""

from fastapi import Request

from guidesmith.workflows.session_workflow import SessionWorkflow


def get_workflow(request: Request) -> SessionWorkflow:
    """Get the application's session workflow via dependency injection."""
    return request.app.state.workflow
