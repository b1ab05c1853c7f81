"""FastAPI application for the Guidesmith drafting workflow."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from guidesmith.config import Settings, get_settings
from guidesmith.exceptions import GuidesmithError
from guidesmith.middleware.request_logging import RequestLoggingMiddleware
from guidesmith.routers import research_router, sessions_router, writing_router
from guidesmith.services.drafts import SectionDraftQueue
from guidesmith.services.llm import LlmService
from guidesmith.services.planning import PlanningService
from guidesmith.services.research import ResearchService
from guidesmith.services.sessions import SessionStore
from guidesmith.services.storage import StorageService
from guidesmith.services.writing import WritingService
from guidesmith.utils.logging import setup_logging
from guidesmith.workflows.session_workflow import SessionWorkflow

logger = logging.getLogger(__name__)


def build_workflow(settings: Settings, llm: Optional[LlmService] = None, browser_factory=None) -> SessionWorkflow:
    """Wire the services behind the session workflow."""
    llm = llm or LlmService(settings)
    storage = StorageService(settings.paths)
    writing = WritingService(llm, storage)
    return SessionWorkflow(
        sessions=SessionStore(),
        planning=PlanningService(llm),
        research=ResearchService(llm, storage, browser_factory=browser_factory, headless=settings.browser_headless),
        storage=storage,
        drafts=SectionDraftQueue(writing.write_section, workers=settings.draft_workers),
    )


def create_app(workflow: Optional[SessionWorkflow] = None, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    workflow = workflow or build_workflow(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await workflow.storage.ensure_directories()
        workflow.drafts.start()
        logger.info(f"{settings.app_title} {settings.app_version} ready")
        try:
            yield
        finally:
            await workflow.drafts.stop()
            await workflow.research.shutdown()

    app = FastAPI(
        title=settings.app_title,
        version=settings.app_version,
        description="Scope a topic, research it and draft a guide section by section",
        lifespan=lifespan,
    )
    app.state.workflow = workflow
    app.state.settings = settings

    origins = settings.allowed_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if "*" in origins else origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    @app.exception_handler(GuidesmithError)
    async def guidesmith_error_handler(request: Request, exc: GuidesmithError):
        logger.error(
            f"Request failed: {exc}",
            extra={"endpoint": request.url.path, "error_type": type(exc).__name__},
        )
        return JSONResponse({"error": str(exc)}, status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Invalid request to {request.url.path}: {exc.errors()}")
        return JSONResponse(
            {"error": "Invalid request", "details": jsonable_errors(exc)},
            status_code=422,
        )

    @app.get("/api/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "ok",
            "service": "guidesmith",
            "version": settings.app_version,
            "llm_configured": bool(settings.openai_api_key),
        }

    app.include_router(sessions_router)
    app.include_router(research_router)
    app.include_router(writing_router)

    @app.api_route("/{path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"], include_in_schema=False)
    async def unhandled_route(path: str):
        logger.warning("Unhandled route", extra={"endpoint": f"/{path}"})
        return JSONResponse({"error": "Not Found"}, status_code=404)

    return app


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", ""), "type": error.get("type", "")}
        for error in exc.errors()
    ]


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    import uvicorn

    settings = get_settings()
    setup_logging(settings.log_level, settings.log_json, settings.log_file)
    uvicorn.run(create_app(settings=settings), host="0.0.0.0", port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
