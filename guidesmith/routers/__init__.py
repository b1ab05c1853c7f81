from .research import router as research_router
from .sessions import router as sessions_router
from .writing import router as writing_router

__all__ = ["research_router", "sessions_router", "writing_router"]
