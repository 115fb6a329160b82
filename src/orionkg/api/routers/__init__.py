"""FastAPI route handlers organized by resource."""
from orionkg.api.routers.events import router as events_router
from orionkg.api.routers.graph import router as graph_router
from orionkg.api.routers.profile import router as profile_router
from orionkg.api.routers.status import router as status_router
from orionkg.api.routers.suppression import router as suppression_router
from orionkg.api.routers.timeline import router as timeline_router

__all__ = [
    "events_router",
    "graph_router",
    "profile_router",
    "status_router",
    "suppression_router",
    "timeline_router",
]
