"""API route modules."""

from fastapi import FastAPI

from visualization import LayoutSession

from . import graph
from ..state import init_api_state


def register_routes(app: FastAPI, layout_session: LayoutSession):
    """Register all API routers. Call after app and layout session are created."""
    init_api_state(layout_session)

    app.include_router(graph.router, prefix="/api/graph", tags=["graph"])
