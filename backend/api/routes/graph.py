"""Graph API - layout, refresh (superseding session), current, status."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from loguru import logger

from querytree import normalize
from visualization import build_layout

from .. import state as api_state
from ..schemas import GraphLayoutRequest, StatusRequest

router = APIRouter()


def _graph_response(payload):
    if payload is None:
        return {"graph": None}
    return {"graph": payload.model_dump(by_alias=True, mode="json")}


@router.post("/layout")
async def graph_layout(body: GraphLayoutRequest):
    """One-off layout. A failing layered engine falls back to the rank layout."""
    try:
        payload = await build_layout(body.tree, body.strategy, fallback=True)
    except ValueError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except Exception as e:
        logger.exception("Error computing graph layout")
        return JSONResponse(status_code=500, content={"error": str(e) or "Failed to compute graph layout"})
    return _graph_response(payload)


@router.post("/refresh")
async def graph_refresh(body: GraphLayoutRequest):
    """Layout through the shared session; a refresh finishing after a newer one is discarded."""
    session = api_state.layout_session
    if session is None:
        return JSONResponse(status_code=503, content={"error": "Layout session not initialized"})
    try:
        payload = await session.refresh(body.tree, body.strategy)
    except ValueError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except Exception as e:
        logger.exception("Error refreshing graph layout")
        return JSONResponse(status_code=500, content={"error": str(e) or "Failed to refresh graph layout"})
    return _graph_response(payload)


@router.get("/current")
async def graph_current():
    session = api_state.layout_session
    return _graph_response(session.current if session else None)


@router.post("/status")
async def graph_status(body: StatusRequest):
    return {"status": normalize(body.state).value}
