"""
Query Graph Backend - FastAPI entry point.
Serves positioned query execution graphs to the canvas renderer.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import register_routes
from layout.constants import DEFAULT_STRATEGY
from visualization import LayoutSession

logger = logging.getLogger(__name__)

# One session per process: the renderer polls it, later refreshes supersede earlier ones
layout_session = LayoutSession(fallback=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Query graph backend started (default strategy: %s)", layout_session.strategy or DEFAULT_STRATEGY)
    yield


app = FastAPI(title="Query Graph Backend", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_routes(app, layout_session)


@app.get("/api/health")
async def api_health():
    return {"status": "ok"}


# ASGI app for uvicorn: uvicorn main:app
