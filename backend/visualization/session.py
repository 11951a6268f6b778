"""
Layout session for polling renderers: overlapping refreshes never mix passes.

Every refresh gets a generation number. A finished pass is published only if
no newer generation has been published yet; otherwise it is discarded.
While a refresh is pending, `current` keeps returning the last published
(stale but consistent) payload.
"""

import asyncio
from typing import Any, Optional

from loguru import logger

from graph import GraphPayload
from layout import LayoutEngine

from .pipeline import build_layout


class LayoutSession:
    def __init__(
        self,
        strategy: Optional[str] = None,
        engine: Optional[LayoutEngine] = None,
        fallback: bool = True,
    ):
        self.strategy = strategy
        self.engine = engine
        self.fallback = fallback
        self._lock = asyncio.Lock()
        self._started = 0
        self._published = 0
        self._current: Optional[GraphPayload] = None

    @property
    def current(self) -> Optional[GraphPayload]:
        return self._current

    @property
    def published_generation(self) -> int:
        return self._published

    async def refresh(self, query_tree: Any, strategy: Optional[str] = None) -> Optional[GraphPayload]:
        """Compute a fresh layout and publish it unless superseded. Returns the current payload."""
        self._started += 1
        generation = self._started

        payload = await build_layout(query_tree, strategy or self.strategy, self.engine, self.fallback)

        async with self._lock:
            if generation > self._published:
                self._current = payload
                self._published = generation
            else:
                logger.debug(
                    "Discarding stale layout (generation {} < published {})",
                    generation, self._published,
                )
            return self._current
