"""
Visualization - query execution graph layout for the canvas renderer.

Reads a query tree (from the query repository via API), builds the canonical
graph, computes layout, returns a validated payload for render.
"""

from .pipeline import LAYERED, RANKS, STRATEGIES, build_layout, layout_layered, layout_ranks
from .session import LayoutSession

__all__ = [
    "LAYERED",
    "RANKS",
    "STRATEGIES",
    "LayoutSession",
    "build_layout",
    "layout_layered",
    "layout_ranks",
]
