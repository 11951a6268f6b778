"""
End-to-end layout: query repository payload -> canonical graph -> layout -> payload.

Each call works on fresh node/edge lists and its own Diagnostics, so calls
may overlap freely.
"""

from typing import Any, Optional

from loguru import logger

from graph import Diagnostics, GraphPayload, assemble, build_graph
from layout import LayoutEngine, LayoutEngineError, compute_layered_layout, compute_rank_layout
from layout.constants import DEFAULT_STRATEGY
from querytree import QueryTree, parse_query_tree

RANKS = "ranks"
LAYERED = "layered"
STRATEGIES = (RANKS, LAYERED)


def layout_ranks(tree: QueryTree) -> GraphPayload:
    """Synchronous rank layout; never suspends."""
    diagnostics = Diagnostics()
    graph = build_graph(tree.root, tree.events, diagnostics)
    result = compute_rank_layout(graph.nodes, graph.edges)
    return assemble(result.nodes, result.edges, result.strategy, diagnostics)


async def layout_layered(tree: QueryTree, engine: Optional[LayoutEngine] = None) -> GraphPayload:
    """Layered/ported layout. Raises LayoutEngineError if the engine fails."""
    diagnostics = Diagnostics()
    graph = build_graph(tree.root, tree.events, diagnostics)
    result = await compute_layered_layout(graph.nodes, graph.edges, engine, diagnostics)
    return assemble(result.nodes, result.edges, result.strategy, diagnostics)


async def build_layout(
    query_tree: Any,
    strategy: Optional[str] = None,
    engine: Optional[LayoutEngine] = None,
    fallback: bool = False,
) -> GraphPayload:
    """
    Build the renderer payload for a QueryTree (or raw JSON/dict of one).
    With fallback=True a layered engine failure degrades to the rank layout.
    """
    strategy = strategy or DEFAULT_STRATEGY
    if strategy not in STRATEGIES:
        raise ValueError(f"Unknown layout strategy: {strategy}")
    tree = parse_query_tree(query_tree)

    if strategy == RANKS:
        return layout_ranks(tree)
    try:
        return await layout_layered(tree, engine)
    except LayoutEngineError as e:
        if not fallback:
            raise
        logger.warning("Layered layout unavailable ({}), falling back to rank layout", e)
        return layout_ranks(tree)
