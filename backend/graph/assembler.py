"""Graph assembler: validates laid-out nodes/edges into the renderer payload."""

from typing import Optional, Sequence

from loguru import logger

from .diagnostics import DANGLING_EDGE, DUPLICATE_EDGE, Diagnostics
from .models import GraphEdge, GraphNode, GraphPayload


def assemble(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    strategy: str = "",
    diagnostics: Optional[Diagnostics] = None,
) -> GraphPayload:
    """
    Edges whose source or target is missing from nodes are excluded and reported;
    a partial graph is returned rather than an error.
    """
    if diagnostics is None:
        diagnostics = Diagnostics()

    node_ids = {n.id for n in nodes}
    kept = []
    seen_edges = set()
    for e in edges:
        missing = [end for end in (e.source, e.target) if end not in node_ids]
        if missing:
            diagnostics.report(DANGLING_EDGE, e.id, f"unknown endpoint(s): {', '.join(missing)}")
            continue
        if e.id in seen_edges:
            diagnostics.report(DUPLICATE_EDGE, e.id, "edge id already emitted")
            continue
        seen_edges.add(e.id)
        kept.append(e)

    placed = [n for n in nodes if n.position is not None]
    width = height = 0.0
    if placed:
        width = max(n.position.x + n.width / 2.0 for n in placed) - min(n.position.x - n.width / 2.0 for n in placed)
        height = max(n.position.y + n.height / 2.0 for n in placed) - min(n.position.y - n.height / 2.0 for n in placed)

    logger.debug(
        "Assembled graph ({}): {} nodes, {}/{} edges kept",
        strategy or "unpositioned", len(nodes), len(kept), len(edges),
    )
    return GraphPayload(
        nodes=list(nodes),
        edges=kept,
        strategy=strategy,
        width=round(width, 1),
        height=round(height, 1),
        anomalies=list(diagnostics.anomalies),
    )
