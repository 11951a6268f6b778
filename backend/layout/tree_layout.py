"""
Rank layout for canonical graphs (synchronous, no external engine).

Depth along parentChild edges is the rank; y = depth * vertical_spacing.
Each node gets a horizontal span proportional to its subtree weight (leaf
count) and is centered in it, so sibling subtrees never overlap. Nodes that
are nobody's child are roots and are laid out left to right in node order;
an event chain therefore becomes a single row.
"""

from typing import Dict, List, Optional, Sequence, Tuple

from loguru import logger

from graph.models import GraphEdge, GraphNode, Point, Relation

from .constants import MIN_HORIZONTAL_SPACING, VERTICAL_SPACING
from .metrics import compute_subtree_weights
from .result import LayoutResult

STRATEGY = "ranks"


def _build_forest(
    nodes: Sequence[GraphNode], edges: Sequence[GraphEdge]
) -> Tuple[List[str], Dict[str, List[str]]]:
    """Return (roots, children) with every node reachable exactly once."""
    node_ids = [n.id for n in nodes]
    known = set(node_ids)
    children: Dict[str, List[str]] = {}
    has_parent = set()
    for e in edges:
        if e.relation != Relation.PARENT_CHILD:
            continue
        if e.source not in known or e.target not in known or e.source == e.target:
            continue
        if e.target in has_parent:
            continue
        children.setdefault(e.source, []).append(e.target)
        has_parent.add(e.target)

    roots: List[str] = []
    forest: Dict[str, List[str]] = {}
    visited = set()
    # Nodes stuck in a parent cycle are promoted to roots in node order.
    candidates = [nid for nid in node_ids if nid not in has_parent] + node_ids
    for start in candidates:
        if start in visited:
            continue
        visited.add(start)
        roots.append(start)
        stack = [start]
        while stack:
            nid = stack.pop()
            for c in children.get(nid, []):
                if c in visited:
                    continue
                visited.add(c)
                forest.setdefault(nid, []).append(c)
                stack.append(c)
    return roots, forest


def compute_rank_layout(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    vertical_spacing: Optional[float] = None,
    horizontal_spacing: Optional[float] = None,
) -> LayoutResult:
    """
    Position every node and give every edge a straight port-to-port route.
    Inputs are not mutated; the result holds fresh copies.
    """
    v_sep = VERTICAL_SPACING if vertical_spacing is None else vertical_spacing
    h_sep = MIN_HORIZONTAL_SPACING if horizontal_spacing is None else horizontal_spacing

    roots, forest = _build_forest(nodes, edges)
    weights = compute_subtree_weights(roots, forest)

    spans: Dict[str, Tuple[float, float]] = {}
    depths: Dict[str, int] = {}
    left = 0.0
    for root in roots:
        right = left + weights[root] * h_sep
        spans[root] = (left, right)
        depths[root] = 0
        left = right

    # Top-down: split each span among children in order.
    frontier = list(roots)
    while frontier:
        next_frontier = []
        for nid in frontier:
            cur, _ = spans[nid]
            for c in forest.get(nid, []):
                width = weights[c] * h_sep
                spans[c] = (cur, cur + width)
                depths[c] = depths[nid] + 1
                cur += width
                next_frontier.append(c)
        frontier = next_frontier

    positioned = []
    for n in nodes:
        l, r = spans[n.id]
        positioned.append(
            n.model_copy(deep=True, update={"position": Point(x=(l + r) / 2.0, y=depths[n.id] * v_sep)})
        )

    by_id = {n.id: n for n in positioned}
    routed = []
    for e in edges:
        src, dst = by_id.get(e.source), by_id.get(e.target)
        if src is None or dst is None:
            # Left for the assembler to report.
            routed.append(e.model_copy(deep=True))
            continue
        route = [src.anchor(e.source_port), dst.anchor(e.target_port)]
        routed.append(e.model_copy(deep=True, update={"route": route}))

    logger.debug(
        "Rank layout: {} nodes, {} roots, max depth {}",
        len(positioned), len(roots), max(depths.values()) if depths else 0,
    )
    return LayoutResult(nodes=positioned, edges=routed, strategy=STRATEGY, spans=spans, depths=depths)
