"""
Layered/ported layout around an injected layout engine.

Every node is described with four ports pinned to fixed sides (top=NORTH,
bottom=SOUTH, left=WEST, right=EAST) so the engine can never move a port to a
side that contradicts the edge convention. Flow is top-to-bottom with
orthogonal routing. Geometry missing from the engine's answer leaves the
node/edge as it was; an engine failure is raised as LayoutEngineError.
"""

from typing import Any, Dict, Optional, Protocol, Sequence

from loguru import logger

from graph.diagnostics import MISSING_EDGE_GEOMETRY, MISSING_NODE_GEOMETRY, Diagnostics
from graph.models import ALL_PORTS, GraphEdge, GraphNode, Point, port_id

from . import elk
from .constants import DEFAULT_NODE_SEP, DEFAULT_RANK_SEP
from .result import LayoutResult
from .sugiyama import SugiyamaEngine

STRATEGY = "layered"


class LayoutEngineError(RuntimeError):
    """The layered layout engine failed or returned something unusable."""


class LayoutEngine(Protocol):
    async def compute_layout(self, spec: Dict[str, Any]) -> Dict[str, Any]:
        ...


def build_layout_spec(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    node_sep: Optional[float] = None,
    rank_sep: Optional[float] = None,
) -> Dict[str, Any]:
    """ELK graph for the engine. Edges with an endpoint outside nodes are left out."""
    known = {n.id for n in nodes}
    children = []
    for n in nodes:
        children.append({
            "id": n.id,
            "width": n.width,
            "height": n.height,
            "layoutOptions": {elk.PORT_CONSTRAINTS: "FIXED_SIDE"},
            "ports": [
                {
                    "id": port_id(n.id, p),
                    "width": 0,
                    "height": 0,
                    "layoutOptions": {elk.PORT_SIDE: elk.PORT_SIDES[p]},
                }
                for p in ALL_PORTS
            ],
        })
    spec_edges = [
        {
            "id": e.id,
            "sources": [port_id(e.source, e.source_port)],
            "targets": [port_id(e.target, e.target_port)],
        }
        for e in edges
        if e.source in known and e.target in known
    ]
    return {
        "id": "root",
        "layoutOptions": {
            elk.ALGORITHM: "layered",
            elk.DIRECTION: "DOWN",
            elk.EDGE_ROUTING: "ORTHOGONAL",
            elk.SPACING_NODE_NODE: DEFAULT_NODE_SEP if node_sep is None else node_sep,
            elk.SPACING_BETWEEN_LAYERS: DEFAULT_RANK_SEP if rank_sep is None else rank_sep,
        },
        "children": children,
        "edges": spec_edges,
    }


def _node_center(geo: Dict[str, Any], node: GraphNode) -> Optional[Point]:
    try:
        x, y = float(geo["x"]), float(geo["y"])
    except (KeyError, TypeError, ValueError):
        return None
    w = float(geo.get("width") or node.width)
    h = float(geo.get("height") or node.height)
    return Point(x=x + w / 2.0, y=y + h / 2.0)


async def compute_layered_layout(
    nodes: Sequence[GraphNode],
    edges: Sequence[GraphEdge],
    engine: Optional[LayoutEngine] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> LayoutResult:
    """Await the engine and merge its geometry onto copies of nodes/edges."""
    if engine is None:
        engine = SugiyamaEngine()
    if diagnostics is None:
        diagnostics = Diagnostics()

    spec = build_layout_spec(nodes, edges)
    try:
        result = await engine.compute_layout(spec)
    except Exception as e:
        logger.exception("Layered layout engine failed")
        raise LayoutEngineError(str(e) or e.__class__.__name__) from e
    if not isinstance(result, dict):
        raise LayoutEngineError("Layout engine returned no graph")

    node_geo = {c.get("id"): c for c in result.get("children") or [] if isinstance(c, dict)}
    edge_geo = {e.get("id"): e for e in result.get("edges") or [] if isinstance(e, dict)}

    nodes_out = []
    for n in nodes:
        center = _node_center(node_geo[n.id], n) if n.id in node_geo else None
        if center is None:
            diagnostics.report(MISSING_NODE_GEOMETRY, n.id, "kept previous position")
            nodes_out.append(n.model_copy(deep=True))
        else:
            nodes_out.append(n.model_copy(deep=True, update={"position": center}))

    edges_out = []
    for e in edges:
        route = elk.section_route(edge_geo[e.id]) if e.id in edge_geo else []
        if not route:
            diagnostics.report(MISSING_EDGE_GEOMETRY, e.id, "kept previous route")
            edges_out.append(e.model_copy(deep=True))
        else:
            edges_out.append(e.model_copy(deep=True, update={"route": route}))

    logger.debug("Layered layout: {} nodes, {} edges", len(nodes_out), len(edges_out))
    return LayoutResult(nodes=nodes_out, edges=edges_out, strategy=STRATEGY)
