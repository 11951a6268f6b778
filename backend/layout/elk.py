"""
ELK JSON vocabulary shared by the spec builder and the layered engines.

A layout spec is an ELK graph: {id, layoutOptions, children[{id, width, height,
layoutOptions, ports[{id, layoutOptions}]}], edges[{id, sources, targets}]}.
A result is the same graph with x/y on children and sections on edges.
"""

from typing import Any, Dict, List, Optional

from graph.models import Point, Port

ALGORITHM = "elk.algorithm"
DIRECTION = "elk.direction"
EDGE_ROUTING = "elk.edgeRouting"
SPACING_NODE_NODE = "elk.spacing.nodeNode"
SPACING_BETWEEN_LAYERS = "elk.layered.spacing.nodeNodeBetweenLayers"
PORT_CONSTRAINTS = "elk.portConstraints"
PORT_SIDE = "org.eclipse.elk.port.side"

NORTH, SOUTH, WEST, EAST = "NORTH", "SOUTH", "WEST", "EAST"

PORT_SIDES = {
    Port.TOP: NORTH,
    Port.BOTTOM: SOUTH,
    Port.LEFT: WEST,
    Port.RIGHT: EAST,
}


def get_option(item: Dict[str, Any], key: str, default: Any = None) -> Any:
    """Read an ELK option from layoutOptions/properties, accepting the short key form."""
    short = key.replace("org.eclipse.", "")
    for bag in (item.get("layoutOptions") or {}, item.get("properties") or {}):
        for k in (key, short):
            if k in bag:
                return bag[k]
    return default


def _point(raw: Optional[Dict[str, Any]]) -> Optional[Point]:
    if not isinstance(raw, dict):
        return None
    try:
        return Point(x=float(raw["x"]), y=float(raw["y"]))
    except (KeyError, TypeError, ValueError):
        return None


def section_route(edge: Dict[str, Any]) -> List[Point]:
    """Flatten an edge's sections into start, bend points..., end. Empty if no usable geometry."""
    route: List[Point] = []
    for section in edge.get("sections") or []:
        points = [_point(section.get("startPoint"))]
        points += [_point(b) for b in section.get("bendPoints") or []]
        points.append(_point(section.get("endPoint")))
        if any(p is None for p in points):
            return []
        for p in points:
            if not route or (route[-1].x, route[-1].y) != (p.x, p.y):
                route.append(p)
    return route if len(route) >= 2 else []
