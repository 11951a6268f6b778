"""
Sugiyama layered graph layout engine for ELK-style layout specs.

Implements the standard Sugiyama framework:
1. Cycle breaking (greedy back-edge removal)
2. Layer assignment (longest-path)
3. Dummy node insertion (for long edges)
4. Crossing minimization (barycenter heuristic, multi-pass)
5. Coordinate assignment (median-based with iterative refinement)
6. Edge routing (orthogonal, leaving/entering along each port side)
"""

import asyncio
from typing import Any, Dict, List, Optional, Set, Tuple

import networkx as nx
from loguru import logger

from . import elk
from .constants import (
    CROSSING_PASSES,
    DEFAULT_NODE_SEP,
    DEFAULT_PADDING,
    DEFAULT_RANK_SEP,
    PORT_MARGIN,
)

_EPS = 1e-6

XY = Tuple[float, float]
# (edge, source node, source side, target node, target side)
ResolvedEdge = Tuple[Dict[str, Any], str, str, str, str]


class SugiyamaEngine:
    """Default LayoutEngine. The layout itself runs in a worker thread."""

    def __init__(
        self,
        passes: int = CROSSING_PASSES,
        port_margin: float = PORT_MARGIN,
        padding: float = DEFAULT_PADDING,
    ):
        self.passes = passes
        self.port_margin = port_margin
        self.padding = padding

    async def compute_layout(self, spec: Dict[str, Any]) -> Dict[str, Any]:
        return await asyncio.to_thread(
            compute_layout, spec, self.passes, self.port_margin, self.padding
        )


def compute_layout(
    spec: Dict[str, Any],
    passes: int = CROSSING_PASSES,
    port_margin: float = PORT_MARGIN,
    padding: float = DEFAULT_PADDING,
) -> Dict[str, Any]:
    """
    Lay out an ELK-style graph. Returns the ELK result shape: children with
    x/y (top-left), edges with one section {startPoint, bendPoints, endPoint}.
    """
    children = [c for c in spec.get("children") or [] if c.get("id")]
    node_sep = float(elk.get_option(spec, elk.SPACING_NODE_NODE, DEFAULT_NODE_SEP))
    rank_sep = float(elk.get_option(spec, elk.SPACING_BETWEEN_LAYERS, DEFAULT_RANK_SEP))

    sizes = {c["id"]: (float(c.get("width") or 0), float(c.get("height") or 0)) for c in children}
    ports = _index_ports(children)
    edges = _resolve_edges(spec.get("edges") or [], ports, sizes)

    G = build_layout_graph(sizes, edges)
    empty = {"id": spec.get("id", "root"), "x": 0, "y": 0, "width": 0, "height": 0, "children": [], "edges": []}
    if G.number_of_nodes() == 0:
        return empty

    _break_cycles(G)
    layers = _assign_layers(G)
    layers, dummy_nodes, chains = _insert_dummy_nodes(G, layers)
    _minimize_crossings(G, layers, passes)
    positions, bounds = _assign_coordinates(G, layers, dummy_nodes, sizes, node_sep, rank_sep)
    _shift_to_origin(positions, bounds, dummy_nodes, padding)

    children_out = []
    for c in children:
        pos = positions[c["id"]]
        children_out.append({
            "id": c["id"],
            "x": round(pos["x"], 1),
            "y": round(pos["y"], 1),
            "width": pos["w"],
            "height": pos["h"],
            "ports": [
                _port_out(p, pos, ports.get(p.get("id"), (None, None))[1])
                for p in c.get("ports") or []
            ],
        })

    edges_out = []
    for edge, src, s_side, dst, d_side in edges:
        chain = [positions[d] for d in chains.get((src, dst), [])]
        points = _route_edge(positions[src], s_side, positions[dst], d_side, chain, bounds, port_margin)
        points = [(round(x, 1), round(y, 1)) for x, y in _dedupe(points)]
        edges_out.append({
            "id": edge.get("id"),
            "sources": edge.get("sources"),
            "targets": edge.get("targets"),
            "sections": [{
                "id": f"{edge.get('id')}_s0",
                "startPoint": {"x": points[0][0], "y": points[0][1]},
                "bendPoints": [{"x": x, "y": y} for x, y in points[1:-1]],
                "endPoint": {"x": points[-1][0], "y": points[-1][1]},
            }],
        })

    real = [positions[c["id"]] for c in children]
    width = max(p["x"] + p["w"] for p in real) + padding
    height = max(p["y"] + p["h"] for p in real) + padding

    logger.debug(
        "Sugiyama layout: {} nodes, {} layers, {} dummies, {} edges",
        len(children_out), len(layers), len(dummy_nodes), len(edges_out),
    )
    return {
        **empty,
        "width": round(width, 1),
        "height": round(height, 1),
        "children": children_out,
        "edges": edges_out,
    }


# ---------------------------------------------------------------------------
# 0. Spec parsing and graph construction
# ---------------------------------------------------------------------------

def _index_ports(children: List[Dict[str, Any]]) -> Dict[str, Tuple[str, Optional[str]]]:
    """port id -> (owning node id, fixed side or None)."""
    ports: Dict[str, Tuple[str, Optional[str]]] = {}
    for c in children:
        for p in c.get("ports") or []:
            pid = p.get("id")
            if not pid:
                continue
            side = elk.get_option(p, elk.PORT_SIDE)
            ports[pid] = (c["id"], str(side).upper() if side else None)
    return ports


def _resolve_endpoint(
    ref: Optional[str],
    ports: Dict[str, Tuple[str, Optional[str]]],
    sizes: Dict[str, Tuple[float, float]],
    default_side: str,
) -> Optional[Tuple[str, str]]:
    if ref in ports:
        node, side = ports[ref]
        return node, side or default_side
    if ref in sizes:
        return ref, default_side
    return None


def _resolve_edges(
    raw_edges: List[Dict[str, Any]],
    ports: Dict[str, Tuple[str, Optional[str]]],
    sizes: Dict[str, Tuple[float, float]],
) -> List[ResolvedEdge]:
    """Resolve sources/targets (port or node ids) to nodes and sides. Unresolvable edges are skipped."""
    resolved: List[ResolvedEdge] = []
    for e in raw_edges:
        srcs, tgts = e.get("sources") or [], e.get("targets") or []
        s = _resolve_endpoint(srcs[0] if srcs else None, ports, sizes, elk.SOUTH)
        t = _resolve_endpoint(tgts[0] if tgts else None, ports, sizes, elk.NORTH)
        if s is None or t is None or s[0] == t[0]:
            logger.debug("Skipping unroutable edge {}", e.get("id"))
            continue
        resolved.append((e, s[0], s[1], t[0], t[1]))
    return resolved


def build_layout_graph(sizes: Dict[str, Tuple[float, float]], edges: List[ResolvedEdge]) -> nx.DiGraph:
    """Directed graph over node ids; parallel edges between a pair collapse to one."""
    G = nx.DiGraph()
    G.add_nodes_from(sizes)
    for _, src, _, dst, _ in edges:
        G.add_edge(src, dst)
    return G


def _break_cycles(G: nx.DiGraph) -> List[Tuple[str, str]]:
    """Remove one closing edge per cycle until the graph is acyclic (greedy)."""
    removed: List[Tuple[str, str]] = []
    while True:
        try:
            cycle = nx.find_cycle(G)
        except nx.NetworkXNoCycle:
            break
        u, v = cycle[-1][0], cycle[-1][1]
        G.remove_edge(u, v)
        removed.append((u, v))
    if removed:
        logger.debug("Removed {} back-edges before layering", len(removed))
    return removed


# ---------------------------------------------------------------------------
# 1. Layer assignment (longest path from sources)
# ---------------------------------------------------------------------------

def _assign_layers(G: nx.DiGraph) -> List[List[str]]:
    """Assign each node to a layer using longest-path; layers keep node insertion order."""
    node_layer: Dict[str, int] = {}
    for n in nx.topological_sort(G):
        preds = list(G.predecessors(n))
        node_layer[n] = max(node_layer[p] for p in preds) + 1 if preds else 0

    max_layer = max(node_layer.values()) if node_layer else 0
    layers: List[List[str]] = [[] for _ in range(max_layer + 1)]
    for n in G.nodes():
        layers[node_layer[n]].append(n)
    return layers


# ---------------------------------------------------------------------------
# 2. Dummy node insertion
# ---------------------------------------------------------------------------

def _insert_dummy_nodes(
    G: nx.DiGraph, layers: List[List[str]]
) -> Tuple[List[List[str]], Set[str], Dict[Tuple[str, str], List[str]]]:
    """Insert dummy nodes for edges spanning more than one layer. Returns chains per original edge."""
    node_layer: Dict[str, int] = {}
    for i, layer in enumerate(layers):
        for n in layer:
            node_layer[n] = i

    dummy_nodes: Set[str] = set()
    chains: Dict[Tuple[str, str], List[str]] = {}
    counter = 0

    for u, v in list(G.edges()):
        lu, lv = node_layer[u], node_layer[v]
        if lv - lu <= 1:
            continue

        G.remove_edge(u, v)
        prev = u
        chain = []
        for step in range(1, lv - lu):
            counter += 1
            d = f"__d{counter}"
            while d in node_layer:
                counter += 1
                d = f"__d{counter}"
            dummy_nodes.add(d)
            G.add_edge(prev, d)
            layers[lu + step].append(d)
            node_layer[d] = lu + step
            chain.append(d)
            prev = d
        G.add_edge(prev, v)
        chains[(u, v)] = chain

    return layers, dummy_nodes, chains


# ---------------------------------------------------------------------------
# 3. Crossing minimization (barycenter heuristic)
# ---------------------------------------------------------------------------

def _count_crossings(G: nx.DiGraph, layer_a: List[str], layer_b: List[str]) -> int:
    """Count edge crossings between two adjacent layers."""
    pos_b = {n: i for i, n in enumerate(layer_b)}
    edges = []
    for i, u in enumerate(layer_a):
        for v in G.successors(u):
            if v in pos_b:
                edges.append((i, pos_b[v]))

    crossings = 0
    for i in range(len(edges)):
        for j in range(i + 1, len(edges)):
            if (edges[i][0] - edges[j][0]) * (edges[i][1] - edges[j][1]) < 0:
                crossings += 1
    return crossings


def _total_crossings(G: nx.DiGraph, layers: List[List[str]]) -> int:
    return sum(_count_crossings(G, layers[i], layers[i + 1]) for i in range(len(layers) - 1))


def _barycenter_sort(
    G: nx.DiGraph, fixed_layer: List[str], free_layer: List[str], downward: bool
) -> List[str]:
    """Reorder free_layer to minimize crossings with fixed_layer using barycenter."""
    fixed_pos = {n: i for i, n in enumerate(fixed_layer)}
    free_pos = {n: i for i, n in enumerate(free_layer)}
    bary: Dict[str, float] = {}

    for n in free_layer:
        neighbors = G.predecessors(n) if downward else G.successors(n)
        relevant = [fixed_pos[nb] for nb in neighbors if nb in fixed_pos]
        bary[n] = sum(relevant) / len(relevant) if relevant else float("inf")

    anchored = sorted(((n, b) for n, b in bary.items() if b != float("inf")), key=lambda x: x[1])
    unanchored = [n for n, b in bary.items() if b == float("inf")]
    result = [n for n, _ in anchored]

    # Unanchored nodes keep their position relative to the anchored ones.
    for u in unanchored:
        best = len(result)
        for i, r in enumerate(result):
            if free_pos[r] > free_pos[u]:
                best = i
                break
        result.insert(best, u)

    return result


def _minimize_crossings(G: nx.DiGraph, layers: List[List[str]], passes: int = CROSSING_PASSES) -> None:
    """Multi-pass barycenter crossing minimization (in-place)."""
    if len(layers) <= 1:
        return

    best_order = [list(layer) for layer in layers]
    best_crossings = _total_crossings(G, layers)
    if best_crossings == 0:
        return

    for iteration in range(passes):
        if iteration % 2 == 0:
            for i in range(1, len(layers)):
                layers[i] = _barycenter_sort(G, layers[i - 1], layers[i], downward=True)
        else:
            for i in range(len(layers) - 2, -1, -1):
                layers[i] = _barycenter_sort(G, layers[i + 1], layers[i], downward=False)

        c = _total_crossings(G, layers)
        if c < best_crossings:
            best_crossings = c
            best_order = [list(layer) for layer in layers]
        if best_crossings == 0:
            break

    for i in range(len(layers)):
        layers[i] = best_order[i]


# ---------------------------------------------------------------------------
# 4. Coordinate assignment (median-based, iterative)
# ---------------------------------------------------------------------------

def _assign_coordinates(
    G: nx.DiGraph,
    layers: List[List[str]],
    dummy_nodes: Set[str],
    sizes: Dict[str, Tuple[float, float]],
    node_sep: float,
    rank_sep: float,
) -> Tuple[Dict[str, Dict[str, Any]], List[List[float]]]:
    """
    Assign top-left (x, y) per node. Nodes are vertically centered in their layer.
    Returns (positions, layer bounds as [top, bottom]).
    """
    positions: Dict[str, Dict[str, Any]] = {}
    bounds: List[List[float]] = []

    y = 0.0
    for layer in layers:
        layer_h = max((sizes[n][1] for n in layer if n not in dummy_nodes), default=0.0)
        bounds.append([y, y + layer_h])
        y += layer_h + rank_sep

    for layer_idx, layer in enumerate(layers):
        top, bottom = bounds[layer_idx]
        x = 0.0
        for nid in layer:
            w, h = (0.0, 0.0) if nid in dummy_nodes else sizes[nid]
            positions[nid] = {
                "id": nid,
                "x": x,
                "y": top + (bottom - top - h) / 2.0,
                "w": w,
                "h": h,
                "layer": layer_idx,
            }
            x += w + node_sep

    for _ in range(12):
        for layer_idx in range(1, len(layers)):
            _align_to_connected(G, layers[layer_idx], positions, node_sep)
        for layer_idx in range(len(layers) - 2, -1, -1):
            _align_to_connected(G, layers[layer_idx], positions, node_sep)

    return positions, bounds


def _node_center_x(pos: Dict) -> float:
    return pos["x"] + pos["w"] / 2.0


def _align_to_connected(
    G: nx.DiGraph,
    layer: List[str],
    positions: Dict[str, Dict],
    node_sep: float,
) -> None:
    """Shift nodes in a layer toward the median x of connected nodes, preserving order."""
    if not layer:
        return

    ideal_x: Dict[str, float] = {}

    for nid in layer:
        connected = list(G.predecessors(nid)) + list(G.successors(nid))
        cxs = sorted(_node_center_x(positions[nb]) for nb in connected if nb in positions)
        if not cxs:
            ideal_x[nid] = positions[nid]["x"]
            continue

        mid = len(cxs) // 2
        if len(cxs) % 2 == 1:
            median_cx = cxs[mid]
        else:
            median_cx = (cxs[mid - 1] + cxs[mid]) / 2.0
        ideal_x[nid] = median_cx - positions[nid]["w"] / 2.0

    _place_with_order(layer, ideal_x, positions, node_sep)


def _place_with_order(
    layer: List[str],
    ideal: Dict[str, float],
    positions: Dict[str, Dict],
    node_sep: float,
) -> None:
    """Place nodes at ideal x while maintaining layer order and minimum spacing."""
    n = len(layer)
    if n == 0:
        return

    placed = [ideal.get(nid, positions[nid]["x"]) for nid in layer]

    for i in range(1, n):
        min_x = placed[i - 1] + positions[layer[i - 1]]["w"] + node_sep
        if placed[i] < min_x:
            placed[i] = min_x

    for i in range(n - 2, -1, -1):
        max_x = placed[i + 1] - node_sep - positions[layer[i]]["w"]
        if placed[i] > max_x:
            placed[i] = max_x

    for idx, nid in enumerate(layer):
        positions[nid]["x"] = placed[idx]


def _shift_to_origin(
    positions: Dict[str, Dict],
    bounds: List[List[float]],
    dummy_nodes: Set[str],
    padding: float,
) -> None:
    """Translate so the real nodes' bounding box starts at (padding, padding)."""
    real = [p for nid, p in positions.items() if nid not in dummy_nodes]
    off_x = padding - min(p["x"] for p in real)
    off_y = padding - min(p["y"] for p in real)
    for p in positions.values():
        p["x"] += off_x
        p["y"] += off_y
    for b in bounds:
        b[0] += off_y
        b[1] += off_y


# ---------------------------------------------------------------------------
# 5. Edge routing (orthogonal, port-side aware)
# ---------------------------------------------------------------------------

def _anchor(pos: Dict, side: str) -> XY:
    cx, cy = pos["x"] + pos["w"] / 2.0, pos["y"] + pos["h"] / 2.0
    if side == elk.NORTH:
        return cx, pos["y"]
    if side == elk.SOUTH:
        return cx, pos["y"] + pos["h"]
    if side == elk.WEST:
        return pos["x"], cy
    return pos["x"] + pos["w"], cy


def _offset(point: XY, side: str, margin: float) -> XY:
    x, y = point
    if side == elk.NORTH:
        return x, y - margin
    if side == elk.SOUTH:
        return x, y + margin
    if side == elk.WEST:
        return x - margin, y
    return x + margin, y


def _port_out(port: Dict[str, Any], pos: Dict, side: Optional[str]) -> Dict[str, Any]:
    """Port position relative to its node, as ELK reports it."""
    ax, ay = _anchor(pos, side or elk.SOUTH)
    return {"id": port.get("id"), "x": round(ax - pos["x"], 1), "y": round(ay - pos["y"], 1)}


def _channel_y(sp: Dict, dp: Dict, margin: float) -> float:
    """A horizontal line clear of both node bodies."""
    s_top, s_bottom = sp["y"], sp["y"] + sp["h"]
    d_top, d_bottom = dp["y"], dp["y"] + dp["h"]
    if d_top > s_bottom:
        return (s_bottom + d_top) / 2.0
    if s_top > d_bottom:
        return (d_bottom + s_top) / 2.0
    return max(s_bottom, d_bottom) + margin


def _route_edge(
    sp: Dict,
    s_side: str,
    dp: Dict,
    d_side: str,
    chain: List[Dict],
    bounds: List[List[float]],
    margin: float,
) -> List[XY]:
    """Orthogonal polyline from the source port to the target port: start, bends..., end."""
    start, end = _anchor(sp, s_side), _anchor(dp, d_side)

    if s_side == elk.SOUTH and d_side == elk.NORTH and sp["layer"] < dp["layer"]:
        # Downward edge: turn only in the gaps between layers, passing dummy x's.
        xs = [start[0]] + [d["x"] for d in chain] + [end[0]]
        points = [start]
        cur_x = start[0]
        for i, next_x in enumerate(xs[1:]):
            k = sp["layer"] + i
            gap_y = (bounds[k][1] + bounds[k + 1][0]) / 2.0
            if abs(next_x - cur_x) > _EPS:
                points += [(cur_x, gap_y), (next_x, gap_y)]
                cur_x = next_x
        points.append(end)
        return points

    p1, p2 = _offset(start, s_side, margin), _offset(end, d_side, margin)

    if s_side == elk.EAST and d_side == elk.WEST:
        if end[0] - start[0] >= 2 * margin:
            if abs(end[1] - start[1]) <= _EPS:
                return [start, end]
            mid_x = (start[0] + end[0]) / 2.0
            return [start, (mid_x, start[1]), (mid_x, end[1]), end]
        mid_y = _channel_y(sp, dp, margin)
        return [start, p1, (p1[0], mid_y), (p2[0], mid_y), p2, end]

    if s_side == elk.SOUTH and d_side == elk.NORTH:
        # Target is not below the source: go around on the right.
        x_out = max(sp["x"] + sp["w"], dp["x"] + dp["w"]) + margin
        return [start, p1, (x_out, p1[1]), (x_out, p2[1]), p2, end]

    corner = (p1[0], p2[1]) if s_side in (elk.NORTH, elk.SOUTH) else (p2[0], p1[1])
    return [start, p1, corner, p2, end]


def _dedupe(points: List[XY]) -> List[XY]:
    """Drop consecutive duplicates; always keeps start and end."""
    out: List[XY] = []
    for p in points:
        if not out or abs(out[-1][0] - p[0]) > _EPS or abs(out[-1][1] - p[1]) > _EPS:
            out.append(p)
    if len(out) == 1:
        out.append(out[0])
    return out
