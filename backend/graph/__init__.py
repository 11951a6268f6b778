"""Canonical graph: models, builder, assembler and the anomaly collector."""

from .models import (
    Anomaly,
    CanonicalGraph,
    GraphEdge,
    GraphNode,
    GraphPayload,
    NodeKind,
    Point,
    Port,
    Relation,
)
from .diagnostics import Diagnostics
from .builder import build_from_events, build_from_tree, build_graph
from .assembler import assemble

__all__ = [
    "Anomaly",
    "CanonicalGraph",
    "Diagnostics",
    "GraphEdge",
    "GraphNode",
    "GraphPayload",
    "NodeKind",
    "Point",
    "Port",
    "Relation",
    "assemble",
    "build_from_events",
    "build_from_tree",
    "build_graph",
]
