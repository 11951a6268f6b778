"""
Canonical graph builder: tree or event timeline -> deduplicated nodes + typed edges.

Input from the query repository is not fully trusted. Duplicate ids and
self-references are dropped (and reported) instead of raised.
"""

from typing import List, Optional, Sequence, Tuple

from loguru import logger

from layout.constants import DEFAULT_NODE_H, DEFAULT_NODE_W
from querytree.models import DomainEvent, DomainTreeNode
from querytree.status import normalize

from .diagnostics import DUPLICATE_NODE, PARENT_MISMATCH, SELF_EDGE, Diagnostics
from .models import (
    PORT_CONVENTION,
    CanonicalGraph,
    GraphEdge,
    GraphNode,
    NodeKind,
    Relation,
    edge_id,
)

_TREE_METRICS = (
    "execution_time",
    "input_rows",
    "output_rows",
    "input_bytes",
    "output_bytes",
    "cpu_time",
    "wall_time",
    "memory_bytes",
    "error_message",
)


def make_edge(source: str, target: str, relation: Relation) -> GraphEdge:
    """Edge with the fixed port convention for its relation."""
    src_port, dst_port = PORT_CONVENTION[relation]
    return GraphEdge(
        id=edge_id(source, relation, target),
        source=source,
        target=target,
        source_port=src_port,
        target_port=dst_port,
        relation=relation,
    )


def _tree_label(node: DomainTreeNode) -> str:
    return node.operator_type or node.node_type or "Query Node"


def _tree_node(node: DomainTreeNode) -> GraphNode:
    return GraphNode(
        id=node.id,
        kind=NodeKind.TREE,
        status=normalize(node.state),
        label=_tree_label(node),
        metrics={k: getattr(node, k) for k in _TREE_METRICS},
        width=DEFAULT_NODE_W,
        height=DEFAULT_NODE_H,
    )


def _event_node(event: DomainEvent, index: int) -> GraphNode:
    return GraphNode(
        id=f"event-{index}",
        kind=NodeKind.EVENT,
        status=normalize(event.state),
        label=event.event_type,
        metrics={
            "execution_time": event.cpu_time_ms or event.wall_time_ms,
            "input_rows": event.total_rows,
            "input_bytes": event.total_bytes,
            "cpu_time": event.cpu_time_ms,
            "wall_time": event.wall_time_ms,
            "memory_bytes": event.peak_memory_bytes,
            "error_message": event.error_message,
            "timestamp": event.timestamp.isoformat() if event.timestamp else None,
        },
        width=DEFAULT_NODE_W,
        height=DEFAULT_NODE_H,
    )


def build_from_tree(
    root: Optional[DomainTreeNode], diagnostics: Optional[Diagnostics] = None
) -> CanonicalGraph:
    """
    Single pre-order traversal. A repeated id is not re-added or re-traversed:
    that occurrence, its subtree and the edge leading to it are dropped.
    """
    if diagnostics is None:
        diagnostics = Diagnostics()
    if root is None:
        return CanonicalGraph()

    nodes: List[GraphNode] = []
    edges: List[GraphEdge] = []
    visited = set()

    stack: List[Tuple[DomainTreeNode, Optional[str]]] = [(root, None)]
    while stack:
        node, parent_id = stack.pop()
        if node.id in visited:
            diagnostics.report(DUPLICATE_NODE, node.id, f"repeated under {parent_id}; occurrence dropped")
            continue
        visited.add(node.id)
        nodes.append(_tree_node(node))
        if parent_id is not None:
            edges.append(make_edge(parent_id, node.id, Relation.PARENT_CHILD))
            if node.parent_id and node.parent_id != parent_id:
                diagnostics.report(PARENT_MISMATCH, node.id, f"parentId {node.parent_id}, found under {parent_id}")

        pending = []
        for child in node.children or []:
            if child.id == node.id:
                diagnostics.report(SELF_EDGE, node.id, "child references its own parent id; dropped")
                continue
            pending.append((child, node.id))
        # Reversed so children pop in their original order.
        stack.extend(reversed(pending))

    logger.debug("Built tree graph: {} nodes, {} edges", len(nodes), len(edges))
    return CanonicalGraph(nodes=nodes, edges=edges)


def build_from_events(events: Optional[Sequence[DomainEvent]]) -> CanonicalGraph:
    """One node per event in input order, one sequence edge per consecutive pair."""
    nodes = [_event_node(e, i) for i, e in enumerate(events or [])]
    edges = [
        make_edge(nodes[i - 1].id, nodes[i].id, Relation.SEQUENCE)
        for i in range(1, len(nodes))
    ]
    logger.debug("Built event graph: {} nodes, {} edges", len(nodes), len(edges))
    return CanonicalGraph(nodes=nodes, edges=edges)


def has_tree_structure(root: Optional[DomainTreeNode]) -> bool:
    return root is not None and bool(root.children)


def build_graph(
    root: Optional[DomainTreeNode],
    events: Optional[Sequence[DomainEvent]] = None,
    diagnostics: Optional[Diagnostics] = None,
) -> CanonicalGraph:
    """
    Shape decision: the event timeline is used when the tree is absent or is a
    lone node and events exist; otherwise the tree (possibly empty) is used.
    """
    if not has_tree_structure(root) and events:
        return build_from_events(events)
    return build_from_tree(root, diagnostics)
