"""Common return shape of the layout strategies."""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from graph.models import GraphEdge, GraphNode


@dataclass
class LayoutResult:
    """Positioned copies of the pass's nodes and routed copies of its edges."""
    nodes: List[GraphNode]
    edges: List[GraphEdge]
    strategy: str
    # Rank layout only: allocated horizontal span and depth per node.
    spans: Dict[str, Tuple[float, float]] = field(default_factory=dict)
    depths: Dict[str, int] = field(default_factory=dict)
