"""
Canonical graph model shared by builders, layout strategies and the assembler.

Nodes never reference each other directly; all relations live in the edge list.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from querytree.status import CanonicalStatus


class Port(str, Enum):
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"


class Relation(str, Enum):
    PARENT_CHILD = "parentChild"
    SEQUENCE = "sequence"


class NodeKind(str, Enum):
    TREE = "tree"
    EVENT = "event"


# relation -> (source port, target port)
PORT_CONVENTION = {
    Relation.PARENT_CHILD: (Port.BOTTOM, Port.TOP),
    Relation.SEQUENCE: (Port.RIGHT, Port.LEFT),
}

ALL_PORTS = (Port.TOP, Port.BOTTOM, Port.LEFT, Port.RIGHT)


def port_id(node_id: str, port: Port) -> str:
    """'scan-1', Port.TOP -> 'scan-1:top'."""
    return f"{node_id}:{Port(port).value}"


def edge_id(source: str, relation: Relation, target: str) -> str:
    return f"{source}-{Relation(relation).value}-{target}"


class Point(BaseModel):
    x: float
    y: float


class GraphNode(BaseModel):
    """Canonical node. position is the node center, None until laid out."""
    model_config = ConfigDict(populate_by_name=True)
    id: str
    kind: NodeKind
    status: CanonicalStatus = CanonicalStatus.UNKNOWN
    label: str = ""
    metrics: Dict[str, Any] = Field(default_factory=dict)
    ports: List[Port] = Field(default_factory=lambda: list(ALL_PORTS))
    width: float = 0.0
    height: float = 0.0
    position: Optional[Point] = None

    def anchor(self, port: Port) -> Point:
        """Absolute coordinate of a port; requires a position."""
        if self.position is None:
            raise ValueError(f"Node {self.id} has no position")
        cx, cy = self.position.x, self.position.y
        hw, hh = self.width / 2.0, self.height / 2.0
        port = Port(port)
        if port == Port.TOP:
            return Point(x=cx, y=cy - hh)
        if port == Port.BOTTOM:
            return Point(x=cx, y=cy + hh)
        if port == Port.LEFT:
            return Point(x=cx - hw, y=cy)
        return Point(x=cx + hw, y=cy)


class GraphEdge(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    id: str
    source: str
    target: str
    source_port: Port = Field(alias="sourcePort")
    target_port: Port = Field(alias="targetPort")
    relation: Relation
    route: List[Point] = Field(default_factory=list)


class CanonicalGraph(BaseModel):
    """Builder output: deduplicated nodes plus typed edges, no geometry yet."""
    nodes: List[GraphNode] = Field(default_factory=list)
    edges: List[GraphEdge] = Field(default_factory=list)

    def node_map(self) -> Dict[str, GraphNode]:
        return {n.id: n for n in self.nodes}


class Anomaly(BaseModel):
    kind: str
    subject: str
    detail: str = ""


class GraphPayload(BaseModel):
    """Final, validated structure handed to the canvas renderer."""
    model_config = ConfigDict(populate_by_name=True)
    nodes: List[GraphNode] = Field(default_factory=list)
    edges: List[GraphEdge] = Field(default_factory=list)
    strategy: str = ""
    width: float = 0.0
    height: float = 0.0
    anomalies: List[Anomaly] = Field(default_factory=list)
