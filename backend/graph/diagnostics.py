"""Diagnostic hook: collects recovered anomalies for one layout pass."""

from typing import List

from loguru import logger

from .models import Anomaly

DUPLICATE_NODE = "duplicate_node"
SELF_EDGE = "self_edge"
PARENT_MISMATCH = "parent_mismatch"
DANGLING_EDGE = "dangling_edge"
DUPLICATE_EDGE = "duplicate_edge"
MISSING_NODE_GEOMETRY = "missing_node_geometry"
MISSING_EDGE_GEOMETRY = "missing_edge_geometry"


class Diagnostics:
    """Per-pass anomaly collector. Create one per pass; never share across passes."""

    def __init__(self):
        self.anomalies: List[Anomaly] = []

    def report(self, kind: str, subject: str, detail: str = "") -> None:
        self.anomalies.append(Anomaly(kind=kind, subject=subject, detail=detail))
        logger.warning("Graph anomaly [{}] {}: {}", kind, subject, detail)

    def of_kind(self, kind: str) -> List[Anomaly]:
        return [a for a in self.anomalies if a.kind == kind]
