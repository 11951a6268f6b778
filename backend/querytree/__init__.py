"""Query repository input: tree/event models, status normalization, payload parsing."""

from .loader import parse_query_tree
from .models import DomainEvent, DomainTreeNode, QueryTree
from .status import CanonicalStatus, normalize

__all__ = [
    "CanonicalStatus",
    "DomainEvent",
    "DomainTreeNode",
    "QueryTree",
    "normalize",
    "parse_query_tree",
]
