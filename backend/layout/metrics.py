"""Subtree weights (leaf counts) for proportional span allocation."""

from typing import Dict, List


def compute_subtree_weights(roots: List[str], children: Dict[str, List[str]]) -> Dict[str, int]:
    """
    Leaf count per node: a leaf weighs 1, an internal node the sum of its children.
    Single bottom-up pass (post-order, iterative); each node is computed once.
    The returned dict is the memo for one layout pass.
    """
    weights: Dict[str, int] = {}
    for root in roots:
        if root in weights:
            continue
        stack = [(root, False)]
        while stack:
            nid, expanded = stack.pop()
            if nid in weights:
                continue
            kids = children.get(nid) or []
            if expanded or not kids:
                weights[nid] = sum(weights.get(c, 1) for c in kids) if kids else 1
                continue
            stack.append((nid, True))
            for c in reversed(kids):
                if c not in weights:
                    stack.append((c, False))
    return weights


def subtree_weight(node_id: str, children: Dict[str, List[str]], memo: Dict[str, int]) -> int:
    """Weight of one node, filling memo for the whole subtree on first use."""
    if node_id not in memo:
        memo.update(compute_subtree_weights([node_id], children))
    return memo[node_id]
