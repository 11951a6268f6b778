"""Tests for layout.metrics and layout.tree_layout - subtree weights and the rank layout."""

from graph.builder import build_from_events, build_from_tree, make_edge
from graph.models import GraphNode, NodeKind, Relation
from layout.metrics import compute_subtree_weights, subtree_weight
from layout.tree_layout import compute_rank_layout
from querytree.models import DomainEvent, DomainTreeNode

V_SEP = 180.0
H_SEP = 320.0

# ─── Helpers ──────────────────────────────────────────────────────────────────


def tree_node(node_id: str, *children: DomainTreeNode) -> DomainTreeNode:
    return DomainTreeNode(id=node_id, children=list(children))


def scenario_a() -> DomainTreeNode:
    return tree_node("root", tree_node("leaf"), tree_node("mid", tree_node("g1"), tree_node("g2")))


def wide_tree() -> DomainTreeNode:
    return tree_node(
        "r",
        tree_node("a", tree_node("a1"), tree_node("a2", tree_node("a21"), tree_node("a22"), tree_node("a23"))),
        tree_node("b"),
        tree_node("c", tree_node("c1"), tree_node("c2")),
    )


def rank_layout(root: DomainTreeNode):
    graph = build_from_tree(root)
    return graph, compute_rank_layout(graph.nodes, graph.edges, vertical_spacing=V_SEP, horizontal_spacing=H_SEP)


def centers(result):
    return {n.id: (n.position.x, n.position.y) for n in result.nodes}


def plain_node(node_id: str) -> GraphNode:
    return GraphNode(id=node_id, kind=NodeKind.TREE, width=100, height=50)


# ─── Subtree weights ──────────────────────────────────────────────────────────


class TestSubtreeWeights:
    def test_leaf_count(self):
        children = {"root": ["leaf", "mid"], "mid": ["g1", "g2"]}
        weights = compute_subtree_weights(["root"], children)
        assert weights == {"root": 3, "leaf": 1, "mid": 2, "g1": 1, "g2": 1}

    def test_single_leaf_weighs_one(self):
        assert compute_subtree_weights(["x"], {}) == {"x": 1}

    def test_memo_filled_once(self):
        children = {"root": ["a", "b"], "a": ["a1", "a2"]}
        memo = {}
        assert subtree_weight("root", children, memo) == 3
        assert memo["a"] == 2
        memo["a"] = 99  # cached values are reused, not recomputed
        assert subtree_weight("a", children, memo) == 99

    def test_multiple_roots(self):
        weights = compute_subtree_weights(["r1", "r2"], {"r1": ["x", "y"]})
        assert weights["r1"] == 2 and weights["r2"] == 1


# ─── Rank layout ──────────────────────────────────────────────────────────────


class TestRankLayout:
    def test_scenario_a_coordinates(self):
        """Root at depth 0 centered over its children's combined span."""
        _, result = rank_layout(scenario_a())
        pos = centers(result)
        assert pos["root"] == (480.0, 0.0)
        assert pos["leaf"] == (160.0, 180.0)
        assert pos["mid"] == (640.0, 180.0)
        assert pos["g1"] == (480.0, 360.0)
        assert pos["g2"] == (800.0, 360.0)
        assert result.depths == {"root": 0, "leaf": 1, "mid": 1, "g1": 2, "g2": 2}

    def test_root_centered_over_children_span(self):
        _, result = rank_layout(scenario_a())
        l0, _ = result.spans["leaf"]
        _, r1 = result.spans["mid"]
        assert centers(result)["root"][0] == (l0 + r1) / 2.0

    def test_grandchildren_do_not_overlap(self):
        _, result = rank_layout(scenario_a())
        g1, g2 = result.spans["g1"], result.spans["g2"]
        assert g1[1] <= g2[0]

    def test_leaf_span_is_exactly_spacing(self):
        _, result = rank_layout(wide_tree())
        for nid in ("a1", "a21", "a22", "a23", "b", "c1", "c2"):
            left, right = result.spans[nid]
            assert right - left == H_SEP
            assert centers(result)[nid][0] == (left + right) / 2.0

    def test_same_depth_spans_disjoint(self):
        """For every pair at the same depth, allocated spans touch at most at a boundary."""
        _, result = rank_layout(wide_tree())
        by_depth = {}
        for nid, depth in result.depths.items():
            by_depth.setdefault(depth, []).append(result.spans[nid])
        for spans in by_depth.values():
            spans.sort()
            for (_, r), (l, _) in zip(spans, spans[1:]):
                assert r <= l

    def test_children_inside_parent_span(self):
        graph, result = rank_layout(wide_tree())
        for e in graph.edges:
            pl, pr = result.spans[e.source]
            cl, cr = result.spans[e.target]
            assert pl <= cl and cr <= pr

    def test_deterministic(self):
        root = wide_tree()
        _, a = rank_layout(root)
        _, b = rank_layout(root)
        assert centers(a) == centers(b)
        assert [e.route for e in a.edges] == [e.route for e in b.edges]

    def test_inputs_not_mutated(self):
        graph, result = rank_layout(scenario_a())
        assert all(n.position is None for n in graph.nodes)
        assert all(e.route == [] for e in graph.edges)
        assert all(n.position is not None for n in result.nodes)

    def test_straight_routes_from_ports(self):
        _, result = rank_layout(scenario_a())
        nodes = {n.id: n for n in result.nodes}
        edge = next(e for e in result.edges if e.target == "leaf")
        assert len(edge.route) == 2
        start, end = edge.route
        assert (start.x, start.y) == (480.0, nodes["root"].height / 2.0)
        assert (end.x, end.y) == (160.0, 180.0 - nodes["leaf"].height / 2.0)

    def test_event_chain_is_a_row(self):
        graph = build_from_events([DomainEvent(event_type=t) for t in ("A", "B", "C")])
        result = compute_rank_layout(graph.nodes, graph.edges, vertical_spacing=V_SEP, horizontal_spacing=H_SEP)
        pos = centers(result)
        assert pos == {"event-0": (160.0, 0.0), "event-1": (480.0, 0.0), "event-2": (800.0, 0.0)}
        first = result.edges[0]
        start, end = first.route
        assert start.y == end.y == 0.0
        assert start.x < end.x

    def test_parent_cycle_does_not_hang(self):
        """Hand-built parentChild cycle: every node still gets a position."""
        nodes = [plain_node("a"), plain_node("b"), plain_node("c")]
        edges = [
            make_edge("a", "b", Relation.PARENT_CHILD),
            make_edge("b", "a", Relation.PARENT_CHILD),
            make_edge("b", "c", Relation.PARENT_CHILD),
        ]
        result = compute_rank_layout(nodes, edges, vertical_spacing=V_SEP, horizontal_spacing=H_SEP)
        assert all(n.position is not None for n in result.nodes)

    def test_dangling_edge_left_unrouted(self):
        nodes = [plain_node("a")]
        edges = [make_edge("a", "ghost", Relation.PARENT_CHILD)]
        result = compute_rank_layout(nodes, edges, vertical_spacing=V_SEP, horizontal_spacing=H_SEP)
        assert result.edges[0].route == []

    def test_empty(self):
        result = compute_rank_layout([], [])
        assert result.nodes == [] and result.edges == []
        assert result.strategy == "ranks"
