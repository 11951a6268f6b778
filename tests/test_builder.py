"""Tests for graph.builder - tree/event input -> deduplicated canonical graph."""

from datetime import datetime, timedelta

from graph.builder import build_from_events, build_from_tree, build_graph
from graph.diagnostics import DUPLICATE_NODE, PARENT_MISMATCH, SELF_EDGE, Diagnostics
from graph.models import NodeKind, Port, Relation
from querytree.models import DomainEvent, DomainTreeNode
from querytree.status import CanonicalStatus

# ─── Helpers ──────────────────────────────────────────────────────────────────


def tree_node(node_id: str, *children: DomainTreeNode, **fields) -> DomainTreeNode:
    return DomainTreeNode(id=node_id, children=list(children), **fields)


def scenario_a() -> DomainTreeNode:
    """root -> [leaf, mid -> [g1, g2]]"""
    return tree_node("root", tree_node("leaf"), tree_node("mid", tree_node("g1"), tree_node("g2")))


def events(n: int):
    t0 = datetime(2024, 1, 1, 12, 0, 0)
    return [
        DomainEvent(event_type=f"STEP_{i}", timestamp=t0 + timedelta(seconds=i), state="RUNNING")
        for i in range(n)
    ]


def edge_pairs(graph):
    return [(e.source, e.target) for e in graph.edges]


# ─── build_from_tree ──────────────────────────────────────────────────────────


class TestBuildFromTree:
    def test_scenario_a_counts(self):
        """5 distinct ids -> 5 nodes and 4 parentChild edges."""
        graph = build_from_tree(scenario_a())
        assert [n.id for n in graph.nodes] == ["root", "leaf", "mid", "g1", "g2"]
        assert len(graph.edges) == 4
        assert all(e.relation == Relation.PARENT_CHILD for e in graph.edges)
        assert set(edge_pairs(graph)) == {("root", "leaf"), ("root", "mid"), ("mid", "g1"), ("mid", "g2")}

    def test_parent_child_port_convention(self):
        graph = build_from_tree(scenario_a())
        for e in graph.edges:
            assert e.source_port == Port.BOTTOM
            assert e.target_port == Port.TOP

    def test_edge_ids_are_deterministic_and_unique(self):
        graph = build_from_tree(scenario_a())
        ids = [e.id for e in graph.edges]
        assert "root-parentChild-leaf" in ids
        assert len(ids) == len(set(ids))

    def test_nodes_carry_four_ports(self):
        graph = build_from_tree(scenario_a())
        for n in graph.nodes:
            assert set(n.ports) == {Port.TOP, Port.BOTTOM, Port.LEFT, Port.RIGHT}
            assert n.kind == NodeKind.TREE
            assert n.position is None

    def test_idempotent(self):
        """Same unmodified input twice -> equal node/edge sets."""
        root = scenario_a()
        a, b = build_from_tree(root), build_from_tree(root)
        assert sorted(n.model_dump_json() for n in a.nodes) == sorted(n.model_dump_json() for n in b.nodes)
        assert sorted(e.model_dump_json() for e in a.edges) == sorted(e.model_dump_json() for e in b.edges)

    def test_duplicate_id_second_occurrence_dropped(self):
        """The same id twice -> node count equals distinct ids."""
        root = tree_node("root", tree_node("a"), tree_node("b", tree_node("a")))
        diagnostics = Diagnostics()
        graph = build_from_tree(root, diagnostics)
        assert sorted(n.id for n in graph.nodes) == ["a", "b", "root"]
        assert set(edge_pairs(graph)) == {("root", "a"), ("root", "b")}
        assert [a.subject for a in diagnostics.of_kind(DUPLICATE_NODE)] == ["a"]

    def test_duplicate_occurrence_subtree_not_traversed(self):
        root = tree_node("root", tree_node("a"), tree_node("a", tree_node("hidden")))
        graph = build_from_tree(root)
        assert [n.id for n in graph.nodes] == ["root", "a"]
        assert len(graph.edges) == 1

    def test_self_edge_dropped(self):
        root = tree_node("root", tree_node("root"), tree_node("x"))
        diagnostics = Diagnostics()
        graph = build_from_tree(root, diagnostics)
        assert [n.id for n in graph.nodes] == ["root", "x"]
        assert edge_pairs(graph) == [("root", "x")]
        assert len(diagnostics.of_kind(SELF_EDGE)) == 1
        assert not diagnostics.of_kind(DUPLICATE_NODE)

    def test_parent_id_mismatch_reported_not_fatal(self):
        root = tree_node("root", tree_node("x", parent_id="elsewhere"), tree_node("y", parent_id="root"))
        diagnostics = Diagnostics()
        graph = build_from_tree(root, diagnostics)
        assert len(graph.nodes) == 3
        assert [a.subject for a in diagnostics.of_kind(PARENT_MISMATCH)] == ["x"]

    def test_none_root_is_empty(self):
        graph = build_from_tree(None)
        assert graph.nodes == [] and graph.edges == []

    def test_single_node(self):
        graph = build_from_tree(tree_node("only"))
        assert [n.id for n in graph.nodes] == ["only"]
        assert graph.edges == []

    def test_labels_status_and_metrics(self):
        root = tree_node(
            "root",
            tree_node("scan", operator_type="TableScan", state="FINISHED", input_rows=10, execution_time=5.5),
            tree_node("bare", state="FAILED"),
            node_type="OUTPUT",
        )
        nodes = build_from_tree(root).node_map()
        assert nodes["root"].label == "OUTPUT"
        assert nodes["scan"].label == "TableScan"
        assert nodes["bare"].label == "Query Node"
        assert nodes["scan"].status == CanonicalStatus.FINISHED
        assert nodes["bare"].status == CanonicalStatus.FAILED
        assert nodes["root"].status == CanonicalStatus.UNKNOWN
        assert nodes["scan"].metrics["input_rows"] == 10
        assert nodes["scan"].metrics["execution_time"] == 5.5

    def test_deep_chain_does_not_recurse(self):
        """Traversal is iterative; a chain deeper than the recursion limit still builds."""
        node = tree_node("n3000")
        for i in range(2999, -1, -1):
            node = tree_node(f"n{i}", node)
        graph = build_from_tree(node)
        assert len(graph.nodes) == 3001
        assert len(graph.edges) == 3000


# ─── build_from_events ────────────────────────────────────────────────────────


class TestBuildFromEvents:
    def test_empty_and_single(self):
        assert build_from_events([]).edges == []
        assert build_from_events(None).nodes == []
        one = build_from_events(events(1))
        assert len(one.nodes) == 1 and one.edges == []

    def test_scenario_b_chain(self):
        """3 chronological events -> 3 nodes, event0 -> event1 -> event2 via right -> left."""
        graph = build_from_events(events(3))
        assert [n.id for n in graph.nodes] == ["event-0", "event-1", "event-2"]
        assert edge_pairs(graph) == [("event-0", "event-1"), ("event-1", "event-2")]
        for e in graph.edges:
            assert e.relation == Relation.SEQUENCE
            assert e.source_port == Port.RIGHT
            assert e.target_port == Port.LEFT

    def test_n_events_n_minus_one_edges(self):
        for n in range(0, 6):
            graph = build_from_events(events(n))
            assert len(graph.nodes) == n
            assert len(graph.edges) == max(0, n - 1)

    def test_event_metrics_mapping(self):
        event = DomainEvent(
            event_type="QueryCompleted",
            state="FINISHED",
            wall_time_ms=40,
            total_rows=7,
            total_bytes=512,
            peak_memory_bytes=2048,
            timestamp=datetime(2024, 1, 1),
        )
        node = build_from_events([event]).nodes[0]
        assert node.kind == NodeKind.EVENT
        assert node.label == "QueryCompleted"
        assert node.status == CanonicalStatus.FINISHED
        assert node.metrics["execution_time"] == 40
        assert node.metrics["input_rows"] == 7
        assert node.metrics["input_bytes"] == 512
        assert node.metrics["memory_bytes"] == 2048
        assert node.metrics["timestamp"].startswith("2024-01-01")


# ─── build_graph (shape decision) ─────────────────────────────────────────────


class TestBuildGraph:
    def test_lone_root_with_events_uses_timeline(self):
        graph = build_graph(tree_node("placeholder"), events(2))
        assert [n.kind for n in graph.nodes] == [NodeKind.EVENT, NodeKind.EVENT]

    def test_absent_root_with_events_uses_timeline(self):
        graph = build_graph(None, events(3))
        assert len(graph.edges) == 2

    def test_structured_tree_wins_over_events(self):
        graph = build_graph(scenario_a(), events(3))
        assert all(n.kind == NodeKind.TREE for n in graph.nodes)
        assert len(graph.nodes) == 5

    def test_lone_root_without_events_is_tree(self):
        graph = build_graph(tree_node("solo"), [])
        assert [n.id for n in graph.nodes] == ["solo"]

    def test_nothing_is_empty(self):
        graph = build_graph(None, None)
        assert graph.nodes == [] and graph.edges == []
