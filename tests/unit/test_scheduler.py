"""
Unit tests for the readiness-driven traversal scheduler.

The scheduler never touches buffers, so these tests run it over
unallocated nodes with visitors that only record what they see.
"""

import pytest

from faodag.graph import EdgeTable, NoOp, Sum, Copy
from faodag.runtime.scheduler import ReadyScheduler


def _names(order):
    return [node.name for node in order]


class TestVisitOnce:
    """Every reachable node fires exactly once per pass."""

    @pytest.mark.parametrize("forward", [True, False])
    def test_diamond_visits_each_node_once(self, diamond_graph, forward):
        start, end, edges = diamond_graph
        scheduler = ReadyScheduler(start, end, edges)
        order = []

        visited = scheduler.traverse(order.append, forward)

        assert visited == 6
        assert len(order) == 6
        assert set(order) == set(edges.nodes(start, end))

    def test_single_node_graph(self):
        node = NoOp((1,), name="only")
        scheduler = ReadyScheduler(node, node, EdgeTable())
        order = []

        assert scheduler.traverse(order.append, True) == 1
        assert scheduler.traverse(order.append, False) == 1
        assert _names(order) == ["only", "only"]

    def test_repeated_traversals_are_identical(self, recording_fanout):
        start, end, edges, _ = recording_fanout
        scheduler = ReadyScheduler(start, end, edges)
        first, second = [], []

        scheduler.traverse(first.append, True)
        scheduler.traverse(second.append, True)

        assert first == second


class TestOrdering:
    """FIFO order among simultaneously ready nodes."""

    def test_forward_fifo_order(self, recording_fanout):
        start, end, edges, _ = recording_fanout
        order = []
        ReadyScheduler(start, end, edges).traverse(order.append, True)

        assert _names(order) == ["start", "copy", "a", "b", "c", "sum", "end"]

    def test_reverse_fifo_order(self, recording_fanout):
        start, end, edges, _ = recording_fanout
        order = []
        ReadyScheduler(start, end, edges).traverse(order.append, False)

        assert _names(order) == ["end", "sum", "a", "b", "c", "copy", "start"]

    def test_producers_run_before_consumer(self, diamond_graph):
        start, end, edges = diamond_graph
        order = []
        ReadyScheduler(start, end, edges).traverse(order.append, True)
        names = _names(order)

        assert names.index("sum") > names.index("scale")
        assert names.index("sum") > names.index("gram")


class TestReadiness:
    """Nodes wait for every edge from the walk's direction."""

    def test_join_waits_for_both_predecessors(self):
        p1, p2 = NoOp((1,), name="p1"), NoOp((1,), name="p2")
        join = Sum((1,), n_inputs=2, name="join")
        edges = EdgeTable()
        edges.connect(p1, join)
        edges.connect(p2, join)

        order = []
        visited = ReadyScheduler(p1, join, edges).traverse(order.append, True)

        assert visited == 1
        assert _names(order) == ["p1"]

    def test_fork_waits_for_both_successors_in_reverse(self):
        fork = Copy((1,), n_outputs=2, name="fork")
        s1, s2 = NoOp((1,), name="s1"), NoOp((1,), name="s2")
        edges = EdgeTable()
        edges.connect(fork, s1)
        edges.connect(fork, s2)

        order = []
        ReadyScheduler(fork, s1, edges).traverse(order.append, False)

        assert _names(order) == ["s1"]

    def test_mismatched_edge_list_starves_node(self):
        start, end = NoOp((1,), name="start"), NoOp((1,), name="end")
        edges = EdgeTable()
        edges.connect(start, end)
        end.input_edges.append(42)

        order = []
        visited = ReadyScheduler(start, end, edges).traverse(order.append, True)

        assert visited == 1
        assert _names(order) == ["start"]


class TestScratchState:
    """Arrival counters never leak between passes."""

    def test_counters_cleared_after_traversal(self, diamond_graph):
        start, end, edges = diamond_graph
        scheduler = ReadyScheduler(start, end, edges)

        scheduler.traverse(lambda node: None, True)

        assert scheduler.pending_arrivals == {}

    def test_counters_visible_during_traversal(self, diamond_graph):
        start, end, edges = diamond_graph
        scheduler = ReadyScheduler(start, end, edges)
        snapshots = {}

        def visitor(node):
            snapshots[node.name] = scheduler.pending_arrivals

        scheduler.traverse(visitor, True)

        assert snapshots["start"] == {}
        assert sum(snapshots["sum"].values()) > 0

    def test_counters_cleared_when_visitor_raises(self, diamond_graph):
        start, end, edges = diamond_graph
        scheduler = ReadyScheduler(start, end, edges)

        def visitor(node):
            if node.name == "sum":
                raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            scheduler.traverse(visitor, True)

        assert scheduler.pending_arrivals == {}
        order = []
        assert scheduler.traverse(order.append, True) == 6
