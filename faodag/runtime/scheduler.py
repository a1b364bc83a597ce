"""
Readiness-driven traversal of an FAO DAG.

One FIFO walk serves allocation, deallocation, forward evaluation and
adjoint evaluation; the per-node work is injected as a callable.
"""

from __future__ import annotations

from collections import deque
from typing import Callable, Deque, Dict

from ..graph.edges import EdgeTable
from ..graph.fao import FAO

NodeFn = Callable[[FAO], None]


class ReadyScheduler:
    """
    Topological walk that fires a node once every edge feeding it (in
    the walk's direction) has been delivered.

    The arrival counters are scratch state owned by the scheduler. They
    are empty before a traversal and cleared after it, even when the
    visitor raises, so one scheduler serves any number of passes.
    """

    def __init__(self, start_node: FAO, end_node: FAO, edges: EdgeTable):
        self.start_node = start_node
        self.end_node = end_node
        self.edges = edges
        self._ready_queue: Deque[FAO] = deque()
        self._arrivals: Dict[FAO, int] = {}

    def traverse(self, node_fn: NodeFn, forward: bool = True) -> int:
        """
        Traverse the graph and apply ``node_fn`` at each node.

        Args:
            node_fn: Function to evaluate on each node
            forward: Walk from the start node along output edges if True,
                from the end node along input edges otherwise

        Returns:
            Number of nodes visited
        """
        visited = 0
        self._ready_queue.append(self.start_node if forward else self.end_node)
        try:
            while self._ready_queue:
                curr = self._ready_queue.popleft()
                node_fn(curr)
                visited += 1

                child_edges = curr.output_edges if forward else curr.input_edges
                for edge_idx in child_edges:
                    src, dst = self.edges[edge_idx]
                    node = dst if forward else src
                    arrivals = self._arrivals.get(node, 0) + 1
                    self._arrivals[node] = arrivals
                    # Ready once every edge from this direction has arrived.
                    expected = len(node.input_edges) if forward else len(node.output_edges)
                    if arrivals == expected:
                        self._ready_queue.append(node)
        finally:
            self._ready_queue.clear()
            self._arrivals.clear()
        return visited

    @property
    def pending_arrivals(self) -> Dict[FAO, int]:
        """Snapshot of the arrival counters (empty outside a traversal)."""
        return dict(self._arrivals)
