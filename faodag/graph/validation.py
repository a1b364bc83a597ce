"""
Well-formedness checks for FAO graphs.

The traversal scheduler trusts its input: a node whose edge lists
disagree with the edge table is either never scheduled or scheduled
twice, silently. ``GraphValidator`` finds those problems up front so the
engine can refuse such a graph at construction time.
"""

from __future__ import annotations

from collections import Counter, deque
from typing import Dict, List

from .edges import EdgeTable
from .fao import FAO
from ..utils.exceptions import GraphValidationError
from ..utils.logging import FaoDagLogger


class GraphValidator:
    """
    Collects every malformation of a ``(start, end, edges)`` graph.

    Checks:
      - each node's edge lists reference known edges that point back at it
      - no edge id appears twice in one list
      - each node has exactly one edge per slot, except the global
        input slots of the start node and output slots of the end node
      - sender and receiver slots of an edge hold the same element count
      - the graph is acyclic
      - every node becomes ready in both the forward and reverse pass
    """

    def __init__(self, start_node: FAO, end_node: FAO, edges: EdgeTable):
        self.start_node = start_node
        self.end_node = end_node
        self.edges = edges
        self.nodes = edges.nodes(start_node, end_node)
        self._logger = FaoDagLogger(__name__)

    def validate(self) -> List[str]:
        """
        Run all checks.

        Returns:
            Problem descriptions; empty when the graph is well formed
        """
        problems: List[str] = []
        problems.extend(self._check_table_against_lists())
        problems.extend(self._check_lists_against_table())
        problems.extend(self._check_slots())
        problems.extend(self._check_boundary_nodes())
        if self._has_cycles():
            problems.append("graph contains a cycle")
        else:
            problems.extend(self._check_readiness(forward=True))
            problems.extend(self._check_readiness(forward=False))

        self._logger.log_validation_result(problems)
        return problems

    def _check_table_against_lists(self) -> List[str]:
        problems = []
        for edge_idx, (src, dst) in self.edges.items():
            if edge_idx not in src.output_edges:
                problems.append(f"edge {edge_idx} missing from output_edges of {src.name}")
            if edge_idx not in dst.input_edges:
                problems.append(f"edge {edge_idx} missing from input_edges of {dst.name}")
        return problems

    def _check_lists_against_table(self) -> List[str]:
        problems = []
        for node in self.nodes:
            for label, edge_list, end in (("input_edges", node.input_edges, 1),
                                          ("output_edges", node.output_edges, 0)):
                for edge_idx, count in Counter(edge_list).items():
                    if count > 1:
                        problems.append(f"edge {edge_idx} listed {count} times in {label} of {node.name}")
                    if edge_idx not in self.edges:
                        problems.append(f"{label} of {node.name} references unknown edge {edge_idx}")
                    elif self.edges[edge_idx][end] is not node:
                        problems.append(f"edge {edge_idx} in {label} of {node.name} belongs to another node")
        return problems

    def _check_slots(self) -> List[str]:
        # Only the start node's inputs and the end node's outputs may
        # leave slots unconnected; they hold the global input and output.
        problems = []
        for node in self.nodes:
            for direction, edge_list, sizes, open_ok in (
                    ("input", node.input_edges, node.input_sizes, node is self.start_node),
                    ("output", node.output_edges, node.output_sizes, node is self.end_node)):
                if len(edge_list) > len(sizes) or (len(edge_list) < len(sizes) and not open_ok):
                    problems.append(
                        f"{node.name} has {len(edge_list)} {direction} edges but "
                        f"{len(sizes)} {direction} slots"
                    )
        if problems:
            return problems

        for edge_idx, (src, dst) in self.edges.items():
            if edge_idx not in src.output_edges or edge_idx not in dst.input_edges:
                continue
            sent = FAO.get_elem_length(src.output_sizes[src.output_edges.index(edge_idx)])
            received = FAO.get_elem_length(dst.input_sizes[dst.input_edges.index(edge_idx)])
            if sent != received:
                problems.append(
                    f"edge {edge_idx} carries {sent} elements from {src.name} "
                    f"but {dst.name} reserves {received}"
                )
        return problems

    def _check_boundary_nodes(self) -> List[str]:
        problems = []
        if self.start_node.input_edges:
            problems.append(f"start node {self.start_node.name} has input edges")
        if self.end_node.output_edges:
            problems.append(f"end node {self.end_node.name} has output edges")
        return problems

    def _has_cycles(self) -> bool:
        """
        Check if the edge table has cycles using DFS.

        Returns:
            True if cycles exist, False otherwise
        """
        successors: Dict[FAO, List[FAO]] = {node: [] for node in self.nodes}
        for src, dst in self.edges.values():
            successors[src].append(dst)

        # Coloring: white (0), gray (1), black (2)
        color = {node: 0 for node in self.nodes}
        for root in self.nodes:
            if color[root] != 0:
                continue
            color[root] = 1
            stack = [(root, iter(successors[root]))]
            while stack:
                node, children = stack[-1]
                child = next(children, None)
                if child is None:
                    color[node] = 2
                    stack.pop()
                elif color[child] == 1:
                    return True
                elif color[child] == 0:
                    color[child] = 1
                    stack.append((child, iter(successors[child])))
        return False

    def _check_readiness(self, forward: bool) -> List[str]:
        """Replay the scheduler's counting rule and report nodes it would skip."""
        start = self.start_node if forward else self.end_node
        direction = "forward" if forward else "reverse"
        counts: Dict[FAO, int] = {}
        visited = {start}
        queue = deque([start])
        while queue:
            node = queue.popleft()
            for edge_idx in (node.output_edges if forward else node.input_edges):
                if edge_idx not in self.edges:
                    continue
                src, dst = self.edges[edge_idx]
                far = dst if forward else src
                counts[far] = counts.get(far, 0) + 1
                expected = len(far.input_edges if forward else far.output_edges)
                if counts[far] == expected:
                    visited.add(far)
                    queue.append(far)

        return [f"{node.name} is never ready in the {direction} pass"
                for node in self.nodes if node not in visited]


def validate_graph(start_node: FAO, end_node: FAO, edges: EdgeTable) -> List[str]:
    """Return the list of problems found in the graph (empty if none)."""
    return GraphValidator(start_node, end_node, edges).validate()


def check_graph(start_node: FAO, end_node: FAO, edges: EdgeTable) -> None:
    """
    Validate the graph and raise if it is malformed.

    Raises:
        GraphValidationError: If any problem is found
    """
    problems = validate_graph(start_node, end_node, edges)
    if problems:
        raise GraphValidationError(problems)
