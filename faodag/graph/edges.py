"""
Edge table for the FAO DAG.

Maps integer edge ids to ordered ``(source, destination)`` pairs. The
nodes themselves keep the ordered id lists; the table is the single
place the engine looks up who sits at the other end of an edge.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Dict, Iterator, List, Optional, Tuple

from .fao import FAO

EdgePair = Tuple[FAO, FAO]


class EdgeTable(Mapping):
    """
    Read-mostly mapping ``edge id -> (source, destination)``.

    ``connect`` is a construction helper; once an engine holds the table
    it must not change.
    """

    def __init__(self, edges: Optional[Dict[int, EdgePair]] = None):
        self._edges: Dict[int, EdgePair] = {}
        self._next_id = 0
        for edge_idx, (src, dst) in (edges or {}).items():
            self._edges[int(edge_idx)] = (src, dst)
            self._next_id = max(self._next_id, int(edge_idx) + 1)

    def connect(self, src: FAO, dst: FAO, edge_idx: Optional[int] = None) -> int:
        """
        Add an edge and append its id to both endpoints' edge lists.

        The new edge takes the next free output slot of ``src`` and the
        next free input slot of ``dst``.

        Returns:
            The id of the new edge
        """
        if edge_idx is None:
            edge_idx = self._next_id
        if edge_idx in self._edges:
            raise ValueError(f"Edge id {edge_idx} already in use")
        self._edges[edge_idx] = (src, dst)
        self._next_id = max(self._next_id, edge_idx + 1)
        src.output_edges.append(edge_idx)
        dst.input_edges.append(edge_idx)
        return edge_idx

    def source(self, edge_idx: int) -> FAO:
        return self._edges[edge_idx][0]

    def destination(self, edge_idx: int) -> FAO:
        return self._edges[edge_idx][1]

    def nodes(self, *extra: FAO) -> List[FAO]:
        """Every node touched by an edge, plus ``extra``, in first-seen order."""
        seen: Dict[FAO, None] = dict.fromkeys(extra)
        for src, dst in self._edges.values():
            seen.setdefault(src)
            seen.setdefault(dst)
        return list(seen)

    def __getitem__(self, edge_idx: int) -> EdgePair:
        return self._edges[edge_idx]

    def __iter__(self) -> Iterator[int]:
        return iter(self._edges)

    def __len__(self) -> int:
        return len(self._edges)

    def __repr__(self) -> str:
        pairs = ", ".join(f"{k}: {s.name}->{d.name}" for k, (s, d) in self._edges.items())
        return f"EdgeTable({{{pairs}}})"
