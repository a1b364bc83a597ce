"""
FAO node capability interface.

An FAO (atomic affine operator) is one node of the operator DAG. It owns
a flat input buffer and a flat output buffer, each split into slots that
hold one declared shape apiece. Edge ``i`` of ``input_edges`` occupies
input slot ``i``; the same holds for outputs. Boundary nodes may declare
more slots than they have edges: the start node's global input slot and
the end node's global output slot have no edge attached.

Subclasses implement ``forward_eval`` (reads ``input_data``, writes
``output_data``) and ``adjoint_eval`` (reads ``output_data``, writes
``input_data``). Both must work in place on the preallocated buffers.
"""

from __future__ import annotations

import math
from typing import Dict, List, Optional, Sequence, Tuple

import torch

Shape = Tuple[int, ...]


class FAO:
    """
    Base class for operator nodes evaluated by ``FaoDAG``.

    The engine calls ``alloc_data``/``init_offset_maps`` once at
    construction and ``free_data`` once at teardown. In between the
    buffers, slot views and offset maps never change.
    """

    def __init__(self,
                 input_sizes: Sequence[Sequence[int]] = (),
                 output_sizes: Sequence[Sequence[int]] = (),
                 name: Optional[str] = None,
                 dtype: torch.dtype = torch.float64,
                 device: str = "cpu"):
        self.name = name or type(self).__name__
        self.input_sizes: List[Shape] = [tuple(int(d) for d in s) for s in input_sizes]
        self.output_sizes: List[Shape] = [tuple(int(d) for d in s) for s in output_sizes]
        self.input_edges: List[int] = []
        self.output_edges: List[int] = []
        self.input_offsets: Dict[int, int] = {}
        self.output_offsets: Dict[int, int] = {}
        self.input_data: Optional[torch.Tensor] = None
        self.output_data: Optional[torch.Tensor] = None
        self.input_slots: List[torch.Tensor] = []
        self.output_slots: List[torch.Tensor] = []
        self.dtype = dtype
        self.device = device

    @staticmethod
    def get_elem_length(shape: Sequence[int]) -> int:
        """Number of scalars held by a slot of the given shape."""
        return math.prod(shape)

    @property
    def input_len(self) -> int:
        return sum(self.get_elem_length(s) for s in self.input_sizes)

    @property
    def output_len(self) -> int:
        return sum(self.get_elem_length(s) for s in self.output_sizes)

    @property
    def is_allocated(self) -> bool:
        return self.input_data is not None and self.output_data is not None

    def alloc_data(self, dtype: Optional[torch.dtype] = None, device: Optional[str] = None) -> None:
        """Allocate zeroed input and output buffers and their slot views."""
        if dtype is not None:
            self.dtype = dtype
        if device is not None:
            self.device = device
        self.input_data = torch.zeros(self.input_len, dtype=self.dtype, device=self.device)
        self.output_data = torch.zeros(self.output_len, dtype=self.dtype, device=self.device)
        self.input_slots = self._slot_views(self.input_data, self.input_sizes)
        self.output_slots = self._slot_views(self.output_data, self.output_sizes)
        self.on_alloc()

    def free_data(self) -> None:
        """Release buffers and slot views."""
        self.input_slots = []
        self.output_slots = []
        self.input_data = None
        self.output_data = None

    def init_offset_maps(self) -> None:
        """Assign each edge a contiguous range of its buffer, in list order."""
        self.input_offsets = self._offset_map(self.input_edges, self.input_sizes)
        self.output_offsets = self._offset_map(self.output_edges, self.output_sizes)

    def _offset_map(self, edge_ids: Sequence[int], sizes: Sequence[Shape]) -> Dict[int, int]:
        offsets = {}
        offset = 0
        for edge_idx, shape in zip(edge_ids, sizes):
            offsets[edge_idx] = offset
            offset += self.get_elem_length(shape)
        return offsets

    def _slot_views(self, data: torch.Tensor, sizes: Sequence[Shape]) -> List[torch.Tensor]:
        views = []
        offset = 0
        for shape in sizes:
            length = self.get_elem_length(shape)
            views.append(data.narrow(0, offset, length))
            offset += length
        return views

    def on_alloc(self) -> None:
        """Hook for subclasses that need per-device state once buffers exist."""

    def forward_eval(self) -> None:
        raise NotImplementedError(f"{type(self).__name__} does not implement forward_eval")

    def adjoint_eval(self) -> None:
        raise NotImplementedError(f"{type(self).__name__} does not implement adjoint_eval")

    def __str__(self) -> str:
        return (f"{type(self).__name__}(name={self.name}, inputs={self.input_sizes}, "
                f"outputs={self.output_sizes})")

    def __repr__(self) -> str:
        return self.__str__()

    def __hash__(self):
        """Make FAO hashable for use in sets and dictionaries."""
        return hash(id(self))

    def __eq__(self, other):
        """Define equality based on object identity."""
        return self is other
