"""
FAO DAG evaluation engine.

``FaoDAG`` evaluates a linear map ``A`` given as a DAG of FAO nodes, and
its adjoint ``A^T``, without forming ``A``. The caller owns the nodes and
the edge table; the engine owns the nodes' buffers, which it allocates
once at construction and releases once in ``close()``.

Typical use from an iterative solver::

    with FaoDAG(start, end, edges) as dag:
        dag.copy_input(x, forward=True)
        dag.forward_eval()
        dag.copy_output(y, forward=True)
"""

from __future__ import annotations

from typing import Dict, Optional, Tuple, Union

import torch

from ..graph.edges import EdgeTable, EdgePair
from ..graph.fao import FAO
from ..graph.validation import check_graph
from ..utils.config import FaoDagConfig, get_config
from ..utils.exceptions import (
    BufferSizeError,
    BufferStateError,
    FaoDagError,
    KernelError,
)
from ..utils.logging import FaoDagLogger
from ..utils.profiler import EvalProfiler
from .scheduler import NodeFn, ReadyScheduler


class FaoDAG:
    """
    Represents an FAO DAG. Used to evaluate the DAG and its adjoint.

    Forward evaluation reads the start node's input buffer and leaves the
    result in the end node's output buffer. Adjoint evaluation runs the
    other way: it reads the end node's output buffer and leaves the result
    in the start node's input buffer.
    """

    def __init__(self,
                 start_node: FAO,
                 end_node: FAO,
                 edges: Union[EdgeTable, Dict[int, EdgePair]],
                 config: Optional[FaoDagConfig] = None):
        """
        Validate the graph (if enabled) and allocate every node's buffers.

        Args:
            start_node: Node holding the global input
            end_node: Node holding the global output
            edges: Edge id to (source, destination) mapping
            config: Engine configuration; defaults to the global one

        Raises:
            GraphValidationError: If validation is enabled and the graph
                is malformed
        """
        self.config = config or get_config()
        self.start_node = start_node
        self.end_node = end_node
        self.edges = edges if isinstance(edges, EdgeTable) else EdgeTable(edges)
        self._logger = FaoDagLogger(__name__)
        self._node_count = len(self.edges.nodes(start_node, end_node))
        self._scheduler = ReadyScheduler(start_node, end_node, self.edges)
        self._allocated = False

        if self.config.engine.validate_graph:
            check_graph(start_node, end_node, self.edges)

        self.profiler = EvalProfiler(track_memory=self.config.profiling.track_memory)

        # Allocate input and output arrays on each node.
        dtype = self.config.engine.torch_dtype()
        device = self.config.engine.device
        total_elements = 0

        def node_fn(node: FAO) -> None:
            nonlocal total_elements
            node.alloc_data(dtype, device)
            node.init_offset_maps()
            total_elements += node.input_len + node.output_len

        self.traverse_graph(node_fn, True)
        self._allocated = True
        self._logger.log_graph_built(self._node_count, len(self.edges), total_elements)

    def close(self) -> None:
        """Report timing and release every node's buffers. Idempotent."""
        if not self._allocated:
            return
        if self.config.profiling.report_on_close:
            self.profiler.report()
        self.traverse_graph(lambda node: node.free_data(), True)
        self._allocated = False

    def __enter__(self) -> "FaoDAG":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    @property
    def is_allocated(self) -> bool:
        return self._allocated

    @property
    def forward_evals(self) -> int:
        return self.profiler.forward_evals

    @property
    def adjoint_evals(self) -> int:
        return self.profiler.adjoint_evals

    @property
    def total_forward_eval_time(self) -> float:
        return self.profiler.total_forward_eval_time

    @property
    def total_adjoint_eval_time(self) -> float:
        return self.profiler.total_adjoint_eval_time

    @property
    def shape(self) -> Tuple[int, int]:
        """Dimensions (rows, cols) of the represented matrix."""
        return self.end_node.output_len, self.start_node.input_len

    def traverse_graph(self, node_fn: NodeFn, forward: bool) -> int:
        """
        Traverse the graph and apply the given function at each node.

        Args:
            node_fn: Function to evaluate on each node
            forward: Traverse in standard or reverse order

        Returns:
            Number of nodes visited
        """
        visited = self._scheduler.traverse(node_fn, forward)
        if visited != self._node_count:
            self._logger.log_starvation("forward" if forward else "reverse",
                                        visited, self._node_count)
        return visited

    def _check_allocated(self) -> None:
        if not self._allocated:
            raise BufferStateError("FAO DAG buffers have been released")

    # Boundary buffers.

    def get_forward_input(self) -> torch.Tensor:
        """Returns the input vector for forward evaluation."""
        self._check_allocated()
        return self.start_node.input_data

    def get_forward_output(self) -> torch.Tensor:
        """Returns the output vector for forward evaluation."""
        self._check_allocated()
        return self.end_node.output_data

    def get_adjoint_input(self) -> torch.Tensor:
        """Returns the input vector for adjoint evaluation."""
        return self.get_forward_output()

    def get_adjoint_output(self) -> torch.Tensor:
        """Returns the output vector for adjoint evaluation."""
        return self.get_forward_input()

    def copy_input(self, values, forward: bool = True) -> None:
        """
        Copy a flat array into the forward (or adjoint) input buffer.

        Raises:
            BufferSizeError: If the array length differs from the buffer's
        """
        if forward:
            buffer, label = self.get_forward_input(), "forward_input"
        else:
            buffer, label = self.get_adjoint_input(), "adjoint_input"
        source = torch.as_tensor(values, dtype=buffer.dtype, device=buffer.device).reshape(-1)
        if source.numel() != buffer.numel():
            raise BufferSizeError("Input length does not match boundary buffer",
                                  expected=buffer.numel(), actual=source.numel(), buffer=label)
        buffer.copy_(source)

    def copy_output(self, out: torch.Tensor, forward: bool = True) -> None:
        """
        Copy the forward (or adjoint) output buffer into ``out`` in place.

        Raises:
            TypeError: If ``out`` is not a tensor
            BufferSizeError: If ``out`` length differs from the buffer's
        """
        if forward:
            buffer, label = self.get_forward_output(), "forward_output"
        else:
            buffer, label = self.get_adjoint_output(), "adjoint_output"
        if not isinstance(out, torch.Tensor):
            raise TypeError(f"copy_output expects a torch.Tensor, got {type(out).__name__}")
        if out.numel() != buffer.numel():
            raise BufferSizeError("Output length does not match boundary buffer",
                                  expected=buffer.numel(), actual=out.numel(), buffer=label)
        out.copy_(buffer.reshape(out.shape))

    def read_output(self, forward: bool = True) -> torch.Tensor:
        """Return a detached copy of the forward (or adjoint) output buffer."""
        buffer = self.get_forward_output() if forward else self.get_adjoint_output()
        return buffer.detach().clone()

    # Evaluation.

    def _run_kernel(self, node: FAO, forward: bool) -> None:
        try:
            if forward:
                node.forward_eval()
            else:
                node.adjoint_eval()
        except FaoDagError:
            raise
        except Exception as e:
            direction = "forward" if forward else "adjoint"
            raise KernelError(f"Kernel failed: {e}", node=node.name, direction=direction) from e

    def _forward_node_eval(self, node: FAO) -> None:
        self._run_kernel(node, True)
        # Copy data from node to children.
        for i, edge_idx in enumerate(node.output_edges):
            target = self.edges[edge_idx][1]
            length = node.get_elem_length(node.output_sizes[i])
            node_offset = node.output_offsets[edge_idx]
            target_offset = target.input_offsets[edge_idx]
            target.input_data.narrow(0, target_offset, length).copy_(
                node.output_data.narrow(0, node_offset, length))

    def _adjoint_node_eval(self, node: FAO) -> None:
        self._run_kernel(node, False)
        # Copy data from node to parents.
        for i, edge_idx in enumerate(node.input_edges):
            target = self.edges[edge_idx][0]
            length = node.get_elem_length(node.input_sizes[i])
            node_offset = node.input_offsets[edge_idx]
            target_offset = target.output_offsets[edge_idx]
            target.output_data.narrow(0, target_offset, length).copy_(
                node.input_data.narrow(0, node_offset, length))

    def forward_eval(self) -> None:
        """Evaluate the FAO DAG."""
        self._check_allocated()
        with self.profiler.time_forward():
            self.traverse_graph(self._forward_node_eval, True)

    def adjoint_eval(self) -> None:
        """Evaluate the adjoint DAG."""
        self._check_allocated()
        with self.profiler.time_adjoint():
            self.traverse_graph(self._adjoint_node_eval, False)

    def apply(self, x) -> torch.Tensor:
        """Compute ``A x`` and return it as a new tensor."""
        self.copy_input(x, forward=True)
        self.forward_eval()
        return self.read_output(forward=True)

    def apply_adjoint(self, y) -> torch.Tensor:
        """Compute ``A^T y`` and return it as a new tensor."""
        self.copy_input(y, forward=False)
        self.adjoint_eval()
        return self.read_output(forward=False)

    def __repr__(self) -> str:
        rows, cols = self.shape
        return (f"FaoDAG(nodes={self._node_count}, edges={len(self.edges)}, "
                f"shape=({rows}, {cols}), allocated={self._allocated})")
