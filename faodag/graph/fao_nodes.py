"""
Reference FAO node library.

Concrete linear operators covering the structural patterns an operator
DAG needs: pass-through, scaling, dense products, fan-in, fan-out,
concatenation and splitting. Every kernel writes into the node's
preallocated slot views.
"""

from __future__ import annotations

from typing import Optional, Sequence

import torch

from .fao import FAO, Shape


def _check_same_length(in_shape: Sequence[int], out_shape: Sequence[int], op: str) -> None:
    if FAO.get_elem_length(in_shape) != FAO.get_elem_length(out_shape):
        raise ValueError(
            f"{op}: input shape {tuple(in_shape)} and output shape {tuple(out_shape)} "
            f"hold a different number of elements"
        )


class NoOp(FAO):
    """Identity operator. Also serves as the start/end node of a graph."""

    def __init__(self, shape: Sequence[int], name: Optional[str] = None, **kwargs):
        super().__init__([shape], [shape], name=name, **kwargs)

    def forward_eval(self) -> None:
        self.output_data.copy_(self.input_data)

    def adjoint_eval(self) -> None:
        self.input_data.copy_(self.output_data)


class Reshape(NoOp):
    """Reinterpret a flat vector under a different shape."""

    def __init__(self, in_shape: Sequence[int], out_shape: Sequence[int],
                 name: Optional[str] = None, **kwargs):
        _check_same_length(in_shape, out_shape, "Reshape")
        FAO.__init__(self, [in_shape], [out_shape], name=name, **kwargs)


class ScalarMul(FAO):
    """Multiply by a constant scalar. Self-adjoint."""

    def __init__(self, alpha: float, shape: Sequence[int], name: Optional[str] = None, **kwargs):
        super().__init__([shape], [shape], name=name, **kwargs)
        self.alpha = float(alpha)

    def forward_eval(self) -> None:
        torch.mul(self.input_data, self.alpha, out=self.output_data)

    def adjoint_eval(self) -> None:
        torch.mul(self.output_data, self.alpha, out=self.input_data)


class Neg(ScalarMul):
    """Negation."""

    def __init__(self, shape: Sequence[int], name: Optional[str] = None, **kwargs):
        super().__init__(-1.0, shape, name=name, **kwargs)


class DenseMatMul(FAO):
    """
    Left multiplication by a dense matrix ``M`` of shape ``(m, n)``.

    Forward maps ``x`` (n,) to ``M @ x`` (m,); the adjoint maps ``y`` (m,)
    to ``M.T @ y`` (n,).
    """

    def __init__(self, matrix, name: Optional[str] = None, **kwargs):
        matrix = torch.as_tensor(matrix)
        if matrix.dim() != 2:
            raise ValueError(f"DenseMatMul expects a 2-D matrix, got {matrix.dim()}-D")
        rows, cols = matrix.shape
        super().__init__([(cols,)], [(rows,)], name=name, **kwargs)
        self.matrix = matrix

    def on_alloc(self) -> None:
        self.matrix = self.matrix.to(dtype=self.dtype, device=self.device)

    def forward_eval(self) -> None:
        torch.mv(self.matrix, self.input_data, out=self.output_data)

    def adjoint_eval(self) -> None:
        torch.mv(self.matrix.t(), self.output_data, out=self.input_data)


class Sum(FAO):
    """
    Fan-in: add ``n_inputs`` operands of the same shape.

    The adjoint copies the output back into every input slot.
    """

    def __init__(self, shape: Sequence[int], n_inputs: int = 2, name: Optional[str] = None, **kwargs):
        if n_inputs < 1:
            raise ValueError("Sum needs at least one input")
        super().__init__([shape] * n_inputs, [shape], name=name, **kwargs)

    def forward_eval(self) -> None:
        out = self.output_slots[0]
        out.copy_(self.input_slots[0])
        for slot in self.input_slots[1:]:
            out.add_(slot)

    def adjoint_eval(self) -> None:
        for slot in self.input_slots:
            slot.copy_(self.output_slots[0])


class Copy(FAO):
    """
    Fan-out: duplicate one operand into ``n_outputs`` slots.

    The adjoint sums every output slot back into the input.
    """

    def __init__(self, shape: Sequence[int], n_outputs: int = 2, name: Optional[str] = None, **kwargs):
        if n_outputs < 1:
            raise ValueError("Copy needs at least one output")
        super().__init__([shape], [shape] * n_outputs, name=name, **kwargs)

    def forward_eval(self) -> None:
        for slot in self.output_slots:
            slot.copy_(self.input_slots[0])

    def adjoint_eval(self) -> None:
        acc = self.input_slots[0]
        acc.copy_(self.output_slots[0])
        for slot in self.output_slots[1:]:
            acc.add_(slot)


def _flat_total(shapes: Sequence[Shape]) -> int:
    return sum(FAO.get_elem_length(s) for s in shapes)


class Vstack(FAO):
    """Concatenate the input slots, in order, into a single output."""

    def __init__(self, input_shapes: Sequence[Sequence[int]], name: Optional[str] = None, **kwargs):
        super().__init__(input_shapes, [], name=name, **kwargs)
        self.output_sizes = [(_flat_total(self.input_sizes),)]

    def forward_eval(self) -> None:
        # Input slots are laid out back to back, so the buffer is already stacked.
        self.output_data.copy_(self.input_data)

    def adjoint_eval(self) -> None:
        self.input_data.copy_(self.output_data)


class Split(FAO):
    """Cut a single input into consecutive output slots."""

    def __init__(self, output_shapes: Sequence[Sequence[int]], name: Optional[str] = None, **kwargs):
        super().__init__([], output_shapes, name=name, **kwargs)
        self.input_sizes = [(_flat_total(self.output_sizes),)]

    def forward_eval(self) -> None:
        self.output_data.copy_(self.input_data)

    def adjoint_eval(self) -> None:
        self.input_data.copy_(self.output_data)
