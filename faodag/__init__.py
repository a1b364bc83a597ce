"""
faodag: matrix-free evaluation of linear operators given as FAO DAGs

A linear map A is decomposed into a directed acyclic graph of atomic
affine operators (FAOs). The engine evaluates A x and A^T y over that
graph using preallocated per-node buffers, so an iterative solver can
call it many times without ever forming A.

Usage:
    from faodag import FaoDAG, EdgeTable, NoOp, DenseMatMul

    start, mat, end = NoOp((3,)), DenseMatMul(M), NoOp((2,))
    edges = EdgeTable()
    edges.connect(start, mat)
    edges.connect(mat, end)

    with FaoDAG(start, end, edges) as dag:
        y = dag.apply(x)
        z = dag.apply_adjoint(y)
"""

__version__ = "0.1.0"
__author__ = "faodag developers"

from .graph import (
    FAO,
    NoOp,
    Reshape,
    ScalarMul,
    Neg,
    DenseMatMul,
    Sum,
    Copy,
    Vstack,
    Split,
    EdgeTable,
    validate_graph,
    check_graph,
)

from .runtime import FaoDAG, ReadyScheduler

from .utils import (
    FaoDagConfig,
    get_config,
    set_config,
    load_config,
    FaoDagError,
    BufferSizeError,
    BufferStateError,
    GraphValidationError,
    KernelError,
)

__all__ = [
    "FAO",
    "NoOp",
    "Reshape",
    "ScalarMul",
    "Neg",
    "DenseMatMul",
    "Sum",
    "Copy",
    "Vstack",
    "Split",
    "EdgeTable",
    "validate_graph",
    "check_graph",
    "FaoDAG",
    "ReadyScheduler",
    "FaoDagConfig",
    "get_config",
    "set_config",
    "load_config",
    "FaoDagError",
    "BufferSizeError",
    "BufferStateError",
    "GraphValidationError",
    "KernelError",
]
