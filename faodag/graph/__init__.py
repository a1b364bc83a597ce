"""
Graph package: FAO nodes, the edge table and well-formedness checks.
"""

from .fao import FAO, Shape
from .fao_nodes import (
    NoOp,
    Reshape,
    ScalarMul,
    Neg,
    DenseMatMul,
    Sum,
    Copy,
    Vstack,
    Split,
)
from .edges import EdgeTable
from .validation import GraphValidator, validate_graph, check_graph

__all__ = [
    "FAO",
    "Shape",
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
    "GraphValidator",
    "validate_graph",
    "check_graph",
]
