"""
Runtime package: the traversal scheduler and the evaluation engine.
"""

from .scheduler import ReadyScheduler, NodeFn
from .dag import FaoDAG

__all__ = [
    "ReadyScheduler",
    "NodeFn",
    "FaoDAG",
]
