"""
Custom exception definitions.

This module defines the exception hierarchy for errors raised by the
FAO DAG engine.
"""

from typing import Optional, Sequence


class FaoDagError(Exception):
    """
    Base exception for all faodag errors.

    Carries a human-readable message plus an optional dictionary of
    context that is appended to the string form.
    """

    def __init__(self, message: str, details: Optional[dict] = None):
        """
        Initialize faodag error.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional error context
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return formatted error message."""
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({detail_str})"
        return self.message


class BufferSizeError(FaoDagError):
    """
    Raised when a flat array handed across the boundary does not match
    the length of the boundary buffer it targets.
    """

    def __init__(self, message: str, expected: int, actual: int, buffer: str = ""):
        """
        Initialize buffer size error.

        Args:
            message: Error description
            expected: Length of the boundary buffer
            actual: Length of the external array
            buffer: Name of the boundary buffer involved
        """
        details = {"expected": expected, "actual": actual}
        if buffer:
            details["buffer"] = buffer

        super().__init__(message, details)
        self.expected = expected
        self.actual = actual
        self.buffer = buffer


class BufferStateError(FaoDagError):
    """Raised when buffers are used after the engine released them."""


class GraphValidationError(FaoDagError):
    """
    Raised when the well-formedness check finds problems in the graph.

    The individual findings are kept in ``problems``.
    """

    def __init__(self, problems: Sequence[str]):
        """
        Initialize graph validation error.

        Args:
            problems: Descriptions of every malformation found
        """
        self.problems = list(problems)
        message = f"Malformed FAO graph: {len(self.problems)} problem(s)"
        super().__init__(message, {"first": self.problems[0]} if self.problems else None)

    def __str__(self) -> str:
        lines = [self.message] + [f"  - {p}" for p in self.problems]
        return "\n".join(lines)


class KernelError(FaoDagError):
    """
    Raised when a node kernel fails during evaluation.

    The underlying exception is chained as ``__cause__``.
    """

    def __init__(self, message: str, node: Optional[str] = None, direction: Optional[str] = None):
        """
        Initialize kernel error.

        Args:
            message: Error description
            node: Name of the failing node
            direction: 'forward' or 'adjoint'
        """
        details = {}
        if node is not None:
            details["node"] = node
        if direction is not None:
            details["direction"] = direction

        super().__init__(message, details)
        self.node = node
        self.direction = direction
