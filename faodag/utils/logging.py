"""
Logging configuration and utilities.

This module provides centralized logging configuration for the
faodag package with appropriate formatting and levels.
"""

import logging
import os
from typing import Optional


def setup_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """
    Configure logging for the faodag package.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for log output
    """
    if level is None:
        level = os.environ.get("FAODAG_LOG_LEVEL", "INFO")

    log_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger("faodag")
    logger.setLevel(log_level)

    # Remove existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for the given module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    if name == "faodag" or name.startswith("faodag."):
        return logging.getLogger(name)
    return logging.getLogger(f"faodag.{name}")


class FaoDagLogger:
    """
    Domain-level logging for graph construction and evaluation.

    Evaluation happens on a solver's hot path, so anything emitted per
    call goes out at DEBUG.
    """

    def __init__(self, name: str):
        """
        Initialize logger for specific component.

        Args:
            name: Component name for logging context
        """
        self.logger = get_logger(name)

    def log_graph_built(self, node_count: int, edge_count: int, total_elements: int) -> None:
        """
        Log completion of the allocation pass.

        Args:
            node_count: Number of nodes that received buffers
            edge_count: Number of edges in the edge table
            total_elements: Total scalars allocated across all buffers
        """
        self.logger.info(
            f"Allocated FAO DAG: {node_count} nodes, {edge_count} edges, "
            f"{total_elements} buffer elements"
        )

    def log_validation_result(self, problems: list) -> None:
        """
        Log the outcome of a graph well-formedness check.

        Args:
            problems: Problems found (empty when the graph is well formed)
        """
        if not problems:
            self.logger.debug("Graph well-formedness check passed")
            return
        for problem in problems:
            self.logger.error(f"Malformed graph: {problem}")

    def log_starvation(self, direction: str, visited: int, expected: int) -> None:
        """
        Log a traversal that left nodes unvisited.

        Args:
            direction: 'forward' or 'reverse'
            visited: Nodes actually visited
            expected: Nodes known to the edge table
        """
        self.logger.warning(
            f"{direction} traversal visited {visited} of {expected} nodes; "
            f"edge lists do not match the edge table"
        )

    def log_eval_stats(self, summary: str) -> None:
        """
        Log evaluation statistics at teardown.

        Args:
            summary: Pre-formatted statistics summary
        """
        self.logger.info(summary)


# Initialize logging on module import
setup_logging()
