"""
Utils package for faodag.

Logging, configuration, exceptions and evaluation instrumentation shared
by the graph and runtime packages.
"""

from .exceptions import (
    FaoDagError,
    BufferSizeError,
    BufferStateError,
    GraphValidationError,
    KernelError,
)

from .config import (
    FaoDagConfig,
    EngineConfig,
    ProfilingConfig,
    LoggingConfig,
    get_config,
    set_config,
    load_config,
)

from .logging import setup_logging, get_logger, FaoDagLogger
from .profiler import EvalProfiler, EvalMetrics

__all__ = [
    "FaoDagError",
    "BufferSizeError",
    "BufferStateError",
    "GraphValidationError",
    "KernelError",
    "FaoDagConfig",
    "EngineConfig",
    "ProfilingConfig",
    "LoggingConfig",
    "get_config",
    "set_config",
    "load_config",
    "setup_logging",
    "get_logger",
    "FaoDagLogger",
    "EvalProfiler",
    "EvalMetrics",
]
