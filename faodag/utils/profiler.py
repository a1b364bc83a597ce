"""
Evaluation counters and timing.

The engine sits on an iterative solver's hot path, so every forward and
adjoint evaluation is counted and timed to keep its overhead auditable.
"""

import math
import os
from time import perf_counter
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Any, Optional

import psutil

from .logging import FaoDagLogger

_MB = 1024 * 1024


@dataclass
class EvalMetrics:
    """Container for evaluation metrics."""
    forward_evals: int = 0
    adjoint_evals: int = 0
    total_forward_eval_time: float = 0.0
    total_adjoint_eval_time: float = 0.0
    memory_initial_mb: float = 0.0
    memory_current_mb: float = 0.0

    @property
    def avg_forward_eval_time(self) -> float:
        # NaN when nothing ran; only ever reported, never used in arithmetic.
        if self.forward_evals == 0:
            return math.nan
        return self.total_forward_eval_time / self.forward_evals

    @property
    def avg_adjoint_eval_time(self) -> float:
        if self.adjoint_evals == 0:
            return math.nan
        return self.total_adjoint_eval_time / self.adjoint_evals

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to dictionary."""
        return {
            'forward_evals': self.forward_evals,
            'adjoint_evals': self.adjoint_evals,
            'total_forward_eval_time': self.total_forward_eval_time,
            'total_adjoint_eval_time': self.total_adjoint_eval_time,
            'avg_forward_eval_time': self.avg_forward_eval_time,
            'avg_adjoint_eval_time': self.avg_adjoint_eval_time,
            'memory_initial_mb': self.memory_initial_mb,
            'memory_current_mb': self.memory_current_mb,
        }


class EvalProfiler:
    """
    Per-engine call counters and cumulative evaluation time.

    Counters are always maintained. Resident memory is sampled with
    psutil at creation and at report time when ``track_memory`` is set.
    """

    def __init__(self, track_memory: bool = False):
        """
        Initialize profiler.

        Args:
            track_memory: Whether to sample process RSS for the report
        """
        self.track_memory = track_memory
        self.metrics = EvalMetrics()
        self._logger = FaoDagLogger(__name__)
        self._process: Optional[psutil.Process] = None

        if track_memory:
            self._process = psutil.Process(os.getpid())
            self.metrics.memory_initial_mb = self._rss_mb()
            self.metrics.memory_current_mb = self.metrics.memory_initial_mb

    def _rss_mb(self) -> float:
        return self._process.memory_info().rss / _MB

    @property
    def forward_evals(self) -> int:
        return self.metrics.forward_evals

    @property
    def adjoint_evals(self) -> int:
        return self.metrics.adjoint_evals

    @property
    def total_forward_eval_time(self) -> float:
        return self.metrics.total_forward_eval_time

    @property
    def total_adjoint_eval_time(self) -> float:
        return self.metrics.total_adjoint_eval_time

    def record_forward(self, duration: float) -> None:
        """Record one forward evaluation."""
        self.metrics.forward_evals += 1
        self.metrics.total_forward_eval_time += duration
        self._logger.logger.debug("T_forward_eval = %e", duration)

    def record_adjoint(self, duration: float) -> None:
        """Record one adjoint evaluation."""
        self.metrics.adjoint_evals += 1
        self.metrics.total_adjoint_eval_time += duration
        self._logger.logger.debug("T_adjoint_eval = %e", duration)

    @contextmanager
    def time_forward(self):
        """Time the enclosed block as one forward evaluation."""
        start = perf_counter()
        yield
        self.record_forward(perf_counter() - start)

    @contextmanager
    def time_adjoint(self):
        """Time the enclosed block as one adjoint evaluation."""
        start = perf_counter()
        yield
        self.record_adjoint(perf_counter() - start)

    def get_stats(self) -> Dict[str, Any]:
        """Get current evaluation statistics."""
        if self.track_memory:
            self.metrics.memory_current_mb = self._rss_mb()
        return self.metrics.to_dict()

    def get_summary(self) -> str:
        """Get human-readable evaluation summary."""
        stats = self.get_stats()

        summary_lines = [
            f"forward_evals={stats['forward_evals']}, "
            f"avg_forward_eval_time={stats['avg_forward_eval_time']:e}",
            f"adjoint_evals={stats['adjoint_evals']}, "
            f"avg_adjoint_eval_time={stats['avg_adjoint_eval_time']:e}",
        ]
        if self.track_memory:
            summary_lines.append(
                f"rss_initial={stats['memory_initial_mb']:.1f}MB, "
                f"rss_current={stats['memory_current_mb']:.1f}MB"
            )

        return "\n".join(summary_lines)

    def report(self) -> None:
        """Log the evaluation summary."""
        self._logger.log_eval_stats(self.get_summary())

    def reset(self) -> None:
        """Reset counters and timings."""
        self.metrics = EvalMetrics()
        if self.track_memory:
            self.metrics.memory_initial_mb = self._rss_mb()
            self.metrics.memory_current_mb = self.metrics.memory_initial_mb
