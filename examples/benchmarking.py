#!/usr/bin/env python3
"""
Benchmarking example for faodag.

Measures per-call forward and adjoint overhead for chains of dense
blocks of increasing depth, using the engine's own counters.
"""

import statistics
import time
from dataclasses import dataclass
from typing import List

import torch

from faodag import FaoDAG, EdgeTable, NoOp, DenseMatMul, FaoDagConfig


@dataclass
class BenchmarkResult:
    """Container for benchmark results."""
    depth: int
    size: int
    avg_forward_time: float
    avg_adjoint_time: float
    std_forward_time: float


def build_chain(depth: int, size: int):
    """x -> M_1 -> ... -> M_depth -> y with random square blocks."""
    start = NoOp((size,), name="x")
    edges = EdgeTable()
    prev = start
    for i in range(depth):
        block = DenseMatMul(torch.randn(size, size, dtype=torch.float64) / size ** 0.5, name=f"M{i}")
        edges.connect(prev, block)
        prev = block
    end = NoOp((size,), name="y")
    edges.connect(prev, end)
    return start, end, edges


def run_benchmark(depth: int, size: int, runs: int = 200) -> BenchmarkResult:
    config = FaoDagConfig()
    config.profiling.report_on_close = False

    start, end, edges = build_chain(depth, size)
    with FaoDAG(start, end, edges, config=config) as dag:
        dag.copy_input(torch.randn(size, dtype=torch.float64))
        samples: List[float] = []
        for _ in range(runs):
            t = time.perf_counter()
            dag.forward_eval()
            samples.append(time.perf_counter() - t)
            dag.adjoint_eval()

        stats = dag.profiler.get_stats()
        return BenchmarkResult(
            depth=depth,
            size=size,
            avg_forward_time=stats['avg_forward_eval_time'],
            avg_adjoint_time=stats['avg_adjoint_eval_time'],
            std_forward_time=statistics.stdev(samples),
        )


def main():
    print("faodag - Evaluation Overhead Benchmark")
    print("=" * 60)
    print(f"{'depth':>6} {'size':>6} {'fwd (s)':>12} {'adj (s)':>12} {'fwd std':>12}")
    for depth in (1, 4, 16, 64):
        for size in (16, 256):
            r = run_benchmark(depth, size)
            print(f"{r.depth:>6} {r.size:>6} {r.avg_forward_time:>12.3e} "
                  f"{r.avg_adjoint_time:>12.3e} {r.std_forward_time:>12.3e}")


if __name__ == "__main__":
    main()
