#!/usr/bin/env python3
"""
Basic usage example for faodag.

Builds the operator A x = 2 M x + x as an FAO DAG, evaluates it and its
adjoint, and compares against the explicit matrix.
"""

import torch

from faodag import FaoDAG, EdgeTable, NoOp, Copy, ScalarMul, DenseMatMul, Sum


def main():
    """Demonstrate forward and adjoint evaluation."""
    print("faodag - Basic Usage Example")
    print("=" * 60)

    M = torch.tensor([[1.0, 2.0, 0.0],
                      [0.0, 1.0, -1.0],
                      [3.0, 0.0, 1.0]], dtype=torch.float64)

    start = NoOp((3,), name="x")
    fan = Copy((3,), n_outputs=2, name="fan")
    mat = DenseMatMul(M, name="M")
    double = ScalarMul(2.0, (3,), name="double")
    total = Sum((3,), n_inputs=2, name="sum")
    end = NoOp((3,), name="y")

    edges = EdgeTable()
    edges.connect(start, fan)
    edges.connect(fan, mat)
    edges.connect(fan, total)
    edges.connect(mat, double)
    edges.connect(double, total)
    edges.connect(total, end)

    explicit = 2.0 * M + torch.eye(3, dtype=torch.float64)

    with FaoDAG(start, end, edges) as dag:
        print(f"Operator: {dag}")

        x = torch.tensor([1.0, -1.0, 0.5], dtype=torch.float64)
        y = dag.apply(x)
        print(f"\n1. A x       = {y.tolist()}")
        print(f"   explicit  = {(explicit @ x).tolist()}")

        z = dag.apply_adjoint(y)
        print(f"\n2. A^T (A x) = {z.tolist()}")
        print(f"   explicit  = {(explicit.t() @ y).tolist()}")

        print("\n3. Solver-style loop with preallocated output")
        out = torch.empty(3, dtype=torch.float64)
        for _ in range(10):
            dag.copy_input(x, forward=True)
            dag.forward_eval()
            dag.copy_output(out, forward=True)
        print(f"   forward_evals={dag.forward_evals}, adjoint_evals={dag.adjoint_evals}")

    print("\nBuffers released; timing summary logged above.")


if __name__ == "__main__":
    main()
