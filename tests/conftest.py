"""
Pytest configuration and shared fixtures for faodag tests.

Provides small reference graphs (identity, chain, diamond, fan-out),
an isolated engine configuration and a recording node helper.
"""

import logging

import pytest
import torch

from faodag.graph import EdgeTable, NoOp, ScalarMul, DenseMatMul, Sum, Copy
from faodag.utils.config import FaoDagConfig, set_config
from faodag.utils.logging import setup_logging


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: end-to-end engine tests")


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep FAODAG_* variables and the global config out of every test."""
    for name in ("FAODAG_CONFIG", "FAODAG_LOG_LEVEL", "FAODAG_VALIDATE_GRAPH", "FAODAG_TRACK_MEMORY"):
        monkeypatch.delenv(name, raising=False)
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def restore_logging():
    """Put the faodag logger back to its import-time setup afterwards."""
    yield logging.getLogger("faodag")
    setup_logging()


@pytest.fixture
def engine_config(tmp_path):
    """Default configuration that never reads a file from the package."""
    config = FaoDagConfig(config_file=str(tmp_path / "faodag_config.json"))
    config.profiling.report_on_close = False
    return config


@pytest.fixture
def unchecked_config(engine_config):
    """Configuration with graph validation disabled."""
    engine_config.engine.validate_graph = False
    return engine_config


class RecordingNoOp(NoOp):
    """Identity node that records every kernel call in a shared log."""

    def __init__(self, shape, log, name):
        super().__init__(shape, name=name)
        self.log = log

    def forward_eval(self):
        self.log.append(("forward", self.name))
        super().forward_eval()

    def adjoint_eval(self):
        self.log.append(("adjoint", self.name))
        super().adjoint_eval()


def connect_chain(*nodes):
    """Connect nodes in sequence and return the edge table."""
    edges = EdgeTable()
    for src, dst in zip(nodes, nodes[1:]):
        edges.connect(src, dst)
    return edges


@pytest.fixture
def matrix():
    return torch.tensor([[1.0, 2.0, 0.0],
                         [0.0, -1.0, 3.0]], dtype=torch.float64)


@pytest.fixture
def chain_graph(matrix):
    """start(3) -> scale by 2 -> M (2x3) -> end(2). Represents 2 M."""
    start = NoOp((3,), name="start")
    scale = ScalarMul(2.0, (3,), name="scale")
    mat = DenseMatMul(matrix, name="mat")
    end = NoOp((2,), name="end")
    edges = connect_chain(start, scale, mat, end)
    return start, end, edges


@pytest.fixture
def diamond_graph(matrix):
    """
    start(3) -> copy -> {scale by 3, M^T M} -> sum -> end(3).

    Represents 3 I + M^T M, a symmetric operator.
    """
    start = NoOp((3,), name="start")
    copy = Copy((3,), n_outputs=2, name="copy")
    scale = ScalarMul(3.0, (3,), name="scale")
    gram = DenseMatMul(matrix.t() @ matrix, name="gram")
    total = Sum((3,), n_inputs=2, name="sum")
    end = NoOp((3,), name="end")

    edges = EdgeTable()
    edges.connect(start, copy)
    edges.connect(copy, scale)
    edges.connect(copy, gram)
    edges.connect(scale, total)
    edges.connect(gram, total)
    edges.connect(total, end)
    return start, end, edges


@pytest.fixture
def recording_fanout():
    """start -> copy -> {a, b, c} -> sum -> end, with recording leaves."""
    log = []
    start = RecordingNoOp((2,), log, "start")
    copy = Copy((2,), n_outputs=3, name="copy")
    a = RecordingNoOp((2,), log, "a")
    b = RecordingNoOp((2,), log, "b")
    c = RecordingNoOp((2,), log, "c")
    total = Sum((2,), n_inputs=3, name="sum")
    end = RecordingNoOp((2,), log, "end")

    edges = EdgeTable()
    edges.connect(start, copy)
    for leaf in (a, b, c):
        edges.connect(copy, leaf)
    for leaf in (a, b, c):
        edges.connect(leaf, total)
    edges.connect(total, end)
    return start, end, edges, log
