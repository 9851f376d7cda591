"""Общие fixtures для тестов Bias-SGD."""

import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from biassgd.data.graph_builder import BipartiteGraph
from biassgd.models.entities import EdgeRole, RunContext


def make_graph(edges, latent_dim=2, seed=0, debug=False):
    """
    Строит граф из списка (source, target, value, role).

    Id колонок в тестах отрицательные, чтобы не пересекаться с id строк.
    """
    return BipartiteGraph(
        source_ids=np.array([e[0] for e in edges], dtype=np.int64),
        target_ids=np.array([e[1] for e in edges], dtype=np.int64),
        values=np.array([e[2] for e in edges], dtype=np.float64),
        roles=[e[3] for e in edges],
        latent_dim=latent_dim,
        debug=debug,
        seed=seed
    )


def set_vertex(graph, vertex_id, latent, bias=0.0, update_count=0):
    vdata = graph.vertex_by_id(vertex_id).data()
    vdata.latent = np.array(latent, dtype=np.float64)
    vdata.bias = bias
    vdata.update_count = update_count
    return vdata


class RecordingContext:
    """Контекст вызова, который запоминает сигналы вместо их доставки."""

    def __init__(self, shared):
        self.shared = shared
        self.signals = []

    def signal(self, vertex, message=None):
        self.signals.append((vertex, message))

    def elapsed_seconds(self):
        return 0.0


@pytest.fixture
def shared():
    return RunContext(
        latent_dim=2, lam=0.0, gamma=0.1, step_dec=0.9,
        min_val=0.0, max_val=5.0, max_updates=1, global_mean=0.0
    )


@pytest.fixture
def scenario_a():
    """Одна строка 1 с вектором [1, 0], одна колонка -2 с вектором [0, 1], ребро 0.5."""
    graph = make_graph([(1, -2, 0.5, EdgeRole.TRAIN)])
    set_vertex(graph, 1, [1.0, 0.0])
    set_vertex(graph, -2, [0.0, 1.0])
    return graph


@pytest.fixture
def mixed_graph():
    """
    Строка 1: train -> -2 (0.5), validate -> -4 (2.0), predict -> -6.
    Строка 3: train -> -2 (1.5).
    """
    graph = make_graph([
        (1, -2, 0.5, EdgeRole.TRAIN),
        (1, -4, 2.0, EdgeRole.VALIDATE),
        (1, -6, 0.0, EdgeRole.PREDICT),
        (3, -2, 1.5, EdgeRole.TRAIN),
    ])
    set_vertex(graph, 1, [1.0, 0.0])
    set_vertex(graph, 3, [0.0, 0.0])
    set_vertex(graph, -2, [0.0, 1.0])
    set_vertex(graph, -4, [1.0, 0.0])
    set_vertex(graph, -6, [0.5, 0.5], bias=0.25)
    return graph


@pytest.fixture
def edge_dir(tmp_path):
    """Директория с edge-list файлами всех трех ролей."""
    data_dir = tmp_path / "matrix"
    data_dir.mkdir()
    (data_dir / "ratings.train").write_text(
        "1 10 4\n"
        "1 11 3\n"
        "2 10 5\n"
        "2 12 2\n"
        "3 11 1\n"
        "3 12 4\n"
        "4 10 3\n"
        "4 11 2\n"
    )
    (data_dir / "ratings.validate").write_text("1 12 3\n2 11 4\n")
    (data_dir / "ratings.predict").write_text("3 10\n4 12\n")
    (data_dir / ".hidden").write_text("garbage\n")
    return data_dir
