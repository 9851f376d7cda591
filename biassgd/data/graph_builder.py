"""
Модуль для построения bipartite графа из edge-list данных.

Граф, где:
- Узлы: строки и колонки матрицы (пользователи и айтемы)
- Ребра: наблюдаемые значения матрицы, направлены от строки к колонке

Смежность хранится как две sparse матрицы инцидентности (вершины x ребра)
в формате CSR: для исходящих и для входящих ребер. Строка i такой матрицы
содержит номера ребер вершины i, а разность indptr дает степени вершин.
"""

from typing import Callable, Iterator, List, Optional

import numpy as np
import pandas as pd
import scipy.sparse as sp

from ..models.entities import EdgeData, EdgeRole, VertexData
from ..models.base import ALL_EDGES, IN_EDGES, NO_EDGES, OUT_EDGES


class VertexHandle:
    """Доступ к вершине графа по внутреннему индексу."""

    __slots__ = ('graph', 'index')

    def __init__(self, graph: 'BipartiteGraph', index: int):
        self.graph = graph
        self.index = index

    def data(self) -> VertexData:
        return self.graph.vertices[self.index]

    def id(self) -> int:
        return int(self.graph.vertex_ids[self.index])

    def num_in_edges(self) -> int:
        return int(self.graph.in_degree[self.index])

    def num_out_edges(self) -> int:
        return int(self.graph.out_degree[self.index])

    def __eq__(self, other) -> bool:
        return (isinstance(other, VertexHandle) and other.graph is self.graph
                and other.index == self.index)

    def __hash__(self) -> int:
        return hash(self.index)

    def __repr__(self) -> str:
        return f"VertexHandle(id={self.id()})"


class EdgeHandle:
    """Доступ к ребру графа по номеру."""

    __slots__ = ('graph', 'index')

    def __init__(self, graph: 'BipartiteGraph', index: int):
        self.graph = graph
        self.index = index

    def data(self) -> EdgeData:
        return self.graph.edges[self.index]

    def source(self) -> VertexHandle:
        return VertexHandle(self.graph, int(self.graph.source_index[self.index]))

    def target(self) -> VertexHandle:
        return VertexHandle(self.graph, int(self.graph.target_index[self.index]))

    def __repr__(self) -> str:
        return f"EdgeHandle({self.source().id()} -> {self.target().id()})"


class BipartiteGraph:
    """
    Граф строк и колонок матрицы с данными на вершинах и ребрах.

    Attributes:
        vertex_ids: внешние id вершин (отсортированы), индекс в массиве - внутренний индекс
        vertices: список VertexData
        edges: список EdgeData
        source_index / target_index: внутренние индексы концов каждого ребра
        out_incidence / in_incidence: CSR матрицы инцидентности [n_vertices x n_edges]
    """

    def __init__(
        self,
        source_ids: np.ndarray,
        target_ids: np.ndarray,
        values: np.ndarray,
        roles: List[EdgeRole],
        latent_dim: int,
        debug: bool = False,
        seed: Optional[int] = None
    ):
        source_ids = np.asarray(source_ids, dtype=np.int64)
        target_ids = np.asarray(target_ids, dtype=np.int64)
        values = np.asarray(values, dtype=np.float64)

        if not (len(source_ids) == len(target_ids) == len(values) == len(roles)):
            raise ValueError("Длины массивов source/target/value/role не совпадают")

        self.latent_dim = int(latent_dim)

        # Внешние id -> внутренние индексы
        self.vertex_ids = np.unique(np.concatenate([source_ids, target_ids]))
        self.source_index = np.searchsorted(self.vertex_ids, source_ids)
        self.target_index = np.searchsorted(self.vertex_ids, target_ids)

        n_vertices = len(self.vertex_ids)
        n_edges = len(source_ids)
        edge_index = np.arange(n_edges)
        ones = np.ones(n_edges, dtype=np.float32)

        # Каждая пара (вершина, ребро) уникальна, поэтому дубликатов в COO нет
        self.out_incidence = sp.csr_matrix(
            (ones, (self.source_index, edge_index)),
            shape=(n_vertices, n_edges)
        )
        self.in_incidence = sp.csr_matrix(
            (ones, (self.target_index, edge_index)),
            shape=(n_vertices, n_edges)
        )
        self.out_incidence.sort_indices()
        self.in_incidence.sort_indices()

        self.out_degree = np.diff(self.out_incidence.indptr)
        self.in_degree = np.diff(self.in_incidence.indptr)

        rng = np.random.RandomState(seed)
        self.vertices = [
            VertexData.create(self.latent_dim, rng=rng, debug=debug)
            for _ in range(n_vertices)
        ]
        self.edges = [EdgeData(value, role) for value, role in zip(values, roles)]

    @property
    def num_vertices(self) -> int:
        return len(self.vertices)

    @property
    def num_edges(self) -> int:
        return len(self.edges)

    def vertex(self, index: int) -> VertexHandle:
        return VertexHandle(self, index)

    def vertex_by_id(self, vertex_id: int) -> VertexHandle:
        """Находит вершину по внешнему id."""
        pos = int(np.searchsorted(self.vertex_ids, vertex_id))
        if pos >= len(self.vertex_ids) or self.vertex_ids[pos] != vertex_id:
            raise KeyError(f"Вершина {vertex_id} не найдена в графе")
        return VertexHandle(self, pos)

    def edge(self, index: int) -> EdgeHandle:
        return EdgeHandle(self, index)

    def out_edges(self, index: int) -> np.ndarray:
        start, end = self.out_incidence.indptr[index], self.out_incidence.indptr[index + 1]
        return self.out_incidence.indices[start:end]

    def in_edges(self, index: int) -> np.ndarray:
        start, end = self.in_incidence.indptr[index], self.in_incidence.indptr[index + 1]
        return self.in_incidence.indices[start:end]

    def incident_edges(self, index: int, direction: str) -> Iterator[EdgeHandle]:
        """
        Перебирает ребра вершины в заданном направлении.

        Args:
            index: внутренний индекс вершины
            direction: IN_EDGES, OUT_EDGES, ALL_EDGES или NO_EDGES
        """
        if direction not in (IN_EDGES, OUT_EDGES, ALL_EDGES, NO_EDGES):
            raise ValueError(f"Неизвестное направление ребер: {direction}")
        if direction in (IN_EDGES, ALL_EDGES):
            for e in self.in_edges(index):
                yield EdgeHandle(self, int(e))
        if direction in (OUT_EDGES, ALL_EDGES):
            for e in self.out_edges(index):
                yield EdgeHandle(self, int(e))

    def map_reduce_edges(self, fn: Callable, initial=0):
        """Применяет fn к каждому ребру и суммирует результаты."""
        total = initial
        for e in range(self.num_edges):
            total = total + fn(EdgeHandle(self, e))
        return total

    def role_mask(self, role: EdgeRole) -> np.ndarray:
        return np.array([edge.role is role for edge in self.edges], dtype=bool)


def build_bipartite_graph(
    edges: pd.DataFrame,
    latent_dim: int,
    debug: bool = False,
    seed: Optional[int] = None,
    source_col: str = 'sourceId',
    target_col: str = 'targetId',
    value_col: str = 'value',
    role_col: str = 'role'
) -> BipartiteGraph:
    """
    Строит bipartite граф из DataFrame ребер.

    Args:
        edges: DataFrame с колонками sourceId, targetId, value, role
        latent_dim: размерность латентных векторов
        debug: инициализировать векторы единицами
        seed: seed для инициализации латентных векторов

    Returns:
        BipartiteGraph

    Raises:
        ValueError: если id строк и колонок пересекаются
    """
    shared_ids = np.intersect1d(edges[source_col].unique(), edges[target_col].unique())
    if len(shared_ids) > 0:
        raise ValueError(
            f"{len(shared_ids)} id встречаются и среди строк, и среди колонок "
            f"(например, {int(shared_ids[0])})\n"
            f"Граф должен быть двудольным: используйте remap_target (--remap_target)"
        )

    roles =[r if isinstance(r, EdgeRole) else EdgeRole(r) for r in edges[role_col]]

    graph = BipartiteGraph(
        source_ids=edges[source_col].to_numpy(dtype=np.int64),
        target_ids=edges[target_col].to_numpy(dtype=np.int64),
        values=edges[value_col].to_numpy(dtype=np.float64),
        roles=roles,
        latent_dim=latent_dim,
        debug=debug,
        seed=seed
    )

    n_left = int(np.sum((graph.out_degree > 0) & (graph.in_degree == 0)))
    n_right = int(np.sum((graph.in_degree > 0) & (graph.out_degree == 0)))
    print(f"Построен bipartite граф: {graph.num_vertices} вершин "
          f"({n_left} строк, {n_right} колонок), {graph.num_edges} ребер")

    return graph
