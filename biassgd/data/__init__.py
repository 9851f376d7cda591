"""Data pipeline module"""

from .dataset import RatingDataset
from .preprocessing import (
    remove_duplicates,
    remap_target_ids,
    unmap_target_id,
    compute_global_mean,
    get_statistics
)
from .graph_builder import (
    BipartiteGraph,
    VertexHandle,
    EdgeHandle,
    build_bipartite_graph
)
from .loaders import (
    parse_edge_line,
    get_loader,
    write_edge_list,
    BaseEdgeLoader,
    EdgeListLoader,
    MovieLensLoader,
    LOADER_REGISTRY
)

__all__ = [
    'RatingDataset',
    'remove_duplicates',
    'remap_target_ids',
    'unmap_target_id',
    'compute_global_mean',
    'get_statistics',
    'BipartiteGraph',
    'VertexHandle',
    'EdgeHandle',
    'build_bipartite_graph',
    'parse_edge_line',
    'get_loader',
    'write_edge_list',
    'BaseEdgeLoader',
    'EdgeListLoader',
    'MovieLensLoader',
    'LOADER_REGISTRY',
]
