"""
Evaluator для оценки факторизации, полученной Bias-SGD.

Состояние вершин выгружается в тензоры PyTorch, после чего предсказания
для всех ребер считаются батчем:
- RMSE и MAE для train и validate ребер
- предсказания для произвольного набора ребер (в т.ч. predict)
"""

from typing import Dict, Optional

import numpy as np
import torch

from ..data.graph_builder import BipartiteGraph
from ..models.entities import EdgeRole, RunContext


def export_factors(graph: BipartiteGraph) -> Dict[str, torch.Tensor]:
    """
    Выгружает состояние всех вершин в тензоры.

    Returns:
        Словарь:
        - vertex_ids: [n_vertices]
        - latent: [n_vertices, latent_dim]
        - bias: [n_vertices]
        - update_count: [n_vertices]
    """
    if graph.num_vertices > 0:
        latent = np.stack([v.latent for v in graph.vertices])
    else:
        latent = np.zeros((0, graph.latent_dim))

    return {
        'vertex_ids': torch.as_tensor(graph.vertex_ids, dtype=torch.int64),
        'latent': torch.as_tensor(latent, dtype=torch.float64),
        'bias': torch.tensor([v.bias for v in graph.vertices], dtype=torch.float64),
        'update_count': torch.tensor([v.update_count for v in graph.vertices], dtype=torch.int64),
    }


class Evaluator:
    """
    Класс для оценки факторизации на ребрах графа.

    Предсказание то же, что и в vertex program:
    mu + b_s + b_t + <p_s, q_t>, ограниченное [min_val, max_val].
    """

    def __init__(self, device: Optional[torch.device] = None):
        """
        Инициализация Evaluator.

        Args:
            device: устройство для вычислений
        """
        if device is None:
            self.device = torch.device('cuda' if torch.cuda.is_available() else 'cpu')
        else:
            self.device = device

    def predict(
        self,
        graph: BipartiteGraph,
        shared: RunContext,
        edge_mask: Optional[np.ndarray] = None
    ) -> torch.Tensor:
        """
        Предсказания для ребер графа.

        Args:
            graph: граф
            shared: контекст запуска (global_mean, границы)
            edge_mask: булева маска ребер (если None, все ребра)

        Returns:
            Тензор предсказаний [n_selected_edges]
        """
        factors = export_factors(graph)
        latent = factors['latent'].to(self.device)
        bias = factors['bias'].to(self.device)

        source = torch.as_tensor(graph.source_index, dtype=torch.int64)
        target = torch.as_tensor(graph.target_index, dtype=torch.int64)
        if edge_mask is not None:
            mask = torch.as_tensor(edge_mask, dtype=torch.bool)
            source = source[mask]
            target = target[mask]
        source = source.to(self.device)
        target = target.to(self.device)

        with torch.no_grad():
            scores = (latent[source] * latent[target]).sum(dim=1)
            predictions = shared.global_mean + bias[source] + bias[target] + scores
            predictions = torch.clamp(predictions, min=shared.min_val, max=shared.max_val)

        return predictions.cpu()

    def evaluate(self, graph: BipartiteGraph, shared: RunContext) -> Dict[str, float]:
        """
        RMSE и MAE по ролям train и validate.

        Returns:
            Словарь с метриками: train_rmse, train_mae, n_train,
            validation_rmse, validation_mae, n_validation
            (метрики роли отсутствуют, если ребер этой роли нет)
        """
        values = torch.tensor([e.value for e in graph.edges], dtype=torch.float64)
        metrics = {}

        for role, prefix in ((EdgeRole.TRAIN, 'train'), (EdgeRole.VALIDATE, 'validation')):
            mask = graph.role_mask(role)
            count = int(mask.sum())
            metrics[f'n_{prefix}'] = count
            if count == 0:
                continue

            predictions = self.predict(graph, shared, edge_mask=mask)
            errors = predictions - values[torch.as_tensor(mask)]
            metrics[f'{prefix}_rmse'] = float(torch.sqrt(torch.mean(errors ** 2)))
            metrics[f'{prefix}_mae'] = float(torch.mean(torch.abs(errors)))

        return metrics
