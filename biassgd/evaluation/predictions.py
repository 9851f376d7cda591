"""Сохранение предсказаний для всех ребер графа."""

from pathlib import Path

import numpy as np
import pandas as pd

from .evaluator import Evaluator
from ..data.graph_builder import BipartiteGraph
from ..data.preprocessing import unmap_target_id
from ..models.entities import RunContext


def save_predictions(
    graph: BipartiteGraph,
    shared: RunContext,
    prefix: str,
    remap_target: bool = False,
    evaluator: Evaluator = None
) -> Path:
    """
    Записывает строки "sourceId <TAB> targetId <TAB> prediction" для каждого ребра.

    Args:
        graph: граф
        shared: контекст запуска
        prefix: префикс пути (папка и имя файла)
        remap_target: id колонок были перенесены в отрицательное пространство
        evaluator: Evaluator для вычисления предсказаний

    Returns:
        Путь к файлу <prefix>.predictions.tsv
    """
    if evaluator is None:
        evaluator = Evaluator()

    predictions = evaluator.predict(graph, shared).numpy()
    source_ids = graph.vertex_ids[graph.source_index]
    target_ids = graph.vertex_ids[graph.target_index]
    if remap_target:
        target_ids = np.array([unmap_target_id(int(t)) for t in target_ids], dtype=np.int64)

    df = pd.DataFrame({
        'sourceId': source_ids,
        'targetId': target_ids,
        'prediction': predictions,
    })

    output_file = Path(f"{prefix}.predictions.tsv")
    output_file.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(output_file, sep='\t', index=False, header=False)

    print(f"Предсказания сохранены: {output_file} ({len(df)} строк)")

    return output_file
