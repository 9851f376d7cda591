"""
Основной класс для работы с матрицей рейтингов.

Поддерживает:
- Загрузку ребер через загрузчики (edge-list директория, MovieLens)
- Препроцессинг (удаление дубликатов)
- Построение bipartite графа для Bias-SGD
- Статистику по ролям ребер
"""

from pathlib import Path
from typing import Dict, Optional

import pandas as pd

from .graph_builder import BipartiteGraph, build_bipartite_graph
from .loaders import get_loader
from .preprocessing import compute_global_mean, get_statistics, remove_duplicates


class RatingDataset:
    """
    Класс для работы с матрицей рейтингов.

    Обрабатывает pipeline от загрузки файлов до построения графа.
    """

    def __init__(self, data_path: str, config: Optional[Dict] = None):
        """
        Инициализация датасета.

        Args:
            data_path: директория (или файл) с данными
            config: плоский словарь конфигурации (loader, remap_target, strict, ...)
        """
        self.data_path = Path(data_path)
        self.config = config if config is not None else {}

        self.loader_name = self.config.get('loader', 'edgelist')
        self.remap_target = bool(self.config.get('remap_target', False))

        self.edges = None
        self.graph = None
        self.stats = {}

    def _create_loader(self):
        if self.loader_name in ('movie_lens', 'movielens'):
            # id пользователей и фильмов пересекаются, колонки всегда переносятся;
            # флаг сохраняется в config, чтобы предсказания вернули исходные id
            self.remap_target = True
            self.config['remap_target'] = True
            seed = self.config.get('seed')
            return get_loader(
                self.loader_name,
                remap_target=self.remap_target,
                valid_ratio=float(self.config.get('valid_ratio', 0.1)),
                predict_ratio=float(self.config.get('predict_ratio', 0.0)),
                seed=42 if seed is None else int(seed)
            )
        return get_loader(
            self.loader_name,
            remap_target=self.remap_target,
            strict=bool(self.config.get('strict', False))
        )

    def load(self) -> pd.DataFrame:
        """
        Загружает ребра.

        Returns:
            DataFrame с колонками sourceId, targetId, value, role
        """
        print(f"\n{'='*60}")
        print(f"Загрузка графа: {self.data_path}")
        print(f"{'='*60}")

        loader = self._create_loader()
        df = loader.load(self.data_path)

        if df.empty:
            raise ValueError(
                f"Данные не загружены или пусты!\n"
                f"Проверьте наличие файлов в: {self.data_path}"
            )

        self.edges = remove_duplicates(df)
        self.stats = get_statistics(self.edges)
        if self.stats['n_train'] > 0:
            self.stats['global_mean'] = compute_global_mean(self.edges)

        print(f"Строк: {self.stats['n_rows']}")
        print(f"Колонок: {self.stats['n_cols']}")
        print(f"Ребер: {self.stats['n_edges']} "
              f"(train {self.stats['n_train']}, validate {self.stats['n_validate']}, "
              f"predict {self.stats['n_predict']})")
        print(f"Разреженность: {self.stats['sparsity']:.6f}")

        return self.edges

    def build_graph(self) -> BipartiteGraph:
        """Строит граф из загруженных ребер."""
        if self.edges is None:
            self.load()

        seed = self.config.get('seed')
        self.graph = build_bipartite_graph(
            self.edges,
            latent_dim=int(self.config.get('latent_dim', 20)),
            debug=bool(self.config.get('debug', False)),
            seed=None if seed is None else int(seed)
        )
        return self.graph
