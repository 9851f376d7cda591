"""
Драйвер обучения Bias-SGD.

Обеспечивает:
- Вычисление глобального среднего по обучающим ребрам
- Регистрацию монитора сходимости как периодического агрегатора
- Начальную активацию вершин-строк и запуск движка
- Финальный отчет об ошибке
- Сохранение предсказаний и чекпоинтов
"""

import time
from pathlib import Path
from typing import Dict, Optional

import torch

from .monitor import ConvergenceMonitor, ErrorAggregator
from ..data.graph_builder import BipartiteGraph
from ..engine.local_engine import LocalEngine
from ..evaluation.evaluator import Evaluator, export_factors
from ..evaluation.predictions import save_predictions
from ..models.bias_sgd import BiasSGDVertexProgram
from ..models.entities import EdgeRole, RunContext


class BiasSGDTrainer:
    """
    Класс для обучения Bias-SGD на bipartite графе.

    Все вызовы vertex program и монитора получают один общий RunContext,
    gamma в нем уменьшается монитором после каждого отчета.
    """

    def __init__(
        self,
        graph: BipartiteGraph,
        config: Dict,
        shared: Optional[RunContext] = None
    ):
        """
        Инициализация Trainer.

        Args:
            graph: граф с ребрами train/validate/predict
            config: плоский словарь конфигурации
            shared: готовый RunContext (если None, строится из config)
        """
        self.graph = graph
        self.config = config
        self.shared = shared if shared is not None else RunContext.from_config(config)

        max_iterations = config.get('max_iterations', None)
        if self.shared.max_updates is None and max_iterations is None:
            raise ValueError(
                "Не заданы ни max_updates, ни max_iterations: обучение не завершится"
            )

        seed = config.get('seed', None)
        self.engine = LocalEngine(
            graph,
            BiasSGDVertexProgram,
            self.shared,
            engine_type=config.get('engine', 'synchronous'),
            max_iterations=max_iterations,
            seed=None if seed is None else int(seed)
        )

        self.monitor = ConvergenceMonitor(report_every=self.shared.report_every)
        self.evaluator = Evaluator()

        # Монитор сходимости как периодический агрегатор по ребрам
        success = (
            self.engine.add_edge_aggregator(
                'error', ErrorAggregator.map, self.monitor.finalize, zero=ErrorAggregator
            )
            and self.engine.aggregate_periodic('error', self.shared.interval)
        )
        if not success:
            raise RuntimeError("Не удалось зарегистрировать агрегатор ошибки")

        self.predictions = config.get('predictions', None)
        self.remap_target = bool(config.get('remap_target', False))
        checkpoint_dir = config.get('checkpoint_dir', None)
        self.checkpoint_dir = Path(checkpoint_dir) if checkpoint_dir else None

        self.n_train_edges = 0

    def compute_global_mean(self) -> float:
        """
        Среднее наблюдаемое значение по train ребрам.

        Raises:
            ValueError: если train ребер нет
        """
        total = self.graph.map_reduce_edges(
            lambda edge: edge.data().value if edge.data().role is EdgeRole.TRAIN else 0.0,
            initial=0.0
        )
        self.n_train_edges = self.graph.map_reduce_edges(
            lambda edge: 1 if edge.data().role is EdgeRole.TRAIN else 0,
            initial=0
        )
        if self.n_train_edges == 0:
            raise ValueError("В графе нет train ребер")

        self.shared.global_mean = total / self.n_train_edges
        print(f"Глобальное среднее: {self.shared.global_mean}")
        return self.shared.global_mean

    def train(self) -> Dict:
        """
        Полный цикл обучения.

        Returns:
            Словарь с результатами обучения
        """
        print(f"\n{'='*60}")
        print("BIAS-SGD")
        print(f"{'='*60}")
        print(f"Вершин: {self.graph.num_vertices}")
        print(f"Ребер: {self.graph.num_edges}")
        print(f"Движок: {self.engine.engine_type}")
        print(f"D: {self.shared.latent_dim} | lambda: {self.shared.lam} | "
              f"gamma: {self.shared.gamma} | step_dec: {self.shared.step_dec}")
        print(f"Бюджет обновлений вершины: {self.shared.max_updates}")
        print(f"{'='*60}\n")

        self.compute_global_mean()

        # Активируем все вершины слева
        self.engine.map_reduce_vertices(BiasSGDVertexProgram.signal_left)
        print(f"Активировано вершин: {self.engine.num_active()}")

        print("Запуск Bias-SGD")
        start_time = time.time()
        num_updates = self.engine.start()
        runtime = time.time() - start_time

        print(f"\n{'-'*60}")
        print(f"Время работы (секунд): {runtime:.4f}")
        print(f"Выполнено обновлений: {num_updates}")
        if runtime > 0:
            print(f"Скорость (обновлений/сек): {num_updates / runtime:.2f}")

        print("Финальная ошибка:")
        self.engine.aggregate_now('error')
        metrics = self.evaluator.evaluate(self.graph, self.shared)

        if self.predictions:
            print("Сохранение предсказаний")
            save_predictions(
                self.graph, self.shared, self.predictions,
                remap_target=self.remap_target, evaluator=self.evaluator
            )

        if self.checkpoint_dir is not None:
            self.save_checkpoint()

        print(f"{'='*60}\n")

        return {
            'global_mean': self.shared.global_mean,
            'runtime': runtime,
            'num_updates': num_updates,
            'iterations': self.engine.iteration,
            'history': self.monitor.history,
            'final_gamma': self.shared.gamma,
            'final_train_rmse': metrics.get('train_rmse'),
            'final_validation_rmse': metrics.get('validation_rmse'),
            'metrics': metrics,
        }

    def save_checkpoint(self, checkpoint_path: Optional[Path] = None) -> Path:
        """
        Сохраняет состояние всех вершин, gamma и историю отчетов.

        Args:
            checkpoint_path: путь к файлу (по умолчанию checkpoint_dir/biassgd.pt)
        """
        if checkpoint_path is None:
            if self.checkpoint_dir is None:
                raise ValueError("Не задан checkpoint_dir")
            checkpoint_path = self.checkpoint_dir / "biassgd.pt"

        checkpoint_path = Path(checkpoint_path)
        checkpoint_path.parent.mkdir(parents=True, exist_ok=True)

        checkpoint = {
            'factors': export_factors(self.graph),
            'gamma': self.shared.gamma,
            'global_mean': self.shared.global_mean,
            'history': self.monitor.history,
        }
        torch.save(checkpoint, checkpoint_path)
        print(f"Чекпоинт сохранен: {checkpoint_path}")
        return checkpoint_path

    def load_checkpoint(self, checkpoint_path: Path):
        """
        Загружает состояние вершин из чекпоинта.

        Raises:
            ValueError: если вершины чекпоинта не совпадают с вершинами графа
        """
        checkpoint = torch.load(checkpoint_path, map_location='cpu')
        factors = checkpoint['factors']

        vertex_ids = factors['vertex_ids'].numpy()
        if len(vertex_ids) != self.graph.num_vertices or (vertex_ids != self.graph.vertex_ids).any():
            raise ValueError(f"Чекпоинт {checkpoint_path} построен для другого графа")

        latent = factors['latent'].numpy()
        bias = factors['bias'].tolist()
        update_count = factors['update_count'].tolist()
        for index, vdata in enumerate(self.graph.vertices):
            vdata.latent = latent[index].copy()
            vdata.bias = float(bias[index])
            vdata.update_count = int(update_count[index])

        self.shared.gamma = float(checkpoint['gamma'])
        self.shared.global_mean = float(checkpoint['global_mean'])
        self.monitor.history = list(checkpoint.get('history', []))
