"""
Состояние вершин и ребер bipartite графа Bias-SGD.

Каждая строка и каждая колонка матрицы - вершина графа со своим
латентным вектором и смещением (bias). Каждое наблюдаемое значение матрицы -
ребро от вершины-строки к вершине-колонке.

Структура графа:
    строка (num_in_edges == 0) --ребро(value, role)--> колонка (num_in_edges > 0)
"""

from enum import Enum
from typing import Dict, Optional

import numpy as np


class EdgeRole(Enum):
    """
    Назначение ребра.

    - TRAIN: значение верное и используется в обучении
    - VALIDATE: значение верное, но не используется в обучении
    - PREDICT: значение неизвестно, ребро только для предсказания
    """
    TRAIN = 'train'
    VALIDATE = 'validate'
    PREDICT = 'predict'

    @classmethod
    def from_filename(cls, filename: str) -> 'EdgeRole':
        """Роль определяется суффиксом имени файла."""
        if filename.endswith('.validate'):
            return cls.VALIDATE
        if filename.endswith('.predict'):
            return cls.PREDICT
        return cls.TRAIN


class VertexData:
    """
    Состояние вершины: латентный вектор, смещение и счетчик обновлений.

    Инвариант: len(latent) == latent_dim на протяжении всего обучения.
    """

    def __init__(
        self,
        latent: np.ndarray,
        bias: float = 0.0,
        update_count: int = 0
    ):
        self.latent = np.asarray(latent, dtype=np.float64)
        self.bias = float(bias)
        self.update_count = int(update_count)

    @classmethod
    def create(
        cls,
        latent_dim: int,
        rng: Optional[np.random.RandomState] = None,
        debug: bool = False
    ) -> 'VertexData':
        """
        Создает вершину со случайным латентным вектором.

        Args:
            latent_dim: размерность латентного вектора
            rng: генератор случайных чисел
            debug: если True, вектор заполняется единицами

        Returns:
            Новая вершина с bias = 0 и update_count = 0
        """
        if debug:
            return cls(np.ones(latent_dim))
        if rng is None:
            rng = np.random.RandomState()
        # Равномерно на [-1, 1]
        return cls(rng.uniform(-1.0, 1.0, size=latent_dim))

    def __repr__(self) -> str:
        return (f"VertexData(latent={self.latent.tolist()}, bias={self.bias}, "
                f"update_count={self.update_count})")


class EdgeData:
    """Наблюдаемое значение матрицы и его роль. Роль не меняется после загрузки."""

    def __init__(self, value: float = 0.0, role: EdgeRole = EdgeRole.PREDICT):
        self.value = float(value)
        self.role = role

    def __repr__(self) -> str:
        return f"EdgeData(value={self.value}, role={self.role.name})"


class RunContext:
    """
    Общий контекст одного запуска.

    Хранит гиперпараметры, которые читают все вызовы vertex program,
    и единственное изменяемое поле - шаг обучения gamma. Gamma меняет
    только монитор сходимости, остальные читают его без синхронизации.
    """

    def __init__(
        self,
        latent_dim: int = 20,
        lam: float = 0.001,
        gamma: float = 0.001,
        step_dec: float = 0.9,
        min_val: float = 1e-100,
        max_val: float = 1e100,
        max_updates: Optional[int] = None,
        global_mean: float = 0.0,
        interval: float = 0.0,
        report_every: int = 2,
        debug: bool = False
    ):
        if min_val > max_val:
            raise ValueError(f"min_val ({min_val}) больше max_val ({max_val})")
        if report_every < 1:
            raise ValueError(f"report_every должен быть >= 1, получено {report_every}")

        self.latent_dim = int(latent_dim)
        self.lam = float(lam)
        self.gamma = float(gamma)
        self.step_dec = float(step_dec)
        self.min_val = float(min_val)
        self.max_val = float(max_val)
        self.max_updates = None if max_updates is None else int(max_updates)
        self.global_mean = float(global_mean)
        self.interval = float(interval)
        self.report_every = int(report_every)
        self.debug = bool(debug)

    @classmethod
    def from_config(cls, config: Dict) -> 'RunContext':
        """Строит контекст из плоского словаря конфигурации."""
        max_updates = config.get('max_updates', None)
        return cls(
            latent_dim=int(config.get('latent_dim', 20)),
            lam=float(config.get('lambda', 0.001)),
            gamma=float(config.get('gamma', 0.001)),
            step_dec=float(config.get('step_dec', 0.9)),
            min_val=float(config.get('min_val', 1e-100)),
            max_val=float(config.get('max_val', 1e100)),
            max_updates=None if max_updates is None else int(max_updates),
            global_mean=float(config.get('global_mean', 0.0)),
            interval=float(config.get('interval', 0)),
            report_every=int(config.get('report_every', 2)),
            debug=bool(config.get('debug', False))
        )

    def within_budget(self, vertex_data: VertexData) -> bool:
        """Можно ли еще активировать вершину."""
        if self.max_updates is None:
            return True
        return vertex_data.update_count < self.max_updates

    def clamp(self, value: float) -> float:
        return min(max(value, self.min_val), self.max_val)

    def decay(self):
        """Уменьшает шаг обучения."""
        self.gamma *= self.step_dec
