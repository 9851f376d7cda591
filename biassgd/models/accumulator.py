"""
Аккумулятор шага градиента.

Частичные шаги, собранные по ребрам вершины (gather) или пришедшие
сообщениями, складываются через +=. Пустой аккумулятор (delta нулевой длины)
означает "вклада еще нет" и является нейтральным элементом сложения, поэтому
порядок и группировка слагаемых не важны.
"""

from typing import Optional

import numpy as np


class GradientAccumulator:
    """
    Шаг градиента для одной вершины: (delta, bias_delta).

    Attributes:
        delta: шаг латентного вектора, либо массив длины 0 для пустого аккумулятора
        bias_delta: шаг смещения
    """

    def __init__(self, delta: Optional[np.ndarray] = None, bias_delta: float = 0.0):
        if delta is None:
            delta = np.empty(0, dtype=np.float64)
        self.delta = np.array(delta, dtype=np.float64)
        # У пустого аккумулятора смещение всегда 0
        self.bias_delta = float(bias_delta) if self.delta.size > 0 else 0.0

    @classmethod
    def empty(cls) -> 'GradientAccumulator':
        return cls()

    @classmethod
    def zeros(cls, latent_dim: int) -> 'GradientAccumulator':
        """Нулевой шаг - сигнал активации без градиента."""
        return cls(np.zeros(latent_dim), 0.0)

    def is_empty(self) -> bool:
        return self.delta.size == 0

    def copy(self) -> 'GradientAccumulator':
        return GradientAccumulator(self.delta.copy(), self.bias_delta)

    def __iadd__(self, other: 'GradientAccumulator') -> 'GradientAccumulator':
        if self.is_empty():
            self.delta = other.delta.copy()
            self.bias_delta = other.bias_delta
            return self
        if other.is_empty():
            return self
        if self.delta.shape != other.delta.shape:
            raise ValueError(
                f"Размерности аккумуляторов не совпадают: "
                f"{self.delta.shape} и {other.delta.shape}"
            )
        self.delta = self.delta + other.delta
        self.bias_delta += other.bias_delta
        return self

    def __add__(self, other: 'GradientAccumulator') -> 'GradientAccumulator':
        result = self.copy()
        result += other
        return result

    def __eq__(self, other) -> bool:
        if not isinstance(other, GradientAccumulator):
            return NotImplemented
        return (np.array_equal(self.delta, other.delta)
                and self.bias_delta == other.bias_delta)

    def __repr__(self) -> str:
        if self.is_empty():
            return "GradientAccumulator(empty)"
        return f"GradientAccumulator(delta={self.delta.tolist()}, bias_delta={self.bias_delta})"


def combine(a: GradientAccumulator, b: GradientAccumulator) -> GradientAccumulator:
    """Коммутативное и ассоциативное сложение двух аккумуляторов."""
    return a + b
