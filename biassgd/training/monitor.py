"""
Монитор сходимости Bias-SGD.

Периодическая агрегация по всем ребрам графа:
- map: квадрат ошибки ребра (train или validate), predict ребра не учитываются
- combine: независимые суммы ошибок и счетчиков для train и validate
- finalize: RMSE = sqrt(sum / count), вывод и уменьшение шага обучения

Отчет и уменьшение gamma происходят на каждом report_every-м вызове
finalize, начиная с первого (при report_every = 2: вызовы 1, 3, 5, ...).
"""

import math
from typing import Dict, List, Optional

from ..models.bias_sgd import predict_value
from ..models.entities import EdgeRole, RunContext
from ..errors import InvariantViolation


def extract_l2_error(shared: RunContext, edge) -> float:
    """
    Квадрат ошибки предсказания для ребра по текущему состоянию вершин.

    Args:
        shared: контекст запуска
        edge: EdgeHandle

    Returns:
        (obs - pred)^2; наблюдение вне [min_val, max_val] допустимо
    """
    prediction = predict_value(shared, edge.source().data(), edge.target().data())
    diff = edge.data().value - prediction
    squared = diff * diff
    if math.isinf(squared):
        raise InvariantViolation(
            "Бесконечный квадрат ошибки на ребре "
            f"{edge.source().id()} -> {edge.target().id()}"
        )
    return squared


class ErrorAggregator:
    """Суммы квадратов ошибок и количество ребер для train и validate."""

    def __init__(
        self,
        train_error: float = 0.0,
        validation_error: float = 0.0,
        n_train: int = 0,
        n_validation: int = 0
    ):
        self.train_error = train_error
        self.validation_error = validation_error
        self.n_train = n_train
        self.n_validation = n_validation

    def __iadd__(self, other: 'ErrorAggregator') -> 'ErrorAggregator':
        self.train_error += other.train_error
        if math.isnan(self.train_error):
            raise InvariantViolation("NaN в сумме ошибок обучения")
        self.validation_error += other.validation_error
        self.n_train += other.n_train
        self.n_validation += other.n_validation
        return self

    def __add__(self, other: 'ErrorAggregator') -> 'ErrorAggregator':
        result = ErrorAggregator(
            self.train_error, self.validation_error, self.n_train, self.n_validation
        )
        result += other
        return result

    def __eq__(self, other) -> bool:
        if not isinstance(other, ErrorAggregator):
            return NotImplemented
        return (self.train_error == other.train_error
                and self.validation_error == other.validation_error
                and self.n_train == other.n_train
                and self.n_validation == other.n_validation)

    def __repr__(self) -> str:
        return (f"ErrorAggregator(train={self.train_error}/{self.n_train}, "
                f"validation={self.validation_error}/{self.n_validation})")

    @staticmethod
    def map(context, edge) -> 'ErrorAggregator':
        """Вклад одного ребра."""
        agg = ErrorAggregator()
        role = edge.data().role
        if role is EdgeRole.TRAIN:
            agg.train_error = extract_l2_error(context.shared, edge)
            agg.n_train = 1
            if math.isnan(agg.train_error):
                raise InvariantViolation("NaN в ошибке обучающего ребра")
        elif role is EdgeRole.VALIDATE:
            agg.validation_error = extract_l2_error(context.shared, edge)
            agg.n_validation = 1
        elif role is EdgeRole.PREDICT:
            pass
        else:
            raise InvariantViolation(f"Неизвестная роль ребра: {role!r}")
        return agg


class ConvergenceMonitor:
    """
    Finalize-часть агрегатора ошибок.

    Attributes:
        calls: количество вызовов finalize
        history: список отчетов {'elapsed', 'train_rmse', 'validation_rmse', 'gamma'}
    """

    def __init__(self, report_every: int = 2, verbose: bool = True):
        if report_every < 1:
            raise ValueError(f"report_every должен быть >= 1, получено {report_every}")
        self.report_every = report_every
        self.verbose = verbose
        self.calls = 0
        self.history: List[Dict] = []

    def finalize(self, context, agg: ErrorAggregator) -> Optional[Dict]:
        """
        Вычисляет RMSE, выводит отчет и уменьшает gamma.

        Returns:
            Отчет или None, если этот вызов пропущен
        """
        self.calls += 1
        if (self.calls - 1) % self.report_every != 0:
            return None

        if agg.n_train <= 0:
            raise InvariantViolation("Нет обучающих ребер для вычисления ошибки")

        train_rmse = math.sqrt(agg.train_error / agg.n_train)
        if math.isnan(train_rmse):
            raise InvariantViolation("NaN в RMSE обучения")

        validation_rmse = None
        if agg.n_validation > 0:
            validation_rmse = math.sqrt(agg.validation_error / agg.n_validation)

        elapsed = context.elapsed_seconds()
        if self.verbose:
            line = f"{elapsed:.6f}\t{train_rmse:.6f}"
            if validation_rmse is not None:
                line += f"\t{validation_rmse:.6f}"
            print(line)

        shared = context.shared
        shared.decay()

        report = {
            'elapsed': elapsed,
            'train_rmse': train_rmse,
            'validation_rmse': validation_rmse,
            'gamma': shared.gamma,
        }
        self.history.append(report)
        return report
