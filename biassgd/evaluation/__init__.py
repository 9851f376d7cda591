"""Оценка и сохранение предсказаний."""

from .evaluator import Evaluator, export_factors
from .predictions import save_predictions

__all__ = [
    'Evaluator',
    'export_factors',
    'save_predictions',
]
