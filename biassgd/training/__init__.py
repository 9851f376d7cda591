"""Модуль обучения Bias-SGD."""

from .monitor import ErrorAggregator, ConvergenceMonitor, extract_l2_error
from .trainer import BiasSGDTrainer

__all__ = [
    'ErrorAggregator',
    'ConvergenceMonitor',
    'extract_l2_error',
    'BiasSGDTrainer',
]
