"""Вспомогательные утилиты."""

from .visualization import plot_convergence

__all__ = ['plot_convergence']
