"""Однопроцессный gather-apply-scatter движок."""

from .context import EngineContext
from .local_engine import LocalEngine, ENGINE_TYPES

__all__ = [
    'EngineContext',
    'LocalEngine',
    'ENGINE_TYPES',
]
