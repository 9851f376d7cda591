"""Модель Bias-SGD: состояние графа, аккумулятор и vertex program."""

from .entities import EdgeRole, VertexData, EdgeData, RunContext
from .accumulator import GradientAccumulator, combine
from .base import (
    VertexProgram,
    GatherResult,
    OutgoingMessage,
    NO_EDGES,
    IN_EDGES,
    OUT_EDGES,
    ALL_EDGES,
)
from .bias_sgd import BiasSGDVertexProgram, predict_value, get_other_vertex

__all__ = [
    'EdgeRole',
    'VertexData',
    'EdgeData',
    'RunContext',
    'GradientAccumulator',
    'combine',
    'VertexProgram',
    'GatherResult',
    'OutgoingMessage',
    'NO_EDGES',
    'IN_EDGES',
    'OUT_EDGES',
    'ALL_EDGES',
    'BiasSGDVertexProgram',
    'predict_value',
    'get_other_vertex',
]
