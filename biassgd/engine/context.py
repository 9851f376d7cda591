"""Контекст, который движок передает в каждый вызов vertex program."""

from typing import Optional

from ..models.accumulator import GradientAccumulator
from ..models.entities import RunContext


class EngineContext:
    """
    Контекст вызова vertex program.

    Attributes:
        shared: общий RunContext (гиперпараметры и текущий gamma)
    """

    def __init__(self, engine, shared: RunContext):
        self._engine = engine
        self.shared = shared

    def signal(self, vertex, message: Optional[GradientAccumulator] = None):
        """
        Запрашивает активацию вершины с сообщением.

        Args:
            vertex: VertexHandle или внешний id вершины
            message: сообщение (складывается с уже ожидающим через +=)
        """
        self._engine.signal(vertex, message)

    def elapsed_seconds(self) -> float:
        return self._engine.elapsed_seconds()

    @property
    def iteration(self) -> int:
        return self._engine.iteration
