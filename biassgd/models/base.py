"""
Базовый класс для vertex program в модели gather-apply-scatter.

Движок вызывает для каждой активированной вершины:
- init() - если для вершины есть сообщение
- gather() - для каждого ребра из gather_edges()
- apply() - с суммой результатов gather
- scatter() - для каждого ребра из scatter_edges()

Один экземпляр программы создается на вершину, поэтому программа может
хранить состояние между init и apply (например, буфер сообщения).
"""

from typing import Optional

from .accumulator import GradientAccumulator


# Направления ребер для gather/scatter
NO_EDGES = 'none'
IN_EDGES = 'in'
OUT_EDGES = 'out'
ALL_EDGES = 'all'


class OutgoingMessage:
    """Сообщение, которое gather просит доставить другой вершине."""

    def __init__(self, target_id: int, payload: GradientAccumulator):
        self.target_id = target_id
        self.payload = payload

    def __repr__(self) -> str:
        return f"OutgoingMessage(target_id={self.target_id}, payload={self.payload})"


class GatherResult:
    """
    Результат gather по одному ребру.

    Attributes:
        accumulator: вклад ребра в шаг текущей вершины
        outgoing: сообщение вершине на другом конце ребра (или None)
    """

    def __init__(
        self,
        accumulator: Optional[GradientAccumulator] = None,
        outgoing: Optional[OutgoingMessage] = None
    ):
        self.accumulator = accumulator if accumulator is not None else GradientAccumulator.empty()
        self.outgoing = outgoing

    def __repr__(self) -> str:
        return f"GatherResult(accumulator={self.accumulator}, outgoing={self.outgoing})"


class VertexProgram:
    """
    Базовый класс для всех vertex program.

    Подклассы должны реализовать gather(), apply() и scatter().
    """

    def gather_edges(self, context, vertex) -> str:
        return ALL_EDGES

    def scatter_edges(self, context, vertex) -> str:
        return ALL_EDGES

    def init(self, context, vertex, message: GradientAccumulator):
        """Получение сообщения перед apply. По умолчанию сообщение игнорируется."""
        pass

    def gather(self, context, vertex, edge) -> GatherResult:
        raise NotImplementedError(
            f"Метод gather() должен быть реализован в классе {self.__class__.__name__}"
        )

    def apply(self, context, vertex, total: GradientAccumulator):
        raise NotImplementedError(
            f"Метод apply() должен быть реализован в классе {self.__class__.__name__}"
        )

    def scatter(self, context, vertex, edge):
        raise NotImplementedError(
            f"Метод scatter() должен быть реализован в классе {self.__class__.__name__}"
        )
