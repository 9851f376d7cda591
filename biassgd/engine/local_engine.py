"""
Однопроцессный gather-apply-scatter движок.

Поддерживает два режима:
- synchronous: все активные вершины выполняют раунд init -> gather -> apply ->
  scatter в lockstep; сообщения, отправленные в раунде, видны только в следующем
- asynchronous: вершины обрабатываются по одной из FIFO очереди; сообщение
  видно при ближайшей активации получателя

Сообщения для одной вершины складываются через +=, вершина стоит в очереди
не более одного раза. Сообщение доставляется через init ровно один раз
перед apply.

Периодические агрегаторы проверяются после каждого раунда (synchronous)
или после каждых num_vertices обработанных вершин (asynchronous).
"""

import time
from collections import deque
from typing import Callable, Dict, Optional

import numpy as np

from .context import EngineContext
from ..data.graph_builder import BipartiteGraph, VertexHandle
from ..models.accumulator import GradientAccumulator
from ..models.base import VertexProgram
from ..models.entities import RunContext


ENGINE_TYPES = ('synchronous', 'asynchronous')


class LocalEngine:
    """
    Движок, исполняющий vertex program над BipartiteGraph в одном процессе.

    На каждую вершину создается свой экземпляр программы (program_factory),
    поэтому программа может хранить буфер сообщения между init и apply.
    """

    def __init__(
        self,
        graph: BipartiteGraph,
        program_factory: Callable[[], VertexProgram],
        shared: RunContext,
        engine_type: str = 'synchronous',
        max_iterations: Optional[int] = None,
        seed: Optional[int] = None
    ):
        """
        Инициализация движка.

        Args:
            graph: граф
            program_factory: фабрика vertex program
            shared: общий контекст запуска
            engine_type: 'synchronous' или 'asynchronous'
            max_iterations: ограничение числа раундов (synchronous)
                или числа обработанных вершин (asynchronous)
            seed: перемешивание начальной очереди (asynchronous)
        """
        if engine_type not in ENGINE_TYPES:
            raise ValueError(
                f"Неизвестный тип движка: {engine_type}\n"
                f"Доступные типы: {list(ENGINE_TYPES)}"
            )

        self.graph = graph
        self.program_factory = program_factory
        self.shared = shared
        self.engine_type = engine_type
        self.max_iterations = None if max_iterations is None else int(max_iterations)
        self.seed = seed

        self.context = EngineContext(self, shared)
        self.iteration = 0

        self._programs: Dict[int, VertexProgram] = {}
        self._messages: Dict[int, Optional[GradientAccumulator]] = {}
        self._queue = deque()
        self._aggregators: Dict[str, Dict] = {}
        self._num_updates = 0
        self._start_time = time.time()
        self._async_steps = 0

    # ------------------------------------------------------------------
    # Сигналы
    # ------------------------------------------------------------------

    def _resolve(self, vertex) -> int:
        if isinstance(vertex, VertexHandle):
            return vertex.index
        return self.graph.vertex_by_id(int(vertex)).index

    def signal(self, vertex, message: Optional[GradientAccumulator] = None):
        """Активирует вершину; сообщения для одной вершины складываются."""
        index = self._resolve(vertex)

        if index in self._messages:
            if message is None:
                return
            current = self._messages[index]
            if current is None:
                self._messages[index] = message.copy()
            else:
                current += message
            return

        self._messages[index] = message.copy() if message is not None else None
        if self.engine_type == 'asynchronous':
            self._queue.append(index)

    def num_active(self) -> int:
        return len(self._messages)

    def _program(self, index: int) -> VertexProgram:
        program = self._programs.get(index)
        if program is None:
            program = self.program_factory()
            self._programs[index] = program
        return program

    # ------------------------------------------------------------------
    # Фазы GAS
    # ------------------------------------------------------------------

    def _gather(self, index: int, program: VertexProgram, vertex: VertexHandle) -> GradientAccumulator:
        total = GradientAccumulator.empty()
        direction = program.gather_edges(self.context, vertex)

        for edge in self.graph.incident_edges(index, direction):
            result = program.gather(self.context, vertex, edge)
            # gather может вернуть просто аккумулятор
            if isinstance(result, GradientAccumulator):
                total += result
                continue
            total += result.accumulator
            if result.outgoing is not None:
                self.signal(result.outgoing.target_id, result.outgoing.payload)

        return total

    def _scatter(self, index: int, program: VertexProgram, vertex: VertexHandle):
        direction = program.scatter_edges(self.context, vertex)
        for edge in self.graph.incident_edges(index, direction):
            program.scatter(self.context, vertex, edge)

    def _run_synchronous_round(self):
        active = self._messages
        self._messages = {}
        order = sorted(active)

        for index in order:
            message = active[index]
            if message is not None:
                self._program(index).init(self.context, self.graph.vertex(index), message)

        totals = {}
        for index in order:
            totals[index] = self._gather(index, self._program(index), self.graph.vertex(index))

        for index in order:
            self._program(index).apply(self.context, self.graph.vertex(index), totals[index])
            self._num_updates += 1

        for index in order:
            self._scatter(index, self._program(index), self.graph.vertex(index))

    def _run_asynchronous_step(self):
        index = self._queue.popleft()
        message = self._messages.pop(index)
        program = self._program(index)
        vertex = self.graph.vertex(index)

        if message is not None:
            program.init(self.context, vertex, message)

        total = self._gather(index, program, vertex)
        program.apply(self.context, vertex, total)
        self._num_updates += 1

        self._scatter(index, program, vertex)

    def start(self) -> int:
        """
        Выполняет программу, пока есть активные вершины.

        Returns:
            Количество выполненных apply
        """
        self._start_time = time.time()
        for aggregator in self._aggregators.values():
            aggregator['last_run'] = 0.0
        self._async_steps = 0

        if self.engine_type == 'asynchronous' and self.seed is not None:
            order = list(self._queue)
            np.random.RandomState(self.seed).shuffle(order)
            self._queue = deque(order)

        while self._messages:
            if self.max_iterations is not None and self.iteration >= self.max_iterations:
                print(f"Достигнут лимит итераций движка: {self.max_iterations}")
                break

            if self.engine_type == 'synchronous':
                self._run_synchronous_round()
            else:
                self._run_asynchronous_step()

            self.iteration += 1
            if self.engine_type == 'synchronous':
                self._run_periodic_aggregators()
            else:
                # В асинхронном режиме агрегаторы проверяются раз в проход по графу
                self._async_steps += 1
                if self._async_steps >= self.graph.num_vertices:
                    self._async_steps = 0
                    self._run_periodic_aggregators()

        return self._num_updates

    # ------------------------------------------------------------------
    # Агрегаторы и map-reduce
    # ------------------------------------------------------------------

    def add_edge_aggregator(
        self,
        name: str,
        map_fn: Callable,
        finalize_fn: Callable,
        zero: Optional[Callable] = None
    ) -> bool:
        """
        Регистрирует агрегатор по ребрам.

        Args:
            name: имя агрегатора
            map_fn: map_fn(context, edge) -> значение с операцией +=
            finalize_fn: finalize_fn(context, total)
            zero: фабрика нейтрального элемента (для пустого графа)

        Returns:
            False, если агрегатор с таким именем уже есть
        """
        if name in self._aggregators:
            return False
        self._aggregators[name] = {
            'map': map_fn,
            'finalize': finalize_fn,
            'zero': zero,
            'interval': None,
            'last_run': 0.0,
        }
        return True

    def aggregate_periodic(self, name: str, interval: float) -> bool:
        """Запускать агрегатор не чаще, чем раз в interval секунд."""
        if name not in self._aggregators or interval < 0:
            return False
        self._aggregators[name]['interval'] = float(interval)
        return True

    def aggregate_now(self, name: str):
        """Немедленно выполняет агрегатор и вызывает finalize."""
        if name not in self._aggregators:
            raise ValueError(f"Агрегатор не зарегистрирован: {name}")

        aggregator = self._aggregators[name]
        total = aggregator['zero']() if aggregator['zero'] is not None else None
        for e in range(self.graph.num_edges):
            value = aggregator['map'](self.context, self.graph.edge(e))
            if total is None:
                total = value
            else:
                total += value

        aggregator['last_run'] = self.elapsed_seconds()
        return aggregator['finalize'](self.context, total)

    def _run_periodic_aggregators(self):
        for name, aggregator in self._aggregators.items():
            interval = aggregator['interval']
            if interval is None:
                continue
            if self.elapsed_seconds() - aggregator['last_run'] >= interval:
                self.aggregate_now(name)

    def map_reduce_vertices(self, fn: Callable):
        """
        Применяет fn(context, vertex) ко всем вершинам.

        Returns:
            Сумма значений, отличных от None (или None)
        """
        total = None
        for index in range(self.graph.num_vertices):
            value = fn(self.context, self.graph.vertex(index))
            if value is None:
                continue
            total = value if total is None else total + value
        return total

    def num_updates(self) -> int:
        return self._num_updates

    def elapsed_seconds(self) -> float:
        return time.time() - self._start_time
