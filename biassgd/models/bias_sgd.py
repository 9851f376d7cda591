"""
Bias-SGD vertex program.

Предсказание значения матрицы для ребра (u, i):

    r_ui = mu + b_u + b_i + p_u^T q_i

ограничивается отрезком [min_val, max_val]. Для TRAIN ребра с ошибкой
err = r_ui - obs шаги SGD:

    b_u += -gamma * err
    p_u += -gamma * (err * q_i - lambda * p_u)
    q_i += -gamma * (err * p_u - lambda * q_i)

Граф двудольный и несимметричный по ролям вершин:
- вершина-строка (num_in_edges == 0) сама считает шаги по своим ребрам
  в gather и отправляет шаг второго конца ребра сообщением;
- вершина-колонка (num_in_edges > 0) в gather ничего не считает и
  получает обновление только через сообщения от строк.

Gather ничего не изменяет: состояние вершин меняется только в apply.
"""

import numpy as np

from .accumulator import GradientAccumulator
from .base import GatherResult, OutgoingMessage, VertexProgram, ALL_EDGES
from .entities import EdgeRole, RunContext, VertexData
from ..errors import InvariantViolation


def get_other_vertex(edge, vertex):
    """Возвращает вершину на другом конце ребра."""
    if vertex.id() == edge.source().id():
        return edge.target()
    return edge.source()


def predict_value(shared: RunContext, source: VertexData, target: VertexData) -> float:
    """
    Предсказание значения для пары вершин, ограниченное [min_val, max_val].

    Args:
        shared: контекст запуска (global_mean, границы)
        source: данные вершины-строки
        target: данные вершины-колонки

    Returns:
        Предсказанное значение
    """
    prediction = (shared.global_mean + source.bias + target.bias
                  + float(np.dot(source.latent, target.latent)))
    return shared.clamp(prediction)


class BiasSGDVertexProgram(VertexProgram):
    """
    Vertex program Bias-SGD.

    Attributes:
        pending: буфер сообщения вершины-колонки до следующего apply
    """

    def __init__(self):
        self.pending = None

    def gather_edges(self, context, vertex) -> str:
        return ALL_EDGES

    def scatter_edges(self, context, vertex) -> str:
        return ALL_EDGES

    def gather(self, context, vertex, edge) -> GatherResult:
        # Колонки обновляются только сообщениями
        if vertex.num_in_edges() > 0:
            return GatherResult()

        role = edge.data().role
        if role is EdgeRole.VALIDATE or role is EdgeRole.PREDICT:
            return GatherResult()
        if role is not EdgeRole.TRAIN:
            raise InvariantViolation(f"Неизвестная роль ребра: {role!r}")

        shared = context.shared
        other = get_other_vertex(edge, vertex)
        my_data = vertex.data()
        other_data = other.data()

        prediction = predict_value(shared, my_data, other_data)
        err = prediction - edge.data().value
        if np.isnan(err):
            raise InvariantViolation(
                f"NaN в ошибке на ребре {edge.source().id()} -> {edge.target().id()}"
            )

        if shared.debug:
            print(f"ребро {edge.source().id()}:{edge.target().id()} "
                  f"err: {err} se: {err * err}")

        gamma = shared.gamma
        lam = shared.lam

        # Регуляризация берется от самого шага, который до вычисления равен 0
        bias_step = 0.0
        bias_step = -gamma * (err - lam * bias_step)
        other_bias_step = 0.0
        other_bias_step = -gamma * (err - lam * other_bias_step)

        delta = -gamma * (err * other_data.latent - lam * my_data.latent)
        other_delta = -gamma * (err * my_data.latent - lam * other_data.latent)

        outgoing = None
        if shared.within_budget(other_data):
            outgoing = OutgoingMessage(
                other.id(),
                GradientAccumulator(other_delta, other_bias_step)
            )

        return GatherResult(GradientAccumulator(delta, bias_step), outgoing)

    def init(self, context, vertex, message: GradientAccumulator):
        # Строки получают обновления только из собственного gather
        if vertex.num_in_edges() > 0:
            self.pending = message.copy()

    def apply(self, context, vertex, total: GradientAccumulator):
        vdata = vertex.data()

        if not total.is_empty():
            if vertex.num_in_edges() != 0:
                raise InvariantViolation(
                    f"Непустой gather-аккумулятор у вершины-колонки {vertex.id()}"
                )
            vdata.latent = vdata.latent + total.delta
            vdata.bias += total.bias_delta
        elif self.pending is not None and not self.pending.is_empty():
            if vertex.num_out_edges() != 0:
                raise InvariantViolation(
                    f"Сообщение с шагом у вершины-строки {vertex.id()}"
                )
            vdata.latent = vdata.latent + self.pending.delta
            vdata.bias += self.pending.bias_delta

        # Сообщение доставляется ровно один раз
        self.pending = None
        vdata.update_count += 1

    def scatter(self, context, vertex, edge):
        role = edge.data().role
        if role is EdgeRole.VALIDATE or role is EdgeRole.PREDICT:
            return
        if role is not EdgeRole.TRAIN:
            raise InvariantViolation(f"Неизвестная роль ребра: {role!r}")

        other = get_other_vertex(edge, vertex)
        if context.shared.within_budget(other.data()):
            context.signal(other, GradientAccumulator.zeros(context.shared.latent_dim))

    @staticmethod
    def signal_left(context, vertex):
        """Начальная активация всех вершин-строк (у которых есть исходящие ребра)."""
        if vertex.num_out_edges() > 0 and context.shared.within_budget(vertex.data()):
            context.signal(vertex, GradientAccumulator.zeros(context.shared.latent_dim))
