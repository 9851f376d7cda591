"""Тесты для монитора сходимости."""

import math

import pytest

from biassgd.errors import InvariantViolation
from biassgd.models import EdgeRole, RunContext
from biassgd.training import ConvergenceMonitor, ErrorAggregator, extract_l2_error

from conftest import RecordingContext, make_graph, set_vertex


def aggregate(graph, context):
    total = ErrorAggregator()
    for e in range(graph.num_edges):
        total += ErrorAggregator.map(context, graph.edge(e))
    return total


class TestErrorAggregator:

    def test_map_by_role(self, mixed_graph, shared):
        ctx = RecordingContext(shared)
        total = aggregate(mixed_graph, ctx)

        # Train: (0.5 - 0)^2 + (1.5 - 0)^2, validate: (2 - 1)^2, predict не учитывается
        assert total.n_train == 2
        assert total.n_validation == 1
        assert total.train_error == pytest.approx(2.5)
        assert total.validation_error == pytest.approx(1.0)

    def test_combine_is_commutative(self):
        a = ErrorAggregator(1.0, 2.0, 1, 2)
        b = ErrorAggregator(0.5, 0.0, 3, 0)
        assert a + b == b + a
        assert ErrorAggregator() + a == a

    def test_nan_train_error_raises(self):
        total = ErrorAggregator()
        with pytest.raises(InvariantViolation):
            total += ErrorAggregator(math.nan, 0.0, 1, 0)

    def test_observation_outside_clamp_range_counted(self):
        graph = make_graph([(1, -2, 3.0, EdgeRole.TRAIN), (1, -4, 3.0, EdgeRole.VALIDATE)])
        set_vertex(graph, 1, [0.0, 0.0])
        set_vertex(graph, -2, [0.0, 0.0])
        set_vertex(graph, -4, [0.0, 0.0])
        shared = RunContext(latent_dim=2, min_val=0.0, max_val=1.0)

        # Предсказание 0, наблюдение 3 лежит вне [0, 1]
        assert extract_l2_error(shared, graph.edge(0)) == pytest.approx(9.0)
        total = aggregate(graph, RecordingContext(shared))
        assert total.train_error == pytest.approx(9.0)
        assert total.validation_error == pytest.approx(9.0)
        assert total.n_train == 1 and total.n_validation == 1

    def test_infinite_error_raises(self):
        graph = make_graph([(1, -2, math.inf, EdgeRole.VALIDATE)])
        shared = RunContext(latent_dim=2, min_val=0.0, max_val=1.0)

        with pytest.raises(InvariantViolation):
            extract_l2_error(shared, graph.edge(0))


class TestConvergenceMonitor:

    def test_rmse(self, mixed_graph, shared, capsys):
        ctx = RecordingContext(shared)
        monitor = ConvergenceMonitor(report_every=1)

        report = monitor.finalize(ctx, aggregate(mixed_graph, ctx))

        assert report['train_rmse'] == pytest.approx(math.sqrt(1.25))
        assert report['validation_rmse'] == pytest.approx(1.0)
        fields = capsys.readouterr().out.strip().split('\t')
        assert len(fields) == 3

    def test_no_validation_column_without_validate_edges(self, scenario_a, shared, capsys):
        ctx = RecordingContext(shared)
        monitor = ConvergenceMonitor(report_every=1)

        report = monitor.finalize(ctx, aggregate(scenario_a, ctx))

        assert report['validation_rmse'] is None
        assert report['train_rmse'] == pytest.approx(0.5)
        assert len(capsys.readouterr().out.strip().split('\t')) == 2

    def test_reports_every_other_call(self, mixed_graph, shared):
        ctx = RecordingContext(shared)
        monitor = ConvergenceMonitor(report_every=2)

        first = monitor.finalize(ctx, aggregate(mixed_graph, ctx))
        assert first is not None
        assert shared.gamma == pytest.approx(0.09)

        second = monitor.finalize(ctx, aggregate(mixed_graph, ctx))
        assert second is None
        assert shared.gamma == pytest.approx(0.09)

        third = monitor.finalize(ctx, aggregate(mixed_graph, ctx))
        assert third is not None
        assert shared.gamma == pytest.approx(0.081)

        assert monitor.calls == 3
        assert len(monitor.history) == 2

    def test_rmse_is_pure_decay_is_not(self, mixed_graph, shared):
        ctx = RecordingContext(shared)
        monitor = ConvergenceMonitor(report_every=1)

        first = monitor.finalize(ctx, aggregate(mixed_graph, ctx))
        second = monitor.finalize(ctx, aggregate(mixed_graph, ctx))

        assert first['train_rmse'] == second['train_rmse']
        assert first['validation_rmse'] == second['validation_rmse']
        assert second['gamma'] == pytest.approx(first['gamma'] * shared.step_dec)

    def test_no_train_edges_raises(self, shared):
        graph = make_graph([(1, -2, 1.0, EdgeRole.VALIDATE)])
        ctx = RecordingContext(shared)
        monitor = ConvergenceMonitor(report_every=1)

        with pytest.raises(InvariantViolation):
            monitor.finalize(ctx, aggregate(graph, ctx))

    def test_skipped_call_does_not_check_train_count(self, shared):
        ctx = RecordingContext(shared)
        monitor = ConvergenceMonitor(report_every=2)
        monitor.calls = 1

        assert monitor.finalize(ctx, ErrorAggregator()) is None

    def test_invalid_cadence(self):
        with pytest.raises(ValueError):
            ConvergenceMonitor(report_every=0)
