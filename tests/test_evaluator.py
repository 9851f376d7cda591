"""Тесты для Evaluator и сохранения предсказаний."""

import math

import numpy as np
import pandas as pd
import pytest
import torch

from biassgd.evaluation import Evaluator, export_factors, save_predictions
from biassgd.models import EdgeRole
from biassgd.training import ConvergenceMonitor, ErrorAggregator

from conftest import RecordingContext


@pytest.fixture
def evaluator():
    return Evaluator(device=torch.device('cpu'))


class TestEvaluator:

    def test_metrics(self, mixed_graph, shared, evaluator):
        metrics = evaluator.evaluate(mixed_graph, shared)

        assert metrics['n_train'] == 2
        assert metrics['n_validation'] == 1
        assert metrics['train_rmse'] == pytest.approx(math.sqrt(1.25))
        assert metrics['train_mae'] == pytest.approx(1.0)
        assert metrics['validation_rmse'] == pytest.approx(1.0)

    def test_matches_monitor(self, mixed_graph, shared, evaluator):
        ctx = RecordingContext(shared)
        total = ErrorAggregator()
        for e in range(mixed_graph.num_edges):
            total += ErrorAggregator.map(ctx, mixed_graph.edge(e))
        report = ConvergenceMonitor(report_every=1, verbose=False).finalize(ctx, total)

        metrics = evaluator.evaluate(mixed_graph, shared)

        assert metrics['train_rmse'] == pytest.approx(report['train_rmse'])
        assert metrics['validation_rmse'] == pytest.approx(report['validation_rmse'])

    def test_predict_with_mask(self, mixed_graph, shared, evaluator):
        predictions = evaluator.predict(mixed_graph, shared, edge_mask=mixed_graph.role_mask(EdgeRole.PREDICT))

        assert predictions.shape == (1,)
        assert predictions[0].item() == pytest.approx(0.75)

    def test_predictions_clamped(self, mixed_graph, shared, evaluator):
        for vdata in mixed_graph.vertices:
            vdata.latent = np.array([10.0, 10.0])

        predictions = evaluator.predict(mixed_graph, shared)

        assert torch.all(predictions == shared.max_val)

    def test_export_factors(self, mixed_graph):
        factors = export_factors(mixed_graph)

        assert factors['latent'].shape == (5, 2)
        assert factors['vertex_ids'].tolist() == [-6, -4, -2, 1, 3]
        assert factors['bias'][0].item() == pytest.approx(0.25)
        assert factors['update_count'].sum().item() == 0


class TestSavePredictions:

    def test_one_line_per_edge(self, mixed_graph, shared, evaluator, tmp_path):
        path = save_predictions(mixed_graph, shared, str(tmp_path / "run"), evaluator=evaluator)

        assert path.name == "run.predictions.tsv"
        df = pd.read_csv(path, sep='\t', header=None, names=['source', 'target', 'prediction'])
        assert df['source'].tolist() == [1, 1, 1, 3]
        assert df['target'].tolist() == [-2, -4, -6, -2]
        np.testing.assert_allclose(df['prediction'], [0.0, 1.0, 0.75, 0.0])

    def test_remapped_targets_restored(self, mixed_graph, shared, evaluator, tmp_path):
        path = save_predictions(
            mixed_graph, shared, str(tmp_path / "run"), remap_target=True, evaluator=evaluator
        )

        df = pd.read_csv(path, sep='\t', header=None)
        assert df[1].tolist() == [0, 2, 4, 0]
