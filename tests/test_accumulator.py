"""Тесты для GradientAccumulator."""

import numpy as np
import pytest

from biassgd.models.accumulator import GradientAccumulator, combine


class TestGradientAccumulator:
    """Сложение аккумуляторов шагов."""

    def test_empty_is_identity(self):
        a = GradientAccumulator(np.array([1.0, -2.0]), 0.5)

        assert GradientAccumulator.empty() + a == a
        assert a + GradientAccumulator.empty() == a
        assert (GradientAccumulator.empty() + GradientAccumulator.empty()).is_empty()

    def test_empty_has_zero_bias(self):
        acc = GradientAccumulator(None, 3.0)
        assert acc.is_empty()
        assert acc.bias_delta == 0.0

    def test_commutative(self):
        a = GradientAccumulator(np.array([1.0, 2.0]), 1.0)
        b = GradientAccumulator(np.array([-3.0, 4.0]), -2.0)
        assert combine(a, b) == combine(b, a)

    def test_associative(self):
        # Целые значения, чтобы сравнение было точным
        a = GradientAccumulator(np.array([1.0, 2.0, 3.0]), 1.0)
        b = GradientAccumulator(np.array([4.0, -5.0, 6.0]), 2.0)
        c = GradientAccumulator(np.array([-7.0, 8.0, 9.0]), -3.0)
        assert (a + b) + c == a + (b + c)

    def test_iadd_accumulates(self):
        total = GradientAccumulator.empty()
        for step in ([1.0, 0.0], [0.0, 1.0], [2.0, 2.0]):
            total += GradientAccumulator(np.array(step), 0.5)

        np.testing.assert_array_equal(total.delta, [3.0, 3.0])
        assert total.bias_delta == pytest.approx(1.5)

    def test_iadd_into_empty_does_not_alias(self):
        other = GradientAccumulator(np.array([1.0, 1.0]), 0.0)
        total = GradientAccumulator.empty()
        total += other
        total += other

        np.testing.assert_array_equal(other.delta, [1.0, 1.0])
        np.testing.assert_array_equal(total.delta, [2.0, 2.0])

    def test_add_does_not_mutate_operands(self):
        a = GradientAccumulator(np.array([1.0, 1.0]), 1.0)
        b = GradientAccumulator(np.array([2.0, 2.0]), 2.0)
        _ = a + b
        np.testing.assert_array_equal(a.delta, [1.0, 1.0])
        assert a.bias_delta == 1.0

    def test_shape_mismatch_raises(self):
        a = GradientAccumulator(np.zeros(2))
        b = GradientAccumulator(np.zeros(3))
        with pytest.raises(ValueError):
            a += b

    def test_zeros_is_not_empty(self):
        z = GradientAccumulator.zeros(4)
        assert not z.is_empty()
        np.testing.assert_array_equal(z.delta, np.zeros(4))
        assert z.bias_delta == 0.0
