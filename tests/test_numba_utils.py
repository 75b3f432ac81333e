from __future__ import annotations

import numpy as np
import pytest

from numba_utils import (
    fitted_residuals,
    residual_sum_of_squares,
    two_pass_comoments,
    welford_comoments,
)


@pytest.mark.parametrize("kernel", [welford_comoments, two_pass_comoments])
def test_comoments_on_small_dataset(kernel) -> None:
    x = np.array([1.0, 2.0, 3.0, 4.0, 5.0])
    y = np.array([2.0, 3.0, 5.0, 4.0, 6.0])

    mean_x, mean_y, sxx, sxy = kernel(y, x)

    assert mean_x == pytest.approx(3.0)
    assert mean_y == pytest.approx(4.0)
    assert sxx == pytest.approx(10.0)
    assert sxy == pytest.approx(9.0)


def test_welford_matches_numpy_on_random_data() -> None:
    rng = np.random.default_rng(3)
    x = rng.normal(50.0, 5.0, size=1_000)
    y = rng.normal(-20.0, 3.0, size=1_000)

    mean_x, mean_y, sxx, sxy = welford_comoments(y, x)

    assert mean_x == pytest.approx(np.mean(x))
    assert mean_y == pytest.approx(np.mean(y))
    assert sxx == pytest.approx(np.sum((x - x.mean()) ** 2))
    assert sxy == pytest.approx(np.sum((x - x.mean()) * (y - y.mean())))


def test_welford_keeps_precision_with_large_offset() -> None:
    i = np.arange(1_000, dtype=np.float64)
    x = 1e8 + i
    y = 5.0 + 3.0 * i

    _, _, sxx, sxy = welford_comoments(y, x)

    assert sxy / sxx == pytest.approx(3.0, rel=1e-6)


def test_constant_x_gives_exact_zero_sxx() -> None:
    x = np.full(7, 2.5)
    y = np.arange(7, dtype=np.float64)

    assert welford_comoments(y, x)[2] == 0.0
    assert two_pass_comoments(y, x)[2] == 0.0


def test_fitted_residuals_preserve_order() -> None:
    x = np.array([3.0, 1.0, 2.0])
    y = np.array([7.0, 2.0, 6.0])

    fitted, resid = fitted_residuals(y, x, 1.0, 2.0)

    np.testing.assert_allclose(fitted, [7.0, 3.0, 5.0])
    np.testing.assert_allclose(resid, [0.0, -1.0, 1.0])


def test_residual_sum_of_squares() -> None:
    x = np.array([3.0, 1.0, 2.0])
    y = np.array([7.0, 2.0, 6.0])

    assert residual_sum_of_squares(y, x, 1.0, 2.0) == pytest.approx(2.0)
