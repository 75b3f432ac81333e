from __future__ import annotations

import numpy as np
import pytest

from least_squares import Samples


def noisy_line(seed: int, n: int = 50, intercept: float = 1.5, slope: float = -0.75) -> Samples:
    rng = np.random.default_rng(seed)
    x = rng.uniform(-10.0, 10.0, size=n)
    y = intercept + slope * x + rng.normal(0.0, 2.0, size=n)
    return Samples(x, y)


@pytest.fixture
def five_points() -> list[tuple[float, float]]:
    # x_mean = 3, y_mean = 4, Sxy = 9, Sxx = 10
    return [(1, 2), (2, 3), (3, 5), (4, 4), (5, 6)]


@pytest.fixture
def perfect_line() -> list[tuple[float, float]]:
    return [(1, 2), (2, 4), (3, 6)]


@pytest.fixture
def noisy_samples() -> Samples:
    return noisy_line(seed=7)
