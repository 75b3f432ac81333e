from typing import Sequence, Tuple, Union
import multiprocessing

import pandas as pd
import numpy as np
from dataclasses import dataclass, field

from statsmodels.regression.linear_model import OLS
from statsmodels.tools.tools import add_constant

from tqdm import tqdm

from numba_utils import (
    welford_comoments,
    two_pass_comoments,
    fitted_residuals,
    residual_sum_of_squares as rss_kernel,
)

METHODS = {
    "welford": welford_comoments,
    "two_pass": two_pass_comoments,
}
DEFAULT_METHOD = "welford"
COLUMNS = ["x", "y", "fitted", "residual"]


class DomainError(ValueError):
    """Input is outside the domain where the OLS line is defined."""


class InsufficientDataError(DomainError):
    """Fewer observations than the computation needs."""


class DegeneratePredictorError(DomainError):
    """All predictor values are identical, so the slope is undefined."""


@dataclass(frozen=True, eq=False)
class Samples:
    x: np.ndarray
    y: np.ndarray

    def __post_init__(self):

        x = np.array(self.x, dtype=np.float64)
        y = np.array(self.y, dtype=np.float64)

        if x.ndim != 1 or y.ndim != 1:
            raise ValueError(f"Expected 1-D x and y, got shapes {x.shape} and {y.shape}")
        if x.shape[0] != y.shape[0]:
            raise ValueError(f"x and y differ in length: {x.shape[0]} != {y.shape[0]}")

        if not np.all(np.isfinite(x)) or not np.all(np.isfinite(y)):
            bad = np.flatnonzero(~(np.isfinite(x) & np.isfinite(y)))
            raise DomainError(f"Non-finite values at rows {bad[:5].tolist()}{'...' if len(bad) > 5 else ''}")

        # samples are read once and never touched again
        x.flags.writeable = False
        y.flags.writeable = False
        object.__setattr__(self, "x", x)
        object.__setattr__(self, "y", y)

    @classmethod
    def from_pairs(cls, pairs: Sequence[Tuple[float, float]]) -> "Samples":
        arr = np.asarray(pairs, dtype=np.float64)
        if arr.size == 0:
            arr = arr.reshape(0, 2)
        if arr.ndim != 2 or arr.shape[1] != 2:
            raise ValueError(f"Expected a sequence of (x, y) pairs, got shape {arr.shape}")
        return cls(arr[:, 0], arr[:, 1])

    @classmethod
    def from_frame(cls, df: pd.DataFrame, x_col: str, y_col: str) -> "Samples":
        missing = {x_col, y_col} - set(df.columns)
        if missing:
            raise ValueError(f"DataFrame missing cols: {missing}")
        return cls(df[x_col].to_numpy(), df[y_col].to_numpy())

    def __len__(self):
        return self.x.shape[0]


SampleLike = Union[Samples, Sequence[Tuple[float, float]]]


@dataclass(frozen=True)
class SummaryStats:
    n: int
    x_mean: float
    y_mean: float
    sxx: float
    sxy: float

    def show(self):
        print(f"n      = {self.n}")
        print(f"x_mean = {self.x_mean:.10f}")
        print(f"y_mean = {self.y_mean:.10f}")
        print(f"Sxx    = {self.sxx:.10f}")
        print(f"Sxy    = {self.sxy:.10f}")


@dataclass(frozen=True)
class FittedModel:
    intercept: float
    slope: float
    stats: SummaryStats = field(repr=False, compare=False)
    method: str = DEFAULT_METHOD

    def predict(self, x):
        return predict(self, x)

    def fitted_values(self, samples: SampleLike) -> np.ndarray:
        return fitted_values(self, samples)

    def residuals(self, samples: SampleLike) -> np.ndarray:
        return residuals(self, samples)

    def show(self):
        print(f"intercept (b0): {self.intercept:.10f}")
        print(f"slope     (b1): {self.slope:.10f}")
        print(f"method        : {self.method}")


def _as_samples(samples: SampleLike) -> Samples:
    if isinstance(samples, Samples):
        return samples
    return Samples.from_pairs(samples)


def summarise(samples: SampleLike, method: str = DEFAULT_METHOD) -> SummaryStats:
    """Sample size, means and the unscaled co-moments Sxx, Sxy."""
    samples = _as_samples(samples)

    if method not in METHODS:
        raise ValueError(f"Unknown method {method!r}, expected one of {sorted(METHODS)}")

    n = len(samples)
    if n < 1:
        raise InsufficientDataError("Insufficient data: no observations")

    mean_x, mean_y, sxx, sxy = METHODS[method](samples.y, samples.x)
    return SummaryStats(n=n, x_mean=float(mean_x), y_mean=float(mean_y), sxx=float(sxx), sxy=float(sxy))


def _check_predictor(samples: Samples, stats: SummaryStats):
    # two_pass can leave rounding noise in Sxx when every x is the same
    if stats.sxx == 0.0 or np.all(samples.x == samples.x[0]):
        raise DegeneratePredictorError(f"Zero variance in predictor (all x == {float(samples.x[0])})")


def _check_finite(stats: SummaryStats, beta0: float = 0.0, beta1: float = 0.0):
    # finite inputs can still overflow the sums of squares
    if not np.all(np.isfinite([stats.sxx, stats.sxy, beta0, beta1])):
        raise DomainError(
            f"Non-finite estimate (Sxx={stats.sxx}, Sxy={stats.sxy}, b0={beta0}, b1={beta1}); "
            "rescale the data"
        )


def fit(samples: SampleLike, method: str = DEFAULT_METHOD) -> FittedModel:
    """
    Closed-form OLS for one predictor:
        b1 = Sxy / Sxx,  b0 = y_mean - b1 * x_mean.
    Pure, one pass, no iteration.
    """
    samples = _as_samples(samples)

    n = len(samples)
    if n < 2:
        raise InsufficientDataError(f"Insufficient data: need at least 2 points, got {n}")

    stats = summarise(samples, method)
    _check_predictor(samples, stats)
    _check_finite(stats)

    beta1 = stats.sxy / stats.sxx
    beta0 = stats.y_mean - beta1 * stats.x_mean
    _check_finite(stats, beta0, beta1)

    return FittedModel(intercept=beta0, slope=beta1, stats=stats, method=method)


def predict(model: FittedModel, x):
    """b0 + b1 * x for a scalar or an array of x."""
    arr = np.asarray(x, dtype=np.float64)
    if not np.all(np.isfinite(arr)):
        raise DomainError(f"Cannot predict at non-finite x: {x!r}")

    with np.errstate(over="ignore", invalid="ignore"):
        y_hat = model.intercept + model.slope * arr
    if not np.all(np.isfinite(y_hat)):
        raise DomainError(f"Prediction overflows at x={x!r}")
    if arr.ndim == 0:
        return float(y_hat)
    return y_hat


def fitted_values(model: FittedModel, samples: SampleLike) -> np.ndarray:
    samples = _as_samples(samples)
    fitted, _ = fitted_residuals(samples.y, samples.x, model.intercept, model.slope)
    return fitted


def residuals(model: FittedModel, samples: SampleLike) -> np.ndarray:
    """y - y_hat per sample, aligned with the input order."""
    samples = _as_samples(samples)
    _, resid = fitted_residuals(samples.y, samples.x, model.intercept, model.slope)
    return resid


def residual_sum_of_squares(model: FittedModel, samples: SampleLike) -> float:
    samples = _as_samples(samples)
    return float(rss_kernel(samples.y, samples.x, model.intercept, model.slope))


def fit_table(model: FittedModel, samples: SampleLike) -> pd.DataFrame:
    """One row per sample: x, y, fitted value and residual."""
    samples = _as_samples(samples)
    fitted, resid = fitted_residuals(samples.y, samples.x, model.intercept, model.slope)
    return pd.DataFrame(
        {"x": samples.x, "y": samples.y, "fitted": fitted, "residual": resid},
        columns=COLUMNS,
    )


def reference_fit(samples: SampleLike) -> FittedModel:
    """Same line from statsmodels OLS, to check the manual computation against."""
    samples = _as_samples(samples)

    n = len(samples)
    if n < 2:
        raise InsufficientDataError(f"Insufficient data: need at least 2 points, got {n}")

    stats = summarise(samples)
    # statsmodels falls back to a pseudo-inverse here instead of failing
    _check_predictor(samples, stats)
    _check_finite(stats)

    X = add_constant(samples.x, has_constant="add")
    beta0, beta1 = OLS(samples.y, X).fit().params
    _check_finite(stats, float(beta0), float(beta1))

    return FittedModel(intercept=float(beta0), slope=float(beta1), stats=stats, method="statsmodels")


def _fit_job(job):
    samples, method = job
    return fit(samples, method)


def _init_worker():
    # warm up Numba functions once per process
    dummy_x = np.arange(200, dtype=np.float64)
    dummy_y = dummy_x * 2.0
    welford_comoments(dummy_y, dummy_x)
    two_pass_comoments(dummy_y, dummy_x)
    fitted_residuals(dummy_y, dummy_x, 0.0, 2.0)


def fit_many(datasets: Sequence[SampleLike], method: str = DEFAULT_METHOD, n_jobs: int = None) -> list[FittedModel]:
    """
    Fit independent datasets, one model per dataset in input order.
    The first DomainError raised by any dataset propagates.
    """
    if method not in METHODS:
        raise ValueError(f"Unknown method {method!r}, expected one of {sorted(METHODS)}")

    jobs = [(_as_samples(d), method) for d in datasets]
    total = len(jobs)
    print(f"Fitting {total:,} datasets ({method})")

    if n_jobs == 1 or total < 2:
        return [
            _fit_job(job)
            for job in tqdm(jobs, total=total, desc="Fitting datasets", unit="dataset")
        ]

    models = []
    with multiprocessing.Pool(processes=n_jobs, initializer=_init_worker) as pool:
        for model in tqdm(
            pool.imap(_fit_job, jobs, chunksize=max(1, total // 100)),
            total=total,
            desc="Fitting datasets",
            unit="dataset"
        ):
            models.append(model)

    return models
