import numpy as np
from numba import njit

@njit(cache=True)
def welford_comoments(y: np.ndarray, x: np.ndarray):
    """
    Single pass over the pairs, updating both means and the co-moments
    Sxx = sum((x - mean_x)^2), Sxy = sum((x - mean_x)(y - mean_y))
    Welford-style, so large offsets don't cancel out.
    """
    n = y.shape[0]
    mean_x = 0.0
    mean_y = 0.0
    sxx = 0.0
    sxy = 0.0
    for i in range(n):
        k = i + 1
        dx = x[i] - mean_x
        mean_x += dx / k
        mean_y += (y[i] - mean_y) / k
        # old x deviation times new deviations
        sxx += dx * (x[i] - mean_x)
        sxy += dx * (y[i] - mean_y)

    return mean_x, mean_y, sxx, sxy

@njit(cache=True)
def two_pass_comoments(y: np.ndarray, x: np.ndarray):
    """
    Textbook formula: means first, then sums of deviation products.
    Fine for small n, loses precision when |mean| >> spread.
    """
    n = y.shape[0]
    # means
    mean_y = 0.0
    mean_x = 0.0
    for i in range(n):
        mean_y += y[i]
        mean_x += x[i]
    mean_y /= n
    mean_x /= n

    # covariance & variance (unscaled)
    sxy = 0.0
    sxx = 0.0
    for i in range(n):
        dx = x[i] - mean_x
        sxy += dx * (y[i] - mean_y)
        sxx += dx * dx

    return mean_x, mean_y, sxx, sxy

@njit(cache=True)
def fitted_residuals(y: np.ndarray, x: np.ndarray, beta0: float, beta1: float):
    n = y.shape[0]
    fitted = np.empty(n, dtype=np.float64)
    resid = np.empty(n, dtype=np.float64)
    for i in range(n):
        fitted[i] = beta0 + beta1 * x[i]
        resid[i] = y[i] - fitted[i]

    return fitted, resid

@njit(cache=True)
def residual_sum_of_squares(y: np.ndarray, x: np.ndarray, beta0: float, beta1: float):
    rss = 0.0
    for i in range(y.shape[0]):
        e = y[i] - (beta0 + beta1 * x[i])
        rss += e * e

    return rss
