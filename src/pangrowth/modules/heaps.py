"""Heaps' law estimation from coverage histograms."""

import logging
from typing import Sequence, Tuple

import numpy as np
from scipy.optimize import least_squares
from scipy.stats import theilslopes

from pangrowth.core.types import HeapsFit
from pangrowth.core.exceptions import RegressionError


logger = logging.getLogger(__name__)

# log10(0) is replaced by this value to keep the regression finite
LOG_ZERO_SENTINEL = -100000.0
# alpha at or above this value is reported as a closed pangenome, without curve
ALPHA_CLOSED = 10.0
HUBER_EPSILON = 1.35
# lower bound of the residual scale, in log10 units
MIN_SCALE = 1e-3
MIN_FIT_POINTS = 10


def _log10_clamped(values: np.ndarray) -> np.ndarray:
    with np.errstate(divide="ignore"):
        logs = np.log10(values)
    logs[np.isneginf(logs)] = LOG_ZERO_SENTINEL
    return logs


def huber_regression(x: np.ndarray, y: np.ndarray,
                     epsilon: float = HUBER_EPSILON) -> Tuple[float, float]:
    """
    Fit ``y = slope * x + intercept`` with a Huber loss.

    The fit starts from the Theil-Sen estimate; the loss switches from squared
    to absolute residuals at ``epsilon`` times the normalized median absolute
    deviation of the starting residuals.

    Args:
        x: Predictor values
        y: Response values
        epsilon: Huber threshold in units of the residual scale

    Returns:
        Tuple of (slope, intercept)

    Raises:
        RegressionError: Fewer than two points, constant x, or non-finite solution
    """
    x = np.asarray(x, dtype=np.float64)
    y = np.asarray(y, dtype=np.float64)
    if x.size != y.size:
        raise RegressionError(f"x and y differ in length ({x.size} vs {y.size})", x.size)
    if x.size < 2:
        raise RegressionError(f"Regression needs at least two points, got {x.size}", x.size)
    if not (np.all(np.isfinite(x)) and np.all(np.isfinite(y))):
        raise RegressionError("Regression input contains non-finite values", x.size)
    if np.ptp(x) == 0:
        raise RegressionError("Regression predictor is constant", x.size)

    slope, intercept = theilslopes(y, x)[:2]
    residuals = y - (slope * x + intercept)
    scale = 1.4826 * np.median(np.abs(residuals - np.median(residuals)))
    if not np.isfinite(scale) or scale < MIN_SCALE:
        scale = MIN_SCALE

    result = least_squares(
        lambda p: p[0] * x + p[1] - y,
        x0=np.array([slope, intercept]),
        loss="huber",
        f_scale=epsilon * scale
    )
    if not result.success or not np.all(np.isfinite(result.x)):
        raise RegressionError(f"Huber regression did not converge: {result.message}", x.size)

    return float(result.x[0]), float(result.x[1])


def get_regression(hist: Sequence[float]) -> Tuple[float, float]:
    """
    Estimate the Heaps' law exponent from a coverage histogram.

    Ranks ``1..len-1`` are regressed against ``hist[1:]`` on a log-log scale,
    using the head of the distribution after the first rank.

    Returns:
        Tuple of (alpha, offset) with alpha = 2 + slope
    """
    hist = np.asarray(hist, dtype=np.float64)
    log_x = _log10_clamped(np.arange(1, hist.size, dtype=np.float64))
    log_y = _log10_clamped(hist[1:].copy())

    n = max(hist.size // 2, MIN_FIT_POINTS)
    log_x = log_x[1:1 + n]
    log_y = log_y[1:1 + n]

    slope, intercept = huber_regression(log_x, log_y)
    return 2.0 + slope, intercept


def fit_heaps_curve(alpha: float, growth: Sequence[float]) -> np.ndarray:
    """
    Fit ``f(x) = k * x**(1 - alpha) + c`` through two points of a full growth curve.

    The anchors are ``(2, growth[1])`` and ``(len - 1, growth[-1])``.

    Returns:
        Curve evaluated at ``x = 1..len(growth)``
    """
    growth = np.asarray(growth, dtype=np.float64)
    if growth.size < 2:
        raise RegressionError(
            f"Growth curve of length {growth.size} is too short to anchor a fit", growth.size
        )
    gamma = 1.0 - alpha
    x1, y1 = 2.0, growth[1]
    x2, y2 = float(growth.size - 1), growth[-1]

    denominator = x1 ** gamma - x2 ** gamma
    if denominator == 0 or not np.isfinite(denominator):
        raise RegressionError(
            f"Cannot anchor power law with exponent {gamma} at x={x1} and x={x2}", growth.size
        )
    k = (y1 - y2) / denominator
    c = y1 - k * x1 ** gamma

    curve = np.arange(1, growth.size + 1, dtype=np.float64) ** gamma * k + c
    if not np.all(np.isfinite(curve)):
        raise RegressionError("Fitted Heaps' curve contains non-finite values", growth.size)
    return curve


def fit_heaps(hist: Sequence[float], growth: Sequence[float]) -> HeapsFit:
    """
    Fit Heaps' law for one count type.

    Args:
        hist: Coverage histogram (items per coverage level)
        growth: Full growth curve (coverage >= 1, quorum 0)

    Returns:
        HeapsFit, without curve when alpha indicates a closed pangenome
    """
    alpha, offset = get_regression(hist)
    if alpha >= ALPHA_CLOSED:
        logger.info(f"Heaps' alpha {alpha:.3f} indicates a closed pangenome, no curve fitted")
        return HeapsFit(alpha=alpha, offset=offset, curve=None)

    return HeapsFit(alpha=alpha, offset=offset, curve=fit_heaps_curve(alpha, growth))
