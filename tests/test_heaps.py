import numpy as np
import pytest

from pangrowth.core.exceptions import RegressionError
from pangrowth.modules.heaps import (
    ALPHA_CLOSED, fit_heaps, fit_heaps_curve, get_regression, huber_regression
)


def _inverse_hist():
    """Items per coverage level proportional to 1/level."""
    return [0.0] + [100.0 / i for i in range(1, 201)]


def test_regression_on_inverse_power_law():
    alpha, offset = get_regression(_inverse_hist())

    assert alpha == pytest.approx(1.0, abs=0.2)
    assert offset == pytest.approx(2.0, abs=0.2)


def test_regression_recovers_steeper_exponent(power_law_levels):
    alpha, _ = get_regression(power_law_levels)

    assert alpha == pytest.approx(0.5, abs=0.2)


def test_regression_tolerates_empty_levels():
    hist = _inverse_hist()
    hist[17] = 0.0
    hist[40] = 0.0
    alpha, _ = get_regression(hist)

    assert np.isfinite(alpha)
    assert alpha == pytest.approx(1.0, abs=0.2)


def test_huber_regression_resists_outlier():
    x = np.arange(20, dtype=float)
    y = 2.0 * x + 1.0
    y[5] += 100.0

    slope, intercept = huber_regression(x, y)
    ols_slope, _ = np.polyfit(x, y, 1)

    assert slope == pytest.approx(2.0, abs=0.1)
    assert abs(slope - 2.0) < abs(ols_slope - 2.0)


@pytest.mark.parametrize("x, y", [
    ([1.0], [2.0]),
    ([], []),
    ([1.0, 1.0, 1.0], [1.0, 2.0, 3.0]),
    ([1.0, 2.0], [1.0]),
    ([1.0, 2.0, np.nan], [1.0, 2.0, 3.0]),
])
def test_huber_regression_rejects_degenerate_input(x, y):
    with pytest.raises(RegressionError):
        huber_regression(np.array(x), np.array(y))


def test_regression_on_too_short_histogram():
    with pytest.raises(RegressionError):
        get_regression([3.0, 2.0])


def test_heaps_curve_passes_through_anchors():
    growth = 10.0 * np.arange(1, 21) ** 0.5 + 3.0
    curve = fit_heaps_curve(0.5, growth)

    assert curve.shape == growth.shape
    assert curve[1] == pytest.approx(growth[1])
    assert curve[-2] == pytest.approx(growth[-1])
    assert np.all(np.diff(curve) > 0)


def test_heaps_curve_rejects_flat_exponent():
    with pytest.raises(RegressionError):
        fit_heaps_curve(1.0, np.arange(1.0, 11.0))


def test_heaps_curve_rejects_short_growth():
    with pytest.raises(RegressionError):
        fit_heaps_curve(0.5, [4.0])


def test_fit_heaps_open_pangenome(power_law_levels):
    growth = 50.0 * np.arange(1, 41) ** 0.5
    fit = fit_heaps(power_law_levels, growth)

    assert not fit.is_closed
    assert fit.alpha < ALPHA_CLOSED
    assert len(fit.curve) == 40


def test_fit_heaps_closed_pangenome():
    hist = [float(i ** 9) for i in range(41)]
    fit = fit_heaps(hist, np.arange(1.0, 41.0))

    assert fit.alpha >= ALPHA_CLOSED
    assert fit.curve is None
    assert fit.is_closed
