from itertools import combinations
from math import ceil

import numpy as np
import pytest

from pangrowth.core.thresholds import ThresholdContainer
from pangrowth.core.types import CountType, Hist, Threshold
from pangrowth.modules.growth import calc_all_growths, calc_growth, required_paths


def _brute_force_growth(memberships, n_paths, t_c, q):
    """Average, over all path subsets of each size, of items meeting the threshold."""
    growth = []
    for m in range(1, n_paths + 1):
        t = max(t_c, ceil(m * q))
        subsets = list(combinations(range(n_paths), m))
        total = sum(
            sum(1 for paths in memberships if len(paths.intersection(subset)) >= t)
            for subset in subsets
        )
        growth.append(total / len(subsets))
    return np.array(growth)


def test_growth_concrete_scenario(small_hist):
    thresholds = ThresholdContainer.parse_params("0", "1")
    growth = calc_all_growths(small_hist, thresholds)

    assert growth.shape == (1, 5)
    assert growth[0, 0] == pytest.approx(3.4)
    assert growth[0, -1] == pytest.approx(5.0)


def test_growth_matches_exhaustive_subset_average():
    memberships = [
        {0, 1, 2, 3, 4, 5},
        {0, 2, 4},
        {1, 3},
        {5},
        {0, 1, 2, 3},
        {2, 3, 4, 5},
        set(),
    ]
    n_paths = 6
    hist = Hist.from_coverage(CountType.NODE, np.array([len(p) for p in memberships]), n_paths)
    thresholds = ThresholdContainer.parse_params("0,0.5,1,0", "1,1,1,2")
    growth = calc_all_growths(hist, thresholds)

    for row, (coverage, quorum) in zip(growth, thresholds.pairs()):
        expected = _brute_force_growth(
            memberships, n_paths, coverage.to_absolute(n_paths), quorum.to_relative(n_paths)
        )
        np.testing.assert_allclose(row, expected, rtol=1e-9, atol=1e-9)


@pytest.mark.parametrize("coverage", ["1", "2", "5", "0.3"])
def test_growth_is_monotone_without_quorum(coverage):
    rng = np.random.default_rng(42)
    n_paths = 30
    hist = Hist.from_coverage(CountType.EDGE, rng.integers(0, n_paths + 1, size=500), n_paths)
    growth = calc_all_growths(hist, ThresholdContainer.parse_params("0", coverage))[0]

    assert np.all(np.diff(growth) >= -1e-9)


@pytest.mark.parametrize("quorum, coverage", [
    ("0", "1"), ("0", "3"), ("0.5", "1"), ("1", "1"), ("0.9", "2"), ("0", "0.5"),
])
def test_growth_at_all_paths_is_exact_count(quorum, coverage):
    rng = np.random.default_rng(7)
    n_paths = 25
    hist = Hist.from_coverage(CountType.NODE, rng.integers(0, n_paths + 1, size=300), n_paths)
    thresholds = ThresholdContainer.parse_params(quorum, coverage)
    growth = calc_all_growths(hist, thresholds)[0]

    c, q = thresholds.pairs()[0]
    required = max(c.to_absolute(n_paths), ceil(n_paths * q.to_relative(n_paths)))
    assert growth[-1] == pytest.approx(np.sum(hist.coverage >= required))


def test_core_growth_shrinks(small_hist):
    growth = calc_all_growths(small_hist, ThresholdContainer.parse_params("1", "1"))[0]

    # a single path contains every item it covers, all paths only the core
    assert growth[0] == pytest.approx(3.4)
    assert growth[-1] == pytest.approx(2.0)
    assert np.all(np.diff(growth) <= 1e-9)


def test_growth_blocks_do_not_change_result(small_hist):
    levels = small_hist.histogram()
    a = calc_growth(levels, 5, Threshold.absolute(2), Threshold.relative(0.3), block_size=2)
    b = calc_growth(levels, 5, Threshold.absolute(2), Threshold.relative(0.3))

    np.testing.assert_allclose(a, b)


def test_growth_of_empty_histogram():
    hist = Hist.from_coverage(CountType.BP, np.array([], dtype=int), 4)
    growth = calc_all_growths(hist, ThresholdContainer.parse_params("0", "1,2"))

    assert growth.shape == (2, 4)
    assert np.all(growth == 0)


def test_uncovered_items_only_count_without_threshold():
    hist = Hist.from_coverage(CountType.NODE, np.array([0, 0, 2]), 2)
    growth = calc_all_growths(hist, ThresholdContainer.parse_params("0", "0,1"))

    np.testing.assert_allclose(growth[0], [3.0, 3.0])
    np.testing.assert_allclose(growth[1], [1.0, 1.0])


def test_required_paths_combines_coverage_and_quorum():
    m = np.arange(1, 11)
    t = required_paths(Threshold.absolute(3), Threshold.relative(0.5), 10, m)

    np.testing.assert_array_equal(t, [3, 3, 3, 3, 3, 3, 4, 4, 5, 5])
