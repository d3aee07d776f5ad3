"""
Pangenome growth curves.

For a coverage histogram over N paths, the growth value at sample size m is the
expected number of items that appear in at least ``max(t_c, ceil(m * q))`` of
m paths drawn uniformly without replacement. Items with equal coverage share
the same probability, so each curve is a weighted sum of hypergeometric
survival functions over the distinct coverage levels.
"""

import logging
from typing import List

import numpy as np
from scipy.stats import hypergeom

from pangrowth.core.types import Hist, Threshold
from pangrowth.core.thresholds import ThresholdContainer


logger = logging.getLogger(__name__)

# number of sample sizes evaluated per vectorized block
BLOCK_SIZE = 256


def required_paths(coverage: Threshold, quorum: Threshold, n_paths: int,
                   m: np.ndarray) -> np.ndarray:
    """Minimum number of sampled paths an item must appear in, per sample size m."""
    t_c = coverage.to_absolute(n_paths)
    q = quorum.to_relative(n_paths)
    return np.maximum(t_c, np.ceil(m * q)).astype(np.int64)


def calc_growth(
    levels: np.ndarray,
    n_paths: int,
    coverage: Threshold,
    quorum: Threshold,
    block_size: int = BLOCK_SIZE
) -> np.ndarray:
    """
    Compute one growth curve from item counts per coverage level.

    Args:
        levels: ``levels[c]`` is the number of items contained in exactly c paths
        n_paths: Total number of paths N
        coverage: Coverage threshold of the pair
        quorum: Quorum threshold of the pair
        block_size: Sample sizes evaluated per vectorized step

    Returns:
        Array of length N whose entry ``m - 1`` is the expected count at sample size m
    """
    growth = np.zeros(n_paths, dtype=np.float64)
    if n_paths == 0:
        return growth

    cs = np.flatnonzero(levels)
    if cs.size == 0:
        return growth
    weights = np.asarray(levels, dtype=np.float64)[cs]

    for first in range(1, n_paths + 1, block_size):
        m = np.arange(first, min(first + block_size, n_paths + 1))
        t = required_paths(coverage, quorum, n_paths, m)
        # P(X >= t) for X ~ Hypergeom(N, c, m), rows are coverage levels
        p = hypergeom.sf(t[np.newaxis, :] - 1, n_paths, cs[:, np.newaxis], m[np.newaxis, :])
        growth[first - 1:first - 1 + m.size] = weights @ np.nan_to_num(p)

    return growth


def calc_all_growths(hist: Hist, thresholds: ThresholdContainer) -> np.ndarray:
    """
    Compute the growth curves of one count type for every threshold pair.

    Returns:
        Matrix with one row per threshold pair and one column per sample size 1..N
    """
    levels = hist.histogram()
    rows: List[np.ndarray] = []
    for coverage, quorum in thresholds.pairs():
        logger.debug(
            f"Calculating {hist.count_type} growth for coverage {coverage}, quorum {quorum}"
        )
        rows.append(calc_growth(levels, hist.n_paths, coverage, quorum))

    return np.vstack(rows) if rows else np.empty((0, hist.n_paths))
