from pathlib import Path

import numpy as np
import pytest

from pangrowth.core.types import CountType, Hist
from pangrowth.modules.output import save_hists


@pytest.fixture
def small_hist() -> Hist:
    """Five paths, item coverage counts [5, 5, 3, 3, 1]."""
    return Hist.from_coverage(CountType.NODE, np.array([5, 5, 3, 3, 1]), 5)


@pytest.fixture
def power_law_levels() -> list:
    """Items per coverage level decaying as level**-1.5 over 40 paths."""
    return [0] + [int(round(1000 / i ** 1.5)) for i in range(1, 41)]


@pytest.fixture
def power_law_hists(power_law_levels) -> dict:
    edge_levels = [0] + [2 * c for c in power_law_levels[1:]]
    return {
        CountType.NODE: Hist.from_histogram(CountType.NODE, power_law_levels),
        CountType.EDGE: Hist.from_histogram(CountType.EDGE, edge_levels),
    }


@pytest.fixture
def hist_file(tmp_path: Path, power_law_hists) -> Path:
    path = tmp_path / "hist.tsv"
    save_hists(list(power_law_hists.values()), path)
    return path
