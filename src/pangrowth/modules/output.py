"""Hist file loading and growth table generation."""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from pangrowth.core.types import CountType, GrowthResult, Hist
from pangrowth.core.exceptions import ValidationError


logger = logging.getLogger(__name__)

COLUMN_LEVELS = ["kind", "count", "coverage", "quorum"]


def load_hists(hist_file: Union[str, Path]) -> Tuple[Dict[CountType, Hist], int, List[str]]:
    """
    Load coverage histograms from a tab-separated hist file.

    The file holds a ``coverage`` column with levels ``0..N`` and one column
    per count type with the number of items at each level. Lines starting
    with ``#`` are returned as comments.

    Args:
        hist_file: Path to the hist file

    Returns:
        Tuple of (hists by count type, number of paths, comment lines)

    Raises:
        ValidationError: Malformed hist file
    """
    hist_file = Path(hist_file)
    if not hist_file.exists():
        raise FileNotFoundError(f"Hist file not found: {hist_file}")

    with open(hist_file, 'r') as f:
        comments = [line.rstrip("\n") for line in f if line.startswith("#")]

    try:
        table = pd.read_csv(hist_file, sep='\t', comment='#')
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise ValidationError(f"Error parsing hist file {hist_file}: {e}", stage="input")

    errors = []
    if "coverage" not in table.columns:
        errors.append("missing 'coverage' column")
    count_columns = [c for c in table.columns if c != "coverage"]
    unknown = [c for c in count_columns if c not in {ct.value for ct in CountType}]
    if unknown:
        errors.append(f"unknown count types: {', '.join(map(str, unknown))}")
    if not count_columns:
        errors.append("no count type columns")
    if errors:
        raise ValidationError(f"Invalid hist file {hist_file}", errors=errors, stage="input")

    levels = table["coverage"].to_numpy()
    if not np.array_equal(levels, np.arange(len(table))):
        raise ValidationError(
            f"Coverage levels in {hist_file} must run from 0 to N without gaps", stage="input"
        )

    hists = {}
    for column in count_columns:
        counts = table[column]
        if counts.isna().any():
            raise ValidationError(f"Missing values in column '{column}' of {hist_file}", stage="input")
        count_type = CountType(column)
        hists[count_type] = Hist.from_histogram(count_type, counts.to_numpy())

    n_paths = len(table) - 1
    logger.info(f"Loaded {len(hists)} histograms over {n_paths} paths from {hist_file}")
    return hists, n_paths, comments


def save_hists(hists: Sequence[Hist], output_file: Union[str, Path]) -> None:
    """Write hists in the format read by ``load_hists``."""
    n_paths = max(h.n_paths for h in hists)
    table = pd.DataFrame({"coverage": np.arange(n_paths + 1)})
    for hist in hists:
        levels = np.zeros(n_paths + 1, dtype=np.int64)
        levels[:hist.n_paths + 1] = hist.histogram()
        table[hist.count_type.value] = levels
    table.to_csv(output_file, sep='\t', index=False)
    logger.info(f"Saved {len(hists)} histograms to {output_file}")


def growth_table(
    results: Sequence[GrowthResult],
    hists: Optional[Sequence[Hist]] = None
) -> pd.DataFrame:
    """
    Assemble growth curves into one table.

    Rows are indexed by ``m = 0..N``, which is the sample size for growth
    columns and the coverage level for histogram columns; growth is empty at
    ``m = 0``. Columns carry a four level header of (kind, count, coverage, quorum).
    """
    columns: Dict[Tuple[str, str, str, str], np.ndarray] = {}
    n_paths = max(
        [r.n_paths for r in results] + [h.n_paths for h in hists or []], default=0
    )

    for hist in hists or []:
        counts = np.full(n_paths + 1, np.nan)
        levels = hist.histogram()
        counts[:levels.size] = levels
        columns[("hist", str(hist.count_type), "", "")] = counts

    for result in results:
        for (c, q), curve in zip(zip(result.coverage, result.quorum), result.curves):
            column = np.full(n_paths + 1, np.nan)
            column[1:curve.size + 1] = curve
            columns[("growth", str(result.count_type), c.value_string(), q.value_string())] = column

    table = pd.DataFrame(columns, index=pd.RangeIndex(0, n_paths + 1, name="m"))
    table.columns = pd.MultiIndex.from_tuples(table.columns, names=COLUMN_LEVELS)
    return table


def write_growth_table(
    output_file: Union[str, Path],
    results: Sequence[GrowthResult],
    hists: Optional[Sequence[Hist]] = None,
    comments: Optional[Sequence[str]] = None,
    add_alpha: bool = True,
    command: Optional[str] = None
) -> Path:
    """
    Write the growth table as TSV.

    The table is preceded by the hist file comments, the command line that
    produced it (if given) and one alpha line per fitted count type.

    Returns:
        Path of the written file
    """
    output_file = Path(output_file)
    output_file.parent.mkdir(parents=True, exist_ok=True)
    table = growth_table(results, hists)

    with open(output_file, 'w') as f:
        for comment in comments or []:
            f.write(f"{comment}\n")
        if command:
            f.write(f"# {command}\n")
        if add_alpha:
            for result in results:
                if result.heaps is not None:
                    f.write(f"# alpha ({result.count_type}): {result.heaps.alpha}\n")
        table.to_csv(f, sep='\t', float_format="%.6g")

    logger.info(f"Saved growth table to {output_file}")
    return output_file
