"""
Coverage accumulation from per-path active tables.

Each path contributes one ActiveTable. The item id space is split into
contiguous shards and every worker thread owns one shard's slice of the
output array exclusively, so no locking is needed while summing.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional, Sequence, Tuple

import numpy as np

from pangrowth.core.types import CountType, Hist
from pangrowth.core.intervals import ActiveTable
from pangrowth.core.exceptions import ValidationError


logger = logging.getLogger(__name__)

DEFAULT_SHARD_SIZE = 65536


def make_shards(n_items: int, shard_size: int = DEFAULT_SHARD_SIZE) -> List[Tuple[int, int]]:
    """Split ``[0, n_items)`` into contiguous half-open id ranges."""
    if shard_size <= 0:
        raise ValueError(f"Shard size must be positive, got {shard_size}")
    return [(lo, min(lo + shard_size, n_items)) for lo in range(0, n_items, shard_size)]


def _check_tables(tables: Sequence[ActiveTable], n_items: int) -> None:
    for i, table in enumerate(tables):
        if len(table) != n_items:
            raise ValidationError(
                f"Active table {i} has {len(table)} items, expected {n_items}",
                stage="coverage"
            )


def _run_sharded(worker, shards: List[Tuple[int, int]], max_workers: int) -> None:
    if max_workers <= 1 or len(shards) <= 1:
        for lo, hi in shards:
            worker(lo, hi)
        return

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {executor.submit(worker, lo, hi): (lo, hi) for lo, hi in shards}
        for future in as_completed(futures):
            lo, hi = futures[future]
            future.result()
            logger.debug(f"Accumulated coverage of items {lo}-{hi}")


def item_coverage(
    tables: Sequence[ActiveTable],
    n_items: int,
    max_workers: int = 1,
    shard_size: int = DEFAULT_SHARD_SIZE
) -> np.ndarray:
    """
    Number of tables in which each item is active.

    Partially annotated items do not count; only full activations do.
    """
    _check_tables(tables, n_items)
    coverage = np.zeros(n_items, dtype=np.int64)

    def worker(lo: int, hi: int) -> None:
        view = coverage[lo:hi]
        for table in tables:
            view += table.items[lo:hi]

    _run_sharded(worker, make_shards(n_items, shard_size), max_workers)
    return coverage


def bp_coverage(
    tables: Sequence[ActiveTable],
    item_lengths: Sequence[int],
    max_workers: int = 1,
    shard_size: int = DEFAULT_SHARD_SIZE
) -> np.ndarray:
    """
    Number of tables covering each base pair.

    Bases are laid out item after item; full activations cover the whole item,
    annotated items cover their recorded intervals.
    """
    lengths = np.asarray(item_lengths, dtype=np.int64)
    n_items = lengths.size
    _check_tables(tables, n_items)
    offsets = np.concatenate(([0], np.cumsum(lengths)))
    coverage = np.zeros(int(offsets[-1]), dtype=np.int64)

    def worker(lo: int, hi: int) -> None:
        base_lo, base_hi = int(offsets[lo]), int(offsets[hi])
        # difference array over this shard's bases, one extra slot for interval ends
        diff = np.zeros(base_hi - base_lo + 1, dtype=np.int64)
        for table in tables:
            full = np.flatnonzero(table.items[lo:hi]) + lo
            np.add.at(diff, offsets[full] - base_lo, 1)
            np.add.at(diff, offsets[full + 1] - base_lo, -1)
            if table.annotation is None:
                continue
            for item_id, intervals in table.annotation.items():
                if not lo <= item_id < hi:
                    continue
                item_len = int(lengths[item_id])
                for start, end in intervals:
                    start, end = max(start, 0), min(end, item_len)
                    if start >= end:
                        continue
                    diff[offsets[item_id] - base_lo + start] += 1
                    diff[offsets[item_id] - base_lo + end] -= 1
        coverage[base_lo:base_hi] = np.cumsum(diff[:-1])

    _run_sharded(worker, make_shards(n_items, shard_size), max_workers)
    return coverage


def build_hist(
    count_type: CountType,
    tables: Sequence[ActiveTable],
    item_lengths: Optional[Sequence[int]] = None,
    max_workers: int = 1,
    shard_size: int = DEFAULT_SHARD_SIZE
) -> Hist:
    """
    Fold the active tables of all paths into a Hist.

    Args:
        count_type: Count type of the items tracked by the tables
        tables: One ActiveTable per path
        item_lengths: Item lengths, required for ``CountType.BP``
        max_workers: Number of worker threads
        shard_size: Number of item ids owned by one worker task

    Returns:
        Hist with one coverage entry per item (per base pair for bp)
    """
    if not tables:
        raise ValidationError(f"No active tables given for {count_type}", stage="coverage")

    if count_type is CountType.BP:
        if item_lengths is None:
            raise ValidationError("Item lengths are required for bp coverage", stage="coverage")
        coverage = bp_coverage(tables, item_lengths, max_workers, shard_size)
    else:
        coverage = item_coverage(tables, len(tables[0]), max_workers, shard_size)

    logger.info(f"Built {count_type} histogram over {len(coverage)} items and {len(tables)} paths")
    return Hist.from_coverage(count_type, coverage, len(tables))
