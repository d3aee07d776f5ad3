"""Per-item coverage tracking: merged interval maps and full/partial active tables."""

import logging
from bisect import bisect_left
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from pangrowth.core.exceptions import AnnotationError


logger = logging.getLogger(__name__)

Interval = Tuple[int, int]


class IntervalContainer:
    """
    Map from item id to sorted, non-overlapping half-open intervals ``[start, end)``.

    Insertion merges the new interval with its immediate predecessor or successor
    only; a chain of intervals made adjacent by one insertion is not coalesced.
    """

    def __init__(self) -> None:
        self._map: Dict[int, List[Interval]] = {}

    def add(self, item_id: int, start: int, end: int) -> None:
        """Add ``[start, end)`` to the union of intervals recorded for ``item_id``."""
        intervals = self._map.get(item_id)
        if intervals is None:
            self._map[item_id] = [(start, end)]
            return

        i = bisect_left([s for s, _ in intervals], start)
        if i > 0 and start <= intervals[i - 1][1] <= end:
            intervals[i - 1] = (intervals[i - 1][0], end)
        elif i < len(intervals) and start <= intervals[i][1] < end:
            intervals[i] = (intervals[i][0], end)
        elif i < len(intervals) and intervals[i][0] <= end:
            intervals[i] = (start, intervals[i][1])
        else:
            intervals.insert(i, (start, end))

    def get(self, item_id: int) -> Optional[List[Interval]]:
        intervals = self._map.get(item_id)
        return list(intervals) if intervals is not None else None

    def remove(self, item_id: int) -> Optional[List[Interval]]:
        return self._map.pop(item_id, None)

    def total_coverage(self, item_id: int, exclude: Optional[Sequence[Interval]] = None) -> int:
        """
        Sum of interval lengths recorded for ``item_id``.

        If ``exclude`` is given (sorted, non-overlapping), the overlap with the
        first exclusion interval reaching into each stored interval is
        subtracted. The left remainder ends one position before the exclusion
        start and the right remainder starts at the exclusion end inclusively;
        a negative left remainder counts as zero.
        """
        intervals = self._map.get(item_id)
        if intervals is None:
            return 0
        if exclude is None:
            return sum(end - start for start, end in intervals)

        res = 0
        i = 0
        for start, end in intervals:
            while i < len(exclude) and exclude[i][1] <= start:
                i += 1
            if i < len(exclude) and exclude[i][0] < end:
                res += max(min(exclude[i][0] - 1, end) - start, 0)
                if exclude[i][1] < end:
                    res += end - exclude[i][1] + 1
            else:
                res += end - start
        return res

    def __contains__(self, item_id: int) -> bool:
        return item_id in self._map

    def __len__(self) -> int:
        return len(self._map)

    def items(self) -> Iterator[Tuple[int, List[Interval]]]:
        return iter(self._map.items())


class ActiveTable:
    """
    Coverage of one path over all items of a count type.

    Fully covered items are flagged in a boolean array; partially covered items
    keep their covered intervals in an optional IntervalContainer. An item is
    never recorded in both at once.
    """

    def __init__(self, size: int, with_annotation: bool = False) -> None:
        self.items = np.zeros(size, dtype=bool)
        self.annotation: Optional[IntervalContainer] = (
            IntervalContainer() if with_annotation else None
        )

    @property
    def with_annotation(self) -> bool:
        return self.annotation is not None

    def activate(self, item_id: int) -> None:
        self.items[item_id] = True

    def is_active(self, item_id: int) -> bool:
        return bool(self.items[item_id])

    def activate_n_annotate(self, item_id: int, item_len: int, start: int, end: int) -> None:
        """
        Record that ``[start, end)`` of an item of length ``item_len`` is covered.

        Raises:
            AnnotationError: If the table was built without annotation support
        """
        if self.annotation is None:
            raise AnnotationError()

        if end - start == item_len:
            self.items[item_id] = True
            self.annotation.remove(item_id)
            return

        if start > end:
            logger.error(f"start ({start}) is larger than end ({end}) for item {item_id}")
        else:
            self.annotation.add(item_id, start, end)

        intervals = self.annotation.get(item_id)
        if intervals and intervals[0] == (0, item_len):
            self.annotation.remove(item_id)
            self.items[item_id] = True

    def get_active_intervals(self, item_id: int, item_len: int) -> List[Interval]:
        if self.items[item_id]:
            return [(0, item_len)]
        if self.annotation is not None:
            return self.annotation.get(item_id) or []
        return []

    def __len__(self) -> int:
        return int(self.items.size)
