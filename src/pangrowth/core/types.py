"""Core data types and structures for the growth analysis."""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any, Sequence, Union
from enum import Enum

import numpy as np

from pangrowth.core.exceptions import ValidationError


class CountType(Enum):
    """Countable graph items whose coverage across paths is tracked."""
    NODE = "node"
    BP = "bp"
    EDGE = "edge"

    def __str__(self) -> str:
        return self.value


class ThresholdKind(Enum):
    """Whether a threshold is a fixed path count or a fraction of paths."""
    RELATIVE = "R"
    ABSOLUTE = "A"


def format_number(value: Union[int, float]) -> str:
    """Render a threshold value without trailing zeros (1.0 -> '1', 0.5 -> '0.5')."""
    if isinstance(value, (int, np.integer)):
        return str(int(value))
    return f"{value:g}"


@dataclass(frozen=True)
class Threshold:
    """A single coverage/quorum bound."""
    kind: ThresholdKind
    value: Union[int, float]

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError(f"Threshold must be non-negative, got {self.value}")
        if self.kind is ThresholdKind.RELATIVE and self.value > 1:
            raise ValueError(f"Relative threshold must be within [0, 1], got {self.value}")
        if self.kind is ThresholdKind.ABSOLUTE and int(self.value) != self.value:
            raise ValueError(f"Absolute threshold must be an integer, got {self.value}")

    @classmethod
    def relative(cls, fraction: float) -> "Threshold":
        return cls(ThresholdKind.RELATIVE, float(fraction))

    @classmethod
    def absolute(cls, count: int) -> "Threshold":
        return cls(ThresholdKind.ABSOLUTE, int(count))

    @property
    def is_relative(self) -> bool:
        return self.kind is ThresholdKind.RELATIVE

    def to_absolute(self, n: int) -> int:
        """Number of paths out of n required by this threshold."""
        if self.kind is ThresholdKind.ABSOLUTE:
            return int(self.value)
        return int(math.ceil(n * self.value))

    def to_relative(self, n: int) -> float:
        """Fraction of n paths required by this threshold."""
        if self.kind is ThresholdKind.RELATIVE:
            return float(self.value)
        if n <= 0:
            raise ValueError("Cannot express an absolute threshold relative to zero paths")
        return self.value / n

    def value_string(self) -> str:
        return format_number(self.value)

    def __str__(self) -> str:
        return f"{self.value_string()}{self.kind.value}"


@dataclass(frozen=True)
class Hist:
    """
    Finalized coverage histogram of one count type.

    ``levels[c]`` holds the number of items contained in exactly ``c`` paths,
    for ``c = 0..n_paths``. Per-item coverage is folded into levels on
    construction, so the size of a Hist depends on the number of paths only.
    """
    count_type: CountType
    levels: np.ndarray

    def __post_init__(self) -> None:
        levels = np.asarray(self.levels)
        if levels.ndim != 1 or levels.size == 0:
            raise ValidationError(f"Histogram of {self.count_type} must be a non-empty sequence")
        if not np.issubdtype(levels.dtype, np.integer):
            if not np.all(np.mod(levels, 1) == 0):
                raise ValidationError(f"Histogram of {self.count_type} must be integral")
        levels = levels.astype(np.int64)
        if levels.min() < 0:
            raise ValidationError(f"Histogram of {self.count_type} contains negative counts")
        levels.setflags(write=False)
        object.__setattr__(self, "levels", levels)

    @classmethod
    def from_histogram(cls, count_type: CountType, counts: Sequence[int]) -> "Hist":
        """Build a Hist from item counts per coverage level (index = number of paths)."""
        return cls(count_type, np.asarray(counts))

    @classmethod
    def from_coverage(cls, count_type: CountType, coverage: Sequence[int], n_paths: int) -> "Hist":
        """
        Build a Hist from per-item coverage, ``coverage[i]`` being the number of
        paths containing item ``i``.

        Raises:
            ValidationError: Coverage outside ``[0, n_paths]`` or not integral
        """
        coverage = np.asarray(coverage)
        if coverage.ndim != 1:
            raise ValidationError(
                f"Coverage of {count_type} must be one-dimensional, got shape {coverage.shape}"
            )
        if n_paths < 0:
            raise ValidationError(f"Number of paths must be non-negative, got {n_paths}")
        if coverage.size and not np.issubdtype(coverage.dtype, np.integer):
            if not np.all(np.mod(coverage, 1) == 0):
                raise ValidationError(f"Coverage of {count_type} must be integral")
        coverage = coverage.astype(np.int64)
        if coverage.size and (coverage.min() < 0 or coverage.max() > n_paths):
            raise ValidationError(f"Coverage of {count_type} must lie within [0, {n_paths}]")
        return cls(count_type, np.bincount(coverage, minlength=n_paths + 1))

    @property
    def n_paths(self) -> int:
        return int(self.levels.size - 1)

    @property
    def coverage(self) -> np.ndarray:
        """Per-item coverage in ascending order; allocates one entry per item."""
        return np.repeat(np.arange(self.levels.size, dtype=np.int64), self.levels)

    def histogram(self) -> np.ndarray:
        """Number of items per coverage level ``0..n_paths``."""
        return self.levels

    def __len__(self) -> int:
        return int(self.levels.sum())


@dataclass(frozen=True)
class HeapsFit:
    """Heaps' law fit of one count type; ``curve`` is None for a closed pangenome."""
    alpha: float
    offset: float
    curve: Optional[np.ndarray] = None

    @property
    def is_closed(self) -> bool:
        return self.curve is None


@dataclass(frozen=True)
class GrowthResult:
    """Growth curves of one count type, one row per threshold pair."""
    count_type: CountType
    coverage: List[Threshold]
    quorum: List[Threshold]
    curves: np.ndarray
    heaps: Optional[HeapsFit] = None

    @property
    def n_paths(self) -> int:
        return int(self.curves.shape[1])

    def labels(self) -> List[str]:
        """Human readable label of each threshold pair."""
        labels = []
        for c, q in zip(self.coverage, self.quorum):
            percent = q.value * 100
            labels.append(f"coverage ≥ {c.value_string()}, quorum ≥ {format_number(percent)}%")
        return labels


@dataclass
class ValidationResult:
    """Result of validation operation."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    details: Dict[str, Any] = field(default_factory=dict)
