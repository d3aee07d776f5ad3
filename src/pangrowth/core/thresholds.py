"""Parsing and pairing of coverage and quorum thresholds."""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from pangrowth.core.exceptions import ConfigurationError
from pangrowth.core.types import Threshold


logger = logging.getLogger(__name__)

_INTEGER = re.compile(r"^\d+$")
_FRACTION = re.compile(r"^(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")


def parse_coverage_threshold(token: str) -> Threshold:
    """
    Parse one coverage token.

    A plain non-negative integer is an absolute path count; a decimal number
    (``0.5``, ``1.0``, ``5e-1``) is a fraction of paths within [0, 1].
    """
    token = token.strip()
    if _INTEGER.match(token):
        return Threshold.absolute(int(token))
    if _FRACTION.match(token):
        return _parse_fraction(token, "coverage")
    raise ConfigurationError(f"Invalid coverage threshold: '{token}'", stage="thresholds")


def parse_quorum_threshold(token: str) -> Threshold:
    """Parse one quorum token; quorum is always a fraction of sampled paths."""
    token = token.strip()
    if _INTEGER.match(token) or _FRACTION.match(token):
        return _parse_fraction(token, "quorum")
    raise ConfigurationError(f"Invalid quorum threshold: '{token}'", stage="thresholds")


def _parse_fraction(token: str, name: str) -> Threshold:
    value = float(token)
    if not 0.0 <= value <= 1.0:
        raise ConfigurationError(
            f"Relative {name} threshold must lie within [0, 1], got '{token}'", stage="thresholds"
        )
    return Threshold.relative(value)


@dataclass(frozen=True)
class ThresholdContainer:
    """Index-paired coverage and quorum thresholds, one pair per growth curve."""
    coverage: Tuple[Threshold, ...]
    quorum: Tuple[Threshold, ...]

    def __post_init__(self) -> None:
        if len(self.coverage) != len(self.quorum):
            raise ConfigurationError(
                f"Coverage ({len(self.coverage)}) and quorum ({len(self.quorum)}) "
                f"thresholds must be paired",
                stage="thresholds"
            )

    @classmethod
    def parse_params(cls, quorum: str, coverage: str) -> "ThresholdContainer":
        """
        Parse comma-separated quorum and coverage lists.

        A single-element list is repeated to the length of the other list.

        Raises:
            ConfigurationError: Unparsable token or non-broadcastable lengths
        """
        quorum_list = [parse_quorum_threshold(t) for t in quorum.split(",")]
        coverage_list = [parse_coverage_threshold(t) for t in coverage.split(",")]

        if len(quorum_list) == 1 and len(coverage_list) > 1:
            quorum_list = quorum_list * len(coverage_list)
        elif len(coverage_list) == 1 and len(quorum_list) > 1:
            coverage_list = coverage_list * len(quorum_list)
        elif len(coverage_list) != len(quorum_list):
            raise ConfigurationError(
                f"Number of coverage thresholds ({len(coverage_list)}) and quorum thresholds "
                f"({len(quorum_list)}) differ and neither is a single value",
                stage="thresholds"
            )

        logger.debug(
            "Threshold pairs: "
            + ", ".join(f"({c}, {q})" for c, q in zip(coverage_list, quorum_list))
        )
        return cls(tuple(coverage_list), tuple(quorum_list))

    def pairs(self) -> List[Tuple[Threshold, Threshold]]:
        return list(zip(self.coverage, self.quorum))

    def has_full_growth_at_idx(self) -> Optional[int]:
        """Index of the 'coverage >= 1 path, quorum 0' pair, if any."""
        for i, (c, q) in enumerate(zip(self.coverage, self.quorum)):
            if not c.is_relative and c.value == 1 and q.value == 0:
                return i
        return None

    def __len__(self) -> int:
        return len(self.coverage)
