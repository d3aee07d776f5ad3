"""Growth analysis orchestration."""

import collections.abc
import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from functools import cached_property
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Any, Union, Optional, Literal, List, Mapping, Sequence

import numpy as np
import psutil

from pangrowth.core.types import CountType, GrowthResult, HeapsFit, Hist, ValidationResult
from pangrowth.core.exceptions import RegressionError, ValidationError
from pangrowth.core.thresholds import ThresholdContainer
from pangrowth.modules.growth import calc_all_growths
from pangrowth.modules.heaps import fit_heaps
from pangrowth.modules.output import load_hists, write_growth_table
from pangrowth.utils.config import validate_configuration_schema


logger = logging.getLogger(__name__)


def resolve_threads(threads: Optional[int]) -> int:
    """Number of worker threads, defaulting to the logical CPU count."""
    if threads is None:
        return psutil.cpu_count(logical=True) or 1
    return max(1, int(threads))


class GrowthAnalysis:
    """
    Growth curves and Heaps' law fits for a set of coverage histograms.

    Every result is computed on first access and kept for the lifetime of the
    object; construct a new analysis to recompute.
    """

    def __init__(
        self,
        hists: Union[Mapping[CountType, Hist], Sequence[Hist]],
        coverage: str = "1",
        quorum: str = "0",
        add_alpha: bool = True,
        max_workers: Optional[int] = None,
        n_paths: Optional[int] = None
    ) -> None:
        if isinstance(hists, collections.abc.Mapping):
            hists = list(hists.values())
        self._hists: Dict[CountType, Hist] = {h.count_type: h for h in hists}
        self.coverage_text = coverage
        self.quorum_text = quorum
        self.add_alpha = add_alpha
        self.max_workers = resolve_threads(max_workers)

        validation_result = validate_hists(list(self._hists.values()), n_paths)
        if not validation_result.is_valid:
            raise ValidationError(
                f"Invalid coverage source: {validation_result.errors}",
                errors=validation_result.errors,
                stage="growth"
            )

    @property
    def hists(self) -> Mapping[CountType, Hist]:
        return MappingProxyType(self._hists)

    @property
    def n_paths(self) -> int:
        return next(iter(self._hists.values())).n_paths

    @cached_property
    def thresholds(self) -> ThresholdContainer:
        return ThresholdContainer.parse_params(self.quorum_text, self.coverage_text)

    @cached_property
    def growths(self) -> Mapping[CountType, np.ndarray]:
        """Growth curve matrix per count type (rows = threshold pairs, columns = m)."""
        thresholds = self.thresholds
        logger.info(
            f"Calculating growth for {len(self._hists)} count types and "
            f"{len(thresholds)} threshold pairs"
        )
        growths = {}
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                executor.submit(calc_all_growths, hist, thresholds): count_type
                for count_type, hist in self._hists.items()
            }
            for future in as_completed(futures):
                count_type = futures[future]
                growths[count_type] = future.result()
                logger.info(f"Growth of {count_type} completed")
        return MappingProxyType(growths)

    @cached_property
    def heaps(self) -> Optional[Mapping[CountType, Optional[HeapsFit]]]:
        """
        Heaps' law fit per count type.

        None when fits are disabled or no 'coverage >= 1, quorum 0' pair exists;
        a count type maps to None when its data is too degenerate to fit.
        """
        if not self.add_alpha:
            return None
        index = self.thresholds.has_full_growth_at_idx()
        if index is None:
            logger.info("No full growth curve among threshold pairs, skipping Heaps' law")
            return None

        logger.info("Calculating Heaps' law")
        fits: Dict[CountType, Optional[HeapsFit]] = {}
        for count_type, growth in self.growths.items():
            hist = self._hists[count_type]
            try:
                fits[count_type] = fit_heaps(hist.histogram(), growth[index])
            except RegressionError as e:
                logger.warning(f"Heaps' law fit failed for {count_type}: {e}")
                fits[count_type] = None
        return MappingProxyType(fits)

    def results(self) -> List[GrowthResult]:
        """Growth curves and Heaps' fits tagged by count type and threshold pair."""
        heaps = self.heaps
        return [
            GrowthResult(
                count_type=count_type,
                coverage=list(self.thresholds.coverage),
                quorum=list(self.thresholds.quorum),
                curves=curves,
                heaps=heaps.get(count_type) if heaps is not None else None
            )
            for count_type, curves in self.growths.items()
        ]


def validate_hists(hists: List[Hist], n_paths: Optional[int] = None) -> ValidationResult:
    """
    Check that histograms exist and agree on the number of paths.

    Args:
        hists: Histograms to analyze
        n_paths: Expected number of paths, if known

    Returns:
        ValidationResult with validation status and details
    """
    errors = []
    warnings = []
    details: Dict[str, Any] = {}

    if not hists:
        errors.append("No coverage histograms available")
    else:
        path_counts = {h.n_paths for h in hists}
        details["n_paths"] = max(path_counts)
        if len(path_counts) > 1:
            errors.append(f"Histograms disagree on the number of paths: {sorted(path_counts)}")
        elif n_paths is not None and n_paths not in path_counts:
            errors.append(f"Histograms cover {details['n_paths']} paths, expected {n_paths}")
        details["count_types"] = [str(h.count_type) for h in hists]
        for hist in hists:
            if len(hist) == 0:
                warnings.append(f"Histogram of {hist.count_type} has no items")

    return ValidationResult(
        is_valid=len(errors) == 0,
        errors=errors,
        warnings=warnings,
        details=details
    )


def run_growth_analysis(
    hist_file: Union[str, Path],
    output_file: Union[str, Path],
    config: Dict[str, Any],
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO",
    command: Optional[str] = None
) -> Dict[str, Any]:
    """
    Compute growth curves from a hist file and write the growth table.

    Args:
        hist_file: Tab-separated coverage histogram file
        output_file: Destination of the growth table
        config: Complete configuration dictionary
        log_level: Logging verbosity level
        command: Command line recorded as a comment in the growth table

    Returns:
        Dictionary containing results and metadata
    """
    hist_file = Path(hist_file)
    output_file = Path(output_file)

    log_file = config.get("logging", {}).get("file")
    setup_logging(log_level, Path(log_file) if log_file else None)

    logger.info("Starting growth analysis")
    logger.info(f"Input histogram: {hist_file}")

    start_time = time.time()
    results: Dict[str, Any] = {
        "start_time": start_time,
        "config": config
    }

    config_validation = validate_configuration_schema(config)
    if not config_validation.is_valid:
        raise ValidationError(
            f"Configuration validation failed: {config_validation.errors}",
            errors=config_validation.errors,
            stage="config"
        )

    growth_config = config.get("growth", {})
    try:
        hists, n_paths, comments = load_hists(hist_file)
        results["n_paths"] = n_paths

        analysis = GrowthAnalysis(
            hists,
            coverage=str(growth_config.get("coverage", "1")),
            quorum=str(growth_config.get("quorum", "0")),
            add_alpha=growth_config.get("add_alpha", True),
            max_workers=config.get("resources", {}).get("threads"),
            n_paths=n_paths
        )
        growth_results = analysis.results()

        output = write_growth_table(
            output_file,
            growth_results,
            hists=list(hists.values()) if growth_config.get("add_hist", False) else None,
            comments=comments,
            add_alpha=growth_config.get("add_alpha", True),
            command=command
        )

        results["output_file"] = str(output)
        results["count_types"] = [str(r.count_type) for r in growth_results]
        results["alpha"] = {
            str(r.count_type): r.heaps.alpha for r in growth_results if r.heaps is not None
        }

        end_time = time.time()
        results["end_time"] = end_time
        results["runtime_seconds"] = end_time - start_time
        logger.info(f"Growth analysis completed in {end_time - start_time:.1f} seconds")
        return results

    except Exception as e:
        end_time = time.time()
        results["end_time"] = end_time
        results["runtime_seconds"] = end_time - start_time
        results["error"] = str(e)

        logger.error(f"Growth analysis failed after {end_time - start_time:.1f} seconds: {e}")
        raise


def setup_logging(level: str, log_file: Optional[Path] = None) -> None:
    """
    Setup logging configuration.

    Args:
        level: Logging level
        log_file: Optional log file path
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
            logging.FileHandler(log_file) if log_file else logging.NullHandler()
        ]
    )
