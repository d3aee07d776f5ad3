"""Custom exceptions for the growth analysis."""

import time
from typing import Optional, List
from pathlib import Path


class PipelineError(Exception):
    """Base exception for growth analysis errors."""

    def __init__(self, message: str, stage: Optional[str] = None) -> None:
        self.stage = stage
        self.timestamp = time.time()
        super().__init__(message)


class ValidationError(PipelineError):
    """Data validation failed."""

    def __init__(self, message: str, errors: Optional[List[str]] = None,
                 stage: Optional[str] = None) -> None:
        self.errors = errors or []
        super().__init__(message, stage)


class ConfigurationError(PipelineError):
    """Configuration error, including malformed threshold lists."""

    def __init__(self, message: str, config_path: Optional[Path] = None,
                 stage: Optional[str] = None) -> None:
        self.config_path = config_path
        super().__init__(message, stage)


class AnnotationError(PipelineError):
    """Interval annotation requested on an active table built without annotation support."""

    def __init__(self, message: str = "Active table has no annotations",
                 stage: Optional[str] = None) -> None:
        super().__init__(message, stage)


class RegressionError(PipelineError):
    """Curve fitting on insufficient or degenerate data."""

    def __init__(self, message: str, n_points: Optional[int] = None,
                 stage: Optional[str] = None) -> None:
        self.n_points = n_points
        super().__init__(message, stage)
