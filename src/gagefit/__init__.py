"""Evaluation of simulated streamflow against observed gage records.

This package derives flow rates from accumulated model runoff, aggregates
observed and modeled series to daily and monthly means with water-year
cumulative volumes, and computes goodness-of-fit statistics per basin. The
main interface is the BasinEvaluator class.

Example:
    >>> from gagefit import BasinEvaluator, BasinSeries, EvaluationConfig, GageMeta
    >>> basin = BasinSeries(
    ...     gage=GageMeta(station="09085000", name="Roaring Fork", area_sq_mi=1451.0),
    ...     cell_count=3758,
    ...     observed=observed_records,
    ...     modeled=modeled_records,
    ... )
    >>> results = BasinEvaluator([basin], EvaluationConfig(cell_size_km=1.0)).run()
    >>> results.stats
"""

from .config import EvaluationConfig
from .evaluator import BasinEvaluator
from .exceptions import (
    GageFitError,
    InsufficientOverlapError,
    InvalidDateError,
    InvalidParameterError,
    IrregularTimestepError,
    TimezoneMismatchError,
)
from .models import BasinResult, BasinSeries, EvaluationResult, GageMeta, ModelOutput
from .pipeline import evaluate_basin
from .stats import compute_performance_stats

__all__ = [
    "BasinEvaluator",
    "BasinResult",
    "BasinSeries",
    "EvaluationConfig",
    "EvaluationResult",
    "GageFitError",
    "GageMeta",
    "InsufficientOverlapError",
    "InvalidDateError",
    "InvalidParameterError",
    "IrregularTimestepError",
    "ModelOutput",
    "TimezoneMismatchError",
    "compute_performance_stats",
    "evaluate_basin",
]
