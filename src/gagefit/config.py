"""Run configuration for multi-basin evaluation."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, fields
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .exceptions import InvalidParameterError
from .units import VOLUME_FACTORS

logger = logging.getLogger(__name__)

STATS_RESOLUTIONS = ("raw", "daily", "monthly")
FAILURE_POLICIES = ("omit", "null_row")


@dataclass(frozen=True)
class EvaluationConfig:
    """Settings shared by every basin in a run.

    Attributes:
        cell_size_km: Model grid cell edge length (km); modeled basin area is
            cell_count * cell_size_km ** 2
        time_zone: Canonical zone all timestamps are normalised to before
            daily bucketing
        stats_resolution: Series compared by the statistics engine: "raw"
            (exact model timestamps), "daily" or "monthly" aggregates
        volume_unit: Unit of period and cumulative volumes ("acre-ft" or "m3")
        on_failure: "omit" drops failed basins from the statistics table,
            "null_row" keeps them with all metrics null
        max_workers: Number of basins processed concurrently
    """

    cell_size_km: float = 1.0
    time_zone: str = "UTC"
    stats_resolution: str = "daily"
    volume_unit: str = "acre-ft"
    on_failure: str = "omit"
    max_workers: int = 1

    def __post_init__(self) -> None:
        if not self.cell_size_km > 0:
            raise InvalidParameterError(f"cell_size_km must be > 0, got {self.cell_size_km}")
        if self.stats_resolution not in STATS_RESOLUTIONS:
            raise InvalidParameterError(
                f"stats_resolution must be one of {STATS_RESOLUTIONS}, got {self.stats_resolution!r}"
            )
        if self.volume_unit not in VOLUME_FACTORS:
            raise InvalidParameterError(
                f"volume_unit must be one of {sorted(VOLUME_FACTORS)}, got {self.volume_unit!r}"
            )
        if self.on_failure not in FAILURE_POLICIES:
            raise InvalidParameterError(f"on_failure must be one of {FAILURE_POLICIES}, got {self.on_failure!r}")
        if self.max_workers < 1:
            raise InvalidParameterError(f"max_workers must be >= 1, got {self.max_workers}")
        try:
            ZoneInfo(self.time_zone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise InvalidParameterError(f"Unknown time zone {self.time_zone!r}") from exc

    @classmethod
    def from_mapping(cls, values: Mapping) -> "EvaluationConfig":
        """Build a config from a plain mapping (e.g. parsed JSON or TOML).

        Unknown keys are ignored with a warning.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            logger.warning(f"Ignoring unknown config keys: {unknown}")
        return cls(**{k: v for k, v in values.items() if k in known})
