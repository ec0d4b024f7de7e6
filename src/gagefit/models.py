"""Metadata records and result containers for basin evaluation."""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

import polars as pl

from .exceptions import GageFitError
from .units import sq_mi_to_km2


@dataclass(frozen=True)
class GageMeta:
    """Metadata for an observed streamflow gage."""

    station: str
    name: str
    area_sq_mi: float

    @property
    def area_km2(self) -> float:
        return sq_mi_to_km2(self.area_sq_mi)


@dataclass(frozen=True)
class ModelOutput:
    """Basin-averaged model output as returned by a model-output reader."""

    records: Sequence[tuple[datetime, float | None, float | None]]
    cell_count: int


@dataclass(frozen=True, eq=False)
class BasinSeries:
    """One basin's observed and modeled series plus its metadata.

    Attributes:
        gage: Gage metadata (station code, display name, drainage area)
        cell_count: Number of model grid cells contributing to the basin
        observed: Observed record with columns timestamp, flow_m3s, or
            (timestamp, flow) tuples
        modeled: Modeled record with columns timestamp, surface_runoff_mm,
            subsurface_runoff_mm, or (timestamp, surface, subsurface) tuples
    """

    gage: GageMeta
    cell_count: int
    observed: pl.DataFrame | Sequence[tuple]
    modeled: pl.DataFrame | Sequence[tuple]

    @property
    def station(self) -> str:
        return self.gage.station


@dataclass(frozen=True)
class BasinFailure:
    """A recorded basin-level failure."""

    station: str
    stage: str
    error: str
    message: str

    @classmethod
    def from_exception(cls, station: str, stage: str, exc: GageFitError) -> "BasinFailure":
        return cls(
            station=station,
            stage=exc.stage or stage,
            error=type(exc).__name__,
            message=exc.message,
        )


@dataclass(frozen=True, eq=False)
class BasinResult:
    """Complete output of one basin's pipeline.

    Tables are None for stages that did not run. When the pipeline failed,
    failure describes where and why.
    """

    station: str
    summary: dict | None = None
    daily: pl.DataFrame | None = None
    monthly: pl.DataFrame | None = None
    stats: dict | None = None
    failure: BasinFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass(frozen=True, eq=False)
class EvaluationResult:
    """Stacked multi-basin tables, rows in basin processing order.

    Attributes:
        daily: Daily aggregated table for both sources
        monthly: Monthly aggregated table for both sources
        annual: Water-year volume totals per station and source
        stats: One performance statistics row per basin
        basins: Basin summary (areas, model time step)
        failures: One row per failed basin
    """

    daily: pl.DataFrame
    monthly: pl.DataFrame
    annual: pl.DataFrame
    stats: pl.DataFrame
    basins: pl.DataFrame
    failures: pl.DataFrame

    def tables(self) -> dict[str, pl.DataFrame]:
        return {
            "daily": self.daily,
            "monthly": self.monthly,
            "annual": self.annual,
            "stats": self.stats,
            "basins": self.basins,
            "failures": self.failures,
        }
