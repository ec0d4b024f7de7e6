"""Per-basin evaluation pipeline.

evaluate_basin reads only the basin it is given and returns a complete
BasinResult, so basins can be processed in any order or concurrently.
"""

import logging

import polars as pl

from .aggregate import Granularity, add_period_volume, daily_mean, monthly_mean
from .config import EvaluationConfig
from .cumulative import cumulative_volume
from .exceptions import GageFitError
from .flow import derive_flow, time_step_seconds
from .models import BasinFailure, BasinResult, BasinSeries
from .stats import compute_performance_stats
from .timeseries import modeled_frame, observed_frame
from .units import basin_area_from_cells

logger = logging.getLogger(__name__)

SOURCES = ("observed", "modeled")

SOURCE_CLOSED = {"observed": "left", "modeled": "right"}

AGGREGATED_COLUMNS = [
    "station",
    "source",
    "timestamp",
    "water_year",
    "flow_m3s",
    "n_values",
    "n_records",
    "volume",
    "cumulative_volume",
]


def aggregated_schema(time_zone: str) -> dict[str, pl.DataType]:
    """Schema of the daily and monthly aggregated tables."""
    return {
        "station": pl.Utf8,
        "source": pl.Utf8,
        "timestamp": pl.Datetime("us", time_zone),
        "water_year": pl.Int32,
        "flow_m3s": pl.Float64,
        "n_values": pl.Int64,
        "n_records": pl.Int64,
        "volume": pl.Float64,
        "cumulative_volume": pl.Float64,
    }


def aggregate_source(
    station: str,
    source: str,
    frame: pl.DataFrame,
    granularity: Granularity,
    config: EvaluationConfig,
) -> pl.DataFrame:
    """Aggregate one flow series and attach period and cumulative volumes.

    Observed values are bucketed by the instant they were taken and modeled
    values by the interval they close, so both sources share one stamp per
    period.
    """
    tagged = frame.select("timestamp", "flow_m3s").with_columns(pl.lit(station, dtype=pl.Utf8).alias("station"))
    aggregate = daily_mean if granularity == "daily" else monthly_mean
    table = aggregate(tagged, value="flow_m3s", time_zone=config.time_zone, closed=SOURCE_CLOSED[source])
    table = add_period_volume(table, granularity, unit=config.volume_unit)
    table = cumulative_volume(table)
    return table.with_columns(pl.lit(source, dtype=pl.Utf8).alias("source")).select(AGGREGATED_COLUMNS)


def aggregate_sources(
    station: str,
    flows: dict[str, pl.DataFrame],
    granularity: Granularity,
    config: EvaluationConfig,
) -> pl.DataFrame:
    return pl.concat(
        [aggregate_source(station, source, flows[source], granularity, config) for source in SOURCES]
    )


def _comparison_pair(
    flows: dict[str, pl.DataFrame],
    daily: pl.DataFrame,
    monthly: pl.DataFrame,
    resolution: str,
) -> tuple[pl.DataFrame, pl.DataFrame]:
    if resolution == "raw":
        return flows["observed"], flows["modeled"]
    table = daily if resolution == "daily" else monthly
    return (
        table.filter(pl.col("source") == "observed"),
        table.filter(pl.col("source") == "modeled"),
    )


def evaluate_basin(basin: BasinSeries, config: EvaluationConfig) -> BasinResult:
    """Run flow derivation, aggregation, cumulative volumes and statistics for one basin.

    A GageFitError at any stage ends the pipeline for this basin; it is
    tagged with the station and stage and returned as the result's failure
    along with whatever tables were already complete. Other exceptions
    propagate.

    Args:
        basin: Series and metadata for one basin
        config: Run configuration

    Returns:
        BasinResult for the basin
    """
    station = basin.station
    summary = daily = monthly = stats = None
    stage = "metadata"

    try:
        gage_area_km2 = basin.gage.area_km2
        model_area_km2 = basin_area_from_cells(basin.cell_count, config.cell_size_km)

        stage = "validation"
        observed = observed_frame(basin.observed, config.time_zone)
        modeled = modeled_frame(basin.modeled, config.time_zone)

        stage = "flow_derivation"
        step_s = time_step_seconds(modeled)
        modeled = derive_flow(modeled, model_area_km2, step_s)
        summary = {
            "station": station,
            "name": basin.gage.name,
            "gage_area_km2": gage_area_km2,
            "model_area_km2": model_area_km2,
            "area_ratio": model_area_km2 / gage_area_km2,
            "time_step_s": step_s,
        }

        stage = "aggregation"
        flows = {"observed": observed, "modeled": modeled.select("timestamp", "flow_m3s")}
        daily = aggregate_sources(station, flows, "daily", config)
        monthly = aggregate_sources(station, flows, "monthly", config)

        stage = "statistics"
        obs, sim = _comparison_pair(flows, daily, monthly, config.stats_resolution)
        stats = {"station": station, **compute_performance_stats(obs, sim)}
    except GageFitError as exc:
        if exc.station is None:
            exc.station = station
        if exc.stage is None:
            exc.stage = stage
        logger.warning(f"Basin {station} failed during {exc.stage}: {exc.message}")
        return BasinResult(
            station=station,
            summary=summary,
            daily=daily,
            monthly=monthly,
            failure=BasinFailure.from_exception(station, stage, exc),
        )

    logger.info(
        f"Basin {station}: {stats['n_pairs']} {config.stats_resolution} pairs, "
        f"NSE={stats['nse']:.3f}, PBIAS={stats['pbias']:.1f}%"
    )
    return BasinResult(station=station, summary=summary, daily=daily, monthly=monthly, stats=stats)
