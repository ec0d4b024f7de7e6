"""Daily and monthly aggregation of flow series.

Buckets are formed in the series' own (single, canonical) time zone and
each bucket gets a representative timestamp:

- Daily buckets are stamped at midnight of the *next* calendar day, matching
  model output which is stamped at the end of its accumulation interval.
- Monthly buckets are stamped at midnight of the first day of the month.

Instantaneous observations belong to the bucket they fall in
(``closed="left"``). Model records describe the interval ending at their
timestamp, so they belong to the bucket that interval lies in
(``closed="right"``): a daily total stamped at D+1 00:00 is day D's, and an
hourly value stamped at 24:00 closes the day that just ended.

Changing either convention shifts every comparison by one period.
"""

import logging
from typing import Literal

import polars as pl

from .exceptions import InvalidParameterError, TimezoneMismatchError
from .timeseries import series_time_zone
from .units import SECONDS_PER_DAY, volume_from_flow_rate
from .water_year import days_in_month_expr, water_year_expr

logger = logging.getLogger(__name__)

Granularity = Literal["daily", "monthly"]
Closed = Literal["left", "right"]

CLOSED_SIDES = ("left", "right")


def _check_time_zone(frame: pl.DataFrame, time_zone: str | None) -> None:
    if time_zone is None:
        return
    frame_zone = series_time_zone(frame)
    if frame_zone != time_zone:
        raise TimezoneMismatchError(
            f"Series timestamps are in {frame_zone or 'an undeclared zone'}, expected {time_zone}"
        )


def _bucket(every: str, closed: Closed) -> pl.Expr:
    if closed not in CLOSED_SIDES:
        raise InvalidParameterError(f"closed must be one of {CLOSED_SIDES}, got {closed!r}")
    ts = pl.col("timestamp")
    if closed == "right":
        # a stamp on a bucket boundary ends the previous bucket
        ts = ts - pl.duration(microseconds=1)
    return ts.dt.truncate(every)


def _aggregate(
    frame: pl.DataFrame,
    bucket: pl.Expr,
    stamp: pl.Expr,
    value: str,
) -> pl.DataFrame:
    keys = ["station"] if "station" in frame.columns else []
    values = pl.col(value).cast(pl.Float64).fill_nan(None)

    return (
        frame.group_by([*keys, bucket.alias("bucket")], maintain_order=True)
        .agg(
            values.mean().alias(value),
            values.count().cast(pl.Int64).alias("n_values"),
            pl.len().cast(pl.Int64).alias("n_records"),
        )
        .with_columns(stamp.alias("timestamp"))
        .with_columns(water_year_expr(pl.col("timestamp")).alias("water_year"))
        .select(*keys, "timestamp", "water_year", value, "n_values", "n_records")
    )


def daily_mean(
    frame: pl.DataFrame,
    value: str = "flow_m3s",
    time_zone: str | None = None,
    closed: Closed = "left",
) -> pl.DataFrame:
    """Aggregate a series to daily means.

    Args:
        frame: Series with timestamp, value and optionally station columns
        value: Column to average
        time_zone: Expected zone of the timestamps; checked when given
        closed: "left" for instantaneous values (00:00 starts its day),
            "right" for values stamped at the end of their interval
            (00:00 ends the previous day)

    Returns:
        One row per (station, day) with columns station, timestamp (next
        day's midnight), water_year, value (mean, null if every value in the
        day is missing), n_values and n_records

    Raises:
        TimezoneMismatchError: If the series is not in time_zone
        InvalidParameterError: If closed is not "left" or "right"
    """
    _check_time_zone(frame, time_zone)
    return _aggregate(
        frame,
        bucket=_bucket("1d", closed),
        stamp=pl.col("bucket").dt.offset_by("1d"),
        value=value,
    )


def monthly_mean(
    frame: pl.DataFrame,
    value: str = "flow_m3s",
    time_zone: str | None = None,
    closed: Closed = "left",
) -> pl.DataFrame:
    """Aggregate a series to monthly means stamped at the first of the month.

    Same columns, missing-value rules and closed sides as daily_mean.
    """
    _check_time_zone(frame, time_zone)
    return _aggregate(
        frame,
        bucket=_bucket("1mo", closed),
        stamp=pl.col("bucket"),
        value=value,
    )


def period_seconds_expr(granularity: Granularity) -> pl.Expr:
    """Length in seconds of the period each aggregated row represents."""
    if granularity == "daily":
        return pl.lit(SECONDS_PER_DAY, dtype=pl.Int64)
    if granularity == "monthly":
        return days_in_month_expr(pl.col("timestamp")) * SECONDS_PER_DAY
    raise InvalidParameterError(f"Unknown granularity {granularity!r}")


def add_period_volume(
    table: pl.DataFrame,
    granularity: Granularity,
    value: str = "flow_m3s",
    unit: str = "acre-ft",
) -> pl.DataFrame:
    """Add a volume column for the flow sustained over each period.

    Daily periods last 86400 s; monthly periods last the number of days in
    the month of the representative timestamp. A missing mean flow gives a
    missing volume.
    """
    duration = period_seconds_expr(granularity)
    return table.with_columns(volume_from_flow_rate(pl.col(value), duration, unit=unit).alias("volume"))
