"""Construction and validation of time-series records.

Every series entering the pipeline is a polars DataFrame with a
``timestamp`` column of dtype ``Datetime("us", <zone>)`` in one canonical
time zone, strictly increasing, plus Float64 value columns in which missing
values are nulls (NaN inputs are normalised to null).
"""

import logging
from collections.abc import Iterable, Sequence
from datetime import date, datetime, time, timedelta, timezone

import polars as pl

from .exceptions import InvalidParameterError, TimezoneMismatchError

logger = logging.getLogger(__name__)

OBSERVED_COLUMNS = ("flow_m3s",)
MODELED_COLUMNS = ("surface_runoff_mm", "subsurface_runoff_mm")


def series_time_zone(frame: pl.DataFrame) -> str | None:
    """Return the time zone of a frame's timestamp column (None if naive)."""
    dtype = frame.schema["timestamp"]
    return getattr(dtype, "time_zone", None)


def _as_datetime(value: date) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time())


def _timestamp_series(timestamps: list[datetime], time_zone: str) -> pl.Series:
    """Build a zone-aware timestamp Series in time_zone.

    Naive timestamps are taken to be in time_zone already; aware timestamps
    are converted to it. Mixing the two cannot be resolved. Neither can a naive
    wall-clock time that is skipped or repeated by a daylight-saving change.
    """
    aware = [ts.tzinfo is not None and ts.utcoffset() is not None for ts in timestamps]
    if any(aware) and not all(aware):
        raise TimezoneMismatchError("Series mixes naive and zone-aware timestamps")

    if timestamps and all(aware):
        utc = [ts.astimezone(timezone.utc).replace(tzinfo=None) for ts in timestamps]
        series = pl.Series("timestamp", utc, dtype=pl.Datetime("us"))
        return series.dt.replace_time_zone("UTC").dt.convert_time_zone(time_zone)

    series = pl.Series("timestamp", timestamps, dtype=pl.Datetime("us"))
    try:
        return series.dt.replace_time_zone(time_zone)
    except pl.exceptions.ComputeError as e:
        raise TimezoneMismatchError(f"Naive timestamps cannot be read in {time_zone}: {e}") from e


def validate_timestamps(frame: pl.DataFrame) -> None:
    """Check that timestamps are present and strictly increasing.

    Raises:
        InvalidParameterError: On null, duplicate or out-of-order timestamps
    """
    ts = frame["timestamp"]
    if ts.null_count() > 0:
        raise InvalidParameterError(f"Series has {ts.null_count()} null timestamps")

    steps = ts.diff().drop_nulls()
    if len(steps) and (steps <= timedelta(0)).any():
        n_bad = int((steps <= timedelta(0)).sum())
        raise InvalidParameterError(f"Timestamps must be strictly increasing ({n_bad} duplicate or out-of-order)")


def records_to_frame(
    records: Iterable[Sequence], columns: Sequence[str], time_zone: str = "UTC"
) -> pl.DataFrame:
    """Build a validated series frame from (timestamp, value, ...) tuples.

    Args:
        records: Iterable of tuples, timestamp first, then one value per column
        columns: Names of the value columns
        time_zone: Canonical time zone for the timestamp column

    Returns:
        DataFrame with timestamp plus the value columns

    Raises:
        TimezoneMismatchError: If naive and zone-aware timestamps are mixed,
            or a naive timestamp does not exist or is ambiguous in time_zone
        InvalidParameterError: If a record has the wrong arity or timestamps
            are not strictly increasing
    """
    rows = [tuple(r) for r in records]
    width = len(columns) + 1
    for row in rows:
        if len(row) != width:
            raise InvalidParameterError(f"Expected {width} fields per record, got {len(row)}: {row!r}")

    timestamps = [_as_datetime(row[0]) for row in rows]
    data = {"timestamp": _timestamp_series(timestamps, time_zone)}
    for i, name in enumerate(columns, start=1):
        data[name] = pl.Series(name, [row[i] for row in rows], dtype=pl.Float64, strict=False)

    frame = pl.DataFrame(data).with_columns([pl.col(c).fill_nan(None) for c in columns])
    validate_timestamps(frame)
    return frame


def normalize_frame(frame: pl.DataFrame, columns: Sequence[str], time_zone: str = "UTC") -> pl.DataFrame:
    """Bring an existing frame to the canonical series form.

    Naive timestamps are interpreted in time_zone; zone-aware timestamps are
    converted to it. Value columns are cast to Float64 and NaN becomes null.

    Raises:
        InvalidParameterError: On missing columns or bad timestamps
        TimezoneMismatchError: If a naive timestamp does not exist or is
            ambiguous in time_zone
    """
    missing = [c for c in ("timestamp", *columns) if c not in frame.columns]
    if missing:
        raise InvalidParameterError(f"Series is missing columns: {missing}")

    ts = pl.col("timestamp")
    dtype = frame.schema["timestamp"]
    if dtype == pl.Date:
        ts = ts.cast(pl.Datetime("us"))
    elif not isinstance(dtype, pl.Datetime):
        raise InvalidParameterError(f"timestamp column must be Date or Datetime, got {dtype}")
    else:
        ts = ts.dt.cast_time_unit("us")

    if series_time_zone(frame) is None:
        ts = ts.dt.replace_time_zone(time_zone)
    else:
        ts = ts.dt.convert_time_zone(time_zone)

    extra = [c for c in frame.columns if c not in ("timestamp", *columns)]
    if extra:
        logger.debug(f"Dropping extra series columns: {extra}")

    try:
        normalized = frame.select(
            ts.alias("timestamp"),
            *[pl.col(c).cast(pl.Float64).fill_nan(None) for c in columns],
        )
    except pl.exceptions.ComputeError as e:
        raise TimezoneMismatchError(f"Naive timestamps cannot be read in {time_zone}: {e}") from e
    validate_timestamps(normalized)
    return normalized


def observed_frame(records: Iterable[Sequence] | pl.DataFrame, time_zone: str = "UTC") -> pl.DataFrame:
    """Observed discharge record: timestamp, flow_m3s."""
    if isinstance(records, pl.DataFrame):
        return normalize_frame(records, OBSERVED_COLUMNS, time_zone)
    return records_to_frame(records, OBSERVED_COLUMNS, time_zone)


def modeled_frame(records: Iterable[Sequence] | pl.DataFrame, time_zone: str = "UTC") -> pl.DataFrame:
    """Modeled runoff record: timestamp, surface_runoff_mm, subsurface_runoff_mm."""
    if isinstance(records, pl.DataFrame):
        return normalize_frame(records, MODELED_COLUMNS, time_zone)
    return records_to_frame(records, MODELED_COLUMNS, time_zone)
