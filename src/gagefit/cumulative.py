"""Running volume totals within water years."""

from collections.abc import Sequence

import polars as pl

from .water_year import water_year_bounds


def cumulative_volume(
    table: pl.DataFrame,
    value: str = "volume",
    partition: Sequence[str] = ("station", "water_year"),
) -> pl.DataFrame:
    """Add a cumulative_volume column: running sum of value per partition.

    The partition key acts as the reset predicate: the running sum restarts
    at the chronologically first period of every partition (by default every
    station/water-year pair), so the first period's total is its own volume.
    A missing period volume adds nothing but the total is carried through
    it, so every input row gets a cumulative value.

    Args:
        table: Aggregated table with timestamp, value and partition columns
        value: Period volume column
        partition: Columns delimiting independent running sums; columns
            absent from the table are ignored (with none left, rows must
            already be in chronological order)

    Returns:
        New table with cumulative_volume, rows in input order
    """
    keys = [c for c in partition if c in table.columns]
    running = pl.col(value).fill_null(0.0).cum_sum()
    if keys:
        running = running.over(keys, order_by="timestamp")
    return table.with_columns(running.alias("cumulative_volume"))


def water_year_totals(table: pl.DataFrame, value: str = "volume") -> pl.DataFrame:
    """Summarise period volumes per station, source and water year.

    Returns:
        One row per group with start_date and end_date of the water year,
        total_volume (sum of non-missing periods, null when every period is
        missing), n_periods and n_missing
    """
    keys = [c for c in ("station", "source", "water_year") if c in table.columns]
    totals = table.group_by(keys, maintain_order=True).agg(
        pl.when(pl.col(value).null_count() < pl.len()).then(pl.col(value).sum()).alias("total_volume"),
        pl.len().cast(pl.Int64).alias("n_periods"),
        pl.col(value).null_count().cast(pl.Int64).alias("n_missing"),
    )

    if totals.is_empty():
        start = end = pl.lit(None, dtype=pl.Date)
    else:
        bounds = {year: water_year_bounds(year) for year in totals["water_year"].unique().to_list()}
        water_year = pl.col("water_year")
        start = water_year.replace_strict({y: b[0] for y, b in bounds.items()}, return_dtype=pl.Date)
        end = water_year.replace_strict({y: b[1] for y, b in bounds.items()}, return_dtype=pl.Date)

    return totals.with_columns(start.alias("start_date"), end.alias("end_date")).select(
        *keys, "start_date", "end_date", "total_volume", "n_periods", "n_missing"
    )
