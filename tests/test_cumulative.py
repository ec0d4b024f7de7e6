"""Unit tests for water-year cumulative volumes."""

from datetime import date, datetime

import polars as pl
import pytest

from gagefit.cumulative import cumulative_volume, water_year_totals


def period_table(station: str, months: list[tuple[int, int]], volumes: list) -> pl.DataFrame:
    timestamps = [datetime(year, month, 1) for year, month in months]
    return pl.DataFrame(
        {
            "station": [station] * len(volumes),
            "timestamp": timestamps,
            "water_year": [year + 1 if month >= 10 else year for year, month in months],
            "volume": pl.Series(volumes, dtype=pl.Float64),
        }
    )


MONTHS = [(2019, 8), (2019, 9), (2019, 10), (2019, 11), (2019, 12)]


class TestCumulativeVolume:
    """Tests for cumulative_volume function."""

    def test_resets_at_water_year(self) -> None:
        """First period of each water year starts from its own volume."""
        table = period_table("A", MONTHS, [1.0, 2.0, 10.0, 20.0, 30.0])

        result = cumulative_volume(table)

        assert result["cumulative_volume"].to_list() == [1.0, 3.0, 10.0, 30.0, 60.0]

    def test_missing_carries_total(self) -> None:
        """A missing period adds nothing but still gets the running total."""
        table = period_table("A", MONTHS, [1.0, None, 10.0, None, 30.0])

        result = cumulative_volume(table)

        assert result.height == table.height
        assert result["cumulative_volume"].to_list() == [1.0, 1.0, 10.0, 10.0, 40.0]

    def test_missing_first_period(self) -> None:
        table = period_table("A", MONTHS[2:], [None, 5.0, 1.0])
        assert cumulative_volume(table)["cumulative_volume"].to_list() == [0.0, 5.0, 6.0]

    def test_last_period_equals_sum_of_non_missing(self) -> None:
        volumes = [3.5, None, 1.25, 7.0, None]
        months = [(2020, m) for m in range(1, 6)]
        table = period_table("A", months, volumes)

        result = cumulative_volume(table)

        assert result["cumulative_volume"][-1] == pytest.approx(sum(v for v in volumes if v is not None))

    def test_non_decreasing_for_non_negative_volumes(self) -> None:
        months = [(2020, m) for m in range(1, 10)]
        table = period_table("A", months, [0.0, 2.0, None, 0.5, 3.0, 0.0, None, 1.0, 4.0])

        cumulative = cumulative_volume(table)["cumulative_volume"].to_list()

        assert all(b >= a for a, b in zip(cumulative, cumulative[1:]))

    def test_stations_independent(self) -> None:
        a = period_table("A", MONTHS[2:], [1.0, 1.0, 1.0])
        b = period_table("B", MONTHS[2:], [100.0, 100.0, 100.0])

        result = cumulative_volume(pl.concat([a, b]))

        assert result["cumulative_volume"].to_list() == [1.0, 2.0, 3.0, 100.0, 200.0, 300.0]

    def test_chronological_order_within_partition(self) -> None:
        """Running sum follows timestamps; output keeps input row order."""
        table = period_table("A", MONTHS[2:], [1.0, 2.0, 4.0]).reverse()

        result = cumulative_volume(table)

        assert result["volume"].to_list() == [4.0, 2.0, 1.0]
        assert result["cumulative_volume"].to_list() == [7.0, 3.0, 1.0]

    def test_input_not_mutated(self) -> None:
        table = period_table("A", MONTHS, [1.0, 2.0, 3.0, 4.0, 5.0])
        cumulative_volume(table)
        assert "cumulative_volume" not in table.columns


class TestWaterYearTotals:
    """Tests for water_year_totals function."""

    def test_totals(self) -> None:
        table = period_table("A", MONTHS, [1.0, None, 10.0, 20.0, None])

        totals = water_year_totals(table)

        assert totals["water_year"].to_list() == [2019, 2020]
        assert totals["total_volume"].to_list() == [1.0, 30.0]
        assert totals["n_periods"].to_list() == [2, 3]
        assert totals["n_missing"].to_list() == [1, 1]

    def test_all_missing_year_total_is_null(self) -> None:
        """Missing data must not read as zero volume."""
        table = period_table("A", MONTHS, [1.0, 2.0, None, None, None])

        totals = water_year_totals(table)

        assert totals["total_volume"].to_list() == [3.0, None]
        assert totals["n_missing"].to_list() == [0, 3]

    def test_water_year_dates(self) -> None:
        totals = water_year_totals(period_table("A", MONTHS, [1.0] * 5))

        assert totals["start_date"].to_list() == [date(2018, 10, 1), date(2019, 10, 1)]
        assert totals["end_date"].to_list() == [date(2019, 9, 30), date(2020, 9, 30)]

    def test_empty_table(self) -> None:
        totals = water_year_totals(period_table("A", MONTHS, [1.0] * 5).clear())

        assert totals.height == 0
        assert totals.columns == ["station", "water_year", "start_date", "end_date", "total_volume", "n_periods", "n_missing"]
