"""Unit tests for flow derivation from accumulated runoff."""

from datetime import datetime, timedelta, timezone

import pytest

from gagefit.exceptions import InvalidParameterError, IrregularTimestepError
from gagefit.flow import derive_flow, time_step_seconds
from gagefit.timeseries import modeled_frame

HOUR = timedelta(hours=1)
START = datetime(2020, 10, 1)


def hourly_records(n: int, surface: float = 1.0, subsurface: float = 0.5) -> list[tuple]:
    return [(START + i * HOUR, surface, subsurface) for i in range(n)]


class TestTimeStep:
    """Tests for time_step_seconds function."""

    def test_hourly(self) -> None:
        assert time_step_seconds(modeled_frame(hourly_records(5))) == 3600.0

    def test_three_hourly(self) -> None:
        records = [(START + i * 3 * HOUR, 0.0, 0.0) for i in range(4)]
        assert time_step_seconds(modeled_frame(records)) == 10800.0

    def test_irregular_step(self) -> None:
        """Steps of 3600 s then 7200 s are rejected."""
        records = [
            (START, 1.0, 0.0),
            (START + HOUR, 1.0, 0.0),
            (START + 3 * HOUR, 1.0, 0.0),
        ]
        with pytest.raises(IrregularTimestepError):
            time_step_seconds(modeled_frame(records))

    def test_single_timestamp(self) -> None:
        with pytest.raises(IrregularTimestepError):
            time_step_seconds(modeled_frame(hourly_records(1)))

    def test_daily_across_spring_change(self) -> None:
        """Local-midnight days are 23 h long at the spring change but still daily."""
        records = [(datetime(2021, 3, 1) + timedelta(days=i), 1.0, 0.0) for i in range(30)]
        frame = modeled_frame(records, time_zone="America/Denver")

        assert time_step_seconds(frame) == 86400.0

    def test_hourly_across_autumn_change(self) -> None:
        """Hourly instants stay hourly while the local clock repeats 01:00."""
        start = datetime(2021, 11, 7, 5, tzinfo=timezone.utc)
        records = [(start + i * HOUR, 1.0, 0.0) for i in range(6)]
        frame = modeled_frame(records, time_zone="America/Denver")

        assert time_step_seconds(frame) == 3600.0

    def test_irregular_in_local_zone(self) -> None:
        records = [(datetime(2021, 3, 1) + timedelta(days=d), 1.0, 0.0) for d in (0, 1, 3)]
        with pytest.raises(IrregularTimestepError):
            time_step_seconds(modeled_frame(records, time_zone="America/Denver"))


class TestDeriveFlow:
    """Tests for derive_flow function."""

    def test_known_values(self) -> None:
        """(1.0 + 0.5) mm/h over 36 km² is 15 m³/s."""
        frame = modeled_frame(hourly_records(3))

        result = derive_flow(frame, basin_area_km2=36.0)

        assert result["flow_m3s"].to_list() == pytest.approx([15.0, 15.0, 15.0])

    def test_aligned_with_input(self) -> None:
        """One output value per input timestamp, same timestamps, input untouched."""
        frame = modeled_frame(hourly_records(24))

        result = derive_flow(frame, basin_area_km2=10.0)

        assert result.height == frame.height
        assert result["timestamp"].equals(frame["timestamp"])
        assert "flow_m3s" not in frame.columns

    def test_missing_component_propagates(self) -> None:
        records = hourly_records(3)
        records[1] = (records[1][0], 1.0, None)

        result = derive_flow(modeled_frame(records), basin_area_km2=36.0)

        assert result["flow_m3s"][1] is None
        assert result["flow_m3s"].null_count() == 1

    def test_explicit_time_step(self) -> None:
        """A supplied step overrides the timestamps."""
        result = derive_flow(modeled_frame(hourly_records(2)), basin_area_km2=36.0, time_step_s=7200)
        assert result["flow_m3s"][0] == pytest.approx(7.5)

    def test_irregular_series(self) -> None:
        records = [(START, 1.0, 0.0), (START + HOUR, 1.0, 0.0), (START + 3 * HOUR, 1.0, 0.0)]
        with pytest.raises(IrregularTimestepError):
            derive_flow(modeled_frame(records), basin_area_km2=36.0)

    def test_non_positive_area(self) -> None:
        with pytest.raises(InvalidParameterError):
            derive_flow(modeled_frame(hourly_records(2)), basin_area_km2=0.0)
