"""Unit tests for depth, flow-rate and volume conversions."""

import math

import numpy as np
import polars as pl
import pytest

from gagefit.exceptions import InvalidParameterError
from gagefit.units import (
    basin_area_from_cells,
    depth_from_flow_rate,
    flow_rate_from_depth,
    flow_rate_from_volume,
    sq_mi_to_km2,
    volume_from_flow_rate,
)

ACRE_FT_FACTOR = 0.3048**3 / 43560


class TestFlowRateFromDepth:
    """Tests for flow_rate_from_depth function."""

    def test_known_value(self) -> None:
        """864 mm/day over 100 km² is 1000 m³/s."""
        assert flow_rate_from_depth(864.0, 100.0, 86400) == pytest.approx(1000.0)

    def test_formula(self) -> None:
        """Q = depth * area / dt * 1000."""
        depth, area, dt = 2.5, 37.0, 3600
        assert flow_rate_from_depth(depth, area, dt) == pytest.approx(depth * area / dt * 1000)

    @pytest.mark.parametrize("area,dt", [(0.0, 3600), (-1.0, 3600), (10.0, 0), (10.0, -3600)])
    def test_invalid_parameters(self, area: float, dt: float) -> None:
        with pytest.raises(InvalidParameterError):
            flow_rate_from_depth(1.0, area, dt)

    def test_polars_series_propagates_nulls(self) -> None:
        """Missing depths stay missing."""
        result = flow_rate_from_depth(pl.Series([3.6, None]), 10.0, 3600)
        assert result[0] == pytest.approx(10.0)
        assert result[1] is None

    def test_numpy_array(self) -> None:
        result = flow_rate_from_depth(np.array([0.0, 8.64]), 100.0, 86400)
        np.testing.assert_allclose(result, [0.0, 10.0])

    def test_round_trip_with_depth(self) -> None:
        """depth -> flow -> depth recovers the original depth."""
        depth = 12.345
        flow = flow_rate_from_depth(depth, 250.0, 10800)
        assert depth_from_flow_rate(flow, 250.0, 10800) == pytest.approx(depth, rel=1e-12)


class TestVolumeFromFlowRate:
    """Tests for volume_from_flow_rate function."""

    def test_acre_feet_formula(self) -> None:
        """V = Q * duration * 0.3048^3 / 43560."""
        assert volume_from_flow_rate(1.0, 86400) == pytest.approx(86400 * ACRE_FT_FACTOR)

    def test_cubic_meters(self) -> None:
        assert volume_from_flow_rate(2.0, 86400, unit="m3") == pytest.approx(172800.0)

    def test_none_propagates(self) -> None:
        """Missing input gives missing output, never zero."""
        assert volume_from_flow_rate(None, 86400) is None
        assert volume_from_flow_rate(1.0, None) is None

    def test_nan_propagates(self) -> None:
        assert math.isnan(volume_from_flow_rate(float("nan"), 86400))

    def test_zero_and_negative_flow(self) -> None:
        """Total for all finite inputs."""
        assert volume_from_flow_rate(0.0, 86400) == 0.0
        assert volume_from_flow_rate(-1.0, 86400) == pytest.approx(-86400 * ACRE_FT_FACTOR)

    def test_unknown_unit(self) -> None:
        with pytest.raises(InvalidParameterError):
            volume_from_flow_rate(1.0, 86400, unit="gallons")

    @pytest.mark.parametrize("unit", ["acre-ft", "m3"])
    def test_round_trip(self, unit: str) -> None:
        """flow -> volume -> flow recovers the original flow rate."""
        flow = 42.17
        volume = volume_from_flow_rate(flow, 31 * 86400, unit=unit)
        assert flow_rate_from_volume(volume, 31 * 86400, unit=unit) == pytest.approx(flow, rel=1e-12)

    def test_polars_expression(self) -> None:
        df = pl.DataFrame({"q": [1.0, None], "dt": [86400, 3600]})
        result = df.select(volume_from_flow_rate(pl.col("q"), pl.col("dt"), unit="m3").alias("v"))["v"]
        assert result.to_list() == [86400.0, None]


class TestBasinArea:
    """Tests for basin area helpers."""

    def test_area_from_cells(self) -> None:
        assert basin_area_from_cells(100, 1.0) == pytest.approx(100.0)
        assert basin_area_from_cells(16, 0.25) == pytest.approx(1.0)

    @pytest.mark.parametrize("cells,size", [(0, 1.0), (10, 0.0), (-5, 1.0)])
    def test_invalid_cells(self, cells: int, size: float) -> None:
        with pytest.raises(InvalidParameterError):
            basin_area_from_cells(cells, size)

    def test_square_miles(self) -> None:
        assert sq_mi_to_km2(100.0) == pytest.approx(258.999)

    def test_square_miles_non_positive(self) -> None:
        with pytest.raises(InvalidParameterError):
            sq_mi_to_km2(0.0)
