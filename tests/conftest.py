"""Shared fixtures for building observed/modeled series and basins."""

from datetime import datetime, timedelta

import pytest

from gagefit.models import BasinSeries, GageMeta
from gagefit.timeseries import observed_frame

DAY = timedelta(days=1)

# Depth (mm/day) over a 100 km² basin that yields 1 m³/s: 1 * 86400 / 100 / 1000
MM_PER_M3S_100KM2_DAILY = 0.864


@pytest.fixture
def make_observed():
    """Factory for observed frames with one value per step starting at start."""

    def _make(start: datetime, values: list, step: timedelta = DAY, time_zone: str = "UTC"):
        records = [(start + i * step, v) for i, v in enumerate(values)]
        return observed_frame(records, time_zone=time_zone)

    return _make


@pytest.fixture
def make_basin():
    """Factory for a daily basin whose modeled flow (m³/s) is given directly.

    Observed values are stamped at the start of their day and model values at
    the end (day D at D+1 00:00), the way model output is written. Pass
    model_start to stamp the model series elsewhere.

    With cell_count=100 and 1 km cells the modeled area is 100 km², so the
    runoff depths are scaled to reproduce the requested flows exactly.
    """

    def _make(
        station: str,
        start: datetime,
        observed: list,
        modeled: list | None = None,
        model_start: datetime | None = None,
        cell_count: int = 100,
        area_sq_mi: float = 100.0,
    ) -> BasinSeries:
        modeled = observed if modeled is None else modeled
        model_start = start + DAY if model_start is None else model_start
        depth_scale = MM_PER_M3S_100KM2_DAILY * 100 / cell_count
        obs_records = [(start + i * DAY, q) for i, q in enumerate(observed)]
        sim_records = [
            (
                model_start + i * DAY,
                None if q is None else 0.75 * q * depth_scale,
                None if q is None else 0.25 * q * depth_scale,
            )
            for i, q in enumerate(modeled)
        ]
        return BasinSeries(
            gage=GageMeta(station=station, name=f"Gage {station}", area_sq_mi=area_sq_mi),
            cell_count=cell_count,
            observed=obs_records,
            modeled=sim_records,
        )

    return _make
