"""Flow-rate derivation from accumulated model runoff.

The model reports, for each time step, the surface and subsurface runoff
depth (mm) accumulated over that step. Total runoff converted with the basin
area and the step length gives the flow rate at the end of the step:

    Q[t] = (surface[t] + subsurface[t]) * area_km2 / dt_s * 1000
"""

import polars as pl

from .exceptions import IrregularTimestepError
from .timeseries import series_time_zone
from .units import flow_rate_from_depth


def time_step_seconds(frame: pl.DataFrame) -> float:
    """Return the uniform time step of a series in seconds.

    The step is taken from the first two timestamps; every subsequent step
    must match it. In a zone with daylight saving, a series stamped at the
    same local time each day has 23 h and 25 h steps at the changes; such a
    series is uniform on the local clock and its nominal step is returned.

    Args:
        frame: Series with a timestamp column

    Returns:
        Time step in seconds

    Raises:
        IrregularTimestepError: If the series has fewer than two timestamps
            or a non-uniform step
    """
    if frame.height < 2:
        raise IrregularTimestepError(f"Need at least two timestamps to derive a time step, got {frame.height}")

    timestamps = frame["timestamp"]
    steps = timestamps.diff().drop_nulls()
    step = steps[0]
    irregular = steps != step
    if not irregular.any():
        return step.total_seconds()

    if series_time_zone(frame) is not None:
        wall_steps = timestamps.dt.replace_time_zone(None).diff().drop_nulls()
        if (wall_steps == wall_steps[0]).all():
            return wall_steps[0].total_seconds()

    other = steps.filter(irregular)[0]
    raise IrregularTimestepError(
        f"Non-uniform time step: expected {step.total_seconds():.0f}s, "
        f"found {other.total_seconds():.0f}s ({int(irregular.sum())} irregular steps)"
    )


def derive_flow(
    frame: pl.DataFrame,
    basin_area_km2: float,
    time_step_s: float | None = None,
) -> pl.DataFrame:
    """Add a flow_m3s column computed from accumulated runoff depths.

    Args:
        frame: Modeled series with surface_runoff_mm and subsurface_runoff_mm
        basin_area_km2: Contributing basin area (km²)
        time_step_s: Accumulation interval; derived from the timestamps if None

    Returns:
        New frame with the same rows plus flow_m3s. A missing runoff
        component gives a missing flow.

    Raises:
        IrregularTimestepError: If the time step cannot be derived
        InvalidParameterError: If the area or time step is not positive
    """
    if time_step_s is None:
        time_step_s = time_step_seconds(frame)

    total_mm = pl.col("surface_runoff_mm") + pl.col("subsurface_runoff_mm")
    return frame.with_columns(
        flow_rate_from_depth(total_mm, basin_area_km2, time_step_s).alias("flow_m3s")
    )
