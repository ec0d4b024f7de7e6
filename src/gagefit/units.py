"""Unit conversions between runoff depth, flow rate and volume.

Model output is accumulated runoff depth (mm) over a basin per time step;
gage records are flow rates (m³/s). The conversions are:

1. Q = depth_mm * area_km2 / dt_s * 1000 (flow rate, m³/s)
2. V = Q * duration_s * 0.3048^3 / 43560 (volume, acre-ft)

mm * km² = 1e-3 m * 1e6 m² = 1e3 m³, which gives the factor 1000 in (1).

All functions accept floats, numpy arrays, polars Series or polars
expressions. Missing values propagate: nulls stay null and NaN stays NaN.
"""

import numpy as np
import polars as pl

from .exceptions import InvalidParameterError

Numeric = float | np.ndarray | pl.Series | pl.Expr

MM_KM2_TO_M3 = 1000.0
SQ_MI_TO_KM2 = 2.58999
SECONDS_PER_DAY = 86400

# Factor applied to flow (m³/s) * duration (s) for each supported volume unit
VOLUME_FACTORS = {
    "acre-ft": 0.3048**3 / 43560,
    "m3": 1.0,
}


def _require_positive(name: str, value: float) -> None:
    if value is None or not value > 0:
        raise InvalidParameterError(f"{name} must be > 0, got {value}")


def _volume_factor(unit: str) -> float:
    try:
        return VOLUME_FACTORS[unit]
    except KeyError:
        raise InvalidParameterError(
            f"Unknown volume unit {unit!r}; expected one of {sorted(VOLUME_FACTORS)}"
        ) from None


def flow_rate_from_depth(depth_mm: Numeric, basin_area_km2: float, time_step_s: float) -> Numeric:
    """Convert accumulated runoff depth to a volumetric flow rate.

    Args:
        depth_mm: Runoff depth accumulated over one time step (mm)
        basin_area_km2: Contributing basin area (km²)
        time_step_s: Accumulation interval (seconds)

    Returns:
        Flow rate in m³/s, same type as depth_mm

    Raises:
        InvalidParameterError: If basin_area_km2 or time_step_s is not positive

    Examples:
        >>> flow_rate_from_depth(864.0, 100.0, 86400)
        1000.0
    """
    _require_positive("basin_area_km2", basin_area_km2)
    _require_positive("time_step_s", time_step_s)
    return depth_mm * basin_area_km2 / time_step_s * MM_KM2_TO_M3


def depth_from_flow_rate(flow_m3s: Numeric, basin_area_km2: float, time_step_s: float) -> Numeric:
    """Inverse of flow_rate_from_depth: flow rate (m³/s) to depth (mm) per step."""
    _require_positive("basin_area_km2", basin_area_km2)
    _require_positive("time_step_s", time_step_s)
    return flow_m3s * time_step_s / basin_area_km2 / MM_KM2_TO_M3


def volume_from_flow_rate(flow_m3s: Numeric | None, duration_s: Numeric | None, unit: str = "acre-ft") -> Numeric | None:
    """Convert a flow rate sustained over a duration to a volume.

    Args:
        flow_m3s: Flow rate (m³/s); None is returned unchanged
        duration_s: Duration of the period (seconds)
        unit: Target volume unit, "acre-ft" (default) or "m3"

    Returns:
        Volume in the requested unit, or None if either input is None
    """
    factor = _volume_factor(unit)
    if flow_m3s is None or duration_s is None:
        return None
    return flow_m3s * duration_s * factor


def flow_rate_from_volume(volume: Numeric, duration_s: float, unit: str = "acre-ft") -> Numeric:
    """Inverse of volume_from_flow_rate."""
    _require_positive("duration_s", duration_s)
    return volume / (duration_s * _volume_factor(unit))


def basin_area_from_cells(cell_count: int, cell_size_km: float) -> float:
    """Area (km²) of a model basin from its contributing cell count."""
    _require_positive("cell_count", cell_count)
    _require_positive("cell_size_km", cell_size_km)
    return cell_count * cell_size_km**2


def sq_mi_to_km2(area_sq_mi: float) -> float:
    """Convert a gage drainage area from square miles to km²."""
    _require_positive("area_sq_mi", area_sq_mi)
    return area_sq_mi * SQ_MI_TO_KM2
