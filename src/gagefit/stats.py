"""Goodness-of-fit statistics between observed and modeled flow.

The metric battery is fixed. With o the observed and s the simulated values
over the retained pairs:

- n_pairs: number of pairs used
- nse: Nash-Sutcliffe efficiency, 1 - Σ(o-s)² / Σ(o-ō)²
- nse_log: NSE of log(x + ε), ε = ō / 100
- kge: Kling-Gupta efficiency, 1 - sqrt((r-1)² + (α-1)² + (β-1)²),
  α = σs/σo, β = s̄/ō
- pbias: percent bias, 100 * Σ(s-o) / Σo (positive = overestimation)
- rmse: sqrt(mean((s-o)²)); nrmse: rmse / ō
- mae: mean(|s-o|)
- r: Pearson correlation coefficient
- obs_mean, sim_mean, obs_var, sim_var: means and sample variances (ddof=1)

A ratio with a zero denominator yields NaN rather than an error.
"""

import numpy as np
import polars as pl

from .exceptions import InsufficientOverlapError, TimezoneMismatchError
from .timeseries import series_time_zone

MIN_PAIRS = 2

STATS_SCHEMA = {
    "station": pl.Utf8,
    "n_pairs": pl.Int64,
    "nse": pl.Float64,
    "nse_log": pl.Float64,
    "kge": pl.Float64,
    "pbias": pl.Float64,
    "rmse": pl.Float64,
    "nrmse": pl.Float64,
    "mae": pl.Float64,
    "r": pl.Float64,
    "obs_mean": pl.Float64,
    "sim_mean": pl.Float64,
    "obs_var": pl.Float64,
    "sim_var": pl.Float64,
}

METRIC_NAMES = tuple(name for name in STATS_SCHEMA if name != "station")


def _ratio(numerator: float, denominator: float) -> float:
    if denominator == 0 or np.isnan(denominator):
        return float("nan")
    return float(numerator / denominator)


def _nse(obs: np.ndarray, sim: np.ndarray) -> float:
    return 1.0 - _ratio(np.sum((obs - sim) ** 2), np.sum((obs - obs.mean()) ** 2))


def _correlation(obs: np.ndarray, sim: np.ndarray) -> float:
    if np.std(obs) == 0 or np.std(sim) == 0:
        return float("nan")
    return float(np.corrcoef(obs, sim)[0, 1])


def paired_values(
    observed: pl.DataFrame, modeled: pl.DataFrame, value: str = "flow_m3s"
) -> pl.DataFrame:
    """Inner-join two series on exact timestamp and keep complete pairs.

    Returns:
        DataFrame with timestamp, obs, sim; no missing values

    Raises:
        TimezoneMismatchError: If the series are in different time zones
    """
    obs_zone = series_time_zone(observed)
    sim_zone = series_time_zone(modeled)
    if obs_zone != sim_zone:
        raise TimezoneMismatchError(f"Observed series is in {obs_zone}, modeled series in {sim_zone}")

    obs = observed.select("timestamp", pl.col(value).cast(pl.Float64).fill_nan(None).alias("obs"))
    sim = modeled.select("timestamp", pl.col(value).cast(pl.Float64).fill_nan(None).alias("sim"))
    return obs.join(sim, on="timestamp", how="inner").drop_nulls(["obs", "sim"]).sort("timestamp")


def compute_performance_stats(
    observed: pl.DataFrame, modeled: pl.DataFrame, value: str = "flow_m3s"
) -> dict[str, float]:
    """Compute the fixed goodness-of-fit battery for one basin.

    The series are not resampled here; pass both at the same resolution
    (raw, or aggregated with the same convention).

    Args:
        observed: Observed series with timestamp and value columns
        modeled: Modeled series with timestamp and value columns
        value: Flow column compared in both series

    Returns:
        Dictionary keyed by METRIC_NAMES

    Raises:
        InsufficientOverlapError: If fewer than two valid pairs overlap
        TimezoneMismatchError: If the series are in different time zones
    """
    pairs = paired_values(observed, modeled, value)
    if pairs.height < MIN_PAIRS:
        raise InsufficientOverlapError(
            f"Only {pairs.height} valid observed/modeled pairs overlap, need at least {MIN_PAIRS}"
        )

    obs = pairs["obs"].to_numpy()
    sim = pairs["sim"].to_numpy()
    error = sim - obs

    obs_mean = float(obs.mean())
    sim_mean = float(sim.mean())
    obs_std = float(np.std(obs, ddof=1))
    sim_std = float(np.std(sim, ddof=1))

    r = _correlation(obs, sim)
    alpha = _ratio(sim_std, obs_std)
    beta = _ratio(sim_mean, obs_mean)
    kge = 1.0 - float(np.sqrt((r - 1) ** 2 + (alpha - 1) ** 2 + (beta - 1) ** 2))

    # log transform is undefined when any shifted value is non-positive
    epsilon = obs_mean / 100
    if np.all(obs + epsilon > 0) and np.all(sim + epsilon > 0):
        nse_log = _nse(np.log(obs + epsilon), np.log(sim + epsilon))
    else:
        nse_log = float("nan")

    rmse = float(np.sqrt(np.mean(error**2)))

    return {
        "n_pairs": int(pairs.height),
        "nse": _nse(obs, sim),
        "nse_log": nse_log,
        "kge": kge,
        "pbias": 100.0 * _ratio(np.sum(error), np.sum(obs)),
        "rmse": rmse,
        "nrmse": _ratio(rmse, obs_mean),
        "mae": float(np.mean(np.abs(error))),
        "r": r,
        "obs_mean": obs_mean,
        "sim_mean": sim_mean,
        "obs_var": float(np.var(obs, ddof=1)),
        "sim_var": float(np.var(sim, ddof=1)),
    }


def null_stats_row(station: str) -> dict:
    """Statistics row with every metric null, for basins that failed."""
    row = {name: None for name in STATS_SCHEMA}
    row["station"] = station
    return row


def stats_table(rows: list[dict]) -> pl.DataFrame:
    """Stack per-basin statistics rows into the fixed-schema table."""
    return pl.from_dicts(rows, schema=STATS_SCHEMA) if rows else pl.DataFrame(schema=STATS_SCHEMA)
