"""
Evaluate modeled streamflow against gage records for a set of basins.

Reads already-extracted records (one Parquet file of observed discharge,
one of basin-averaged model runoff) plus a basin table, runs the
multi-basin evaluation and writes every result table as Parquet.

Inputs:
    observed.parquet: station, timestamp, flow_m3s
    modeled.parquet:  station, timestamp, surface_runoff_mm, subsurface_runoff_mm
                      (each row stamped at the end of its accumulation interval)
    basins.csv:       station, name, area_sq_mi, cell_count (processing order)
"""

import argparse
import logging
from pathlib import Path

import polars as pl

from gagefit import BasinEvaluator, BasinSeries, EvaluationConfig, GageMeta

logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)


def load_basins(observed_path: Path, modeled_path: Path, basins_path: Path) -> list[BasinSeries]:
    """Split the stacked input tables into one BasinSeries per basin."""
    observed = pl.read_parquet(observed_path)
    modeled = pl.read_parquet(modeled_path)
    basin_table = pl.read_csv(basins_path, schema_overrides={"station": pl.Utf8})
    logger.info(f"✓ Loaded {len(observed):,} observed and {len(modeled):,} modeled records")
    logger.info(f"✓ Loaded {len(basin_table)} basins from {basins_path.name}")

    basins = []
    for row in basin_table.iter_rows(named=True):
        station = row["station"]
        basins.append(
            BasinSeries(
                gage=GageMeta(station=station, name=row["name"], area_sq_mi=row["area_sq_mi"]),
                cell_count=row["cell_count"],
                observed=observed.filter(pl.col("station") == station).drop("station"),
                modeled=modeled.filter(pl.col("station") == station).drop("station"),
            )
        )
    return basins


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--observed", type=Path, required=True, help="Observed discharge Parquet file")
    parser.add_argument("--modeled", type=Path, required=True, help="Basin-averaged model runoff Parquet file")
    parser.add_argument("--basins", type=Path, required=True, help="Basin table CSV")
    parser.add_argument("--output-dir", type=Path, default=Path("outputs"), help="Directory for result tables")
    parser.add_argument("--cell-size-km", type=float, default=1.0, help="Model grid cell size (km)")
    parser.add_argument("--time-zone", default="UTC", help="Canonical time zone for daily bucketing")
    parser.add_argument("--stats-resolution", choices=["raw", "daily", "monthly"], default="daily")
    parser.add_argument("--volume-unit", choices=["acre-ft", "m3"], default="acre-ft")
    parser.add_argument("--on-failure", choices=["omit", "null_row"], default="omit")
    parser.add_argument("--workers", type=int, default=1, help="Basins processed concurrently")
    args = parser.parse_args()

    config = EvaluationConfig(
        cell_size_km=args.cell_size_km,
        time_zone=args.time_zone,
        stats_resolution=args.stats_resolution,
        volume_unit=args.volume_unit,
        on_failure=args.on_failure,
        max_workers=args.workers,
    )

    logger.info("=" * 60)
    logger.info("LOADING DATA")
    logger.info("=" * 60)
    basins = load_basins(args.observed, args.modeled, args.basins)

    logger.info("\n" + "=" * 60)
    logger.info("EVALUATING BASINS")
    logger.info("=" * 60)
    evaluator = BasinEvaluator(basins, config)
    results = evaluator.run()

    logger.info("\nPerformance statistics:")
    for row in results.stats.iter_rows(named=True):
        if row["n_pairs"] is None:
            logger.info(f"  {row['station']:12s}: no statistics")
            continue
        logger.info(
            f"  {row['station']:12s}: NSE={row['nse']:6.3f}  KGE={row['kge']:6.3f}  "
            f"PBIAS={row['pbias']:6.1f}%  n={row['n_pairs']}"
        )

    evaluator.to_parquet(str(args.output_dir))

    logger.info("\n" + "=" * 60)
    logger.info("✓ EVALUATION COMPLETE")
    logger.info("=" * 60)


if __name__ == "__main__":
    main()
