"""BasinEvaluator class for comparing modeled and observed streamflow across basins."""

import concurrent.futures
import logging
from collections.abc import Sequence
from dataclasses import asdict
from pathlib import Path

import polars as pl

from .config import EvaluationConfig
from .cumulative import water_year_totals
from .exceptions import InvalidParameterError
from .models import BasinResult, BasinSeries, EvaluationResult, GageMeta
from .pipeline import aggregated_schema, evaluate_basin
from .readers import GageReader, ModelOutputReader, read_observed
from .stats import null_stats_row, stats_table

logger = logging.getLogger(__name__)

BASIN_SCHEMA = {
    "station": pl.Utf8,
    "name": pl.Utf8,
    "gage_area_km2": pl.Float64,
    "model_area_km2": pl.Float64,
    "area_ratio": pl.Float64,
    "time_step_s": pl.Float64,
}

FAILURE_SCHEMA = {
    "station": pl.Utf8,
    "stage": pl.Utf8,
    "error": pl.Utf8,
    "message": pl.Utf8,
}


class BasinEvaluator:
    """Evaluate modeled streamflow against gage records for many basins.

    Each basin runs through the same pipeline independently: flow derivation
    from accumulated runoff, daily and monthly aggregation, water-year
    cumulative volumes and goodness-of-fit statistics. Results are stacked in
    the order the basins were given, whatever order they finish in.

    Attributes:
        basins: Basin inputs in processing order
        config: Run configuration
        results: Stacked results (None until run() is called)

    Example:
        >>> evaluator = BasinEvaluator(basins, EvaluationConfig(cell_size_km=1.0))
        >>> results = evaluator.run()
        >>> results.stats
        >>> evaluator.to_parquet("outputs/")
    """

    def __init__(self, basins: Sequence[BasinSeries], config: EvaluationConfig | None = None) -> None:
        """Initialize BasinEvaluator.

        Args:
            basins: One BasinSeries per basin, in the order results should appear
            config: Run configuration (default: EvaluationConfig())

        Raises:
            InvalidParameterError: If no basins are given or a station code
                appears more than once
        """
        self.basins = list(basins)
        self.config = config or EvaluationConfig()
        self.results: EvaluationResult | None = None

        if not self.basins:
            raise InvalidParameterError("No basins to evaluate")

        seen: set[str] = set()
        duplicates = []
        for basin in self.basins:
            if basin.station in seen:
                duplicates.append(basin.station)
            seen.add(basin.station)
        if duplicates:
            raise InvalidParameterError(f"Station codes must map to exactly one basin, duplicated: {duplicates}")

        logger.info(f"Loaded {len(self.basins)} basins")

    @classmethod
    def from_readers(
        cls,
        gages: Sequence[GageMeta],
        gage_reader: GageReader,
        model_reader: ModelOutputReader,
        config: EvaluationConfig | None = None,
    ) -> "BasinEvaluator":
        """Read every basin's records up front and build an evaluator.

        Args:
            gages: Gage metadata, in processing order
            gage_reader: Source of observed discharge records
            model_reader: Source of basin-averaged model output
            config: Run configuration
        """
        basins = []
        for gage in gages:
            logger.info(f"Reading records for {gage.station} ({gage.name})")
            output = model_reader.read_basin(gage.station)
            basins.append(
                BasinSeries(
                    gage=gage,
                    cell_count=output.cell_count,
                    observed=read_observed(gage_reader, gage.station),
                    modeled=list(output.records),
                )
            )
        return cls(basins, config)

    def _run_parallel(self) -> dict[str, BasinResult]:
        results: dict[str, BasinResult] = {}
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            future_to_station = {
                executor.submit(evaluate_basin, basin, self.config): basin.station for basin in self.basins
            }
            for future in concurrent.futures.as_completed(future_to_station):
                station = future_to_station[future]
                results[station] = future.result()
                logger.info(f"Completed: {station}")
        return results

    def _run_sequential(self) -> dict[str, BasinResult]:
        results: dict[str, BasinResult] = {}
        for i, basin in enumerate(self.basins, start=1):
            logger.info(f"Processing basin {i}/{len(self.basins)}: {basin.station}")
            results[basin.station] = evaluate_basin(basin, self.config)
        return results

    def _stack(self, by_station: dict[str, BasinResult]) -> EvaluationResult:
        ordered = [by_station[basin.station] for basin in self.basins]

        def concat(tables: list[pl.DataFrame]) -> pl.DataFrame:
            tables = [t for t in tables if t is not None]
            if not tables:
                return pl.DataFrame(schema=aggregated_schema(self.config.time_zone))
            return pl.concat(tables)

        daily = concat([r.daily for r in ordered])
        monthly = concat([r.monthly for r in ordered])

        stats_rows = []
        for result in ordered:
            if result.stats is not None:
                stats_rows.append(result.stats)
            elif self.config.on_failure == "null_row":
                stats_rows.append(null_stats_row(result.station))

        summaries = [r.summary for r in ordered if r.summary is not None]
        failures = [asdict(r.failure) for r in ordered if r.failure is not None]

        return EvaluationResult(
            daily=daily,
            monthly=monthly,
            annual=water_year_totals(monthly),
            stats=stats_table(stats_rows),
            basins=pl.from_dicts(summaries, schema=BASIN_SCHEMA) if summaries else pl.DataFrame(schema=BASIN_SCHEMA),
            failures=pl.from_dicts(failures, schema=FAILURE_SCHEMA) if failures else pl.DataFrame(schema=FAILURE_SCHEMA),
        )

    def run(self) -> EvaluationResult:
        """Evaluate every basin and stack the results.

        Basin-level failures are logged and recorded in results.failures;
        they never abort the run.

        Returns:
            EvaluationResult with daily, monthly, annual, stats, basins and
            failures tables, rows in basin processing order
        """
        logger.info(
            f"Evaluating {len(self.basins)} basins "
            f"(stats at {self.config.stats_resolution} resolution, {self.config.max_workers} workers)"
        )

        if self.config.max_workers > 1:
            by_station = self._run_parallel()
        else:
            by_station = self._run_sequential()

        self.results = self._stack(by_station)

        n_failed = self.results.failures.height
        logger.info(f"Computed statistics for {len(self.basins) - n_failed} basins, {n_failed} failed")
        for failure in self.results.failures.iter_rows(named=True):
            logger.warning(f"  {failure['station']} [{failure['stage']}] {failure['error']}: {failure['message']}")

        return self.results

    def to_parquet(self, output_dir: str) -> None:
        """Save every result table as <output_dir>/<table>.parquet.

        Args:
            output_dir: Output directory (created if missing)

        Raises:
            RuntimeError: If run() has not been called yet
        """
        if self.results is None:
            raise RuntimeError("No results to save. Call run() first.")

        output_path = Path(output_dir)
        output_path.mkdir(parents=True, exist_ok=True)

        for name, table in self.results.tables().items():
            path = output_path / f"{name}.parquet"
            logger.info(f"Saving {len(table)} rows to {path}")
            table.write_parquet(path)
        logger.info("Save complete")
