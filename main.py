import logging
from pathlib import Path
from typing import Optional

import pandas as pd
import typer

from src.datahub import read_tables, write_results, write_table
from src.datahub.config import DEFAULT_OUTPUT_ROOT, LORENZ_TABLE_TEMPLATE, OUTPUT_TABLES
from src.metrics.aggregation import AggregationConfig, policy_from_name
from src.metrics.inequality import InequalityConfig
from src.pipelines import PipelineConfig, analyze_changes, run_pipeline
from src.series import SeriesConfig

app = typer.Typer()


def _build_config(
    resamples: int,
    seed: Optional[int],
    confidence: float,
    alpha: float,
    min_observations: int,
    zero_changes: str,
    workers: int,
) -> PipelineConfig:
    try:
        config = PipelineConfig(
            series=SeriesConfig(),
            aggregation=AggregationConfig(
                alpha=alpha,
                min_observations=min_observations,
                confidence_level=confidence,
                zero_change_policy=policy_from_name(zero_changes),
            ),
            inequality=InequalityConfig(n_resamples=resamples, confidence_level=confidence, seed=seed),
            workers=workers,
        )
        config.validate()
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    return config


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.command()
def run(
    observations: Path = typer.Argument(..., exists=True, dir_okay=False, help="Per-layer observation CSV."),
    surveys: Path = typer.Argument(..., exists=True, dir_okay=False, help="Per-survey metadata CSV."),
    output_root: Path = typer.Option(
        DEFAULT_OUTPUT_ROOT,
        "--output-root",
        file_okay=False,
        dir_okay=True,
        writable=True,
        help="Directory where result tables are written.",
    ),
    sep: str = typer.Option(",", "--sep", help="Field separator of both input tables."),
    resamples: int = typer.Option(1000, "--resamples", help="Bootstrap resamples per Gini estimate."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Bootstrap seed for reproducible intervals."),
    confidence: float = typer.Option(0.95, "--confidence", help="Confidence level of all intervals."),
    alpha: float = typer.Option(0.05, "--alpha", help="Holm-adjusted significance level for movers."),
    min_observations: int = typer.Option(100, "--min-observations", help="Minimum records per mover species."),
    zero_changes: str = typer.Option(
        "exclude",
        "--zero-changes",
        help="How zero changes enter the binomial test (exclude, include).",
    ),
    workers: int = typer.Option(1, "--workers", help="Worker processes for per-series computation."),
    verbose: bool = typer.Option(False, "--verbose", help="Log skipped series and progress details."),
) -> None:
    """
    Compute interval changes, species aggregates and Gini/Lorenz tables from two CSV tables.
    """
    _configure_logging(verbose)
    config = _build_config(resamples, seed, confidence, alpha, min_observations, zero_changes, workers)
    try:
        tables = read_tables(observations, surveys, sep=sep)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    print(f"[run] {len(tables.observations)} observations across {len(tables.project_ids)} projects")
    result = run_pipeline(tables, config)
    written = write_results(result, output_root, config=config.to_dict(), inputs=(observations, surveys))

    print(
        f"[run] {len(result.plot_changes)} intervals, {len(result.species)} species, "
        f"{len(result.movers)} significant movers, {len(result.failures)} failed series"
    )
    print(f"[run] Wrote {len(written)} tables under {output_root}")


@app.command()
def inequality(
    interval_changes: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        help=f"Species interval change table ({OUTPUT_TABLES['interval_changes']}).",
    ),
    output_root: Path = typer.Option(DEFAULT_OUTPUT_ROOT, "--output-root", file_okay=False, dir_okay=True),
    resamples: int = typer.Option(1000, "--resamples", help="Bootstrap resamples per Gini estimate."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Bootstrap seed for reproducible intervals."),
    confidence: float = typer.Option(0.95, "--confidence", help="Confidence level of all intervals."),
    alpha: float = typer.Option(0.05, "--alpha", help="Holm-adjusted significance level for movers."),
    min_observations: int = typer.Option(100, "--min-observations", help="Minimum records per mover species."),
    zero_changes: str = typer.Option(
        "exclude",
        "--zero-changes",
        help="How zero changes enter the binomial test (exclude, include).",
    ),
) -> None:
    """
    Recompute species aggregates and the Gini/Lorenz tables from a saved interval change table.
    """
    config = _build_config(resamples, seed, confidence, alpha, min_observations, zero_changes, 1)
    changes = pd.read_csv(interval_changes, dtype={"species": str}, float_precision="round_trip")
    if "species" not in changes.columns or "absolute_change" not in changes.columns:
        raise typer.BadParameter("Interval change table needs 'species' and 'absolute_change' columns.")

    species, movers, report = analyze_changes(changes, config)
    write_table(species, output_root / OUTPUT_TABLES["species"])
    write_table(movers, output_root / OUTPUT_TABLES["movers"])
    write_table(report.gini_frame(), output_root / OUTPUT_TABLES["gini"])
    for name, frame in report.lorenz_frames().items():
        write_table(frame, output_root / LORENZ_TABLE_TEMPLATE.format(name=name))

    for row in report.gini_frame().itertuples(index=False):
        print(f"[inequality] {row.result}: gini={row.gini:.3f} [{row.ci_low:.3f}, {row.ci_high:.3f}] (n={row.n})")


if __name__ == "__main__":
    app()
