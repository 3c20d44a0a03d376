"""High-level orchestration from parsed survey tables to all result tables."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field, fields
from typing import List, Optional, Tuple

import pandas as pd

from src.change.records import IntervalChangeRecord, PlotChangeRecord, records_to_frame
from src.cover import merge_layers
from src.datahub.tables import SurveyTables
from src.metrics.aggregation import SpeciesAggregator
from src.metrics.community import summarize_plot_changes
from src.metrics.inequality import InequalityReport, inequality_report
from src.series import SeriesBuilder

from .config import PipelineConfig
from .partition_runner import PartitionFailure, PartitionResult, merge_results, run_partitions

logger = logging.getLogger(__name__)

PROJECT_SUMMARY_COLUMNS = (
    "project_id",
    "project_name",
    "n_plot_codes",
    "n_recurring_plot_codes",
    "n_series",
    "n_intervals",
    "n_species_records",
    "n_failed",
)


@dataclass
class ChangeTables:
    """Per-interval outputs of the change stage."""

    interval_changes: pd.DataFrame
    plot_changes: pd.DataFrame
    projects: pd.DataFrame
    failures: List[PartitionFailure] = field(default_factory=list)


@dataclass
class PipelineResult:
    """Every materialized table of one run."""

    interval_changes: pd.DataFrame
    plot_changes: pd.DataFrame
    species: pd.DataFrame
    movers: pd.DataFrame
    community: pd.DataFrame
    projects: pd.DataFrame
    inequality: InequalityReport
    failures: List[PartitionFailure] = field(default_factory=list)

    def failures_frame(self) -> pd.DataFrame:
        columns = [item.name for item in fields(PartitionFailure)]
        return pd.DataFrame([asdict(failure) for failure in self.failures], columns=columns)


def compute_changes(tables: SurveyTables, config: Optional[PipelineConfig] = None) -> ChangeTables:
    """Merge layers, build series per (project, plot code) and emit change records."""
    cfg = config or PipelineConfig()
    cfg.validate()

    merged = merge_layers(tables.observations)
    releves = tables.surveys[["project_id", "plot_code", "releve_id", "year"]]

    builder = SeriesBuilder(cfg.series)
    keys = [
        (project_id, plot_code)
        for project_id in tables.project_ids
        for plot_code in builder.recurring_plot_codes(releves, project_id)
    ]
    logger.info("Processing %d recurring plot codes across %d projects", len(keys), len(tables.project_ids))

    results = run_partitions(merged, releves, cfg.series, keys=keys, workers=cfg.workers)
    changes, failures = merge_results(results)
    return ChangeTables(
        interval_changes=records_to_frame(changes.intervals, IntervalChangeRecord),
        plot_changes=records_to_frame(changes.plots, PlotChangeRecord),
        projects=summarize_projects(tables, builder, results),
        failures=failures,
    )


def summarize_projects(
    tables: SurveyTables,
    builder: SeriesBuilder,
    results: List[PartitionResult],
) -> pd.DataFrame:
    """Series, interval and failure counts per project."""
    surveys = tables.surveys
    rows = []
    for project_id in tables.project_ids:
        project_surveys = surveys[surveys["project_id"] == project_id]
        project_results = [result for result in results if result.key[0] == project_id]
        names = sorted(name for name in project_surveys["project_name"].unique() if name)
        rows.append(
            {
                "project_id": project_id,
                "project_name": names[0] if names else "",
                "n_plot_codes": int(project_surveys["plot_code"].nunique()),
                "n_recurring_plot_codes": len(builder.recurring_plot_codes(surveys, project_id)),
                "n_series": sum(1 for result in project_results if result.built),
                "n_intervals": sum(len(result.changes.plots) for result in project_results),
                "n_species_records": sum(len(result.changes.intervals) for result in project_results),
                "n_failed": sum(1 for result in project_results if result.failure is not None),
            }
        )
    return pd.DataFrame(rows, columns=list(PROJECT_SUMMARY_COLUMNS))


def analyze_changes(
    interval_changes: pd.DataFrame,
    config: Optional[PipelineConfig] = None,
) -> Tuple[pd.DataFrame, pd.DataFrame, InequalityReport]:
    """Species aggregation and the four inequality summaries of an interval change table."""
    cfg = config or PipelineConfig()
    cfg.validate()

    aggregator = SpeciesAggregator(cfg.aggregation).fit(interval_changes)
    species = aggregator.to_frame()
    movers = aggregator.significant_movers()

    raw = interval_changes["absolute_change"].dropna().to_numpy(dtype=float)
    species_means = species["mean_absolute_change"].dropna().to_numpy(dtype=float)
    report = inequality_report(raw, species_means, cfg.inequality)
    return species, movers, report


def run_pipeline(tables: SurveyTables, config: Optional[PipelineConfig] = None) -> PipelineResult:
    """Run every stage on already-parsed tables and return all result tables."""
    cfg = config or PipelineConfig()
    cfg.validate()

    changes = compute_changes(tables, cfg)
    species, movers, report = analyze_changes(changes.interval_changes, cfg)
    if changes.failures:
        logger.warning("%d partitions failed and were skipped", len(changes.failures))

    return PipelineResult(
        interval_changes=changes.interval_changes,
        plot_changes=changes.plot_changes,
        species=species,
        movers=movers,
        community=summarize_plot_changes(changes.plot_changes),
        projects=changes.projects,
        inequality=report,
        failures=changes.failures,
    )


__all__ = [
    "ChangeTables",
    "PROJECT_SUMMARY_COLUMNS",
    "PipelineResult",
    "analyze_changes",
    "compute_changes",
    "run_pipeline",
    "summarize_projects",
]
