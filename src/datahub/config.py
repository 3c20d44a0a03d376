"""Static configuration for input table layouts and output paths."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, TypedDict


class ObservationColumns(TypedDict):
    project_id: str
    survey_id: str
    releve_id: str
    layer: str
    species: str
    cover: str


class SurveyColumns(TypedDict):
    releve_id: str
    project_id: str
    year: str
    plot_code: str
    project_name: str


# Default output directory used by the Typer CLI.
DEFAULT_OUTPUT_ROOT = Path("data/results")

# ---------------------------------------------------------------------------
# Column layouts of the two parsed input tables.

OBSERVATIONS: ObservationColumns = {
    "project_id": "project_id",
    "survey_id": "survey_id",
    "releve_id": "releve_id",
    "layer": "layer",
    "species": "species",
    "cover": "cover",
}

SURVEYS: SurveyColumns = {
    "releve_id": "releve_id",
    "project_id": "project_id",
    "year": "year",
    "plot_code": "plot_code",
    "project_name": "project_name",
}

# Output table file names written by `src.datahub.io.write_results`.
OUTPUT_TABLES: Dict[str, str] = {
    "interval_changes": "species_interval_changes.csv",
    "plot_changes": "plot_changes.csv",
    "species": "species_aggregates.csv",
    "movers": "significant_movers.csv",
    "community": "community_summary.csv",
    "projects": "project_summary.csv",
    "gini": "gini.csv",
    "failures": "partition_failures.csv",
}
LORENZ_TABLE_TEMPLATE = "lorenz_{name}.csv"

SERIES_KEY_SEPARATOR = ":"


__all__ = [
    "DEFAULT_OUTPUT_ROOT",
    "LORENZ_TABLE_TEMPLATE",
    "OBSERVATIONS",
    "OUTPUT_TABLES",
    "SERIES_KEY_SEPARATOR",
    "SURVEYS",
    "ObservationColumns",
    "SurveyColumns",
]
