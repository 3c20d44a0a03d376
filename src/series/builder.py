"""Group merged observations into resurveyed plot series."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

import pandas as pd

from .diversity import evenness, richness, shannon
from .records import Series, SeriesStructureError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeriesConfig:
    """Configuration for `SeriesBuilder`."""

    min_distinct_years: int = 2

    def validate(self) -> None:
        if self.min_distinct_years < 2:
            raise ValueError("A series needs at least two distinct years to form an interval.")


def releves_from_observations(merged: pd.DataFrame) -> pd.DataFrame:
    """Derive the releve table (one row per releve) from merged observations."""
    columns = ["project_id", "plot_code", "releve_id", "year"]
    return merged[columns].drop_duplicates(subset="releve_id").reset_index(drop=True)


class SeriesBuilder:
    """Builds year-ordered, replicate-averaged snapshot series for each plot code."""

    def __init__(self, config: Optional[SeriesConfig] = None) -> None:
        self.config = config or SeriesConfig()
        self.config.validate()

    def recurring_plot_codes(self, releves: pd.DataFrame, project_id: str) -> List[str]:
        """Plot codes of `project_id` surveyed in at least `min_distinct_years` distinct years."""
        subset = releves[releves["project_id"] == project_id]
        year_counts = subset.groupby("plot_code")["year"].nunique()
        qualifying = year_counts[year_counts >= self.config.min_distinct_years]
        dropped = len(year_counts) - len(qualifying)
        if dropped:
            logger.debug("Project %s: dropped %d single-year plot codes", project_id, dropped)
        return sorted(str(code) for code in qualifying.index)

    def build(
        self,
        merged: pd.DataFrame,
        project_id: str,
        plot_code: str,
        releves: Optional[pd.DataFrame] = None,
    ) -> Optional[Series]:
        """Build the series of one plot code, or return None if it carries no interval.

        Args:
            merged: Layer-merged observations (see `src.cover.merge_layers`).
            project_id: Project the plot belongs to.
            plot_code: Plot identity within the project.
            releves: Optional releve table; releves without any species records
                become all-zero survey rows. Defaults to the releves seen in `merged`.
        """
        if releves is None:
            releves = releves_from_observations(merged)
        plot_releves = releves[(releves["project_id"] == project_id) & (releves["plot_code"] == plot_code)]
        plot_releves = plot_releves.drop_duplicates(subset="releve_id").sort_values(["year", "releve_id"])

        if plot_releves["year"].nunique() < self.config.min_distinct_years:
            logger.debug("Series %s:%s has a single distinct year; skipped", project_id, plot_code)
            return None

        rows = merged[(merged["project_id"] == project_id) & (merged["plot_code"] == plot_code)]
        if rows.duplicated(subset=["releve_id", "species"]).any():
            raise SeriesStructureError(
                f"Series {project_id}:{plot_code} has more than one cover value per species and releve."
            )

        matrix = rows.pivot(index="releve_id", columns="species", values="cover")
        matrix = matrix.reindex(index=plot_releves["releve_id"]).fillna(0.0)
        matrix = matrix.loc[:, matrix.sum(axis=0) > 0]
        matrix = matrix.reindex(columns=sorted(matrix.columns))
        if matrix.shape[1] == 0:
            logger.debug("Series %s:%s has no species with nonzero cover; skipped", project_id, plot_code)
            return None

        values = matrix.to_numpy(dtype=float)
        per_releve = pd.DataFrame(index=matrix.index)
        per_releve["richness"] = richness(values)
        per_releve["shannon"] = shannon(values)
        per_releve["evenness"] = evenness(per_releve["shannon"].to_numpy(), per_releve["richness"].to_numpy())

        years = plot_releves.set_index("releve_id")["year"].reindex(matrix.index).astype(int)
        cover = matrix.groupby(years.to_numpy()).mean()
        # NaN evenness of a single-species replicate propagates into the year average.
        diversity = per_releve.groupby(years.to_numpy()).agg(lambda column: column.mean(skipna=False))
        diversity["n_releves"] = years.value_counts().reindex(diversity.index).astype(int)

        cover = cover.sort_index(ascending=False)
        diversity = diversity.sort_index(ascending=False)
        cover.index.name = "year"
        diversity.index.name = "year"
        cover.columns.name = "species"
        return Series(project_id=project_id, plot_code=plot_code, cover=cover, diversity=diversity)

    def build_project(
        self,
        merged: pd.DataFrame,
        project_id: str,
        releves: Optional[pd.DataFrame] = None,
    ) -> List[Series]:
        """Build every qualifying series of one project."""
        if releves is None:
            releves = releves_from_observations(merged)
        series: List[Series] = []
        for plot_code in self.recurring_plot_codes(releves, project_id):
            built = self.build(merged, project_id, plot_code, releves)
            if built is not None:
                series.append(built)
        return series


__all__ = ["SeriesBuilder", "SeriesConfig", "releves_from_observations"]
