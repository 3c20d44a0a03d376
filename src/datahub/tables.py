"""Validation and joining of the parsed observation and survey tables."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from .config import OBSERVATIONS, SERIES_KEY_SEPARATOR, SURVEYS
from .helpers import coerce_cover, coerce_years, ensure_columns


@dataclass(frozen=True)
class SurveyTables:
    """Observation rows joined with their survey metadata, plus the cleaned survey table."""

    observations: pd.DataFrame
    surveys: pd.DataFrame

    @property
    def project_ids(self) -> list[str]:
        return sorted(self.surveys["project_id"].unique())


def series_key(project_id: str, plot_code: str) -> str:
    """Compose the identifier of a resurveyed plot series."""
    return f"{project_id}{SERIES_KEY_SEPARATOR}{plot_code}"


def prepare_surveys(surveys: pd.DataFrame) -> pd.DataFrame:
    """Rename, coerce and de-duplicate the per-survey metadata table."""
    ensure_columns(surveys, SURVEYS.values(), name="surveys")
    renamed = surveys.rename(columns={source: target for target, source in SURVEYS.items()})
    frame = renamed[list(SURVEYS)].copy()
    frame["releve_id"] = frame["releve_id"].astype(str)
    frame["project_id"] = frame["project_id"].astype(str)
    frame["plot_code"] = frame["plot_code"].astype(str)
    frame["project_name"] = frame["project_name"].fillna("").astype(str)
    frame["year"] = coerce_years(frame["year"])

    duplicated = frame["releve_id"].duplicated(keep=False)
    if duplicated.any():
        conflicting = frame.loc[duplicated].drop_duplicates()
        if conflicting["releve_id"].duplicated().any():
            ids = sorted(conflicting.loc[conflicting["releve_id"].duplicated(), "releve_id"].unique())[:5]
            raise ValueError(f"Survey metadata lists conflicting rows for releves: {ids}")
        frame = frame.drop_duplicates(subset="releve_id")

    frame["series_key"] = [series_key(p, c) for p, c in zip(frame["project_id"], frame["plot_code"])]
    return frame.sort_values(["project_id", "plot_code", "year", "releve_id"]).reset_index(drop=True)


def prepare_observations(observations: pd.DataFrame, surveys: pd.DataFrame) -> SurveyTables:
    """Join survey metadata onto per-layer observation rows.

    Args:
        observations: Parsed observation table (one row per species × layer × releve).
        surveys: Parsed survey metadata table (one row per releve).

    Returns:
        SurveyTables holding the joined observations and the cleaned survey table.
    """
    ensure_columns(observations, OBSERVATIONS.values(), name="observations")
    survey_frame = prepare_surveys(surveys)

    renamed = observations.rename(columns={source: target for target, source in OBSERVATIONS.items()})
    frame = renamed[list(OBSERVATIONS)].copy()
    frame["releve_id"] = frame["releve_id"].astype(str)
    frame["project_id"] = frame["project_id"].astype(str)
    frame["species"] = frame["species"].astype(str).str.strip()
    frame["layer"] = frame["layer"].astype(str)
    frame["cover"] = coerce_cover(frame["cover"])

    joined = frame.merge(
        survey_frame,
        on="releve_id",
        how="left",
        suffixes=("", "_survey"),
        validate="many_to_one",
    )
    orphaned = joined["year"].isna()
    if orphaned.any():
        ids = sorted(joined.loc[orphaned, "releve_id"].unique())[:5]
        raise ValueError(f"Observations reference releves without survey metadata: {ids}")

    mismatched = joined["project_id"] != joined["project_id_survey"]
    if mismatched.any():
        ids = sorted(joined.loc[mismatched, "releve_id"].unique())[:5]
        raise ValueError(f"Observation and survey project ids disagree for releves: {ids}")

    joined["year"] = joined["year"].astype(int)
    columns = ["project_id", "plot_code", "series_key", "releve_id", "survey_id", "year", "species", "layer", "cover"]
    joined = joined[columns].sort_values(["project_id", "plot_code", "year", "releve_id", "species", "layer"])
    return SurveyTables(observations=joined.reset_index(drop=True), surveys=survey_frame)


def read_tables(observations_path: Path, surveys_path: Path, *, sep: str = ",") -> SurveyTables:
    """Read both CSV tables from disk and run `prepare_observations` on them."""
    observations = pd.read_csv(
        observations_path,
        sep=sep,
        dtype={OBSERVATIONS["releve_id"]: str, OBSERVATIONS["project_id"]: str},
    )
    surveys = pd.read_csv(
        surveys_path,
        sep=sep,
        dtype={SURVEYS["releve_id"]: str, SURVEYS["project_id"]: str, SURVEYS["plot_code"]: str},
    )
    return prepare_observations(observations, surveys)


__all__ = ["SurveyTables", "prepare_observations", "prepare_surveys", "read_tables", "series_key"]
