"""Shared survey corpus used by the pipeline, datahub and CLI tests."""

from __future__ import annotations

from pathlib import Path

import pandas as pd
import pytest

# P1/a: three survey years with two replicates in 2010 and two layers of A in 2000.
# P1/b: surveyed once, so it never forms a series.
# P2/x: two survey years; F colonizes in 2015.
OBSERVATION_ROWS = [
    ("P1", "s1", "r1", "tree", "A", 40.0),
    ("P1", "s1", "r1", "shrub", "A", 50.0),
    ("P1", "s1", "r1", "herb", "B", 20.0),
    ("P1", "s2", "r2", "tree", "A", 40.0),
    ("P1", "s2", "r2", "herb", "B", 15.0),
    ("P1", "s2", "r2", "herb", "C", 10.0),
    ("P1", "s3", "r3", "tree", "A", 40.0),
    ("P1", "s3", "r3", "herb", "B", 10.0),
    ("P1", "s3", "r3", "herb", "C", 10.0),
    ("P1", "s4", "r4", "tree", "A", 60.0),
    ("P1", "s4", "r4", "herb", "B", 25.0),
    ("P1", "s4", "r4", "herb", "C", 5.0),
    ("P1", "s5", "r5", "tree", "A", 30.0),
    ("P2", "s6", "r6", "herb", "D", 30.0),
    ("P2", "s6", "r6", "herb", "E", 10.0),
    ("P2", "s7", "r7", "herb", "D", 10.0),
    ("P2", "s7", "r7", "herb", "E", 30.0),
    ("P2", "s7", "r7", "herb", "F", 5.0),
]

SURVEY_ROWS = [
    ("r1", "P1", 2000, "a", "Alpine grassland"),
    ("r2", "P1", 2010, "a", "Alpine grassland"),
    ("r3", "P1", 2010, "a", "Alpine grassland"),
    ("r4", "P1", 2020, "a", "Alpine grassland"),
    ("r5", "P1", 2005, "b", "Alpine grassland"),
    ("r6", "P2", 1995, "x", "Beech forest"),
    ("r7", "P2", 2015, "x", "Beech forest"),
]


@pytest.fixture
def observations_frame() -> pd.DataFrame:
    return pd.DataFrame(
        OBSERVATION_ROWS,
        columns=["project_id", "survey_id", "releve_id", "layer", "species", "cover"],
    )


@pytest.fixture
def surveys_frame() -> pd.DataFrame:
    return pd.DataFrame(SURVEY_ROWS, columns=["releve_id", "project_id", "year", "plot_code", "project_name"])


@pytest.fixture
def corpus_files(tmp_path: Path, observations_frame: pd.DataFrame, surveys_frame: pd.DataFrame) -> tuple[Path, Path]:
    observations_path = tmp_path / "observations.csv"
    surveys_path = tmp_path / "surveys.csv"
    observations_frame.to_csv(observations_path, index=False)
    surveys_frame.to_csv(surveys_path, index=False)
    return observations_path, surveys_path
