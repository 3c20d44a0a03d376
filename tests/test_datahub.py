"""Tests for table preparation, helpers and result persistence."""

from __future__ import annotations

import hashlib
import json
from pathlib import Path

import sys

import pandas as pd
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.datahub import (
    prepare_observations,
    prepare_surveys,
    read_tables,
    series_key,
    sha256sum,
    write_results,
    write_table,
)
from src.datahub.config import LORENZ_TABLE_TEMPLATE, OUTPUT_TABLES
from src.datahub.helpers import coerce_cover, coerce_years, ensure_columns, to_int
from src.datahub.io import METADATA_NAME
from src.metrics.inequality import REPORT_NAMES, InequalityConfig
from src.pipelines import PipelineConfig, run_pipeline


# ---------------------------------------------------------------------------
# Helpers


def test_to_int_accepts_multiple_types() -> None:
    assert to_int(2001) == 2001
    assert to_int(True) == 1
    assert to_int("1987") == 1987
    assert to_int(1999.0) == 1999
    with pytest.raises(ValueError):
        to_int(None)
    with pytest.raises(ValueError):
        to_int("spring")


def test_coerce_years_and_cover_reject_bad_values() -> None:
    assert coerce_years(pd.Series(["2001", 1999.0])).tolist() == [2001, 1999]
    with pytest.raises(ValueError):
        coerce_years(pd.Series(["2001", None]))
    assert coerce_cover(pd.Series(["12.5", 0])).tolist() == [12.5, 0.0]
    with pytest.raises(ValueError):
        coerce_cover(pd.Series([101.0]))
    with pytest.raises(ValueError):
        coerce_cover(pd.Series(["dense"]))


def test_ensure_columns_names_missing_columns() -> None:
    ensure_columns(pd.DataFrame({"a": [1]}), ["a"])
    with pytest.raises(ValueError, match="surveys is missing required columns: year"):
        ensure_columns(pd.DataFrame({"a": [1]}), ["a", "year"], name="surveys")


# ---------------------------------------------------------------------------
# Table preparation


def test_series_key_joins_project_and_plot() -> None:
    assert series_key("P1", "a") == "P1:a"


def test_prepare_observations_joins_survey_metadata(
    observations_frame: pd.DataFrame, surveys_frame: pd.DataFrame
) -> None:
    tables = prepare_observations(observations_frame, surveys_frame)

    assert tables.project_ids == ["P1", "P2"]
    assert len(tables.observations) == len(observations_frame)
    row = tables.observations.loc[tables.observations["releve_id"] == "r6"].iloc[0]
    assert row["plot_code"] == "x"
    assert row["series_key"] == "P2:x"
    assert row["year"] == 1995
    assert tables.surveys["series_key"].nunique() == 3


def test_prepare_observations_rejects_orphans(observations_frame: pd.DataFrame, surveys_frame: pd.DataFrame) -> None:
    with pytest.raises(ValueError, match="without survey metadata"):
        prepare_observations(observations_frame, surveys_frame[surveys_frame["releve_id"] != "r7"])


def test_prepare_observations_rejects_project_mismatch(
    observations_frame: pd.DataFrame, surveys_frame: pd.DataFrame
) -> None:
    observations = observations_frame.copy()
    observations.loc[observations["releve_id"] == "r6", "project_id"] = "P1"
    with pytest.raises(ValueError, match="disagree"):
        prepare_observations(observations, surveys_frame)


def test_prepare_surveys_deduplicates_identical_rows(surveys_frame: pd.DataFrame) -> None:
    doubled = pd.concat([surveys_frame, surveys_frame.iloc[:1]], ignore_index=True)
    assert len(prepare_surveys(doubled)) == len(surveys_frame)

    conflicting = doubled.copy()
    conflicting.loc[len(conflicting) - 1, "year"] = 1900
    with pytest.raises(ValueError, match="conflicting"):
        prepare_surveys(conflicting)


def test_read_tables_from_csv(corpus_files: tuple[Path, Path]) -> None:
    observations_path, surveys_path = corpus_files
    tables = read_tables(observations_path, surveys_path)
    assert tables.observations["cover"].dtype == float
    assert set(tables.observations["series_key"]) == {"P1:a", "P1:b", "P2:x"}


# ---------------------------------------------------------------------------
# Persistence


def test_write_table_is_atomic_and_round_trips_floats(tmp_path: Path) -> None:
    dest = tmp_path / "nested" / "table.csv"
    values = [1 / 3, float("nan"), 0.1 + 0.2]
    write_table(pd.DataFrame({"species": ["A", "B", "C"], "value": values}), dest)

    lines = dest.read_text().splitlines()
    assert lines[0] == "species,value"
    assert lines[2] == "B,"
    assert list(dest.parent.iterdir()) == [dest]

    reloaded = pd.read_csv(dest, float_precision="round_trip")
    assert reloaded.loc[0, "value"] == values[0]
    assert pd.isna(reloaded.loc[1, "value"])
    assert reloaded.loc[2, "value"] == values[2]


def test_sha256sum_matches_hashlib(tmp_path: Path) -> None:
    path = tmp_path / "payload.bin"
    path.write_bytes(b"resurvey" * 1000)
    assert sha256sum(path) == hashlib.sha256(b"resurvey" * 1000).hexdigest()


def test_write_results_writes_every_table(corpus_files: tuple[Path, Path], tmp_path: Path) -> None:
    observations_path, surveys_path = corpus_files
    config = PipelineConfig(inequality=InequalityConfig(n_resamples=50, seed=1))
    result = run_pipeline(read_tables(observations_path, surveys_path), config)

    output_root = tmp_path / "results"
    written = write_results(result, output_root, config=config.to_dict(), inputs=(observations_path, surveys_path))

    for name, filename in OUTPUT_TABLES.items():
        assert written[name] == output_root / filename
        assert written[name].exists()
    for name in REPORT_NAMES:
        assert (output_root / LORENZ_TABLE_TEMPLATE.format(name=name)).exists()

    metadata = json.loads((output_root / METADATA_NAME).read_text())
    assert metadata["config"]["inequality"]["n_resamples"] == 50
    assert metadata["inputs"][str(observations_path)] == sha256sum(observations_path)
    assert metadata["rows"]["plot_changes"] == 3
    assert set(metadata["rows"]) == set(OUTPUT_TABLES)

    reloaded = pd.read_csv(written["interval_changes"])
    assert len(reloaded) == 9
