"""Tests for diversity indices and the series builder."""

from __future__ import annotations

import math
from pathlib import Path
import sys

import numpy as np
import pandas as pd
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.series import Series, SeriesBuilder, SeriesConfig, SeriesStructureError
from src.series.diversity import evenness, richness, shannon


def _merged(rows: list[tuple[str, str, str, int, str, float]]) -> pd.DataFrame:
    columns = ["project_id", "plot_code", "releve_id", "year", "species", "cover"]
    frame = pd.DataFrame(rows, columns=columns)
    frame["series_key"] = frame["project_id"] + ":" + frame["plot_code"]
    return frame


# ---------------------------------------------------------------------------
# Diversity indices


def test_richness_counts_nonzero_species() -> None:
    matrix = np.array([[1.0, 0.0, 3.0], [0.0, 0.0, 0.0]])
    assert richness(matrix).tolist() == [2.0, 0.0]


def test_shannon_matches_definition() -> None:
    matrix = np.array([[75.0, 25.0], [10.0, 0.0], [0.0, 0.0]])
    expected = -(0.75 * math.log(0.75) + 0.25 * math.log(0.25))
    values = shannon(matrix)
    assert values[0] == pytest.approx(expected)
    assert values[1] == 0.0
    assert values[2] == 0.0


def test_evenness_is_nan_for_single_or_empty_rows() -> None:
    h = np.array([math.log(2.0), 0.0, 0.0])
    s = np.array([2.0, 1.0, 0.0])
    values = evenness(h, s)
    assert values[0] == pytest.approx(1.0)
    assert np.isnan(values[1])
    assert np.isnan(values[2])


# ---------------------------------------------------------------------------
# Series builder


def test_single_distinct_year_yields_no_series() -> None:
    merged = _merged(
        [
            ("P1", "a", "r1", 2020, "Acer", 10.0),
            ("P1", "a", "r2", 2020, "Acer", 30.0),
        ]
    )
    builder = SeriesBuilder()
    assert builder.build(merged, "P1", "a") is None
    assert builder.recurring_plot_codes(merged, "P1") == []
    assert builder.build_project(merged, "P1") == []


def test_same_year_replicates_are_averaged_into_one_snapshot() -> None:
    merged = _merged(
        [
            ("P1", "a", "r1", 2020, "Acer", 30.0),
            ("P1", "a", "r1", 2020, "Briza", 10.0),
            ("P1", "a", "r2", 2020, "Acer", 10.0),
            ("P1", "a", "r3", 1990, "Acer", 20.0),
            ("P1", "a", "r3", 1990, "Carex", 5.0),
        ]
    )
    series = SeriesBuilder().build(merged, "P1", "a")

    assert series is not None
    assert series.key == "P1:a"
    assert series.years == (2020, 1990)
    assert series.species == ("Acer", "Briza", "Carex")
    assert len(list(series.intervals())) == 1

    later, earlier = next(series.intervals())
    assert (later.year, earlier.year) == (2020, 1990)
    assert later.n_releves == 2
    assert earlier.n_releves == 1
    assert later.cover["Acer"] == pytest.approx(20.0)
    assert later.cover["Briza"] == pytest.approx(5.0)
    assert later.cover["Carex"] == 0.0
    assert later.richness == pytest.approx(1.5)

    h_first = -(0.75 * math.log(0.75) + 0.25 * math.log(0.25))
    assert later.shannon == pytest.approx(h_first / 2.0)
    # The single-species replicate has NaN evenness, so the year average is NaN too.
    assert math.isnan(later.evenness)
    assert earlier.shannon == pytest.approx(-(0.8 * math.log(0.8) + 0.2 * math.log(0.2)))


def test_nan_evenness_of_one_replicate_propagates_to_year() -> None:
    merged = _merged(
        [
            ("P1", "a", "r1", 2020, "Acer", 40.0),
            ("P1", "a", "r2", 2020, "Acer", 20.0),
            ("P1", "a", "r2", 2020, "Betula", 20.0),
            ("P1", "a", "r3", 1990, "Acer", 10.0),
            ("P1", "a", "r3", 1990, "Betula", 10.0),
        ]
    )
    series = SeriesBuilder().build(merged, "P1", "a")

    assert series is not None
    assert math.isnan(series.diversity.loc[2020, "evenness"])
    assert series.diversity.loc[1990, "evenness"] == pytest.approx(1.0)
    assert series.diversity.loc[2020, "richness"] == pytest.approx(1.5)
    assert series.diversity.loc[2020, "n_releves"] == 2


def test_species_without_cover_are_removed() -> None:
    merged = _merged(
        [
            ("P1", "a", "r1", 2000, "Acer", 10.0),
            ("P1", "a", "r1", 2000, "Ghost", 0.0),
            ("P1", "a", "r2", 2010, "Acer", 20.0),
        ]
    )
    series = SeriesBuilder().build(merged, "P1", "a")
    assert series is not None
    assert series.species == ("Acer",)


def test_empty_releve_becomes_zero_snapshot() -> None:
    merged = _merged([("P1", "a", "r1", 2000, "Acer", 10.0)])
    releves = pd.DataFrame(
        {
            "project_id": ["P1", "P1"],
            "plot_code": ["a", "a"],
            "releve_id": ["r1", "r2"],
            "year": [2000, 2010],
        }
    )
    series = SeriesBuilder().build(merged, "P1", "a", releves)

    assert series is not None
    latest = series.snapshot(0)
    assert latest.year == 2010
    assert latest.richness == 0.0
    assert np.isnan(latest.evenness)
    assert latest.cover.sum() == 0.0


def test_recurring_plot_codes_filters_by_distinct_years() -> None:
    merged = _merged(
        [
            ("P1", "a", "r1", 2000, "Acer", 10.0),
            ("P1", "a", "r2", 2010, "Acer", 10.0),
            ("P1", "b", "r3", 2010, "Acer", 10.0),
            ("P1", "b", "r4", 2010, "Acer", 15.0),
            ("P2", "a", "r5", 2001, "Acer", 10.0),
        ]
    )
    builder = SeriesBuilder()
    assert builder.recurring_plot_codes(merged, "P1") == ["a"]
    assert [series.plot_code for series in builder.build_project(merged, "P1")] == ["a"]


def test_min_distinct_years_is_configurable() -> None:
    merged = _merged(
        [
            ("P1", "a", "r1", 2000, "Acer", 10.0),
            ("P1", "a", "r2", 2010, "Acer", 10.0),
        ]
    )
    builder = SeriesBuilder(SeriesConfig(min_distinct_years=3))
    assert builder.build(merged, "P1", "a") is None
    with pytest.raises(ValueError):
        SeriesConfig(min_distinct_years=1).validate()


def test_duplicate_species_rows_are_structural_errors() -> None:
    merged = _merged(
        [
            ("P1", "a", "r1", 2000, "Acer", 10.0),
            ("P1", "a", "r1", 2000, "Acer", 12.0),
            ("P1", "a", "r2", 2010, "Acer", 10.0),
        ]
    )
    with pytest.raises(SeriesStructureError):
        SeriesBuilder().build(merged, "P1", "a")


def test_series_rejects_unsorted_years() -> None:
    cover = pd.DataFrame({"Acer": [1.0, 2.0]}, index=[1990, 2020])
    diversity = pd.DataFrame(
        {"richness": [1.0, 1.0], "shannon": [0.0, 0.0], "evenness": [np.nan, np.nan], "n_releves": [1, 1]},
        index=[1990, 2020],
    )
    with pytest.raises(SeriesStructureError):
        Series(project_id="P1", plot_code="a", cover=cover, diversity=diversity)
