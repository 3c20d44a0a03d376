"""Merge layer-specific cover records of a species into a single cover value.

Layer covers are treated as independent random overlaps of the plot area, so
the merged cover is the union of independent areal probabilities::

    c <- c + (100 - c) * v / 100

The update is mathematically commutative but is applied sequentially, so
reordering the inputs can change the result by floating-point rounding.
"""

from __future__ import annotations

from typing import Iterable

import numpy as np
import pandas as pd

MERGE_KEYS = ("project_id", "plot_code", "series_key", "releve_id", "year", "species")


def merge_layer_covers(covers: Iterable[float]) -> float:
    """Combine the covers of one species recorded in several layers of one releve."""
    values = [float(value) for value in covers]
    if not values:
        raise ValueError("At least one cover value is required.")
    for value in values:
        if not np.isfinite(value) or value < 0.0 or value > 100.0:
            raise ValueError(f"Cover values must fall within [0, 100], got {value!r}.")

    merged = values[0]
    for value in values[1:]:
        merged = merged + (100.0 - merged) * value / 100.0
    return merged


def merge_layers(observations: pd.DataFrame) -> pd.DataFrame:
    """Collapse per-layer observation rows into one row per species and releve.

    Args:
        observations: Joined observation table as produced by
            `src.datahub.tables.prepare_observations`.

    Returns:
        DataFrame with one row per (releve, species) and the merged cover.
    """
    missing = [column for column in (*MERGE_KEYS, "cover") if column not in observations.columns]
    if missing:
        raise ValueError(f"Observation table is missing columns: {', '.join(missing)}")
    if observations.empty:
        return pd.DataFrame(columns=[*MERGE_KEYS, "cover"])

    grouped = observations.groupby(list(MERGE_KEYS), sort=True, observed=True)["cover"]
    merged = grouped.agg(merge_layer_covers).reset_index()
    return merged[[*MERGE_KEYS, "cover"]]


__all__ = ["MERGE_KEYS", "merge_layer_covers", "merge_layers"]
