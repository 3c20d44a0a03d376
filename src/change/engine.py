"""Species- and community-level change between consecutive snapshots of a series.

Within an interval, "to" is the chronologically later snapshot and "from" the
earlier one; every log-ratio metric is ``ln(later / earlier)``. Degenerate
inputs (empty subsets, zero denominators, logs of zero) produce NaN or ±inf in
the emitted records instead of raising.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np
import pandas as pd

from src.series.records import Series, SeriesStructureError, Snapshot

from .ranks import curve_difference, relative_ranks
from .records import IntervalChangeRecord, PlotChangeRecord


@dataclass
class SeriesChanges:
    """Records emitted for one series."""

    intervals: List[IntervalChangeRecord] = field(default_factory=list)
    plots: List[PlotChangeRecord] = field(default_factory=list)

    def extend(self, other: "SeriesChanges") -> None:
        self.intervals.extend(other.intervals)
        self.plots.extend(other.plots)


def log_ratio(later: float, earlier: float) -> float:
    """``ln(later / earlier)`` with NaN/inf instead of floating-point errors."""
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.log(np.divide(np.float64(later), np.float64(earlier))))


def _mean(values: np.ndarray) -> float:
    return float(values.mean()) if values.size else float("nan")


def _median(values: np.ndarray) -> float:
    return float(np.median(values)) if values.size else float("nan")


def _relative_abundance(cover: np.ndarray) -> np.ndarray:
    with np.errstate(divide="ignore", invalid="ignore"):
        return cover / cover.sum()


def _check_alignment(series: Series, later: Snapshot, earlier: Snapshot, maxima: pd.Series) -> None:
    expected = pd.Index(series.species)
    for snapshot in (later, earlier):
        if not snapshot.cover.index.equals(expected):
            missing = sorted(set(expected) - set(snapshot.cover.index))
            raise SeriesStructureError(
                f"Series {series.key}: snapshot {snapshot.year} does not carry the series species "
                f"(missing: {missing[:5]})."
            )
    if not maxima.index.equals(expected):
        raise SeriesStructureError(f"Series {series.key}: species maxima are not aligned with the cover table.")


def compute_interval(
    series: Series,
    later: Snapshot,
    earlier: Snapshot,
    maxima: pd.Series,
) -> Tuple[List[IntervalChangeRecord], PlotChangeRecord]:
    """Compute the change records of one (later, earlier) snapshot pair."""
    _check_alignment(series, later, earlier, maxima)
    if later.year <= earlier.year:
        raise SeriesStructureError(f"Series {series.key}: interval {earlier.year}->{later.year} is not chronological.")

    species = series.species
    cover_to = later.cover.to_numpy(dtype=float)
    cover_from = earlier.cover.to_numpy(dtype=float)
    present_to = cover_to > 0
    present_from = cover_from > 0
    union = present_to | present_from

    # Relative ranks over the species of this pair; absent species tie at the bottom.
    ranks_to = relative_ranks(cover_to[union])
    ranks_from = relative_ranks(cover_from[union])
    curve_diff = curve_difference(
        ranks_to,
        _relative_abundance(cover_to)[union],
        ranks_from,
        _relative_abundance(cover_from)[union],
    )

    rank_shift = ranks_to - ranks_from
    negative = rank_shift[rank_shift < 0]
    positive = rank_shift[rank_shift > 0]
    rank_change = _mean(np.abs(rank_shift))
    log_rank_change = log_ratio(_mean(positive), -_mean(negative))
    log_rank_change_sum = log_ratio(positive.sum(), -negative.sum())

    absolute = np.where(union, cover_to - cover_from, np.nan)
    scale = maxima.to_numpy(dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        relative = np.where(union, cover_to / scale - cover_from / scale, np.nan)
    rank_column = np.full(len(species), np.nan)
    rank_column[union] = rank_shift
    colonizer = np.where(union & ~present_from, absolute, np.nan)
    extinction = np.where(union & ~present_to, absolute, np.nan)

    interval_records = [
        IntervalChangeRecord(
            series_key=series.key,
            project_id=series.project_id,
            plot_code=series.plot_code,
            year_from=earlier.year,
            year_to=later.year,
            n_from=earlier.n_releves,
            n_to=later.n_releves,
            species=name,
            absolute_change=float(absolute[idx]),
            relative_change=float(relative[idx]),
            relative_rank_change=float(rank_column[idx]),
            colonizer_change=float(colonizer[idx]),
            extinction_change=float(extinction[idx]),
        )
        for idx, name in enumerate(species)
    ]

    nonzero_to = cover_to[present_to]
    nonzero_from = cover_from[present_from]
    plot_record = PlotChangeRecord(
        series_key=series.key,
        project_id=series.project_id,
        plot_code=series.plot_code,
        year_from=earlier.year,
        year_to=later.year,
        n_from=earlier.n_releves,
        n_to=later.n_releves,
        log_richness_change=log_ratio(later.richness, earlier.richness),
        log_shannon_change=log_ratio(later.shannon, earlier.shannon),
        log_evenness_change=log_ratio(later.evenness, earlier.evenness),
        curve_diff=curve_diff,
        rank_change=rank_change,
        log_rank_change=log_rank_change,
        log_rank_change_sum=log_rank_change_sum,
        mean_cover_change=log_ratio(_mean(nonzero_to), _mean(nonzero_from)),
        median_cover_change=log_ratio(_median(nonzero_to), _median(nonzero_from)),
        gains_minus_losses=int(np.count_nonzero(absolute > 0) - np.count_nonzero(absolute < 0)),
    )
    return interval_records, plot_record


def compute_series_changes(series: Series) -> SeriesChanges:
    """Emit records for every consecutive interval of `series` (none for a single year)."""
    changes = SeriesChanges()
    if len(series) < 2:
        return changes

    maxima = series.species_maxima()
    for later, earlier in series.intervals():
        interval_records, plot_record = compute_interval(series, later, earlier, maxima)
        changes.intervals.extend(interval_records)
        changes.plots.append(plot_record)
    return changes


__all__ = ["SeriesChanges", "compute_interval", "compute_series_changes", "log_ratio"]
