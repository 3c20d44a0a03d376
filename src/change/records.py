"""Immutable change records emitted per interval of a series."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Iterable, List, Type, TypeVar

import pandas as pd


@dataclass(frozen=True)
class IntervalChangeRecord:
    """Change of one species between two consecutive snapshots of a series."""

    series_key: str
    project_id: str
    plot_code: str
    year_from: int
    year_to: int
    n_from: int
    n_to: int
    species: str
    absolute_change: float
    relative_change: float
    relative_rank_change: float
    colonizer_change: float
    extinction_change: float


@dataclass(frozen=True)
class PlotChangeRecord:
    """Community-level change between two consecutive snapshots of a series."""

    series_key: str
    project_id: str
    plot_code: str
    year_from: int
    year_to: int
    n_from: int
    n_to: int
    log_richness_change: float
    log_shannon_change: float
    log_evenness_change: float
    curve_diff: float
    rank_change: float
    log_rank_change: float
    log_rank_change_sum: float
    mean_cover_change: float
    median_cover_change: float
    gains_minus_losses: int


RecordT = TypeVar("RecordT", IntervalChangeRecord, PlotChangeRecord)

COMMUNITY_METRICS = (
    "log_richness_change",
    "log_shannon_change",
    "log_evenness_change",
    "curve_diff",
    "rank_change",
    "log_rank_change",
    "log_rank_change_sum",
    "mean_cover_change",
    "median_cover_change",
    "gains_minus_losses",
)


def record_columns(record_type: Type[RecordT]) -> List[str]:
    return [field.name for field in fields(record_type)]


def records_to_frame(records: Iterable[RecordT], record_type: Type[RecordT]) -> pd.DataFrame:
    """Materialize records as a column-named table (empty tables keep their columns)."""
    rows = [asdict(record) for record in records]
    return pd.DataFrame(rows, columns=record_columns(record_type))


__all__ = [
    "COMMUNITY_METRICS",
    "IntervalChangeRecord",
    "PlotChangeRecord",
    "record_columns",
    "records_to_frame",
]
