"""Change metrics between consecutive snapshots of resurveyed plot series."""

from .engine import SeriesChanges, compute_interval, compute_series_changes, log_ratio
from .ranks import curve_difference, rank_bin_edges, relative_ranks
from .records import COMMUNITY_METRICS, IntervalChangeRecord, PlotChangeRecord, records_to_frame

__all__ = [
    "COMMUNITY_METRICS",
    "IntervalChangeRecord",
    "PlotChangeRecord",
    "SeriesChanges",
    "compute_interval",
    "compute_series_changes",
    "curve_difference",
    "log_ratio",
    "rank_bin_edges",
    "records_to_frame",
    "relative_ranks",
]
