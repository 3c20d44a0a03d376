"""Corpus-wide summary of community-level change metrics.

Plot change records may legitimately contain NaN or ±inf (empty rank-shift
sides, zero richness, ...). Those values are counted and excluded here, which
is where the exclusion policy for downstream tests lives.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
import pandas as pd
from scipy.stats import binomtest, ttest_1samp

from src.change.records import COMMUNITY_METRICS

SUMMARY_COLUMNS = (
    "metric",
    "n",
    "n_finite",
    "n_non_finite",
    "mean",
    "median",
    "t_statistic",
    "t_p_value",
    "n_positive",
    "n_negative",
    "sign_p_value",
)


def summarize_metric(name: str, values: pd.Series) -> dict:
    """Finite-value location statistics, a one-sample t-test and a sign test against 0."""
    raw = pd.to_numeric(values, errors="coerce").to_numpy(dtype=float)
    finite = raw[np.isfinite(raw)]
    n_positive = int(np.count_nonzero(finite > 0))
    n_negative = int(np.count_nonzero(finite < 0))

    t_statistic = t_p_value = float("nan")
    if finite.size >= 2 and np.ptp(finite) > 0:
        result = ttest_1samp(finite, popmean=0.0)
        t_statistic, t_p_value = float(result.statistic), float(result.pvalue)

    sign_p_value = float("nan")
    if n_positive + n_negative > 0:
        sign_p_value = float(binomtest(n_positive, n_positive + n_negative, p=0.5).pvalue)

    return {
        "metric": name,
        "n": int(raw.size),
        "n_finite": int(finite.size),
        "n_non_finite": int(raw.size - finite.size),
        "mean": float(finite.mean()) if finite.size else float("nan"),
        "median": float(np.median(finite)) if finite.size else float("nan"),
        "t_statistic": t_statistic,
        "t_p_value": t_p_value,
        "n_positive": n_positive,
        "n_negative": n_negative,
        "sign_p_value": sign_p_value,
    }


def summarize_plot_changes(plot_changes: pd.DataFrame, metrics: Sequence[str] = COMMUNITY_METRICS) -> pd.DataFrame:
    """One summary row per community metric present in `plot_changes`."""
    missing = [metric for metric in metrics if metric not in plot_changes.columns]
    if missing:
        raise ValueError(f"Plot change table is missing metrics: {', '.join(missing)}")
    rows = [summarize_metric(metric, plot_changes[metric]) for metric in metrics]
    return pd.DataFrame(rows, columns=list(SUMMARY_COLUMNS))


__all__ = ["SUMMARY_COLUMNS", "summarize_metric", "summarize_plot_changes"]
