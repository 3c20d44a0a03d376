"""Relative ranks and the rank-abundance-curve difference between two snapshots.

The curve difference follows Avolio et al. (2019): species are ranked by
descending relative abundance within each snapshot, ranks are scaled to (0, 1]
by the snapshot's maximum rank, and the union of both snapshots' distinct
relative ranks (prefixed with 0) forms the bin edges over which cumulative
abundances are compared.
"""

from __future__ import annotations

import numpy as np
from scipy.stats import rankdata


def relative_ranks(abundances: np.ndarray) -> np.ndarray:
    """Rank by descending abundance (ties averaged), divided by the maximum rank."""
    values = np.asarray(abundances, dtype=float)
    if values.ndim != 1:
        raise ValueError(f"abundances must be 1-D, got shape {values.shape}")
    if values.size == 0:
        return np.empty(0, dtype=float)
    ranks = rankdata(-values, method="average")
    return ranks / ranks.max()


def rank_bin_edges(later_ranks: np.ndarray, earlier_ranks: np.ndarray) -> np.ndarray:
    """Sorted distinct relative ranks of both snapshots, prefixed with 0."""
    return np.unique(np.concatenate([[0.0], np.asarray(later_ranks, float), np.asarray(earlier_ranks, float)]))


def curve_difference(
    later_ranks: np.ndarray,
    later_abundances: np.ndarray,
    earlier_ranks: np.ndarray,
    earlier_abundances: np.ndarray,
) -> float:
    """Accumulated difference (later minus earlier) of cumulative abundance per rank bin."""
    later_ranks = np.asarray(later_ranks, dtype=float)
    earlier_ranks = np.asarray(earlier_ranks, dtype=float)
    later_abundances = np.asarray(later_abundances, dtype=float)
    earlier_abundances = np.asarray(earlier_abundances, dtype=float)
    if later_ranks.shape != later_abundances.shape or earlier_ranks.shape != earlier_abundances.shape:
        raise ValueError("Ranks and abundances must be aligned per snapshot.")
    if later_ranks.size == 0 and earlier_ranks.size == 0:
        return float("nan")

    edges = rank_bin_edges(later_ranks, earlier_ranks)
    # Every rank is itself an edge, so a left search returns the index of the bin (edges[i-1], edges[i]].
    later_bins = np.searchsorted(edges, later_ranks, side="left")
    earlier_bins = np.searchsorted(edges, earlier_ranks, side="left")
    later_mass = np.bincount(later_bins, weights=later_abundances, minlength=edges.size)
    earlier_mass = np.bincount(earlier_bins, weights=earlier_abundances, minlength=edges.size)

    running = np.cumsum(later_mass[1:]) - np.cumsum(earlier_mass[1:])
    return float(running.sum())


__all__ = ["curve_difference", "rank_bin_edges", "relative_ranks"]
