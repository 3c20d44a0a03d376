"""Per-survey diversity indices computed over a survey × species cover matrix."""

from __future__ import annotations

import numpy as np


def richness(matrix: np.ndarray) -> np.ndarray:
    """Number of species with nonzero cover in each row."""
    return np.count_nonzero(np.asarray(matrix, dtype=float) > 0, axis=1).astype(float)


def shannon(matrix: np.ndarray) -> np.ndarray:
    """Shannon diversity over relative abundances; 0 for empty or single-species rows."""
    values = np.asarray(matrix, dtype=float)
    totals = values.sum(axis=1, keepdims=True)
    with np.errstate(divide="ignore", invalid="ignore"):
        proportions = np.where(totals > 0, values / totals, 0.0)
        terms = np.where(proportions > 0, proportions * np.log(proportions), 0.0)
    index = -terms.sum(axis=1)
    return np.where(richness(values) <= 1, 0.0, index)


def evenness(shannon_index: np.ndarray, species_richness: np.ndarray) -> np.ndarray:
    """Pielou evenness H / ln(S); NaN wherever S <= 1."""
    h = np.asarray(shannon_index, dtype=float)
    s = np.asarray(species_richness, dtype=float)
    with np.errstate(divide="ignore", invalid="ignore"):
        ratio = h / np.log(s)
    return np.where(s <= 1, np.nan, ratio)


__all__ = ["evenness", "richness", "shannon"]
