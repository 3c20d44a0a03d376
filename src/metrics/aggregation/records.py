"""Shared data records for species-level aggregation."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SpeciesAggregate:
    """Corpus-wide summary of one species' interval changes."""

    species: str
    n_observations: int
    n_positive: int
    n_negative: int
    n_zero: int
    increase_probability_estimate: float
    increase_probability_ci_low: float
    increase_probability_ci_high: float
    p_value: float
    adjusted_p_value: float
    mean_absolute_change: float
