"""Aggregation helpers for turning interval changes into species summaries."""

from .policy import ExcludeZeroChanges, IncludeZeroChanges, ZeroChangePolicy, policy_from_name
from .pooling import aggregate_species_changes
from .records import SpeciesAggregate
from .species import AggregationConfig, SpeciesAggregator, holm_adjust, select_significant_movers

__all__ = [
    "AggregationConfig",
    "ExcludeZeroChanges",
    "IncludeZeroChanges",
    "SpeciesAggregate",
    "SpeciesAggregator",
    "ZeroChangePolicy",
    "aggregate_species_changes",
    "holm_adjust",
    "policy_from_name",
    "select_significant_movers",
]
