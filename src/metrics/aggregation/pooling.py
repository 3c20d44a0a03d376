"""Public entry point for species-level aggregation."""

from __future__ import annotations

from typing import Tuple

import pandas as pd

from .policy import ExcludeZeroChanges, ZeroChangePolicy
from .species import AggregationConfig, SpeciesAggregator


def aggregate_species_changes(
    changes: pd.DataFrame,
    alpha: float = 0.05,
    min_observations: int = 100,
    confidence_level: float = 0.95,
    zero_change_policy: ZeroChangePolicy | None = None,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """Aggregate species changes and return (all species, significant movers) in one call."""
    aggregator = SpeciesAggregator(
        AggregationConfig(
            alpha=alpha,
            min_observations=min_observations,
            confidence_level=confidence_level,
            zero_change_policy=zero_change_policy or ExcludeZeroChanges(),
        )
    )
    aggregator.fit(changes)
    return aggregator.to_frame(), aggregator.significant_movers()
