"""Per-species aggregation of interval changes with a directional binomial test."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Optional, Sequence

import numpy as np
import pandas as pd
from scipy.stats import binomtest
from statsmodels.stats.multitest import multipletests

from .policy import ExcludeZeroChanges, ZeroChangePolicy
from .records import SpeciesAggregate


@dataclass
class AggregationConfig:
    """Configuration for `SpeciesAggregator`."""

    alpha: float = 0.05
    min_observations: int = 100
    confidence_level: float = 0.95
    zero_change_policy: ZeroChangePolicy = field(default_factory=ExcludeZeroChanges)

    def validate(self) -> None:
        if not 0.0 < self.alpha < 1.0:
            raise ValueError("alpha must fall within (0, 1).")
        if not 0.0 < self.confidence_level < 1.0:
            raise ValueError("confidence_level must fall within (0, 1).")
        if self.min_observations < 0:
            raise ValueError("min_observations cannot be negative.")


class SpeciesAggregator:
    """Summarizes species-level changes across the whole corpus."""

    def __init__(self, config: Optional[AggregationConfig] = None) -> None:
        self.config = config or AggregationConfig()
        self.config.validate()
        self._summaries: Optional[Sequence[SpeciesAggregate]] = None

    def fit(self, changes: pd.DataFrame) -> "SpeciesAggregator":
        """Aggregate an interval change table (`species`, `absolute_change` columns)."""
        missing = [column for column in ("species", "absolute_change") if column not in changes.columns]
        if missing:
            raise ValueError(f"Change table is missing columns: {', '.join(missing)}")

        frame = changes.loc[changes["absolute_change"].notna(), ["species", "absolute_change"]]
        values = frame["absolute_change"].to_numpy(dtype=float)
        signs = pd.DataFrame(
            {
                "species": frame["species"].astype(str).to_numpy(),
                "n_positive": (values > 0).astype(int),
                "n_negative": (values < 0).astype(int),
                "n_zero": (values == 0).astype(int),
                "absolute_change": values,
            }
        )
        grouped = signs.groupby("species", sort=True)
        counts = grouped[["n_positive", "n_negative", "n_zero"]].sum()
        counts["n_observations"] = grouped.size()
        counts["mean_absolute_change"] = grouped["absolute_change"].mean()

        policy = self.config.zero_change_policy
        rows = []
        for species, row in counts.iterrows():
            n_positive = int(row["n_positive"])
            trials = policy.trials(n_positive, int(row["n_negative"]), int(row["n_zero"]))
            test = binomtest(n_positive, trials, p=0.5, alternative="two-sided")
            interval = test.proportion_ci(confidence_level=self.config.confidence_level, method="exact")
            rows.append(
                dict(
                    species=str(species),
                    n_observations=int(row["n_observations"]),
                    n_positive=n_positive,
                    n_negative=int(row["n_negative"]),
                    n_zero=int(row["n_zero"]),
                    increase_probability_estimate=float(test.statistic),
                    increase_probability_ci_low=float(interval.low),
                    increase_probability_ci_high=float(interval.high),
                    p_value=float(test.pvalue),
                    mean_absolute_change=float(row["mean_absolute_change"]),
                )
            )

        adjusted = holm_adjust([row["p_value"] for row in rows])
        self._summaries = [
            SpeciesAggregate(adjusted_p_value=float(p_adj), **row) for row, p_adj in zip(rows, adjusted, strict=True)
        ]
        return self

    def summaries(self) -> Sequence[SpeciesAggregate]:
        """Return one aggregate per species, sorted by species name."""
        if self._summaries is None:
            raise RuntimeError("SpeciesAggregator.fit() must be called before summaries().")
        return self._summaries

    def to_frame(self) -> pd.DataFrame:
        columns = [item.name for item in fields(SpeciesAggregate)]
        return pd.DataFrame([asdict(summary) for summary in self.summaries()], columns=columns)

    def significant_movers(self) -> pd.DataFrame:
        return select_significant_movers(self.to_frame(), self.config)


def holm_adjust(p_values: Sequence[float]) -> np.ndarray:
    """Holm step-down adjustment applied jointly to all p-values."""
    values = np.asarray(p_values, dtype=float)
    if values.size == 0:
        return values
    _, adjusted, _, _ = multipletests(values, method="holm")
    return np.asarray(adjusted, dtype=float)


def select_significant_movers(table: pd.DataFrame, config: Optional[AggregationConfig] = None) -> pd.DataFrame:
    """Species whose Holm-adjusted p-value is below alpha and with enough observations."""
    cfg = config or AggregationConfig()
    cfg.validate()
    mask = (table["adjusted_p_value"] < cfg.alpha) & (table["n_observations"] >= cfg.min_observations)
    return table.loc[mask].reset_index(drop=True)


__all__ = ["AggregationConfig", "SpeciesAggregator", "holm_adjust", "select_significant_movers"]
