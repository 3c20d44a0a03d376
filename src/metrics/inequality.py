"""Lorenz curves and bootstrap Gini coefficients for gains and losses.

A multiset of signed changes is split into its strictly negative and strictly
positive parts; each part is summarized independently over absolute
magnitudes. The Gini coefficient uses the rank-weighted formula over sorted
values with the ``n / (n - 1)`` small-sample correction, and its confidence
interval is a percentile bootstrap.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Literal, Optional, Tuple

import numpy as np
import pandas as pd

Direction = Literal["negative", "positive"]
DIRECTIONS: Tuple[Direction, ...] = ("negative", "positive")
REPORT_NAMES: Tuple[str, ...] = (
    "raw_negative",
    "raw_positive",
    "species_mean_negative",
    "species_mean_positive",
)

# Upper bound on the number of resampled values held in memory at once.
_BOOTSTRAP_BLOCK_VALUES = 4_000_000


@dataclass(frozen=True)
class InequalityConfig:
    """Configuration for the bootstrap Gini estimate."""

    n_resamples: int = 1000
    confidence_level: float = 0.95
    seed: Optional[int] = None

    def validate(self) -> None:
        if self.n_resamples < 1:
            raise ValueError("n_resamples must be at least 1.")
        if not 0.0 < self.confidence_level < 1.0:
            raise ValueError("confidence_level must fall within (0, 1).")


@dataclass(frozen=True, eq=False)
class LorenzCurve:
    """Cumulative share of units against cumulative share of magnitude."""

    units: np.ndarray
    magnitude: np.ndarray

    def __len__(self) -> int:
        return int(self.units.size)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            {
                "cumulative_proportion_of_units": self.units,
                "cumulative_proportion_of_magnitude": self.magnitude,
            }
        )


@dataclass(frozen=True)
class GiniResult:
    """Gini coefficient with its percentile bootstrap interval."""

    coefficient: float
    ci_low: float
    ci_high: float
    n: int
    n_resamples: int


@dataclass(frozen=True, eq=False)
class InequalitySummary:
    """Lorenz curve and Gini estimate of one signed subset."""

    direction: Direction
    lorenz: LorenzCurve
    gini: GiniResult


def child_seeds(seed: Optional[int], count: int) -> List[Optional[int]]:
    """Derive independent, reproducible integer seeds from one parent seed."""
    if seed is None:
        return [None] * count
    return [int(child.generate_state(1)[0]) for child in np.random.SeedSequence(seed).spawn(count)]


def _as_magnitudes(values: Iterable[float]) -> np.ndarray:
    arr = np.asarray(values if isinstance(values, np.ndarray) else list(values), dtype=float)
    if arr.ndim != 1:
        raise ValueError(f"values must be 1-D, got shape {arr.shape}")
    if np.any(~np.isfinite(arr)):
        raise ValueError("Inequality statistics require finite values.")
    return arr


def split_by_sign(values: Iterable[float]) -> Dict[Direction, np.ndarray]:
    """Absolute magnitudes of the strictly negative and strictly positive values."""
    arr = np.asarray(values if isinstance(values, np.ndarray) else list(values), dtype=float)
    arr = arr[np.isfinite(arr)]
    return {"negative": np.abs(arr[arr < 0]), "positive": arr[arr > 0]}


def lorenz_curve(magnitudes: Iterable[float]) -> LorenzCurve:
    """Observation-level Lorenz curve over ascending magnitudes, ending at exactly (1, 1)."""
    values = np.sort(_as_magnitudes(magnitudes))
    if values.size == 0:
        return LorenzCurve(units=np.empty(0), magnitude=np.empty(0))
    if np.any(values < 0):
        raise ValueError("Lorenz curves are defined over non-negative magnitudes.")

    cumulative_units = np.arange(1, values.size + 1, dtype=float)
    cumulative_magnitude = np.cumsum(values)
    total = cumulative_magnitude[-1]
    if total <= 0:
        raise ValueError("Lorenz curves need a positive total magnitude.")
    return LorenzCurve(units=cumulative_units / cumulative_units[-1], magnitude=cumulative_magnitude / total)


def _gini_sorted(sorted_values: np.ndarray) -> np.ndarray:
    """Bias-corrected Gini for each row of an ascending-sorted 2-D array."""
    n = sorted_values.shape[-1]
    ranks = np.arange(1, n + 1, dtype=float)
    totals = sorted_values.sum(axis=-1)
    with np.errstate(divide="ignore", invalid="ignore"):
        raw = 2.0 * (sorted_values @ ranks) / (n * totals) - (n + 1.0) / n
        corrected = raw * n / (n - 1.0)
    return np.where(totals > 0, corrected, np.nan)


def gini(magnitudes: Iterable[float]) -> float:
    """Bias-corrected Gini coefficient of non-negative magnitudes (NaN when undefined)."""
    values = np.sort(_as_magnitudes(magnitudes))
    if np.any(values < 0):
        raise ValueError("Gini coefficients are defined over non-negative magnitudes.")
    if values.size < 2:
        return float("nan")
    return float(_gini_sorted(values[np.newaxis, :])[0])


def bootstrap_gini(magnitudes: Iterable[float], config: Optional[InequalityConfig] = None) -> GiniResult:
    """Gini coefficient with a percentile bootstrap confidence interval."""
    cfg = config or InequalityConfig()
    cfg.validate()
    values = _as_magnitudes(magnitudes)
    coefficient = gini(values)
    n = int(values.size)
    if n < 2 or not np.isfinite(coefficient):
        return GiniResult(coefficient=coefficient, ci_low=float("nan"), ci_high=float("nan"), n=n, n_resamples=0)

    rng = np.random.default_rng(cfg.seed)
    block = max(1, _BOOTSTRAP_BLOCK_VALUES // n)
    estimates = np.empty(cfg.n_resamples, dtype=float)
    for start in range(0, cfg.n_resamples, block):
        stop = min(start + block, cfg.n_resamples)
        indices = rng.integers(0, n, size=(stop - start, n))
        estimates[start:stop] = _gini_sorted(np.sort(values[indices], axis=1))

    tail = (1.0 - cfg.confidence_level) / 2.0 * 100.0
    low, high = np.nanpercentile(estimates, [tail, 100.0 - tail])
    return GiniResult(
        coefficient=coefficient,
        ci_low=float(low),
        ci_high=float(high),
        n=n,
        n_resamples=cfg.n_resamples,
    )


def summarize_inequality(
    values: Iterable[float],
    config: Optional[InequalityConfig] = None,
) -> Dict[Direction, InequalitySummary]:
    """Split signed values by sign and summarize each side independently."""
    cfg = config or InequalityConfig()
    cfg.validate()
    seeds = child_seeds(cfg.seed, len(DIRECTIONS))
    subsets = split_by_sign(values)
    summaries: Dict[Direction, InequalitySummary] = {}
    for direction, seed in zip(DIRECTIONS, seeds, strict=True):
        magnitudes = subsets[direction]
        side_config = InequalityConfig(cfg.n_resamples, cfg.confidence_level, seed)
        summaries[direction] = InequalitySummary(
            direction=direction,
            lorenz=lorenz_curve(magnitudes),
            gini=bootstrap_gini(magnitudes, side_config),
        )
    return summaries


@dataclass(frozen=True, eq=False)
class InequalityReport:
    """The four named inequality summaries of a run; raw and species-mean results stay separate."""

    results: Dict[str, InequalitySummary]

    def __getitem__(self, name: str) -> InequalitySummary:
        return self.results[name]

    def gini_frame(self) -> pd.DataFrame:
        rows = []
        for name in REPORT_NAMES:
            summary = self.results[name]
            rows.append(
                {
                    "result": name,
                    "direction": summary.direction,
                    "n": summary.gini.n,
                    "gini": summary.gini.coefficient,
                    "ci_low": summary.gini.ci_low,
                    "ci_high": summary.gini.ci_high,
                    "n_resamples": summary.gini.n_resamples,
                }
            )
        return pd.DataFrame(rows)

    def lorenz_frames(self) -> Dict[str, pd.DataFrame]:
        return {name: self.results[name].lorenz.to_frame() for name in REPORT_NAMES}


def inequality_report(
    raw_changes: Iterable[float],
    species_means: Iterable[float],
    config: Optional[InequalityConfig] = None,
) -> InequalityReport:
    """Summarize raw per-observation changes and per-species mean changes separately."""
    cfg = config or InequalityConfig()
    cfg.validate()
    raw_seed, mean_seed = child_seeds(cfg.seed, 2)

    raw = summarize_inequality(raw_changes, InequalityConfig(cfg.n_resamples, cfg.confidence_level, raw_seed))
    means = summarize_inequality(species_means, InequalityConfig(cfg.n_resamples, cfg.confidence_level, mean_seed))
    return InequalityReport(
        results={
            "raw_negative": raw["negative"],
            "raw_positive": raw["positive"],
            "species_mean_negative": means["negative"],
            "species_mean_positive": means["positive"],
        }
    )


__all__ = [
    "DIRECTIONS",
    "GiniResult",
    "InequalityConfig",
    "InequalityReport",
    "InequalitySummary",
    "LorenzCurve",
    "REPORT_NAMES",
    "bootstrap_gini",
    "child_seeds",
    "gini",
    "inequality_report",
    "lorenz_curve",
    "split_by_sign",
    "summarize_inequality",
]
