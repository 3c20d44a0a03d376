"""Policies deciding how zero changes enter the per-species binomial test."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


class ZeroChangePolicy(Protocol):
    """Strategy object that turns sign counts into the number of binomial trials."""

    name: str

    def trials(self, n_positive: int, n_negative: int, n_zero: int) -> int:
        """Return the trial count against which `n_positive` successes are tested."""
        ...


@dataclass(frozen=True)
class ExcludeZeroChanges:
    """Zero changes are uninformative: trials = increases + decreases."""

    name: str = "exclude"

    def trials(self, n_positive: int, n_negative: int, n_zero: int) -> int:
        _check_counts(n_positive, n_negative, n_zero)
        # binomtest needs at least one trial; with no signed change the test is uninformative (p = 1).
        return max(n_positive + n_negative, 1)


@dataclass(frozen=True)
class IncludeZeroChanges:
    """Zero changes count as trials in which the species did not increase."""

    name: str = "include"

    def trials(self, n_positive: int, n_negative: int, n_zero: int) -> int:
        _check_counts(n_positive, n_negative, n_zero)
        return max(n_positive + n_negative + n_zero, 1)


def _check_counts(*counts: int) -> None:
    if any(count < 0 for count in counts):
        raise ValueError("Sign counts must be non-negative.")


def policy_from_name(name: str) -> ZeroChangePolicy:
    """Resolve a policy from its CLI/config name."""
    policies = {"exclude": ExcludeZeroChanges(), "include": IncludeZeroChanges()}
    try:
        return policies[name]
    except KeyError as exc:
        raise ValueError(f"Unknown zero-change policy '{name}'. Available: {list(policies)}") from exc


__all__ = ["ExcludeZeroChanges", "IncludeZeroChanges", "ZeroChangePolicy", "policy_from_name"]
