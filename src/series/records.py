"""Series and snapshot containers produced by the series builder."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Tuple

import pandas as pd

from src.datahub.tables import series_key

DIVERSITY_COLUMNS: Tuple[str, ...] = ("richness", "shannon", "evenness", "n_releves")


class SeriesStructureError(ValueError):
    """Raised when a series or snapshot violates the expected table layout."""


@dataclass(frozen=True, eq=False)
class Snapshot:
    """Replicate-averaged species composition of one survey year."""

    year: int
    n_releves: int
    cover: pd.Series
    richness: float
    shannon: float
    evenness: float


@dataclass(frozen=True, eq=False)
class Series:
    """A resurveyed plot with its snapshots ordered from the most recent year backwards.

    `cover` is indexed by year (descending) with one column per species that
    has nonzero cover somewhere in the series; `diversity` shares the index and
    holds the averaged richness, Shannon and evenness plus the replicate count.
    """

    project_id: str
    plot_code: str
    cover: pd.DataFrame
    diversity: pd.DataFrame

    def __post_init__(self) -> None:
        if not self.cover.index.equals(self.diversity.index):
            raise SeriesStructureError(f"Series {self.key}: cover and diversity tables are not aligned.")
        missing = [column for column in DIVERSITY_COLUMNS if column not in self.diversity.columns]
        if missing:
            raise SeriesStructureError(f"Series {self.key}: diversity table lacks {', '.join(missing)}.")
        if not self.cover.index.is_monotonic_decreasing or not self.cover.index.is_unique:
            raise SeriesStructureError(f"Series {self.key}: years must be unique and sorted descending.")

    @property
    def key(self) -> str:
        return series_key(self.project_id, self.plot_code)

    @property
    def years(self) -> Tuple[int, ...]:
        return tuple(int(year) for year in self.cover.index)

    @property
    def species(self) -> Tuple[str, ...]:
        return tuple(str(name) for name in self.cover.columns)

    def __len__(self) -> int:
        return len(self.cover.index)

    def snapshot(self, position: int) -> Snapshot:
        """Return the snapshot at `position` (0 is the most recent year)."""
        year = self.cover.index[position]
        stats = self.diversity.loc[year]
        return Snapshot(
            year=int(year),
            n_releves=int(stats["n_releves"]),
            cover=self.cover.loc[year].astype(float),
            richness=float(stats["richness"]),
            shannon=float(stats["shannon"]),
            evenness=float(stats["evenness"]),
        )

    def intervals(self) -> Iterator[Tuple[Snapshot, Snapshot]]:
        """Yield (later, earlier) snapshot pairs for each consecutive interval."""
        for position in range(len(self) - 1):
            yield self.snapshot(position), self.snapshot(position + 1)

    def species_maxima(self) -> pd.Series:
        """Maximum averaged cover of each species across the whole series."""
        return self.cover.max(axis=0)


__all__ = ["DIVERSITY_COLUMNS", "Series", "SeriesStructureError", "Snapshot"]
