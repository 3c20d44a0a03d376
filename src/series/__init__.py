"""Resurveyed plot series built from layer-merged observations."""

from .builder import SeriesBuilder, SeriesConfig, releves_from_observations
from .records import Series, SeriesStructureError, Snapshot

__all__ = [
    "Series",
    "SeriesBuilder",
    "SeriesConfig",
    "SeriesStructureError",
    "Snapshot",
    "releves_from_observations",
]
