from __future__ import annotations

from typing import Any, Iterable

import pandas as pd


def ensure_columns(frame: pd.DataFrame, required: Iterable[str], *, name: str = "table") -> None:
    """Raise if any of `required` is missing from `frame`."""
    missing = [column for column in required if column not in frame.columns]
    if missing:
        raise ValueError(f"{name} is missing required columns: {', '.join(missing)}")


def to_int(value: Any) -> int:
    """Robustly convert survey-year style fields to ints."""
    if value is None:
        raise ValueError("Expected integer-like value, received None")
    if isinstance(value, bool):
        return int(value)
    try:
        return int(float(value))
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Cannot convert {value!r} to int") from exc


def coerce_years(values: pd.Series) -> pd.Series:
    """Convert a year column to plain ints, rejecting missing or non-numeric entries."""
    numeric = pd.to_numeric(values, errors="coerce")
    if numeric.isna().any():
        bad = values[numeric.isna()].unique()[:5]
        raise ValueError(f"Survey years must be numeric, got: {list(bad)}")
    return numeric.map(to_int).astype(int)


def coerce_cover(values: pd.Series) -> pd.Series:
    """Convert cover percentages to floats inside [0, 100]."""
    numeric = pd.to_numeric(values, errors="coerce")
    if numeric.isna().any():
        raise ValueError("Cover values must be numeric and non-missing.")
    if ((numeric < 0) | (numeric > 100)).any():
        raise ValueError("Cover values must fall within [0, 100].")
    return numeric.astype(float)


__all__ = ["coerce_cover", "coerce_years", "ensure_columns", "to_int"]
