"""Helpers for persisting result tables and tracking run metadata."""

from __future__ import annotations

import hashlib
import json
import os
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, Sequence

import pandas as pd

from .config import LORENZ_TABLE_TEMPLATE, OUTPUT_TABLES

if TYPE_CHECKING:
    from src.pipelines.resurvey import PipelineResult

METADATA_NAME = "run.meta.json"
FLOAT_FORMAT = "%.17g"


def sha256sum(path: Path) -> str:
    """Compute the SHA256 checksum for a file."""
    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(1024 * 1024), b""):
            digest.update(chunk)
    return digest.hexdigest()


def write_metadata(path: Path, payload: Mapping[str, Any]) -> None:
    """Persist metadata next to the result tables."""
    path.write_text(json.dumps(payload, indent=2, sort_keys=True))


def write_table(frame: pd.DataFrame, dest: Path) -> None:
    """Write a table as CSV atomically with a fixed float format."""
    dest.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile("w", delete=False, dir=dest.parent, suffix=".csv", newline="") as tmp:
        frame.to_csv(tmp, index=False, float_format=FLOAT_FORMAT)
    os.replace(tmp.name, dest)


def write_results(
    result: "PipelineResult",
    output_root: Path,
    *,
    config: Optional[Mapping[str, Any]] = None,
    inputs: Sequence[Path] = (),
) -> Dict[str, Path]:
    """Write every result table of a run plus `run.meta.json`; returns name → path."""
    output_root.mkdir(parents=True, exist_ok=True)
    tables = {
        "interval_changes": result.interval_changes,
        "plot_changes": result.plot_changes,
        "species": result.species,
        "movers": result.movers,
        "community": result.community,
        "projects": result.projects,
        "gini": result.inequality.gini_frame(),
        "failures": result.failures_frame(),
    }
    written: Dict[str, Path] = {}
    for name, frame in tables.items():
        dest = output_root / OUTPUT_TABLES[name]
        write_table(frame, dest)
        written[name] = dest
    for name, frame in result.inequality.lorenz_frames().items():
        dest = output_root / LORENZ_TABLE_TEMPLATE.format(name=name)
        write_table(frame, dest)
        written[f"lorenz_{name}"] = dest

    payload = {
        "config": dict(config or {}),
        "inputs": {str(path): sha256sum(path) for path in inputs},
        "rows": {name: int(len(frame)) for name, frame in tables.items()},
    }
    write_metadata(output_root / METADATA_NAME, payload)
    return written


__all__ = [
    "FLOAT_FORMAT",
    "METADATA_NAME",
    "sha256sum",
    "write_metadata",
    "write_results",
    "write_table",
]
