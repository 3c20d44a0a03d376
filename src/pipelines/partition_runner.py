from __future__ import annotations

import logging
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple

import pandas as pd
from tqdm import tqdm

from src.change import SeriesChanges, compute_series_changes
from src.series import SeriesBuilder, SeriesConfig

from .bucketing import PartitionKey, plan_from_frame

logger = logging.getLogger(__name__)

PartitionPayload = Tuple[PartitionKey, pd.DataFrame, pd.DataFrame, SeriesConfig]


@dataclass(frozen=True)
class PartitionFailure:
    """A partition that was skipped because it raised a contract violation."""

    project_id: str
    plot_code: str
    error_type: str
    message: str


@dataclass
class PartitionResult:
    """Outcome of processing one (project, plot code) partition."""

    key: PartitionKey
    changes: SeriesChanges = field(default_factory=SeriesChanges)
    built: bool = False
    failure: Optional[PartitionFailure] = None


def process_partition(payload: PartitionPayload) -> PartitionResult:
    """Build the series of one partition and compute its change records.

    Contract violations (`ValueError`, including `SeriesStructureError`) abort
    only this partition; they are logged and returned as a `PartitionFailure`.
    """
    key, merged, releves, series_config = payload
    project_id, plot_code = key
    try:
        series = SeriesBuilder(series_config).build(merged, project_id, plot_code, releves)
        if series is None:
            return PartitionResult(key=key)
        return PartitionResult(key=key, changes=compute_series_changes(series), built=True)
    except ValueError as exc:
        logger.warning("Skipping series %s:%s: %s", project_id, plot_code, exc)
        failure = PartitionFailure(
            project_id=project_id,
            plot_code=plot_code,
            error_type=type(exc).__name__,
            message=str(exc),
        )
        return PartitionResult(key=key, failure=failure)


def iter_payloads(
    merged: pd.DataFrame,
    releves: pd.DataFrame,
    series_config: SeriesConfig,
    keys: Optional[Sequence[PartitionKey]] = None,
) -> Iterator[PartitionPayload]:
    """Slice the corpus into independent per-partition payloads in sorted key order."""
    merged_plan = plan_from_frame(merged)
    releve_plan = plan_from_frame(releves)
    for key in keys if keys is not None else releve_plan.keys:
        yield key, merged_plan.rows(merged, key), releve_plan.rows(releves, key), series_config


def run_partitions(
    merged: pd.DataFrame,
    releves: pd.DataFrame,
    series_config: Optional[SeriesConfig] = None,
    keys: Optional[Sequence[PartitionKey]] = None,
    workers: int = 1,
    desc: str = "Series",
) -> List[PartitionResult]:
    """Process every partition, serially or in a process pool, preserving key order."""
    config = series_config or SeriesConfig()
    config.validate()
    payloads = iter_payloads(merged, releves, config, keys)
    total = len(keys) if keys is not None else None

    if workers <= 1:
        return [process_partition(payload) for payload in tqdm(payloads, total=total, desc=desc, leave=False)]

    with ProcessPoolExecutor(max_workers=workers) as executor:
        results = executor.map(process_partition, payloads, chunksize=16)
        return list(tqdm(results, total=total, desc=desc, leave=False))


def merge_results(results: Sequence[PartitionResult]) -> Tuple[SeriesChanges, List[PartitionFailure]]:
    """Concatenate per-partition records (in the given order) and collect failures."""
    merged = SeriesChanges()
    failures: List[PartitionFailure] = []
    for result in results:
        merged.extend(result.changes)
        if result.failure is not None:
            failures.append(result.failure)
    return merged, failures


__all__ = [
    "PartitionFailure",
    "PartitionResult",
    "iter_payloads",
    "merge_results",
    "process_partition",
    "run_partitions",
]
