from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Callable, Dict, Generic, List, Sequence, Tuple, TypeVar

import pandas as pd

RowT = TypeVar("RowT")
PartitionKey = Tuple[str, str]


@dataclass(frozen=True)
class PartitionPlan(Generic[RowT]):
    """Lookup helpers describing how rows map to (project, plot code) partitions."""

    indices: Dict[PartitionKey, List[int]]

    @property
    def keys(self) -> List[PartitionKey]:
        """Partition keys in deterministic (sorted) order."""
        return sorted(self.indices)

    def rows(self, frame: pd.DataFrame, key: PartitionKey) -> pd.DataFrame:
        """Positional slice of `frame` belonging to `key` (empty if the key is unknown)."""
        return frame.iloc[self.indices.get(key, [])]


def build_partition_plan(
    rows: Sequence[RowT],
    key_fn: Callable[[RowT], PartitionKey],
) -> PartitionPlan[RowT]:
    """Group rows by `key_fn` and record the positions belonging to each partition."""
    partitions: Dict[PartitionKey, List[int]] = defaultdict(list)
    for idx, row in enumerate(rows):
        partitions[key_fn(row)].append(idx)

    return PartitionPlan(indices=dict(partitions))


def plan_from_frame(frame: pd.DataFrame) -> PartitionPlan[Tuple[str, str]]:
    """Partition plan over the `project_id` and `plot_code` columns of `frame`."""
    keys = list(zip(frame["project_id"].astype(str), frame["plot_code"].astype(str)))
    return build_partition_plan(keys, lambda key: key)
