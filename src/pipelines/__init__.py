"""Partitioned pipeline from survey tables to change and inequality tables."""

from .bucketing import PartitionKey, PartitionPlan, build_partition_plan, plan_from_frame
from .config import PipelineConfig
from .partition_runner import PartitionFailure, PartitionResult, merge_results, process_partition, run_partitions
from .resurvey import PipelineResult, analyze_changes, compute_changes, run_pipeline

__all__ = [
    "PartitionFailure",
    "PartitionKey",
    "PartitionPlan",
    "PartitionResult",
    "PipelineConfig",
    "PipelineResult",
    "analyze_changes",
    "build_partition_plan",
    "compute_changes",
    "merge_results",
    "plan_from_frame",
    "process_partition",
    "run_partitions",
    "run_pipeline",
]
