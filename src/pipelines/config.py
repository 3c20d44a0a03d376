"""Run-level configuration composing the per-stage configs."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict

from src.metrics.aggregation import AggregationConfig
from src.metrics.inequality import InequalityConfig
from src.series import SeriesConfig


@dataclass
class PipelineConfig:
    """Configuration for `run_pipeline`."""

    series: SeriesConfig = field(default_factory=SeriesConfig)
    aggregation: AggregationConfig = field(default_factory=AggregationConfig)
    inequality: InequalityConfig = field(default_factory=InequalityConfig)
    workers: int = 1

    def validate(self) -> None:
        if self.workers < 1:
            raise ValueError("workers must be at least 1.")
        self.series.validate()
        self.aggregation.validate()
        self.inequality.validate()

    def to_dict(self) -> Dict[str, Any]:
        """JSON-friendly view used in run metadata."""
        aggregation = {
            "alpha": self.aggregation.alpha,
            "min_observations": self.aggregation.min_observations,
            "confidence_level": self.aggregation.confidence_level,
            "zero_change_policy": self.aggregation.zero_change_policy.name,
        }
        return {
            "series": asdict(self.series),
            "aggregation": aggregation,
            "inequality": asdict(self.inequality),
            "workers": self.workers,
        }


__all__ = ["PipelineConfig"]
