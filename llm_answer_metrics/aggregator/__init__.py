"""
Aggregator module for turning extraction results into ranked metrics.

Public API:
    - MetricsAggregator: Per-scope aggregation with smoothing and ranking
    - AggregatedMetric: One brand's metric row within one scope
    - ScopeSummary: A scope's rows plus variance and sample statistics
    - RANKED_METRICS: Ranked metric names and sort directions
    - VARIANCE_METRICS: Metrics whose spread across brands is reported
    - assign_ranks / rank_change / coefficient_of_variation: Ranking helpers
"""

from llm_answer_metrics.aggregator.metrics import (
    RANKED_METRICS,
    VARIANCE_METRICS,
    AggregatedMetric,
    MetricsAggregator,
    ScopeSummary,
)
from llm_answer_metrics.aggregator.ranking import (
    RankEntry,
    assign_ranks,
    coefficient_of_variation,
    rank_change,
)

__all__ = [
    "RANKED_METRICS",
    "VARIANCE_METRICS",
    "AggregatedMetric",
    "MetricsAggregator",
    "RankEntry",
    "ScopeSummary",
    "assign_ranks",
    "coefficient_of_variation",
    "rank_change",
]
