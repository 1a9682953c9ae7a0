"""Dashboard-side long-poll client and per-metric caches."""

from .timeline import METRIC_CONFIGS, MetricConfig, MetricTimeline
from .poller import DashboardPoller

__all__ = [
    "METRIC_CONFIGS",
    "MetricConfig",
    "MetricTimeline",
    "DashboardPoller",
]
