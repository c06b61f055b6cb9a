"""Monitoring - CloudWatch metrics for rule enforcement."""

from streamwarden.monitoring.metrics import MetricPoint, MetricType, RuleMetricsCollector

__all__ = [
    "MetricPoint",
    "MetricType",
    "RuleMetricsCollector",
]
